from typing import Dict, List, Optional
from app.configs.app_settings import settings
from app.models.pricing_models import PricingTier


# Tier catalog shown on the landing page. Prices are in minor units (cents).
PRICING_TIERS: Dict[str, PricingTier] = {
    "basic": PricingTier(
        name="Basic",
        description="Perfect for getting started",
        price=999,
        currency="usd",
        interval="month",
        features=["Up to 5 projects", "Basic analytics", "Email support", "10GB storage"],
        stripe_price_id=settings.STRIPE_BASIC_PRICE_ID,
        stripe_product_id=settings.STRIPE_BASIC_PRODUCT_ID,
        max_users=1,
        max_projects=5,
    ),
    "pro": PricingTier(
        name="Pro",
        description="For growing teams and businesses",
        price=2999,
        currency="usd",
        interval="month",
        features=[
            "Unlimited projects",
            "Advanced analytics",
            "Priority support",
            "100GB storage",
            "Team collaboration",
            "Custom integrations",
        ],
        stripe_price_id=settings.STRIPE_PRO_PRICE_ID,
        stripe_product_id=settings.STRIPE_PRO_PRODUCT_ID,
        popular=True,
        max_users=10,
        max_projects=-1,
    ),
    "enterprise": PricingTier(
        name="Enterprise",
        description="For large organizations",
        price=9999,
        currency="usd",
        interval="month",
        features=[
            "Everything in Pro",
            "Dedicated support",
            "Custom contracts",
            "Unlimited storage",
            "Advanced security",
            "On-premise deployment",
            "SLA guarantee",
        ],
        stripe_price_id=settings.STRIPE_ENTERPRISE_PRICE_ID,
        stripe_product_id=settings.STRIPE_ENTERPRISE_PRODUCT_ID,
        max_users=-1,
        max_projects=-1,
    ),
}


def get_pricing_tier(tier_id: str) -> Optional[PricingTier]:
    return PRICING_TIERS.get(tier_id.lower())


def get_all_pricing_tiers() -> List[PricingTier]:
    return list(PRICING_TIERS.values())


def get_tier_by_price_id(price_id: str) -> Optional[PricingTier]:
    for tier in PRICING_TIERS.values():
        if tier.stripe_price_id == price_id:
            return tier
    return None
