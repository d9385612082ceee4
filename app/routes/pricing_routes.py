from fastapi import APIRouter, HTTPException
from app.configs.app_settings import settings
from app.configs.pricing_config import PRICING_TIERS, get_pricing_tier
from app.models.pricing_models import PricingTier, PricingTierResponse
from app.utils.price_formatting import format_price_with_interval
from typing import List

pricing_router = APIRouter(tags=["Pricing"])


def _to_response(tier_id: str, tier: PricingTier) -> PricingTierResponse:
    return PricingTierResponse(
        tier_id=tier_id,
        formatted_price=format_price_with_interval(tier.price, tier.interval, tier.currency),
        **tier.model_dump(),
    )


#########################################################################################################################


@pricing_router.get("/pricing", response_model=List[PricingTierResponse])
async def list_pricing_tiers():
    """Pricing cards for the landing page"""
    return [_to_response(tier_id, tier) for tier_id, tier in PRICING_TIERS.items()]


@pricing_router.get("/pricing/{tier_id}", response_model=PricingTierResponse)
async def get_pricing_tier_by_id(tier_id: str):
    tier = get_pricing_tier(tier_id)
    if tier is None:
        raise HTTPException(status_code=404, detail=f"Pricing tier '{tier_id}' not found")
    return _to_response(tier_id.lower(), tier)


@pricing_router.get("/config")
async def get_public_config():
    """Public values the frontend needs to start Stripe.js"""
    return {"publishableKey": settings.STRIPE_PUBLISHABLE_KEY, "appUrl": settings.APP_URL}
