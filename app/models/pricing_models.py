from pydantic import BaseModel
from typing import List, Literal


class PricingTier(BaseModel):
    name: str
    description: str
    price: int  # minor units
    currency: str
    interval: Literal["month", "year"]
    features: List[str]
    stripe_price_id: str
    stripe_product_id: str
    popular: bool = False
    max_users: int = 1  # -1 = unlimited
    max_projects: int = 1  # -1 = unlimited


class PricingTierResponse(PricingTier):
    tier_id: str
    formatted_price: str
