from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any


class StripeWebhookEventData(BaseModel):
    object: Dict[str, Any]
    previous_attributes: Optional[Dict[str, Any]] = None


class StripeWebhookEvent(BaseModel):
    """Verified Stripe event. `type` stays an open string since Stripe keeps adding event types."""

    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    created: int
    livemode: bool = False
    data: StripeWebhookEventData


class StripeWebhookEventResponse(BaseModel):
    """Acknowledgement returned to Stripe"""

    model_config = ConfigDict(populate_by_name=True)

    received: bool = True
    event_id: str = Field(alias="eventId")
