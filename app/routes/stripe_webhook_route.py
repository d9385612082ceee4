from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from app.services.stripe_webhook_services import StripeWebhookService
from app.models.stripe_webhook_models import StripeWebhookEventResponse
from app.configs.app_settings import settings
from app.custom_error import WebhookError
import logging

stripe_webhook_router = APIRouter(prefix="/webhooks", tags=["Webhooks"])
logger = logging.getLogger(__name__)


async def get_stripe_webhook_service() -> StripeWebhookService:
    """Dependency to get StripeWebhookService instance"""
    return StripeWebhookService(settings.STRIPE_WEBHOOK_SECRET, tolerance=settings.STRIPE_WEBHOOK_TOLERANCE)


# ################################################################################################################################


@stripe_webhook_router.post("/stripe", response_model=StripeWebhookEventResponse, response_model_by_alias=True)
async def stripe_webhook_handler(request: Request, webhook_service: StripeWebhookService = Depends(get_stripe_webhook_service)):
    """Handle Stripe webhook events"""

    # states: unverified -> verified -> processed, or unverified -> rejected
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    try:
        event = webhook_service.verify_event(payload, sig_header)
    except WebhookError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.detail})

    try:
        await webhook_service.dispatch(event)
    except Exception as e:
        # a 500 makes Stripe redeliver this event later
        logger.exception(f"❌ Error processing webhook event {event.id} ({event.type}): {str(e)}")
        return JSONResponse(status_code=500, content={"error": "Processing failed", "eventId": event.id, "eventType": event.type})

    return StripeWebhookEventResponse(event_id=event.id)


@stripe_webhook_router.api_route("/stripe", methods=["GET", "PUT", "DELETE"], include_in_schema=False)
async def stripe_webhook_method_not_allowed():
    """Only POST is accepted on the webhook path"""
    return JSONResponse(status_code=405, content={"error": "Method not allowed"})
