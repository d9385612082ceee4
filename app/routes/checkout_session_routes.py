from fastapi import APIRouter, Depends, Header, Request, Response
from pydantic import ValidationError as PydanticValidationError
from stripe import StripeClient
from app.configs.app_settings import settings
from app.configs.stripe_config import get_stripe_client
from app.custom_error import CheckoutApiError, ConfigError, ForbiddenOriginError, InvalidJsonError, ServerError, ValidationError
from app.models.payment_models import CreateCheckoutSessionRequest, CheckoutSessionResponse, ErrorResponse
from app.services.payment_services import PaymentService
from typing import Optional
import json
import logging

checkout_session_router = APIRouter(tags=["Checkout"])
logger = logging.getLogger(__name__)

INVALID_REQUEST_MESSAGE = (
    "Request body validation failed. Required: priceId (string). Optional: quantity (number), metadata (object), "
    "customerId (string), customerEmail (string), mode (payment|subscription|setup)"
)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": settings.APP_URL,
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, Idempotency-Key",
    "Access-Control-Allow-Credentials": "true",
}


async def get_payment_service(stripe_client: StripeClient = Depends(get_stripe_client)) -> PaymentService:
    """Dependency to get PaymentService instance"""
    return PaymentService(stripe_client)


def validate_origin(request: Request):
    """Requests without an Origin header (same-origin, server to server) are allowed"""
    origin = request.headers.get("origin")
    if origin and origin not in settings.allowed_origins:
        logger.error(f"Invalid origin: {origin}")
        raise ForbiddenOriginError()


#########################################################################################################################


@checkout_session_router.options("/create-checkout-session")
async def create_checkout_session_preflight():
    # CORSMiddleware answers real preflights (Origin + Access-Control-Request-Method); this covers bare OPTIONS
    return Response(status_code=200, headers=CORS_HEADERS)


@checkout_session_router.post(
    "/create-checkout-session",
    response_model=CheckoutSessionResponse,
    response_model_by_alias=True,
    responses={code: {"model": ErrorResponse} for code in (400, 403, 429, 500)},
)
async def create_checkout_session(
    request: Request,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """Create a Stripe checkout session for a price and return its redirect url"""

    # origin is checked before the body is touched
    validate_origin(request)

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error(f"Invalid JSON in request body: {str(e)}")
        raise InvalidJsonError()

    try:
        checkout_request = CreateCheckoutSessionRequest.model_validate(body)
    except PydanticValidationError as e:
        logger.error(f"Invalid request body: {e.errors()}")
        raise ValidationError(INVALID_REQUEST_MESSAGE)

    if not settings.STRIPE_SECRET_KEY:
        logger.error("STRIPE_SECRET_KEY environment variable is not set")
        raise ConfigError("Payment system configuration error")

    try:
        return await payment_service.open_checkout_session(checkout_request, idempotency_key=idempotency_key)
    except CheckoutApiError:
        raise
    except Exception as e:
        logger.exception(f"Error creating checkout session: {str(e)}")
        raise ServerError("An unexpected error occurred while creating the checkout session")
