from fastapi import HTTPException, status
from typing import Optional
import stripe


class CheckoutApiError(HTTPException):
    """Base for every error this service reports. Rendered as {"error": code, "message": detail}."""

    error_code = "INTERNAL_SERVER_ERROR"
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, error_detail_message: str, error_code: Optional[str] = None):
        super().__init__(status_code=self.default_status, detail=error_detail_message)
        if error_code:
            self.error_code = error_code


class InvalidJsonError(CheckoutApiError):
    error_code = "INVALID_JSON"
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self):
        super().__init__("Request body must be valid JSON")


class ValidationError(CheckoutApiError):
    error_code = "INVALID_REQUEST"
    default_status = status.HTTP_400_BAD_REQUEST


class ForbiddenOriginError(CheckoutApiError):
    error_code = "FORBIDDEN"
    default_status = status.HTTP_403_FORBIDDEN

    def __init__(self):
        super().__init__("Request from unauthorized origin")


class RateLimitedError(CheckoutApiError):
    error_code = "RATE_LIMIT_ERROR"
    default_status = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self):
        super().__init__("Too many requests. Please try again later.")


class AuthError(CheckoutApiError):
    error_code = "STRIPE_AUTH_ERROR"

    def __init__(self):
        super().__init__("Payment processor authentication failed")


class ConfigError(CheckoutApiError):
    error_code = "SERVER_CONFIG_ERROR"


class UpstreamError(CheckoutApiError):
    error_code = "STRIPE_ERROR"


class ServerError(CheckoutApiError):
    error_code = "INTERNAL_SERVER_ERROR"


class WebhookError(HTTPException):
    def __init__(self, error_detail_message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code=status_code, detail=error_detail_message)


# ######################################################################################################################


def classify_stripe_error(exc: Exception) -> CheckoutApiError:
    """Map a Stripe SDK exception onto the service error taxonomy"""
    if isinstance(exc, CheckoutApiError):
        return exc
    if isinstance(exc, stripe.RateLimitError):
        return RateLimitedError()
    if isinstance(exc, stripe.AuthenticationError):
        return AuthError()
    if isinstance(exc, stripe.InvalidRequestError):
        return ValidationError(exc.user_message or "Invalid request to payment processor", error_code="STRIPE_INVALID_REQUEST")
    if isinstance(exc, stripe.StripeError):
        return UpstreamError(exc.user_message or "Payment processor error")
    return ServerError("An unexpected error occurred")
