import stripe
import logging
from typing import Optional
from app.configs.app_settings import settings

logger = logging.getLogger(__name__)

# The Stripe client is created once in the app lifespan and handed to services through Depends(get_stripe_client),
# so nothing in the app touches the process-wide stripe.api_key. Tests swap it with app.dependency_overrides.

_stripe_client: Optional[stripe.StripeClient] = None
_http_client: Optional[stripe.HTTPXClient] = None


def create_stripe_client() -> stripe.StripeClient:
    """Create the Stripe client - only called once during startup"""
    global _stripe_client, _http_client
    if _stripe_client is None:
        _http_client = stripe.HTTPXClient()
        _stripe_client = stripe.StripeClient(
            settings.STRIPE_SECRET_KEY,
            stripe_version=settings.STRIPE_API_VERSION,
            max_network_retries=0,  # failures surface to the caller, Stripe redelivers webhooks on its own
            http_client=_http_client,
        )
        logger.info("✅ Stripe client initialized")
    return _stripe_client


async def get_stripe_client() -> stripe.StripeClient:
    """Dependency function to get the Stripe client"""
    if _stripe_client is None:
        raise RuntimeError("Stripe client not initialized. Call create_stripe_client() during startup.")
    return _stripe_client


async def close_stripe_client():
    """Close the httpx connection pool behind the Stripe client during shutdown"""
    global _stripe_client, _http_client
    if _http_client is not None:
        await _http_client.close_async()
    _http_client = None
    _stripe_client = None
