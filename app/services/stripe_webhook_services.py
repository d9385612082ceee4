import stripe
from datetime import datetime, timezone
from pydantic import ValidationError as PydanticValidationError
from app.custom_error import WebhookError
from app.models.stripe_webhook_models import StripeWebhookEvent
from typing import Optional, Dict, Any, Callable, Awaitable
import logging

logger = logging.getLogger(__name__)

EventHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class StripeWebhookService:
    """
    Verifies Stripe webhook payloads and routes them to one handler per event type.

    Handlers only log for now. Stripe delivers at least once and nothing here deduplicates,
    so anything that later persists state from these handlers has to be idempotent on the object id.
    """

    def __init__(self, webhook_secret: Optional[str], tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE):
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

        # built per instance from the bound methods, so a handler patched on the class applies to the next request
        self.handlers: Dict[str, EventHandler] = {
            "payment_intent.succeeded": self.handle_payment_intent_succeeded,
            "payment_intent.payment_failed": self.handle_payment_intent_failed,
            "customer.subscription.created": self.handle_subscription_created,
            "customer.subscription.updated": self.handle_subscription_updated,
            "customer.subscription.deleted": self.handle_subscription_deleted,
            "invoice.payment_succeeded": self.handle_invoice_payment_succeeded,
            "invoice.payment_failed": self.handle_invoice_payment_failed,
            "checkout.session.completed": self.handle_checkout_session_completed,
            "customer.created": self.handle_customer_created,
            "price.created": self.handle_price_changed,
            "price.updated": self.handle_price_changed,
        }

    # ######################################################################################################################
    # Verification + dispatch
    # ######################################################################################################################

    def verify_event(self, payload: bytes, sig_header: Optional[str]) -> StripeWebhookEvent:
        """Check the signature over the exact raw bytes, then parse. Raises WebhookError on any failure."""

        if not sig_header:
            logger.error("❌ Missing Stripe signature header")
            raise WebhookError("Missing signature header")

        # never verify against an absent secret
        if not self.webhook_secret:
            logger.error("❌ Missing Stripe webhook secret")
            raise WebhookError("Webhook secret not configured", status_code=500)

        try:
            stripe.WebhookSignature.verify_header(payload.decode("utf-8"), sig_header, self.webhook_secret, self.tolerance)
            return StripeWebhookEvent.model_validate_json(payload)
        except (stripe.SignatureVerificationError, UnicodeDecodeError, PydanticValidationError) as e:
            logger.error(f"❌ Webhook signature verification failed: {str(e)}")
            raise WebhookError("Invalid signature")

    # ---------------------------------------------------------------------------------------------------------------------

    async def dispatch(self, event: StripeWebhookEvent) -> bool:
        """Run the handler for event.type. Returns False for types nobody handles, which is not an error."""

        logger.info(
            f"🔔 Processing webhook event: id={event.id} type={event.type} "
            f"created={datetime.fromtimestamp(event.created, tz=timezone.utc).isoformat()} livemode={event.livemode}"
        )

        handler = self.handlers.get(event.type)
        if handler is None:
            logger.info(f"⚠️ Unhandled webhook event type: {event.type}")
            return False

        await handler(event.data.object)
        logger.info(f"✅ Webhook event processed successfully: {event.id}")
        return True

    # ######################################################################################################################
    # Per-type handlers
    # ######################################################################################################################

    async def handle_payment_intent_succeeded(self, payment_intent: Dict[str, Any]):
        amount = payment_intent.get("amount", 0)
        currency = (payment_intent.get("currency") or "").upper()
        logger.info(f"💰 Payment processed: {payment_intent['id']} {amount / 100:.2f} {currency} for customer {payment_intent.get('customer')}")

    async def handle_payment_intent_failed(self, payment_intent: Dict[str, Any]):
        last_error = payment_intent.get("last_payment_error") or {}
        logger.warning(f"💥 Payment {payment_intent['id']} failed for customer {payment_intent.get('customer')}: {last_error.get('message')}")

    # ---------------------------------------------------------------------------------------------------------------------

    async def handle_subscription_created(self, subscription: Dict[str, Any]):
        logger.info(f"📅 Subscription created for customer {subscription.get('customer')}: {subscription['id']} - Status: {subscription.get('status')}")

    async def handle_subscription_updated(self, subscription: Dict[str, Any]):
        logger.info(f"🔄 Subscription updated for customer {subscription.get('customer')}: {subscription['id']} - Status: {subscription.get('status')}")

    async def handle_subscription_deleted(self, subscription: Dict[str, Any]):
        logger.info(f"🛑 Subscription cancelled for customer {subscription.get('customer')}: {subscription['id']}")

    # ---------------------------------------------------------------------------------------------------------------------

    async def handle_invoice_payment_succeeded(self, invoice: Dict[str, Any]):
        amount_paid = invoice.get("amount_paid", 0)
        currency = (invoice.get("currency") or "").upper()
        logger.info(f"🧾 Invoice {invoice['id']} paid by customer {invoice.get('customer')}: {amount_paid / 100:.2f} {currency}")

    async def handle_invoice_payment_failed(self, invoice: Dict[str, Any]):
        logger.warning(f"🧾 Invoice {invoice['id']} payment failed for customer {invoice.get('customer')}. Attempt: {invoice.get('attempt_count')}")

    # ---------------------------------------------------------------------------------------------------------------------

    async def handle_checkout_session_completed(self, checkout_session: Dict[str, Any]):
        logger.info(f"🛒 Checkout session completed: {checkout_session['id']} mode={checkout_session.get('mode')}")

    async def handle_customer_created(self, customer: Dict[str, Any]):
        logger.info(f"👤 New customer created: {customer['id']} {customer.get('email')}")

    async def handle_price_changed(self, price: Dict[str, Any]):
        logger.info(f"🏷️ Price {price['id']} synced: {price.get('unit_amount')} {price.get('currency')}")
