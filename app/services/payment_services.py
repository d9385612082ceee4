import stripe
from pydantic import ValidationError as PydanticValidationError
from app.configs.app_settings import settings
from app.custom_error import UpstreamError, classify_stripe_error
from app.models.payment_models import (
    CheckoutMode,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    CheckoutSessionResult,
    ConfirmPaymentIntentRequest,
    CreateCheckoutSessionRequest,
    CustomerRequest,
    CustomerResult,
    CustomerUpdate,
    PaymentIntentRequest,
    PaymentResult,
    ResultEnvelope,
    SubscriptionRequest,
    SubscriptionResult,
    SubscriptionUpdate,
)
from typing import Optional, Dict, Any, Type, TypeVar
import logging

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=ResultEnvelope)


def _plain(value: Any) -> Any:
    """Copy Stripe objects out into plain dicts/lists so nothing is returned by reference"""
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def _pick(stripe_object, *fields: str) -> Dict[str, Any]:
    return {field: _plain(stripe_object.get(field)) for field in fields}


def _request_options(idempotency_key: Optional[str]) -> Dict[str, Any]:
    return {"idempotency_key": idempotency_key} if idempotency_key else {}


def _failure(envelope: Type[E], action: str, e: Exception) -> E:
    """Turn any exception raised inside an action into a failed envelope"""
    if isinstance(e, PydanticValidationError):
        message = "; ".join(f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}" for err in e.errors())
        logger.warning(f"Invalid input for {action}: {message}")
        return envelope.fail(message, "INVALID_REQUEST")

    error = classify_stripe_error(e)
    if isinstance(e, stripe.StripeError):
        message = e.user_message or str(e)
    else:
        # raw exception text (IndexError, socket errors...) stays in the log only
        message = error.detail
    logger.error(f"❌ Error {action}: {str(e)}")
    return envelope.fail(message, error.error_code)


class PaymentService:
    """One method per Stripe capability. Methods validate, make the Stripe call and always return an envelope."""

    def __init__(self, stripe_client: stripe.StripeClient):
        self.stripe_client = stripe_client

    # ######################################################################################################################
    # Payment intents
    # ######################################################################################################################

    async def create_payment_intent(self, data: Dict[str, Any], idempotency_key: Optional[str] = None) -> PaymentResult:
        """Create a payment intent with automatic payment methods. Not idempotent unless a key is supplied."""
        try:
            validated = PaymentIntentRequest.model_validate(data)

            params: Dict[str, Any] = {
                "amount": validated.amount,
                "currency": validated.currency,
                "automatic_payment_methods": {"enabled": True},
            }
            if validated.customer_id:
                params["customer"] = validated.customer_id
            if validated.metadata:
                params["metadata"] = validated.metadata

            payment_intent = await self.stripe_client.payment_intents.create_async(params=params, options=_request_options(idempotency_key))

            logger.info(f"💳 Payment intent created: {payment_intent.get('id')}")
            return PaymentResult.ok(data=_pick(payment_intent, "id", "client_secret", "amount", "currency", "status"))

        except Exception as e:
            return _failure(PaymentResult, "creating payment intent", e)

    # ---------------------------------------------------------------------------------------------------------------------

    async def confirm_payment_intent(self, payment_intent_id: str, data: Dict[str, Any]) -> PaymentResult:
        try:
            validated = ConfirmPaymentIntentRequest.model_validate(data)
            payment_intent = await self.stripe_client.payment_intents.confirm_async(
                payment_intent_id, params={"payment_method": validated.payment_method_id}
            )
            return PaymentResult.ok(data=_pick(payment_intent, "id", "status", "amount_received"))

        except Exception as e:
            return _failure(PaymentResult, "confirming payment intent", e)

    # ---------------------------------------------------------------------------------------------------------------------

    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentResult:
        try:
            payment_intent = await self.stripe_client.payment_intents.retrieve_async(payment_intent_id)
            return PaymentResult.ok(data=_pick(payment_intent, "id", "status", "amount", "currency", "metadata"))

        except Exception as e:
            return _failure(PaymentResult, "retrieving payment intent", e)

    # ######################################################################################################################
    # Checkout sessions
    # ######################################################################################################################

    async def create_checkout_session(self, data: Dict[str, Any], idempotency_key: Optional[str] = None) -> CheckoutSessionResult:
        """Create a single line item checkout session and return its redirect url"""
        try:
            validated = CheckoutSessionRequest.model_validate(data)

            params: Dict[str, Any] = {
                "mode": validated.mode.value,
                "success_url": str(validated.success_url),
                "cancel_url": str(validated.cancel_url),
                "line_items": [{"price": validated.price_id, "quantity": 1}],
            }
            if validated.metadata:
                params["metadata"] = validated.metadata

            # customer id wins over email when both are supplied
            if validated.customer_id:
                params["customer"] = validated.customer_id
            elif validated.customer_email:
                params["customer_email"] = validated.customer_email

            if validated.mode == CheckoutMode.SUBSCRIPTION:
                params["billing_address_collection"] = "required"

            session = await self.stripe_client.checkout.sessions.create_async(params=params, options=_request_options(idempotency_key))

            logger.info(f"🛒 Checkout session created: {session.get('id')}")
            return CheckoutSessionResult.ok(url=session.get("url"), session_id=session.get("id"))

        except Exception as e:
            return _failure(CheckoutSessionResult, "creating checkout session", e)

    # ---------------------------------------------------------------------------------------------------------------------

    async def retrieve_checkout_session(self, session_id: str) -> PaymentResult:
        try:
            session = await self.stripe_client.checkout.sessions.retrieve_async(
                session_id, params={"expand": ["customer", "subscription", "payment_intent"]}
            )
            return PaymentResult.ok(data=_pick(session, "id", "status", "customer", "subscription", "payment_intent", "metadata"))

        except Exception as e:
            return _failure(PaymentResult, "retrieving checkout session", e)

    # ---------------------------------------------------------------------------------------------------------------------

    async def open_checkout_session(
        self, request: CreateCheckoutSessionRequest, idempotency_key: Optional[str] = None
    ) -> CheckoutSessionResponse:
        """
        Checkout session for the public POST /create-checkout-session endpoint.
        Unlike the envelope actions this raises CheckoutApiError subclasses, so the route can map them to statuses.
        """
        params: Dict[str, Any] = {
            "mode": request.mode.value,
            "line_items": [{"price": request.price_id, "quantity": request.quantity}],
            "success_url": f"{settings.success_url}?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": settings.cancel_url,
            "metadata": request.metadata,
        }

        if request.customer_id:
            params["customer"] = request.customer_id
        elif request.customer_email:
            params["customer_email"] = request.customer_email

        if request.mode == CheckoutMode.SUBSCRIPTION:
            params["billing_address_collection"] = "auto"
            params["payment_method_collection"] = "if_required"

        try:
            session = await self.stripe_client.checkout.sessions.create_async(params=params, options=_request_options(idempotency_key))
        except Exception as e:
            logger.error(f"❌ Error creating checkout session for price {request.price_id}: {str(e)}")
            raise classify_stripe_error(e)

        if not session.get("id") or not session.get("url"):
            logger.error(f"Stripe session creation failed - missing id or url: {session.get('id')}")
            raise UpstreamError("Failed to create checkout session")

        logger.info(
            f"✅ Checkout session created: {session['id']} price={request.price_id} quantity={request.quantity} "
            f"mode={request.mode.value} customer={request.customer_id or 'none'} email={request.customer_email or 'none'}"
        )
        return CheckoutSessionResponse(session_id=session["id"], url=session["url"])

    # ######################################################################################################################
    # Customers
    # ######################################################################################################################

    async def create_customer(self, data: Dict[str, Any], idempotency_key: Optional[str] = None) -> CustomerResult:
        try:
            validated = CustomerRequest.model_validate(data)
            customer = await self.stripe_client.customers.create_async(
                params=validated.model_dump(exclude_none=True), options=_request_options(idempotency_key)
            )
            return CustomerResult.ok(customer_id=customer.get("id"))

        except Exception as e:
            return _failure(CustomerResult, "creating customer", e)

    # ---------------------------------------------------------------------------------------------------------------------

    async def update_customer(self, customer_id: str, updates: Dict[str, Any]) -> CustomerResult:
        """Send only the fields the caller supplied"""
        try:
            validated = CustomerUpdate.model_validate(updates)
            customer = await self.stripe_client.customers.update_async(customer_id, params=validated.model_dump(exclude_unset=True))
            return CustomerResult.ok(customer_id=customer.get("id"))

        except Exception as e:
            return _failure(CustomerResult, "updating customer", e)

    # ---------------------------------------------------------------------------------------------------------------------

    async def retrieve_customer(self, customer_id: str) -> PaymentResult:
        try:
            customer = await self.stripe_client.customers.retrieve_async(customer_id)

            if customer.get("deleted"):
                return PaymentResult.fail("Customer has been deleted", "INVALID_REQUEST")

            return PaymentResult.ok(data=_pick(customer, "id", "email", "name", "phone", "metadata", "created"))

        except Exception as e:
            return _failure(PaymentResult, "retrieving customer", e)

    # ######################################################################################################################
    # Subscriptions
    # ######################################################################################################################

    async def create_subscription(self, data: Dict[str, Any], idempotency_key: Optional[str] = None) -> SubscriptionResult:
        try:
            validated = SubscriptionRequest.model_validate(data)

            params: Dict[str, Any] = {
                "customer": validated.customer_id,
                "items": [{"price": validated.price_id}],
                "payment_behavior": "default_incomplete",
                "payment_settings": {"save_default_payment_method": "on_subscription"},
                "expand": ["latest_invoice.payment_intent"],
            }
            if validated.metadata:
                params["metadata"] = validated.metadata
            if validated.trial_days:
                params["trial_period_days"] = validated.trial_days

            subscription = await self.stripe_client.subscriptions.create_async(params=params, options=_request_options(idempotency_key))

            logger.info(f"📅 Subscription created: {subscription.get('id')} for customer {validated.customer_id}")
            return SubscriptionResult.ok(subscription_id=subscription.get("id"))

        except Exception as e:
            return _failure(SubscriptionResult, "creating subscription", e)

    # ---------------------------------------------------------------------------------------------------------------------

    async def update_subscription(self, subscription_id: str, updates: Dict[str, Any]) -> SubscriptionResult:
        """
        Change metadata and/or the plan price of a subscription.
        A price change needs the current subscription item id, so the subscription is read first.
        The read and the write are not atomic: a concurrent update in between is lost (last write wins at Stripe).
        """
        try:
            validated = SubscriptionUpdate.model_validate(updates)

            params: Dict[str, Any] = {}
            if validated.metadata is not None:
                params["metadata"] = validated.metadata

            if validated.price_id:
                current = await self.stripe_client.subscriptions.retrieve_async(subscription_id)
                item_id = current["items"]["data"][0]["id"]
                params["items"] = [{"id": item_id, "price": validated.price_id}]

            subscription = await self.stripe_client.subscriptions.update_async(subscription_id, params=params)
            return SubscriptionResult.ok(subscription_id=subscription.get("id"))

        except Exception as e:
            return _failure(SubscriptionResult, "updating subscription", e)

    # ---------------------------------------------------------------------------------------------------------------------

    async def cancel_subscription(self, subscription_id: str, immediately: bool = False) -> SubscriptionResult:
        """immediately=True invoices now without proration, otherwise prorate"""
        try:
            subscription = await self.stripe_client.subscriptions.cancel_async(
                subscription_id, params={"prorate": not immediately, "invoice_now": immediately}
            )

            logger.info(f"🛑 Subscription cancelled: {subscription.get('id')} (immediately={immediately})")
            return SubscriptionResult.ok(subscription_id=subscription.get("id"))

        except Exception as e:
            return _failure(SubscriptionResult, "canceling subscription", e)

    # ---------------------------------------------------------------------------------------------------------------------

    async def retrieve_subscription(self, subscription_id: str) -> PaymentResult:
        try:
            subscription = await self.stripe_client.subscriptions.retrieve_async(subscription_id)
            data = _pick(
                subscription,
                "id",
                "status",
                "customer",
                "current_period_start",
                "current_period_end",
                "trial_end",
                "cancel_at_period_end",
                "metadata",
            )

            # since API version 2025-03-31.basil the billing period lives on the subscription item
            items = (subscription.get("items") or {}).get("data") or []
            if items:
                for field in ("current_period_start", "current_period_end"):
                    if data[field] is None:
                        data[field] = items[0].get(field)

            return PaymentResult.ok(data=data)

        except Exception as e:
            return _failure(PaymentResult, "retrieving subscription", e)

    # ######################################################################################################################
    # Prices
    # ######################################################################################################################

    async def retrieve_price(self, price_id: str) -> PaymentResult:
        try:
            price = await self.stripe_client.prices.retrieve_async(price_id)
            return PaymentResult.ok(data=_pick(price, "id", "unit_amount", "currency", "recurring", "product", "metadata"))

        except Exception as e:
            return _failure(PaymentResult, "retrieving price", e)

    # ---------------------------------------------------------------------------------------------------------------------

    async def list_prices(self, product_id: Optional[str] = None, active: bool = True) -> PaymentResult:
        try:
            params: Dict[str, Any] = {"active": active, "limit": 100}
            if product_id:
                params["product"] = product_id

            prices = await self.stripe_client.prices.list_async(params=params)

            return PaymentResult.ok(
                data={
                    "prices": [_pick(price, "id", "unit_amount", "currency", "recurring", "product", "metadata") for price in prices.get("data", [])],
                    "has_more": prices.get("has_more", False),
                }
            )

        except Exception as e:
            return _failure(PaymentResult, "listing prices", e)
