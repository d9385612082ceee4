from fastapi import APIRouter, Body, Depends, Header, Query
from stripe import StripeClient
from app.configs.stripe_config import get_stripe_client
from app.services.payment_services import PaymentService
from app.models.payment_models import (
    CheckoutSessionResult,
    CustomerResult,
    PaymentResult,
    SubscriptionResult,
)
from typing import Optional, Dict, Any

# Every route here answers 200 with a result envelope; success/failure lives in the envelope, never in the status code.
# Bodies are taken as plain dicts so validation happens inside PaymentService and comes back as an envelope too.

payments_router = APIRouter(prefix="/payments", tags=["Payments"])


async def get_payment_service(stripe_client: StripeClient = Depends(get_stripe_client)) -> PaymentService:
    """Dependency to get PaymentService instance"""
    return PaymentService(stripe_client)


#########################################################################################################################
# Payment intents
#########################################################################################################################


@payments_router.post("/payment-intents", response_model=PaymentResult)
async def create_payment_intent(
    payload: Dict[str, Any] = Body(...),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return await payment_service.create_payment_intent(payload, idempotency_key=idempotency_key)


@payments_router.get("/payment-intents/{payment_intent_id}", response_model=PaymentResult)
async def retrieve_payment_intent(payment_intent_id: str, payment_service: PaymentService = Depends(get_payment_service)):
    return await payment_service.retrieve_payment_intent(payment_intent_id)


@payments_router.post("/payment-intents/{payment_intent_id}/confirm", response_model=PaymentResult)
async def confirm_payment_intent(
    payment_intent_id: str, payload: Dict[str, Any] = Body(...), payment_service: PaymentService = Depends(get_payment_service)
):
    return await payment_service.confirm_payment_intent(payment_intent_id, payload)


#########################################################################################################################
# Checkout sessions
#########################################################################################################################


@payments_router.post("/checkout-sessions", response_model=CheckoutSessionResult)
async def create_checkout_session(
    payload: Dict[str, Any] = Body(...),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return await payment_service.create_checkout_session(payload, idempotency_key=idempotency_key)


@payments_router.get("/checkout-sessions/{session_id}", response_model=PaymentResult)
async def retrieve_checkout_session(session_id: str, payment_service: PaymentService = Depends(get_payment_service)):
    return await payment_service.retrieve_checkout_session(session_id)


#########################################################################################################################
# Customers
#########################################################################################################################


@payments_router.post("/customers", response_model=CustomerResult)
async def create_customer(
    payload: Dict[str, Any] = Body(...),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return await payment_service.create_customer(payload, idempotency_key=idempotency_key)


@payments_router.get("/customers/{customer_id}", response_model=PaymentResult)
async def retrieve_customer(customer_id: str, payment_service: PaymentService = Depends(get_payment_service)):
    return await payment_service.retrieve_customer(customer_id)


@payments_router.patch("/customers/{customer_id}", response_model=CustomerResult)
async def update_customer(customer_id: str, payload: Dict[str, Any] = Body(...), payment_service: PaymentService = Depends(get_payment_service)):
    return await payment_service.update_customer(customer_id, payload)


#########################################################################################################################
# Subscriptions
#########################################################################################################################


@payments_router.post("/subscriptions", response_model=SubscriptionResult)
async def create_subscription(
    payload: Dict[str, Any] = Body(...),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return await payment_service.create_subscription(payload, idempotency_key=idempotency_key)


@payments_router.get("/subscriptions/{subscription_id}", response_model=PaymentResult)
async def retrieve_subscription(subscription_id: str, payment_service: PaymentService = Depends(get_payment_service)):
    return await payment_service.retrieve_subscription(subscription_id)


@payments_router.patch("/subscriptions/{subscription_id}", response_model=SubscriptionResult)
async def update_subscription(
    subscription_id: str, payload: Dict[str, Any] = Body(...), payment_service: PaymentService = Depends(get_payment_service)
):
    return await payment_service.update_subscription(subscription_id, payload)


@payments_router.delete("/subscriptions/{subscription_id}", response_model=SubscriptionResult)
async def cancel_subscription(
    subscription_id: str,
    immediately: bool = Query(default=False),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """Cancel a subscription; immediately=true invoices now and skips proration"""
    return await payment_service.cancel_subscription(subscription_id, immediately=immediately)


#########################################################################################################################
# Prices
#########################################################################################################################


@payments_router.get("/prices", response_model=PaymentResult)
async def list_prices(
    product: Optional[str] = Query(default=None),
    active: bool = Query(default=True),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return await payment_service.list_prices(product_id=product, active=active)


@payments_router.get("/prices/{price_id}", response_model=PaymentResult)
async def retrieve_price(price_id: str, payment_service: PaymentService = Depends(get_payment_service)):
    return await payment_service.retrieve_price(price_id)
