from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl
from typing import Optional, Dict, Any
from enum import Enum


class CheckoutMode(str, Enum):
    PAYMENT = "payment"
    SUBSCRIPTION = "subscription"
    SETUP = "setup"


# ######################################################################################################################
# Result envelopes returned by PaymentService. success=False always carries an error message and its error_code tag.
# ######################################################################################################################


class ResultEnvelope(BaseModel):
    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def ok(cls, **fields):
        return cls(success=True, **fields)

    @classmethod
    def fail(cls, error: str, error_code: str = "INTERNAL_SERVER_ERROR"):
        return cls(success=False, error=error or "Unknown error occurred", error_code=error_code)


class PaymentResult(ResultEnvelope):
    data: Optional[Dict[str, Any]] = None


class CheckoutSessionResult(ResultEnvelope):
    url: Optional[str] = None
    session_id: Optional[str] = None


class CustomerResult(ResultEnvelope):
    customer_id: Optional[str] = None


class SubscriptionResult(ResultEnvelope):
    subscription_id: Optional[str] = None


# ######################################################################################################################
# Action inputs
# ######################################################################################################################


class PaymentIntentRequest(BaseModel):
    amount: int = Field(ge=50)  # minor units
    currency: str = "usd"
    customer_id: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None


class CheckoutSessionRequest(BaseModel):
    price_id: str
    customer_id: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    success_url: HttpUrl
    cancel_url: HttpUrl
    mode: CheckoutMode = CheckoutMode.PAYMENT
    metadata: Optional[Dict[str, str]] = None


class CustomerRequest(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None


class CustomerUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None


class SubscriptionRequest(BaseModel):
    customer_id: str
    price_id: str
    metadata: Optional[Dict[str, str]] = None
    trial_days: Optional[int] = Field(default=None, ge=0)


class SubscriptionUpdate(BaseModel):
    price_id: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None


class ConfirmPaymentIntentRequest(BaseModel):
    payment_method_id: str


# ######################################################################################################################
# POST /create-checkout-session (camelCase wire format)
# ######################################################################################################################


class CreateCheckoutSessionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    price_id: str = Field(alias="priceId", min_length=1)
    quantity: int = Field(default=1, ge=1, strict=True)
    metadata: Dict[str, str] = Field(default_factory=dict)
    customer_id: Optional[str] = Field(default=None, alias="customerId")
    customer_email: Optional[str] = Field(default=None, alias="customerEmail")
    mode: CheckoutMode = CheckoutMode.PAYMENT


class CheckoutSessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    url: str


class ErrorResponse(BaseModel):
    error: str
    message: str
