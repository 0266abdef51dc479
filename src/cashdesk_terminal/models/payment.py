"""Terminal payment request and result models."""
from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import ConfigDict, Field, field_validator, model_validator

from .base import CashDeskModel
from .errors import ErrorKind

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Product names/descriptions keyed by language code ("en", "it", "de", ...)
LocalizedText = Dict[str, str]


class PaymentIntentStatus(str, Enum):
    """Payment status values reported by the check-payment-status endpoint."""

    SUCCEEDED = "succeeded"
    PROCESSING = "processing"
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    REQUIRES_CONFIRMATION = "requires_confirmation"
    REQUIRES_ACTION = "requires_action"
    CANCELED = "canceled"
    FAILED = "failed"


# ==================== Requests ====================


class CustomerAddress(CashDeskModel):
    """Billing address forwarded to the invoice."""

    # The API expects Stripe's snake_case address keys
    model_config = ConfigDict(alias_generator=None)

    city: Optional[str] = None
    country: Optional[str] = None
    line1: Optional[str] = None
    line2: Optional[str] = None
    postal_code: Optional[str] = None
    state: Optional[str] = None


class TerminalPaymentDevice(CashDeskModel):
    """One rented device line item."""

    product_id: str
    consumer_category_id: str
    insurance: bool


class ConsumerCategoryData(CashDeskModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    name: Optional[LocalizedText] = None
    age_min: Optional[int] = None
    age_max: Optional[int] = None


class PriceCategory(CashDeskModel):
    model_config = ConfigDict(extra="allow")

    consumer_category_id: str
    consumer_category_data: Optional[ConsumerCategoryData] = None


class ValidityCategory(CashDeskModel):
    id: Optional[str] = None
    unit: Optional[LocalizedText] = None
    value: Optional[float] = None


class SelectedProduct(CashDeskModel):
    """Catalog product descriptor used for invoice line descriptions.

    Unknown catalog fields are kept and forwarded unchanged.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    name: Optional[LocalizedText] = None
    description: Optional[LocalizedText] = None
    price_categories: Optional[List[PriceCategory]] = None
    validity_category: Optional[ValidityCategory] = None


class CreateTerminalPaymentRequest(CashDeskModel):
    """Request body for create-terminal-payment."""

    terminal_id: str = Field(min_length=1)
    resort_id: int
    order_id: int
    start_date: str
    telephone: str = Field(min_length=1)
    name: str = Field(min_length=1)
    devices: List[TerminalPaymentDevice] = Field(min_length=1)
    email: Optional[str] = None
    language_code: str = "en"
    selected_products: Optional[List[SelectedProduct]] = None
    address: Optional[CustomerAddress] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _EMAIL_RE.match(v):
            raise ValueError("Invalid email")
        return v


class CheckPaymentStatusRequest(CashDeskModel):
    """Request body for check-payment-status (invoice id or order id)."""

    resort_id: int
    invoice_id: Optional[str] = None
    order_id: Optional[int] = None

    @model_validator(mode="after")
    def require_invoice_or_order(self) -> "CheckPaymentStatusRequest":
        if not (self.invoice_id or self.order_id):
            raise ValueError("Either invoiceId or orderId must be provided")
        return self


class RetryTerminalPaymentRequest(CashDeskModel):
    """Request body for retry-terminal-payment (invoice id or order id)."""

    terminal_id: str = Field(min_length=1)
    invoice_id: Optional[str] = None
    order_id: Optional[int] = None
    resort_id: Optional[int] = None

    @model_validator(mode="after")
    def require_invoice_or_order(self) -> "RetryTerminalPaymentRequest":
        if not (self.invoice_id or self.order_id):
            raise ValueError("Either invoiceId or orderId must be provided")
        return self


# ==================== Results ====================


class OperationFailure(CashDeskModel):
    """A remote operation that did not succeed."""

    success: Literal[False] = False
    error: str
    error_type: ErrorKind


class CreatePaymentSuccess(CashDeskModel):
    """Invoice and PaymentIntent created on the terminal."""

    success: Literal[True] = True
    invoice_id: str
    payment_intent_id: str
    client_secret: str
    terminal_id: str
    total_amount: int
    currency: str
    order_id: int


class PaymentStatusSnapshot(CashDeskModel):
    """Payment status envelope.

    ``success=False`` means the payment has not succeeded yet; it is not an
    API error. API errors are returned as :class:`OperationFailure`.
    """

    success: bool
    status: PaymentIntentStatus
    payment_intent_id: Optional[str] = None
    invoice_id: Optional[str] = None
    order_id: Optional[Union[int, str]] = None
    amount_paid: Optional[int] = None
    currency: Optional[str] = None
    payment_method_type: Optional[str] = None
    paid_at: Optional[str] = None
    error_message: Optional[str] = None


class RetryPaymentSuccess(CashDeskModel):
    """New PaymentIntent issued for the remaining invoice amount."""

    success: Literal[True] = True
    message: Optional[str] = None
    payment_intent_id: str
    client_secret: str
    remaining_amount_cents: int
    invoice_id: str
    order_id: Optional[int] = None


CreatePaymentResult = Union[CreatePaymentSuccess, OperationFailure]
CheckPaymentStatusResult = Union[PaymentStatusSnapshot, OperationFailure]
RetryPaymentResult = Union[RetryPaymentSuccess, OperationFailure]


def is_api_error(result: Any) -> bool:
    """Return True when ``result`` is an API failure rather than a payment status."""
    return isinstance(result, OperationFailure)
