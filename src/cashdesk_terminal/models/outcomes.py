"""Caller-facing results returned by the payment session controller."""
from __future__ import annotations

from typing import Optional

from .base import CashDeskModel
from .errors import ErrorKind


class CreatePaymentOutcome(CashDeskModel):
    success: bool
    invoice_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    client_secret: Optional[str] = None
    total_amount: Optional[int] = None
    currency: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[ErrorKind] = None


class PollOutcome(CashDeskModel):
    """Result of a poll loop.

    ``status`` is a payment status value, or ``"timeout"`` / ``"canceled"``
    when the loop ended without a settled payment.
    """

    success: bool
    status: str
    error: Optional[str] = None


class RetryOutcome(CashDeskModel):
    success: bool
    payment_intent_id: Optional[str] = None
    client_secret: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[ErrorKind] = None


class StatusCheckOutcome(CashDeskModel):
    success: bool
    status: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[ErrorKind] = None
