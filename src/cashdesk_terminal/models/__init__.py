"""Cash-desk terminal models."""
from .base import CashDeskModel
from .card_reader import CardReader, CardReadersResult, CardReadersSuccess
from .errors import ErrorKind, TerminalAPIError, TerminalConfigError
from .outcomes import CreatePaymentOutcome, PollOutcome, RetryOutcome, StatusCheckOutcome
from .payment import (
    CheckPaymentStatusRequest,
    CheckPaymentStatusResult,
    CreatePaymentResult,
    CreatePaymentSuccess,
    CreateTerminalPaymentRequest,
    CustomerAddress,
    OperationFailure,
    PaymentIntentStatus,
    PaymentStatusSnapshot,
    RetryPaymentResult,
    RetryPaymentSuccess,
    RetryTerminalPaymentRequest,
    SelectedProduct,
    TerminalPaymentDevice,
    is_api_error,
)

__all__ = [
    "CashDeskModel",
    # Errors
    "ErrorKind",
    "TerminalAPIError",
    "TerminalConfigError",
    # Requests
    "CreateTerminalPaymentRequest",
    "CheckPaymentStatusRequest",
    "RetryTerminalPaymentRequest",
    "TerminalPaymentDevice",
    "SelectedProduct",
    "CustomerAddress",
    # Results
    "OperationFailure",
    "CreatePaymentSuccess",
    "PaymentStatusSnapshot",
    "PaymentIntentStatus",
    "RetryPaymentSuccess",
    "CreatePaymentResult",
    "CheckPaymentStatusResult",
    "RetryPaymentResult",
    "CardReader",
    "CardReadersSuccess",
    "CardReadersResult",
    "is_api_error",
    # Controller outcomes
    "CreatePaymentOutcome",
    "PollOutcome",
    "RetryOutcome",
    "StatusCheckOutcome",
]
