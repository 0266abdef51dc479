"""
Cash-desk terminal payments

Async client and session controller for taking card payments on a cash-desk
card reader: create the payment, poll it to settlement, retry it, cancel it.
"""

from .client import CashDeskClient
from .config import TerminalSettings, get_settings
from .controller import OperationToken, TerminalPaymentController
from .logging_config import LogContext, setup_logging
from .models.errors import ErrorKind, TerminalAPIError, TerminalConfigError
from .models.outcomes import CreatePaymentOutcome, PollOutcome, RetryOutcome, StatusCheckOutcome
from .models.payment import (
    CheckPaymentStatusRequest,
    CreatePaymentSuccess,
    CreateTerminalPaymentRequest,
    OperationFailure,
    PaymentIntentStatus,
    PaymentStatusSnapshot,
    RetryPaymentSuccess,
    RetryTerminalPaymentRequest,
    TerminalPaymentDevice,
    is_api_error,
)
from .models.card_reader import CardReader, CardReadersSuccess
from .session import SessionState, SessionStatus

__version__ = "0.1.0"

__all__ = [
    # Client
    "CashDeskClient",
    "TerminalPaymentController",
    "OperationToken",
    # Configuration
    "TerminalSettings",
    "get_settings",
    "setup_logging",
    "LogContext",
    # Errors
    "ErrorKind",
    "TerminalAPIError",
    "TerminalConfigError",
    "OperationFailure",
    "is_api_error",
    # Requests
    "CreateTerminalPaymentRequest",
    "CheckPaymentStatusRequest",
    "RetryTerminalPaymentRequest",
    "TerminalPaymentDevice",
    # Results
    "CreatePaymentSuccess",
    "PaymentStatusSnapshot",
    "PaymentIntentStatus",
    "RetryPaymentSuccess",
    "CardReader",
    "CardReadersSuccess",
    # Session
    "SessionState",
    "SessionStatus",
    "CreatePaymentOutcome",
    "PollOutcome",
    "RetryOutcome",
    "StatusCheckOutcome",
]
