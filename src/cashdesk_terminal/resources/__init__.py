"""Cash-desk API resources."""
from .base import AsyncBaseResource, OperationSpec, format_validation_error
from .card_readers import CardReadersResource
from .terminal_payments import TerminalPaymentsResource

__all__ = [
    "AsyncBaseResource",
    "OperationSpec",
    "format_validation_error",
    "CardReadersResource",
    "TerminalPaymentsResource",
]
