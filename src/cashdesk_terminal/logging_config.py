"""Structured logging with payment-session correlation.

Every record emitted while a controller method or a remote call is running
carries the payment session id and the per-call request id, so one terminal
payment can be followed from create to settlement across log lines.
"""
from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from .config import get_settings

session_id_var: ContextVar[Optional[str]] = ContextVar("session_id", default=None)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_RESERVED_ATTRS = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "session_id",
        "request_id",
    )
)


class CorrelationIDFilter(logging.Filter):
    """Logging filter that adds session and request ids to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = session_id_var.get()
        record.request_id = request_id_var.get()
        return True


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        session_id = getattr(record, "session_id", None)
        if session_id:
            log_data["session_id"] = session_id

        request_id = getattr(record, "request_id", None)
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(level: Optional[str] = None, json_format: Optional[bool] = None) -> None:
    """
    Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL);
            defaults to ``CASHDESK_LOG_LEVEL``
        json_format: Use JSON structured logging (True) or a plain text format;
            defaults to ``CASHDESK_LOG_JSON``
    """
    if level is None or json_format is None:
        settings = get_settings()
        level = level or settings.log_level
        json_format = settings.log_json if json_format is None else json_format

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[%(session_id)s %(request_id)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(CorrelationIDFilter())
    root_logger.addHandler(console_handler)


def generate_request_id(prefix: str) -> str:
    """Generate a request id such as ``ctp-1718000000000-3f9a1c``."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class LogContext:
    """Context manager for temporary logging context."""

    def __init__(
        self,
        session_id: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        self.session_id = session_id
        self.request_id = request_id
        self.previous_context: dict[str, Optional[str]] = {}

    def __enter__(self) -> "LogContext":
        self.previous_context = {
            "session_id": session_id_var.get(),
            "request_id": request_id_var.get(),
        }
        if self.session_id:
            session_id_var.set(self.session_id)
        if self.request_id:
            request_id_var.set(self.request_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        session_id_var.set(self.previous_context["session_id"])
        request_id_var.set(self.previous_context["request_id"])


def mask_secret(value: Optional[str], visible: int = 20) -> str:
    """Keep only the first ``visible`` characters of a client secret."""
    if not value:
        return "(none)"
    return f"{value[:visible]}..."


def log_payment_ids(
    logger: logging.Logger,
    context: str,
    order_id: Optional[int] = None,
    invoice_id: Optional[str] = None,
    payment_intent_id: Optional[str] = None,
    terminal_id: Optional[str] = None,
) -> None:
    """Log the correlation identifiers of a payment at a flow checkpoint."""
    extra = {
        "order_id": order_id,
        "invoice_id": invoice_id,
        "payment_intent_id": payment_intent_id,
        "terminal_id": terminal_id,
    }
    logger.info(
        f"[{context}] order={order_id or '-'} invoice={invoice_id or '-'} "
        f"payment_intent={payment_intent_id or '-'} terminal={terminal_id or '-'}",
        extra={k: v for k, v in extra.items() if v is not None},
    )
