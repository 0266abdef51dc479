"""Error taxonomy and internal exceptions for the cash-desk terminal client."""
from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Stable classification attached to every failed remote operation."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFIG_ERROR = "config_error"
    TERMINAL_ERROR = "terminal_error"
    ALREADY_PAID = "already_paid"
    TIMEOUT = "timeout"
    ABORTED = "aborted"
    UNKNOWN = "unknown"


class TerminalAPIError(Exception):
    """Non-success response from the cash-desk API.

    Raised by the HTTP client and caught by the resources, which classify it
    into an :class:`ErrorKind`. It does not escape the package.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        body_parsed: bool = True,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body_parsed = body_parsed
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.status_code}] {self.message}"

    @classmethod
    def from_response(
        cls,
        status_code: int,
        body: Any,
        reason_phrase: str = "",
    ) -> "TerminalAPIError":
        """Create TerminalAPIError from a decoded error body.

        ``body`` is ``None`` when the response was not valid JSON, in which
        case the message falls back to the status line.
        """
        if body is None:
            return cls(
                message=f"{status_code} {reason_phrase}".strip(),
                status_code=status_code,
                body_parsed=False,
            )
        if isinstance(body, dict):
            message = body.get("message") or body.get("error")
            if not isinstance(message, str) or not message:
                message = json.dumps(body)
            return cls(message=message, status_code=status_code, details=body)
        return cls(message=json.dumps(body), status_code=status_code)


class TerminalConfigError(TerminalAPIError):
    """API URL or API key missing from configuration."""

    def __init__(self, message: str = "API URL or API KEY is not set"):
        super().__init__(message, status_code=0, body_parsed=False)
