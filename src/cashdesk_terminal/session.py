"""Terminal payment session state."""
from __future__ import annotations

import time
import uuid
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from .models.errors import ErrorKind


class SessionStatus(str, Enum):
    """Payment flow status."""

    IDLE = "idle"
    CREATING = "creating"
    PROCESSING = "processing"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMEOUT = "timeout"
    CANCELED = "canceled"


def new_session_id() -> str:
    """Mint a session id such as ``session-1718000000000-3f9a1c``."""
    return f"session-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


@dataclass(frozen=True)
class SessionState:
    """One payment attempt's progress.

    Instances are immutable; the controller swaps in a new instance on every
    transition, so a reference handed to a caller is a stable snapshot.
    """

    session_id: str
    status: SessionStatus = SessionStatus.IDLE
    order_id: Optional[int] = None
    terminal_id: Optional[str] = None
    invoice_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    client_secret: Optional[str] = None
    total_amount: Optional[int] = None  # minor units
    currency: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[ErrorKind] = None
    poll_attempts: int = 0
    max_poll_attempts: int = 0

    @classmethod
    def initial(cls, session_id: Optional[str] = None) -> "SessionState":
        return cls(session_id=session_id or new_session_id())

    def evolve(self, **changes: Any) -> "SessionState":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["error_type"] = self.error_type.value if self.error_type else None
        return data
