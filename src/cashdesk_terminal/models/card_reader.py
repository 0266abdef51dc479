"""Card reader models."""
from __future__ import annotations

from typing import List, Literal, Union

from pydantic import Field

from .base import CashDeskModel
from .payment import OperationFailure


class CardReader(CashDeskModel):
    """A terminal registered for a resort."""

    id: str
    label: str = ""
    status: str = "unknown"


class CardReadersSuccess(CashDeskModel):
    success: Literal[True] = True
    data: List[CardReader] = Field(default_factory=list)

    def online(self) -> List[CardReader]:
        """Readers currently reported as online."""
        return [reader for reader in self.data if reader.status == "online"]


CardReadersResult = Union[CardReadersSuccess, OperationFailure]
