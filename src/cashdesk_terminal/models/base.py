"""Base model for cash-desk terminal payloads."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CashDeskModel(BaseModel):
    """Base model with the camelCase wire configuration.

    Attribute names are snake_case in Python while the cash-desk API speaks
    camelCase JSON; both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert model to a snake_case dictionary."""
        return self.model_dump(mode="json", exclude_none=True)

    def to_wire(self) -> dict[str, Any]:
        """Convert model to the camelCase JSON body sent to the API."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
