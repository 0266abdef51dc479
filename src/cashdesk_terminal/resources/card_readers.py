"""Card readers resource."""
from __future__ import annotations

import logging

from pydantic import Field

from ..classifier import CARD_READERS_RULES
from ..models.base import CashDeskModel
from ..models.card_reader import CardReadersResult, CardReadersSuccess
from ..models.payment import is_api_error
from .base import AsyncBaseResource, OperationSpec

logger = logging.getLogger(__name__)


class CardReadersQuery(CashDeskModel):
    resort_id: int = Field(gt=0)


LIST_CARD_READERS = OperationSpec(
    name="GET-CARD-READERS",
    request_prefix="gcr",
    method="GET",
    path="/api/cash-desk/card-readers/{resort_id}",
    request_model=CardReadersQuery,
    result_model=CardReadersSuccess,
    rules=CARD_READERS_RULES,
    send_body=False,
)


class CardReadersResource(AsyncBaseResource):
    """Async resource for the card readers registered to a resort."""

    async def list(self, resort_id: int) -> CardReadersResult:
        """List the card readers of a resort.

        Args:
            resort_id: Resort to list readers for

        Returns:
            CardReadersSuccess or OperationFailure
        """
        result = await self._execute(LIST_CARD_READERS, {"resort_id": resort_id})
        if not is_api_error(result):
            logger.info(f"Resort {resort_id}: {len(result.data)} card readers, {len(result.online())} online")
        return result
