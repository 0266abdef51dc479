"""
Base resource for cash-desk API operations.

Every operation follows the same contract: check configuration, validate the
outbound payload, issue exactly one request, and turn anything other than a
parsed success body into an :class:`OperationFailure`. Failures never leave
this layer as exceptions; asyncio cancellation is the only exception that
propagates.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Mapping, Optional, Sequence, Type, TypeVar, Union

from pydantic import ValidationError

from ..classifier import ClassificationRule, classify_api_error
from ..logging_config import LogContext, generate_request_id
from ..models.base import CashDeskModel
from ..models.errors import ErrorKind, TerminalAPIError, TerminalConfigError
from ..models.payment import OperationFailure

if TYPE_CHECKING:
    from ..client import CashDeskClient

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=CashDeskModel)
ResultT = TypeVar("ResultT", bound=CashDeskModel)


@dataclass(frozen=True)
class OperationSpec(Generic[RequestT, ResultT]):
    """Static description of one remote operation."""

    name: str
    request_prefix: str
    method: str
    path: str
    request_model: Type[RequestT]
    result_model: Type[ResultT]
    rules: Sequence[ClassificationRule]
    send_body: bool = True

    def build_path(self, request: RequestT) -> str:
        return self.path.format(**request.model_dump())


def format_validation_error(error: ValidationError) -> str:
    """Render pydantic errors as ``path: message`` pairs joined by commas."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        message = item.get("msg", "Invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return ", ".join(parts)


class AsyncBaseResource:
    """Base class for async cash-desk resources.

    Attributes:
        _client: The client instance
    """

    def __init__(self, client: "CashDeskClient") -> None:
        self._client = client

    async def _get(self, path: str) -> Any:
        return await self._client._request("GET", path)

    async def _post(self, path: str, data: Optional[dict[str, Any]] = None) -> Any:
        return await self._client._request("POST", path, json=data)

    async def _execute(
        self,
        operation: OperationSpec[RequestT, ResultT],
        payload: Union[RequestT, Mapping[str, Any]],
    ) -> Union[ResultT, OperationFailure]:
        """Run one operation and return its success model or a typed failure."""
        request_id = generate_request_id(operation.request_prefix)

        with LogContext(request_id=request_id):
            if not self._client.is_configured:
                error = TerminalConfigError()
                logger.error(f"[{operation.name}] {request_id}: {error.message}")
                return OperationFailure(error=error.message, error_type=ErrorKind.UNKNOWN)

            try:
                request = operation.request_model.model_validate(payload)
            except ValidationError as e:
                message = format_validation_error(e)
                logger.warning(f"[{operation.name}] {request_id}: payload validation failed: {message}")
                return OperationFailure(error=message, error_type=ErrorKind.VALIDATION)

            path = operation.build_path(request)
            logger.info(f"[{operation.name}] {request_id}: {operation.method} {path}")
            started = time.perf_counter()

            try:
                if operation.method == "GET":
                    data = await self._get(path)
                else:
                    data = await self._post(path, request.to_wire() if operation.send_body else None)
                result = operation.result_model.model_validate(data)
            except TerminalAPIError as e:
                kind = classify_api_error(operation.rules, e)
                logger.error(
                    f"[{operation.name}] {request_id}: failed with HTTP {e.status_code} "
                    f"({kind.value}): {e.message}",
                    extra={"status_code": e.status_code, "error_type": kind.value},
                )
                return OperationFailure(error=e.message, error_type=kind)
            except Exception as e:
                logger.exception(f"[{operation.name}] {request_id}: exception during request")
                return OperationFailure(
                    error=str(e) or "An unknown error occurred",
                    error_type=ErrorKind.UNKNOWN,
                )

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"[{operation.name}] {request_id}: succeeded in {elapsed_ms:.2f}ms",
                extra={"elapsed_ms": round(elapsed_ms, 2)},
            )
            return result


__all__ = [
    "AsyncBaseResource",
    "OperationSpec",
    "format_validation_error",
]
