"""
Cash-desk terminal API client.

Example usage:
    ```python
    from cashdesk_terminal import CashDeskClient

    async with CashDeskClient(
        base_url="https://api.example-resort.com",
        api_key="your-api-key",
    ) as client:
        readers = await client.card_readers.list(resort_id=7)

        result = await client.payments.create(request)
        if not is_api_error(result):
            status = await client.payments.check_status(
                {"resortId": 7, "invoiceId": result.invoice_id}
            )
    ```
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from .config import TerminalSettings, get_settings
from .models.errors import TerminalAPIError, TerminalConfigError
from .resources.card_readers import CardReadersResource
from .resources.terminal_payments import TerminalPaymentsResource


class CashDeskClient:
    """
    Cash-desk API client.

    Provides access to the terminal resources:
    - payments: create, check and retry terminal payments
    - card_readers: list the card readers registered for a resort

    A client with a missing URL or key can still be constructed; every
    operation then fails with ``unknown`` before touching the network.

    Args:
        base_url: Cash-desk API base URL (default: ``CASHDESK_API_URL``)
        api_key: API key sent as ``x-api-key`` (default: ``CASHDESK_API_KEY``)
        timeout: Request timeout in seconds
        settings: Settings to read defaults from
        transport: Optional httpx transport (used by tests)
    """

    USER_AGENT = "cashdesk-terminal-python/0.1.0"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        settings: Optional[TerminalSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = settings or get_settings()

        self._base_url = (base_url if base_url is not None else settings.api_url).strip().rstrip("/")
        self._api_key = api_key if api_key is not None else settings.api_key
        self._timeout = timeout or settings.request_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        self.payments = TerminalPaymentsResource(self)
        self.card_readers = CardReadersResource(self)

    @property
    def is_configured(self) -> bool:
        return bool(self._base_url and self._api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "x-api-key": self._api_key,
                    "Content-Type": "application/json",
                    "User-Agent": self.USER_AGENT,
                },
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Make exactly one HTTP request and return the decoded JSON body.

        Raises:
            TerminalConfigError: URL or key not configured
            TerminalAPIError: non-2xx response
            httpx.HTTPError: transport failure
        """
        if not self.is_configured:
            raise TerminalConfigError()

        client = await self._get_client()
        response = await client.request(method=method, url=path, json=json)

        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = None
            raise TerminalAPIError.from_response(
                response.status_code,
                body,
                reason_phrase=response.reason_phrase,
            )

        return response.json()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "CashDeskClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
