"""
Pytest configuration and fixtures for cash-desk terminal tests.
"""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Optional

import httpx
import pytest

from cashdesk_terminal import CashDeskClient, TerminalPaymentController, TerminalSettings

BASE_URL = "https://cashdesk.test"
API_KEY = "test-api-key"


@dataclass
class _MockEntry:
    method: str
    path: str
    status_code: int = 200
    json: Any = None
    content: Optional[bytes] = None
    exception: Optional[Exception] = None
    gate: Optional[asyncio.Event] = None


class MockCashDeskAPI:
    """Queue of canned cash-desk responses served through ``httpx.MockTransport``.

    Entries are matched by method and path in the order they were added.
    An entry with a gate holds its response until the gate is set.
    """

    def __init__(self) -> None:
        self._entries: list[_MockEntry] = []
        self.requests: list[httpx.Request] = []

    def add_response(
        self,
        *,
        path: str,
        method: str = "POST",
        status_code: int = 200,
        json: Any = None,
        content: Optional[bytes] = None,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self._entries.append(
            _MockEntry(
                method=method.upper(),
                path=path,
                status_code=status_code,
                json=json,
                content=content,
                gate=gate,
            )
        )

    def add_exception(self, exception: Exception, *, path: str, method: str = "POST") -> None:
        self._entries.append(_MockEntry(method=method.upper(), path=path, exception=exception))

    def add_pending(self, *, path: str, method: str = "POST", **kwargs: Any) -> asyncio.Event:
        """Queue a response that is held back until the returned event is set."""
        gate = asyncio.Event()
        self.add_response(path=path, method=method, gate=gate, **kwargs)
        return gate

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def body(self, index: int = -1) -> dict[str, Any]:
        return json.loads(self.requests[index].content)

    async def wait_for_requests(self, count: int, timeout: float = 1.0) -> None:
        async def _wait() -> None:
            while len(self.requests) < count:
                await asyncio.sleep(0.001)

        await asyncio.wait_for(_wait(), timeout)

    def _pop_match(self, method: str, path: str) -> _MockEntry:
        for idx, entry in enumerate(self._entries):
            if entry.method == method and entry.path == path:
                return self._entries.pop(idx)
        raise AssertionError(
            f"No mocked response for {method} {path}. "
            f"Available: {[f'{e.method} {e.path}' for e in self._entries]}"
        )

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        entry = self._pop_match(request.method, request.url.path)
        if entry.gate is not None:
            await entry.gate.wait()
        if entry.exception is not None:
            raise entry.exception
        if entry.content is not None:
            return httpx.Response(entry.status_code, content=entry.content)
        if entry.json is not None:
            return httpx.Response(entry.status_code, json=entry.json)
        return httpx.Response(entry.status_code)


# Mock response data
MOCK_RESPONSES = {
    "create": {
        "success": True,
        "invoiceId": "in_test123",
        "paymentIntentId": "pi_test123",
        "clientSecret": "pi_test123_secret_abcdefghijklmnop",
        "terminalId": "tmr_reader1",
        "totalAmount": 4500,
        "currency": "eur",
        "orderId": 42,
    },
    "processing": {
        "success": False,
        "status": "processing",
        "paymentIntentId": "pi_test123",
        "invoiceId": "in_test123",
        "orderId": 42,
    },
    "succeeded": {
        "success": True,
        "status": "succeeded",
        "paymentIntentId": "pi_test123",
        "invoiceId": "in_test123",
        "orderId": 42,
        "amountPaid": 4500,
        "currency": "eur",
        "paymentMethodType": "card_present",
        "paidAt": "2026-01-15T10:30:00Z",
    },
    "retry": {
        "success": True,
        "message": "New payment intent created",
        "paymentIntentId": "pi_retry456",
        "clientSecret": "pi_retry456_secret_qrstuvwxyz",
        "remainingAmountCents": 4500,
        "invoiceId": "in_test123",
        "orderId": 42,
    },
    "card_readers": {
        "success": True,
        "data": [
            {"id": "tmr_reader1", "label": "Desk 1", "status": "online"},
            {"id": "tmr_reader2", "label": "Desk 2", "status": "offline"},
        ],
    },
}


@pytest.fixture
def api_key() -> str:
    """Test API key."""
    return API_KEY


@pytest.fixture
def base_url() -> str:
    """Test base URL."""
    return BASE_URL


@pytest.fixture
def mock_responses() -> dict[str, Any]:
    """Mock response data."""
    return MOCK_RESPONSES


@pytest.fixture
def create_request() -> dict[str, Any]:
    """A valid create-terminal-payment payload, as the cash desk sends it."""
    return {
        "terminalId": "tmr_reader1",
        "resortId": 7,
        "orderId": 42,
        "startDate": "2026-01-15",
        "telephone": "+39 333 1234567",
        "name": "Mario Rossi",
        "email": "mario@example.com",
        "languageCode": "it",
        "devices": [
            {"productId": "skis-premium", "consumerCategoryId": "adult", "insurance": True},
        ],
    }


@pytest.fixture
def settings(api_key: str, base_url: str) -> TerminalSettings:
    return TerminalSettings(
        api_url=base_url,
        api_key=api_key,
        poll_max_attempts=5,
        poll_interval_ms=0,
    )


@pytest.fixture
def cashdesk_api() -> MockCashDeskAPI:
    return MockCashDeskAPI()


@pytest.fixture
def client(settings: TerminalSettings, cashdesk_api: MockCashDeskAPI) -> CashDeskClient:
    """Client whose HTTP traffic goes to the mock API."""
    return CashDeskClient(settings=settings, transport=httpx.MockTransport(cashdesk_api.handler))


@pytest.fixture
def controller(client: CashDeskClient, settings: TerminalSettings) -> TerminalPaymentController:
    return TerminalPaymentController(client, settings=settings)
