"""Shared test fixtures and dummy classes."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from argenpulse.models.client_config import ClientConfig
from argenpulse.schemas import DolarQuotation, validator_for
from argenpulse.upstream import UpstreamResultsClient


class DummyChat:
    """Dummy Telegram chat for testing."""

    def __init__(self, chat_id: int) -> None:
        self.id = chat_id
        self.sent: list[str] = []

    async def send_message(self, text: str) -> None:
        self.sent.append(text)


class DummyUser:
    """Dummy Telegram user for testing."""

    def __init__(self, user_id: int, username: str | None = None) -> None:
        self.id = user_id
        self.username = username


class DummyMessage:
    """Dummy Telegram message for testing."""

    def __init__(self) -> None:
        self.replies: list[str] = []

    async def reply_text(self, text: str, **_: Any) -> None:
        self.replies.append(text)


class DummyUpdate:
    """Dummy Telegram update for testing."""

    def __init__(self, chat_id: int = 1, user_id: int = 1) -> None:
        self.effective_chat = DummyChat(chat_id)
        self.effective_user = DummyUser(user_id)
        self.message = DummyMessage()
        self.effective_message = self.message


class DummyApplication:
    """Dummy Telegram application for testing."""

    def __init__(self) -> None:
        self.bot_data: dict[str, object] = {}


class DummyContext:
    """Dummy Telegram context for testing."""

    def __init__(self, args: list[str] | None = None) -> None:
        self.args = args or []
        self.application = DummyApplication()


class DummyResponse:
    """Dummy HTTP response for testing."""

    def __init__(self, data: object, status: int = 200, text: str = "") -> None:
        self._data = data
        self.status_code = status
        self.text = text or str(data)
        self.ok = 200 <= status < 300

    def json(self) -> object:
        if isinstance(self._data, Exception):
            raise self._data
        return self._data


class FakeClock:
    """Wall clock under test control (seconds)."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Sleep replacement: records delays, advances the clock, never waits.

    After ``stop_after`` calls it stops ``client`` so the poll loop exits.
    """

    def __init__(self, clock: FakeClock, stop_after: int | None = None) -> None:
        self.clock = clock
        self.stop_after = stop_after
        self.delays: list[float] = []
        self.client: UpstreamResultsClient | None = None

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        self.clock.advance(seconds)
        if self.stop_after is not None and len(self.delays) >= self.stop_after:
            if self.client is not None:
                self.client.stop()
        await asyncio.sleep(0)


DOLAR_BODY = [
    {
        "moneda": "USD",
        "casa": "oficial",
        "nombre": "Oficial",
        "compra": 1000.0,
        "venta": 1050.0,
        "fechaActualizacion": "2025-10-26T15:00:00.000Z",
    },
    {
        "moneda": "USD",
        "casa": "blue",
        "nombre": "Blue",
        "compra": 1180.0,
        "venta": 1200.0,
        "fechaActualizacion": "2025-10-26T15:00:00.000Z",
    },
    {
        "moneda": "USD",
        "casa": "tarjeta",
        "nombre": "Tarjeta",
        "compra": None,
        "venta": 1365.0,
        "fechaActualizacion": "2025-10-26T15:00:00.000Z",
    },
]


def make_config(**overrides: Any) -> ClientConfig:
    values: dict[str, Any] = {
        "poll_interval_ms": 60000,
        "cache_ttl_ms": 120000,
        "max_retries": 3,
        "backoff_schedule_ms": (1000, 2000, 4000),
        "request_timeout_ms": 5000,
    }
    values.update(overrides)
    return ClientConfig(**values)


def make_client(
    handler,
    *,
    name: str = "dolar",
    config: ClientConfig | None = None,
    clock: FakeClock | None = None,
    sleep=None,
    validate=None,
    **kwargs: Any,
) -> UpstreamResultsClient:
    """Client against httpx.MockTransport(handler)."""
    extra: dict[str, Any] = {}
    if sleep is not None:
        extra["sleep"] = sleep
    return UpstreamResultsClient(
        name,
        "https://upstream.test/v1/dolares",
        config or make_config(),
        validate or validator_for(list[DolarQuotation]),
        transport=httpx.MockTransport(handler),
        clock=clock or FakeClock(),
        **extra,
        **kwargs,
    )
