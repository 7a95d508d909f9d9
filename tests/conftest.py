"""Shared test fixtures and helpers."""

import asyncio
from collections.abc import Callable

import pytest

from async_fanout.services.base import ServiceInterface
from async_fanout.services.static import StaticService


class RecordingService(ServiceInterface):
    """Service that records when it starts and finishes.

    Used to observe concurrency and to check that no task is cut short.
    """

    def __init__(
        self,
        service_id: str,
        response: str = "",
        *,
        delay_seconds: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        super().__init__(service_id)
        self.response = response
        self.delay_seconds = delay_seconds
        self.error = error
        self.started = False
        self.finished = False
        self.received: list[str] = []

    async def retrieve(self, message: str) -> str:
        self.started = True
        self.received.append(message)
        await asyncio.sleep(self.delay_seconds)
        self.finished = True
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def ok() -> Callable[..., StaticService]:
    """Factory for services that reply with a fixed value."""

    def _make(service_id: str, response: str, delay: float = 0.0) -> StaticService:
        return StaticService(service_id, response, delay_seconds=delay)

    return _make


@pytest.fixture
def failing() -> Callable[..., StaticService]:
    """Factory for services that always fail."""

    def _make(
        service_id: str, error: str | Exception = "boom", delay: float = 0.0
    ) -> StaticService:
        return StaticService(service_id, error=error, delay_seconds=delay)

    return _make


@pytest.fixture
def recording() -> Callable[..., RecordingService]:
    """Factory for services that record their start and finish."""
    return RecordingService
