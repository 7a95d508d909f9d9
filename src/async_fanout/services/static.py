"""Static service for testing and demos without external collaborators."""

import asyncio
import copy

from async_fanout.services.base import ServiceInterface


class ServiceError(Exception):
    """Error raised by a StaticService configured to fail."""


class StaticService(ServiceInterface):
    """Service that always replies with a fixed value or always fails.

    Exactly one of ``response`` and ``error`` is used: when ``error`` is set
    the service raises it (wrapping plain strings in ServiceError), otherwise
    it returns ``response``. An exception instance is used as a template:
    every call raises a fresh copy, so tracebacks never pile up on it.
    """

    def __init__(
        self,
        service_id: str,
        response: str = "",
        *,
        error: BaseException | str | None = None,
        delay_seconds: float = 0.0,
    ) -> None:
        super().__init__(service_id)
        self.response = response
        self.error = error
        self.delay_seconds = delay_seconds
        self.calls: list[str] = []

    @property
    def call_count(self) -> int:
        """Number of times retrieve has been invoked."""
        return len(self.calls)

    async def retrieve(self, message: str) -> str:
        self.calls.append(message)
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            if isinstance(self.error, BaseException):
                raise copy.copy(self.error)
            raise ServiceError(self.error)
        return self.response
