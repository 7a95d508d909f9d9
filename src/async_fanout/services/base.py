"""Base interface for services exposing one asynchronous retrieval."""

from abc import ABC, abstractmethod


class ServiceInterface(ABC):
    """Abstract interface for a remote-like service.

    A service succeeds by returning a string and fails by raising. Each call
    to ``retrieve`` must finish exactly once; how the work is done (and how
    long it may take) is up to the implementation.
    """

    def __init__(self, service_id: str) -> None:
        self._service_id = service_id

    @property
    def service_id(self) -> str:
        """Opaque service identifier."""
        return self._service_id

    @abstractmethod
    async def retrieve(self, message: str) -> str:
        """Retrieve a result for a single input message."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(service_id={self._service_id!r})"
