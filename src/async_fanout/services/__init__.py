"""Service implementations that can be fanned out to."""

from async_fanout.services.base import ServiceInterface
from async_fanout.services.echo import EchoService
from async_fanout.services.static import StaticService

__all__ = ["EchoService", "ServiceInterface", "StaticService"]
