"""Core schema definitions for async-fanout."""

from .service_config import (
    EchoServiceConfig,
    ServiceConfig,
    StaticServiceConfig,
    build_service,
    parse_service_config,
)

__all__ = [
    "EchoServiceConfig",
    "ServiceConfig",
    "StaticServiceConfig",
    "build_service",
    "parse_service_config",
]
