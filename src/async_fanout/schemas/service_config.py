"""Pydantic service config models.

Service entries in a fan-out file are either echo services or static
services (fixed reply or fixed failure). Each entry is validated into a
typed model and can then be turned into a live service.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from async_fanout.services.base import ServiceInterface
from async_fanout.services.echo import EchoService
from async_fanout.services.static import StaticService


class BaseServiceConfig(BaseModel):
    """Shared fields for all service types."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    service_id: str = Field(alias="id", min_length=1)
    delay_seconds: float = Field(default=0.0, ge=0.0)


class EchoServiceConfig(BaseServiceConfig):
    """Config for an echo service: replies with its id and the message."""


class StaticServiceConfig(BaseServiceConfig):
    """Config for a static service: fixed reply or fixed failure."""

    response: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def validate_reply_source(self) -> "StaticServiceConfig":
        """Require exactly one of response and error."""
        if self.response is not None and self.error is not None:
            msg = (
                "response and error are mutually exclusive; "
                "a static service either replies or fails"
            )
            raise ValueError(msg)
        if self.response is None and self.error is None:
            msg = "static service requires either response or error"
            raise ValueError(msg)
        return self

    @property
    def fails(self) -> bool:
        return self.error is not None


ServiceConfig = EchoServiceConfig | StaticServiceConfig


def parse_service_config(data: dict[str, Any]) -> ServiceConfig:
    """Parse a raw dict into the correct ServiceConfig subtype.

    Discriminates by key presence:
    - 'response' or 'error' -> StaticServiceConfig
    - otherwise -> EchoServiceConfig
    """
    if not isinstance(data, dict):
        raise ValueError(f"Service entry must be a mapping, got {type(data).__name__}")
    if "response" in data or "error" in data:
        return StaticServiceConfig.model_validate(data)
    return EchoServiceConfig.model_validate(data)


def build_service(config: ServiceConfig) -> ServiceInterface:
    """Create the live service described by a config."""
    if isinstance(config, StaticServiceConfig):
        return StaticService(
            config.service_id,
            config.response or "",
            error=config.error,
            delay_seconds=config.delay_seconds,
        )
    return EchoService(config.service_id, delay_seconds=config.delay_seconds)
