"""Fan-out configuration loading and management."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from async_fanout.core.execution.aggregator import Policy
from async_fanout.schemas.service_config import (
    ServiceConfig,
    build_service,
    parse_service_config,
)
from async_fanout.services.base import ServiceInterface


def _check_duplicate_ids(services: list[ServiceConfig]) -> None:
    """Raise ValueError if two services share an id.

    Args:
        services: List of service configurations

    Raises:
        ValueError: Naming the first duplicated id
    """
    seen: set[str] = set()
    for service in services:
        if service.service_id in seen:
            raise ValueError(f"Duplicate service id: '{service.service_id}'")
        seen.add(service.service_id)


def _parse_messages(raw: Any) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("'messages' must be a list of strings")
    for position, message in enumerate(raw):
        if not isinstance(message, str):
            raise ValueError(
                f"Message at position {position} must be a string, "
                f"got {type(message).__name__}"
            )
    return list(raw)


@dataclass
class FanOutConfig:
    """A named set of services, the messages sent to them, and a policy.

    ``services`` and ``messages`` are paired by position. They are allowed to
    differ in length here; the aggregator decides what a mismatch means.
    """

    name: str
    description: str = ""
    services: list[ServiceConfig] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    policy: Policy = Policy.FAIL_FAST
    fallback: str = ""
    relative_path: str | None = None  # For hierarchical display

    def build_services(self) -> list[ServiceInterface]:
        """Instantiate fresh services for one aggregation run."""
        return [build_service(service) for service in self.services]


class FanOutLoader:
    """Loads fan-out configurations from files."""

    def load_from_file(self, file_path: str) -> FanOutConfig:
        """Load a fan-out configuration from a YAML file."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Fan-out file not found: {file_path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Fan-out file must contain a mapping: {file_path}")

        return self.load_from_dict(data, default_name=path.stem)

    def load_from_dict(
        self, data: dict[str, Any], default_name: str = "fanout"
    ) -> FanOutConfig:
        """Build a fan-out configuration from already parsed data."""
        raw_services = data.get("services") or []
        if not isinstance(raw_services, list):
            raise ValueError("'services' must be a list")

        services = [parse_service_config(s) for s in raw_services]
        _check_duplicate_ids(services)

        fallback = data.get("fallback", "")
        if fallback is None:
            fallback = ""

        return FanOutConfig(
            name=str(data.get("name") or default_name),
            description=str(data.get("description") or ""),
            services=services,
            messages=_parse_messages(data.get("messages")),
            policy=Policy.parse(data.get("policy") or Policy.FAIL_FAST),
            fallback=str(fallback),
        )

    def list_configs(self, directory: str) -> list[FanOutConfig]:
        """List all fan-out configurations in a directory and subdirectories."""
        dir_path = Path(directory)
        if not dir_path.exists():
            return []

        configs = []
        yaml_files = sorted([*dir_path.rglob("*.yaml"), *dir_path.rglob("*.yml")])
        for yaml_file in yaml_files:
            if not yaml_file.is_file():
                continue
            try:
                config = self.load_from_file(str(yaml_file))
            except ValueError:
                # Skip invalid files
                continue

            relative_path = yaml_file.relative_to(dir_path)
            config.relative_path = (
                str(relative_path.parent)
                if relative_path.parent != Path(".")
                else None
            )
            configs.append(config)

        return configs
