"""Typed outcomes of dispatched service calls and whole aggregations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from async_fanout.core.execution.errors import AggregationError


@dataclass(frozen=True)
class TaskOutcome:
    """Immutable result of one completed task.

    Built once by the dispatcher's wait-for-all step and only read afterwards.
    ``value`` is set on success, ``error`` on failure.
    """

    index: int
    service_id: str
    status: Literal["success", "failed"]
    value: str | None = None
    error: BaseException | None = None

    @classmethod
    def success(cls, index: int, service_id: str, value: str) -> TaskOutcome:
        return cls(index=index, service_id=service_id, status="success", value=value)

    @classmethod
    def failure(
        cls, index: int, service_id: str, error: BaseException
    ) -> TaskOutcome:
        return cls(index=index, service_id=service_id, status="failed", error=error)

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict, replacing the exception with its message."""
        result: dict[str, Any] = {
            "index": self.index,
            "service_id": self.service_id,
            "status": self.status,
        }
        if self.is_success:
            result["value"] = self.value
        else:
            result["error"] = str(self.error) or type(self.error).__name__
        return result


@dataclass
class AggregationReport:
    """Outcome of a whole aggregation, including the per-task detail.

    Exactly one of ``result`` and ``error`` is meaningful: ``error`` is only
    ever set by the fail-fast policy.
    """

    policy: str
    outcomes: list[TaskOutcome] = field(default_factory=list)
    result: str | list[str] | None = None
    error: AggregationError | None = None

    @property
    def status(self) -> Literal["success", "failed"]:
        return "failed" if self.error is not None else "success"

    def to_dict(self, include_outcomes: bool = False) -> dict[str, Any]:
        """Serialize to dict for CLI output."""
        result: dict[str, Any] = {
            "policy": self.policy,
            "status": self.status,
            "result": self.result,
        }
        if self.error is not None:
            result["error"] = str(self.error)
            result["error_type"] = type(self.error).__name__
        if include_outcomes:
            result["outcomes"] = [outcome.to_dict() for outcome in self.outcomes]
        return result
