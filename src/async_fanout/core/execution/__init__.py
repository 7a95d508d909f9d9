"""Fan-out execution components."""

from async_fanout.core.execution.aggregator import (
    Aggregator,
    Policy,
    run,
    run_fail_fast,
    run_fail_partial,
    run_fail_soft,
)
from async_fanout.core.execution.dispatcher import ServiceDispatcher, collect_outcomes
from async_fanout.core.execution.errors import (
    AggregationError,
    ArgumentMismatchError,
    ServiceFailureError,
)
from async_fanout.core.execution.result_types import AggregationReport, TaskOutcome

__all__ = [
    "AggregationError",
    "AggregationReport",
    "Aggregator",
    "ArgumentMismatchError",
    "Policy",
    "ServiceDispatcher",
    "ServiceFailureError",
    "TaskOutcome",
    "collect_outcomes",
    "run",
    "run_fail_fast",
    "run_fail_partial",
    "run_fail_soft",
]
