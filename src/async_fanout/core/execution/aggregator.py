"""Aggregation policies combining concurrently dispatched service calls.

All three policies share the same shape: validate that services and messages
line up, dispatch every call at once, wait for all of them, then combine the
outcomes in request order. They differ only in how failures are combined:

- fail-fast: any failure fails the whole aggregation (lowest index wins).
- fail-partial: failures are dropped, successes are kept.
- fail-soft: failures are replaced by a fallback value.
"""

import logging
from collections.abc import Sequence
from enum import Enum

from async_fanout.core.execution.dispatcher import (
    EmitEventFn,
    ServiceDispatcher,
    collect_outcomes,
)
from async_fanout.core.execution.errors import (
    ArgumentMismatchError,
    ServiceFailureError,
)
from async_fanout.core.execution.result_types import AggregationReport, TaskOutcome
from async_fanout.services.base import ServiceInterface

logger = logging.getLogger(__name__)

SEPARATOR = " "


class Policy(str, Enum):
    """Failure-handling policy for an aggregation."""

    FAIL_FAST = "fail-fast"
    FAIL_PARTIAL = "fail-partial"
    FAIL_SOFT = "fail-soft"

    @classmethod
    def parse(cls, value: "Policy | str") -> "Policy":
        """Parse a policy from its value, accepting underscores too."""
        if isinstance(value, Policy):
            return value
        normalized = str(value).strip().lower().replace("_", "-")
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            raise ValueError(
                f"Unknown policy '{value}'. Expected one of: {choices}"
            ) from None


def _lengths_match(
    services: Sequence[ServiceInterface], messages: Sequence[str]
) -> bool:
    if len(services) == len(messages):
        return True
    logger.warning(
        "Not dispatching: %d services but %d messages",
        len(services),
        len(messages),
    )
    return False


class Aggregator:
    """Runs aggregation policies over a ServiceDispatcher."""

    def __init__(self, dispatcher: ServiceDispatcher | None = None) -> None:
        self._dispatcher = dispatcher or ServiceDispatcher()

    @classmethod
    def with_events(cls, emit_event_fn: EmitEventFn) -> "Aggregator":
        """Create an aggregator whose dispatcher reports task events."""
        return cls(ServiceDispatcher(emit_event_fn=emit_event_fn))

    async def _dispatch_and_wait(
        self,
        services: Sequence[ServiceInterface],
        messages: Sequence[str],
    ) -> list[TaskOutcome]:
        tasks = self._dispatcher.dispatch(services, messages)
        return await collect_outcomes(tasks, services)

    async def collect(
        self,
        services: Sequence[ServiceInterface],
        messages: Sequence[str],
    ) -> list[TaskOutcome]:
        """Dispatch every call and return raw outcomes in request order.

        Returns an empty list without dispatching when lengths differ.
        """
        if not _lengths_match(services, messages):
            return []
        return await self._dispatch_and_wait(services, messages)

    async def fail_fast(
        self,
        services: Sequence[ServiceInterface],
        messages: Sequence[str],
    ) -> str:
        """Join all results, or fail if any service failed.

        Every task runs to completion before the result is decided. When
        several services fail, the one with the lowest index is reported,
        whichever failed first in time.

        Raises:
            ArgumentMismatchError: If lengths differ (nothing is dispatched)
            ServiceFailureError: If any service call failed
        """
        if len(services) != len(messages):
            raise ArgumentMismatchError(len(services), len(messages))

        outcomes = await self._dispatch_and_wait(services, messages)
        return self.combine_fail_fast(outcomes)

    async def fail_partial(
        self,
        services: Sequence[ServiceInterface],
        messages: Sequence[str],
    ) -> list[str]:
        """Return successful results only, in request order. Never fails."""
        outcomes = await self.collect(services, messages)
        return self.combine_fail_partial(outcomes)

    async def fail_soft(
        self,
        services: Sequence[ServiceInterface],
        messages: Sequence[str],
        fallback: str,
    ) -> str:
        """Join all results, substituting ``fallback`` for failures. Never fails."""
        if not _lengths_match(services, messages):
            return ""
        outcomes = await self._dispatch_and_wait(services, messages)
        return self.combine_fail_soft(outcomes, fallback)

    async def run(
        self,
        policy: Policy | str,
        services: Sequence[ServiceInterface],
        messages: Sequence[str],
        fallback: str = "",
    ) -> str | list[str]:
        """Run the named policy."""
        policy = Policy.parse(policy)
        if policy is Policy.FAIL_FAST:
            return await self.fail_fast(services, messages)
        if policy is Policy.FAIL_PARTIAL:
            return await self.fail_partial(services, messages)
        return await self.fail_soft(services, messages, fallback)

    async def report(
        self,
        policy: Policy | str,
        services: Sequence[ServiceInterface],
        messages: Sequence[str],
        fallback: str = "",
    ) -> AggregationReport:
        """Run the named policy and keep the per-task outcomes.

        Unlike ``run``, a fail-fast failure is captured on the report instead
        of being raised, so callers can show which services failed.
        """
        policy = Policy.parse(policy)
        if len(services) != len(messages):
            try:
                result = await self.run(policy, services, messages, fallback)
            except ArgumentMismatchError as e:
                return AggregationReport(policy=policy.value, error=e)
            return AggregationReport(policy=policy.value, result=result)

        outcomes = await self._dispatch_and_wait(services, messages)
        try:
            result = self.combine(policy, outcomes, fallback)
        except ServiceFailureError as e:
            return AggregationReport(policy=policy.value, outcomes=outcomes, error=e)
        return AggregationReport(policy=policy.value, outcomes=outcomes, result=result)

    @classmethod
    def combine(
        cls,
        policy: Policy | str,
        outcomes: Sequence[TaskOutcome],
        fallback: str = "",
    ) -> str | list[str]:
        """Apply a policy's combination rule to outcomes in request order."""
        policy = Policy.parse(policy)
        if policy is Policy.FAIL_FAST:
            return cls.combine_fail_fast(outcomes)
        if policy is Policy.FAIL_PARTIAL:
            return cls.combine_fail_partial(outcomes)
        return cls.combine_fail_soft(outcomes, fallback)

    @staticmethod
    def combine_fail_fast(outcomes: Sequence[TaskOutcome]) -> str:
        """Apply the fail-fast rule to outcomes already in request order."""
        for outcome in outcomes:
            if not outcome.is_success:
                assert outcome.error is not None
                logger.warning(
                    "fail-fast aggregation failed at index %d (%s)",
                    outcome.index,
                    outcome.service_id,
                )
                raise ServiceFailureError(
                    outcome.service_id, outcome.index, outcome.error
                ) from outcome.error

        logger.info("fail-fast aggregation succeeded for %d services", len(outcomes))
        return SEPARATOR.join(str(outcome.value) for outcome in outcomes)

    @staticmethod
    def combine_fail_partial(outcomes: Sequence[TaskOutcome]) -> list[str]:
        """Apply the fail-partial rule to outcomes already in request order."""
        values = [str(outcome.value) for outcome in outcomes if outcome.is_success]
        logger.info(
            "fail-partial aggregation kept %d of %d results",
            len(values),
            len(outcomes),
        )
        return values

    @staticmethod
    def combine_fail_soft(outcomes: Sequence[TaskOutcome], fallback: str) -> str:
        """Apply the fail-soft rule to outcomes already in request order."""
        tokens = [
            str(outcome.value) if outcome.is_success else fallback
            for outcome in outcomes
        ]
        failed = sum(1 for outcome in outcomes if not outcome.is_success)
        logger.info(
            "fail-soft aggregation used fallback for %d of %d results",
            failed,
            len(outcomes),
        )
        return SEPARATOR.join(tokens)


_default_aggregator = Aggregator()


async def run_fail_fast(
    services: Sequence[ServiceInterface], messages: Sequence[str]
) -> str:
    """Fail-fast aggregation with the default aggregator."""
    return await _default_aggregator.fail_fast(services, messages)


async def run_fail_partial(
    services: Sequence[ServiceInterface], messages: Sequence[str]
) -> list[str]:
    """Fail-partial aggregation with the default aggregator."""
    return await _default_aggregator.fail_partial(services, messages)


async def run_fail_soft(
    services: Sequence[ServiceInterface], messages: Sequence[str], fallback: str
) -> str:
    """Fail-soft aggregation with the default aggregator."""
    return await _default_aggregator.fail_soft(services, messages, fallback)


async def run(
    policy: Policy | str,
    services: Sequence[ServiceInterface],
    messages: Sequence[str],
    fallback: str = "",
) -> str | list[str]:
    """Run the named policy with the default aggregator."""
    return await _default_aggregator.run(policy, services, messages, fallback)
