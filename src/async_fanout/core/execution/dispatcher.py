"""Concurrent dispatch of service calls and the wait-for-all barrier."""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

from async_fanout.core.execution.result_types import TaskOutcome
from async_fanout.services.base import ServiceInterface

logger = logging.getLogger(__name__)

EmitEventFn = Callable[[str, dict[str, Any]], None]


class ServiceDispatcher:
    """Launches one asyncio task per (service, message) pair.

    Every task starts immediately and runs independently of its siblings:
    there is no concurrency limit and a failing task never cancels or delays
    the others. The dispatcher does not look at outcomes beyond reporting
    them through the optional event callback; combining them is left to the
    aggregation policies.
    """

    def __init__(self, emit_event_fn: EmitEventFn | None = None) -> None:
        self._emit_event = emit_event_fn

    def dispatch(
        self,
        services: Sequence[ServiceInterface],
        messages: Sequence[str],
    ) -> list[asyncio.Task[str]]:
        """Start every retrieval and return the tasks in request order.

        Must be called from a running event loop. Callers are responsible for
        checking that both sequences have the same length.
        """
        logger.debug("Dispatching %d service calls", len(services))
        return [
            asyncio.create_task(
                self._run_service(index, service, message),
                name=f"fanout-{index}-{service.service_id}",
            )
            for index, (service, message) in enumerate(zip(services, messages))
        ]

    async def _run_service(
        self, index: int, service: ServiceInterface, message: str
    ) -> str:
        """Run a single retrieval, reporting start and completion events."""
        start_time = time.time()
        self._emit(
            "service_started",
            {"service_id": service.service_id, "index": index, "timestamp": start_time},
        )

        try:
            value = await service.retrieve(message)
        except Exception as e:
            logger.debug(
                "Service '%s' (index %d) failed: %r", service.service_id, index, e
            )
            self._emit_completion(service, index, start_time, error=e)
            raise

        self._emit_completion(service, index, start_time)
        return value

    def _emit_completion(
        self,
        service: ServiceInterface,
        index: int,
        start_time: float,
        error: Exception | None = None,
    ) -> None:
        end_time = time.time()
        data: dict[str, Any] = {
            "service_id": service.service_id,
            "index": index,
            "timestamp": end_time,
            "duration_ms": int((end_time - start_time) * 1000),
        }
        if error is not None:
            data["error"] = str(error) or type(error).__name__
        self._emit("service_completed", data)

    def _emit(self, event_type: str, data: dict[str, Any]) -> None:
        if self._emit_event is None:
            return
        try:
            self._emit_event(event_type, data)
        except Exception:
            # Observers must never change a task's outcome.
            logger.exception("Event callback failed for '%s'", event_type)


async def collect_outcomes(
    tasks: Sequence[asyncio.Task[str]],
    services: Sequence[ServiceInterface],
) -> list[TaskOutcome]:
    """Wait for every task and return their outcomes in request order.

    Completion order is irrelevant: outcome ``i`` always belongs to task
    ``i``. Exceptions that are not ``Exception`` subclasses are not service
    failures and are re-raised. That includes a service that raises
    ``asyncio.CancelledError`` itself, so such a service makes every policy
    raise, fail-partial and fail-soft included.

    A service that returns something other than a ``str`` still counts as a
    success; a warning is logged and the value is combined as ``str(value)``.
    """
    results = await asyncio.gather(*tasks, return_exceptions=True)

    outcomes: list[TaskOutcome] = []
    for index, (service, result) in enumerate(zip(services, results)):
        if isinstance(result, Exception):
            outcomes.append(TaskOutcome.failure(index, service.service_id, result))
        elif isinstance(result, BaseException):
            raise result
        else:
            if not isinstance(result, str):
                logger.warning(
                    "Service '%s' (index %d) returned %s instead of str",
                    service.service_id,
                    index,
                    type(result).__name__,
                )
            outcomes.append(TaskOutcome.success(index, service.service_id, result))
    return outcomes
