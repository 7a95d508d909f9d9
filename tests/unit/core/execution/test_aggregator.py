"""Tests for the fail-fast, fail-partial and fail-soft aggregation policies."""

import asyncio
import time
from typing import Any
from unittest.mock import Mock

import pytest

from async_fanout.core.execution.aggregator import (
    Aggregator,
    Policy,
    run,
    run_fail_fast,
    run_fail_partial,
    run_fail_soft,
)
from async_fanout.core.execution.dispatcher import ServiceDispatcher
from async_fanout.core.execution.errors import (
    ArgumentMismatchError,
    ServiceFailureError,
)
from async_fanout.core.execution.result_types import TaskOutcome
from async_fanout.services.static import ServiceError


class TestFailFast:
    """Scenario: any failure fails the whole aggregation."""

    @pytest.mark.asyncio
    async def test_all_successful_returns_joined_result(self, ok: Any) -> None:
        services = [ok("S1", "R1"), ok("S2", "R2")]

        assert await run_fail_fast(services, ["a", "b"]) == "R1 R2"

    @pytest.mark.asyncio
    async def test_one_failure_raises_service_failure(
        self, ok: Any, failing: Any
    ) -> None:
        services = [ok("S1", "R1"), failing("S2", "boom")]

        with pytest.raises(ServiceFailureError) as exc_info:
            await run_fail_fast(services, ["a", "b"])

        assert exc_info.value.service_id == "S2"
        assert exc_info.value.index == 1
        assert isinstance(exc_info.value.cause, ServiceError)
        assert exc_info.value.__cause__ is exc_info.value.cause

    @pytest.mark.asyncio
    async def test_lowest_failing_index_wins_over_first_in_time(
        self, failing: Any
    ) -> None:
        services = [failing("LATE", "late", delay=0.05), failing("EARLY", "early")]

        with pytest.raises(ServiceFailureError) as exc_info:
            await run_fail_fast(services, ["a", "b"])

        assert exc_info.value.service_id == "LATE"
        assert exc_info.value.index == 0

    @pytest.mark.asyncio
    async def test_waits_for_every_task_before_failing(
        self, recording: Any, failing: Any
    ) -> None:
        slow = recording("SLOW", "OK", delay_seconds=0.05)

        with pytest.raises(ServiceFailureError):
            await run_fail_fast([slow, failing("FAIL")], ["a", "b"])

        assert slow.finished

    @pytest.mark.asyncio
    async def test_mismatch_raises_without_dispatching(self, ok: Any) -> None:
        service = ok("S1", "R1")

        with pytest.raises(ArgumentMismatchError) as exc_info:
            await run_fail_fast([service], ["a", "b"])

        assert exc_info.value.__cause__ is None
        assert service.call_count == 0

    @pytest.mark.asyncio
    async def test_empty_input_returns_empty_string(self) -> None:
        assert await run_fail_fast([], []) == ""

    @pytest.mark.asyncio
    async def test_result_order_ignores_completion_order(self, ok: Any) -> None:
        services = [ok("S1", "first", 0.05), ok("S2", "second"), ok("S3", "third")]

        assert await run_fail_fast(services, ["a", "b", "c"]) == "first second third"


class TestFailPartial:
    """Scenario: failures are skipped, successes kept in order."""

    @pytest.mark.asyncio
    async def test_some_failures_returns_only_successful_results(
        self, ok: Any, failing: Any
    ) -> None:
        services = [ok("S1", "R1"), failing("S2"), ok("S3", "R3")]

        assert await run_fail_partial(services, ["a", "b", "c"]) == ["R1", "R3"]

    @pytest.mark.asyncio
    async def test_all_failures_returns_empty_list(self, failing: Any) -> None:
        services = [failing("S1"), failing("S2")]

        assert await run_fail_partial(services, ["a", "b"]) == []

    @pytest.mark.asyncio
    async def test_all_successful_returns_every_result(self, ok: Any) -> None:
        services = [ok("S1", "R1", 0.02), ok("S2", "R2")]

        assert await run_fail_partial(services, ["a", "b"]) == ["R1", "R2"]

    @pytest.mark.asyncio
    async def test_mismatch_returns_empty_list_without_dispatching(
        self, ok: Any
    ) -> None:
        service = ok("S1", "R1")

        assert await run_fail_partial([service], ["a", "b"]) == []
        assert service.call_count == 0

    @pytest.mark.asyncio
    async def test_empty_input(self) -> None:
        assert await run_fail_partial([], []) == []


class TestFailSoft:
    """Scenario: failures are replaced with a fallback value."""

    @pytest.mark.asyncio
    async def test_some_failures_replaced_with_fallback(
        self, ok: Any, failing: Any
    ) -> None:
        services = [ok("S1", "OK"), failing("S2")]

        assert await run_fail_soft(services, ["a", "b"], "FALLBACK") == "OK FALLBACK"

    @pytest.mark.asyncio
    async def test_all_failures_all_replaced(self, failing: Any) -> None:
        services = [failing("S1"), failing("S2")]

        assert await run_fail_soft(services, ["a", "b"], "F") == "F F"

    @pytest.mark.asyncio
    async def test_token_count_matches_request_count(
        self, ok: Any, failing: Any
    ) -> None:
        services = [failing("S1"), ok("S2", "R2"), failing("S3"), ok("S4", "R4")]

        result = await run_fail_soft(services, ["a", "b", "c", "d"], "X")

        assert result.split(" ") == ["X", "R2", "X", "R4"]

    @pytest.mark.asyncio
    async def test_mismatch_returns_empty_string_without_dispatching(
        self, ok: Any
    ) -> None:
        service = ok("S1", "R1")

        assert await run_fail_soft([service], ["a", "b"], "X") == ""
        assert service.call_count == 0

    @pytest.mark.asyncio
    async def test_empty_input(self) -> None:
        assert await run_fail_soft([], [], "X") == ""

    @pytest.mark.asyncio
    async def test_service_raising_cancelled_error_propagates(
        self, ok: Any, failing: Any
    ) -> None:
        services = [ok("S1", "R1"), failing("S2", asyncio.CancelledError())]

        with pytest.raises(asyncio.CancelledError):
            await run_fail_soft(services, ["a", "b"], "X")
        with pytest.raises(asyncio.CancelledError):
            await run_fail_partial(services, ["a", "b"])


class TestLiveness:
    """Scenario: every policy finishes in about the time of the slowest task."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("attempt", range(3))
    async def test_all_policies_complete_within_timeout(
        self, attempt: int, ok: Any, failing: Any
    ) -> None:
        async def scenario() -> None:
            with pytest.raises(ServiceFailureError):
                await run_fail_fast(
                    [ok("SLOW", "OK", 0.05), failing("FAIL")], ["a", "b"]
                )

            partial = await run_fail_partial(
                [ok("SLOW", "OK", 0.05), failing("FAIL")], ["a", "b"]
            )
            assert partial == ["OK"]

            soft = await run_fail_soft(
                [ok("SLOW", "OK", 0.05), failing("FAIL")], ["a", "b"], "F"
            )
            assert soft == "OK F"

        await asyncio.wait_for(scenario(), timeout=1)

    @pytest.mark.asyncio
    async def test_duration_bounded_by_slowest_task(self, ok: Any) -> None:
        services = [ok(f"S{i}", f"R{i}", 0.2) for i in range(5)]

        start = time.perf_counter()
        result = await run_fail_soft(services, ["m"] * 5, "X")
        elapsed = time.perf_counter() - start

        assert result == "R0 R1 R2 R3 R4"
        assert elapsed < 0.6


class TestRun:
    """Scenario: policies can be selected by name."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("policy", "expected"),
        [
            (Policy.FAIL_PARTIAL, ["R1"]),
            ("fail-soft", "R1 X"),
            ("FAIL_SOFT", "R1 X"),
        ],
    )
    async def test_dispatches_to_policy(
        self, policy: Any, expected: Any, ok: Any, failing: Any
    ) -> None:
        services = [ok("S1", "R1"), failing("S2")]

        assert await run(policy, services, ["a", "b"], "X") == expected

    @pytest.mark.asyncio
    async def test_fail_fast_by_name_raises(self, ok: Any, failing: Any) -> None:
        with pytest.raises(ServiceFailureError):
            await run("fail-fast", [ok("S1", "R1"), failing("S2")], ["a", "b"])

    @pytest.mark.asyncio
    async def test_unknown_policy_raises_value_error(self, ok: Any) -> None:
        with pytest.raises(ValueError, match="Unknown policy"):
            await run("fail-loud", [ok("S1", "R1")], ["a"])


class TestAggregator:
    """Scenario: Aggregator instances wrap a dispatcher."""

    @pytest.mark.asyncio
    async def test_uses_injected_dispatcher(self, ok: Any) -> None:
        dispatcher = ServiceDispatcher()
        spy = Mock(wraps=dispatcher.dispatch)
        dispatcher.dispatch = spy  # type: ignore[method-assign]
        services = [ok("S1", "R1")]

        result = await Aggregator(dispatcher).fail_fast(services, ["a"])

        assert result == "R1"
        spy.assert_called_once_with(services, ["a"])

    @pytest.mark.asyncio
    async def test_with_events_reports_task_events(self, ok: Any) -> None:
        events: list[str] = []
        aggregator = Aggregator.with_events(lambda e, _d: events.append(e))

        await aggregator.fail_partial([ok("S1", "R1")], ["a"])

        assert events == ["service_started", "service_completed"]

    @pytest.mark.asyncio
    async def test_collect_returns_outcomes(self, ok: Any, failing: Any) -> None:
        outcomes = await Aggregator().collect(
            [ok("S1", "R1"), failing("S2")], ["a", "b"]
        )

        assert [o.status for o in outcomes] == ["success", "failed"]

    @pytest.mark.asyncio
    async def test_collect_on_mismatch_dispatches_nothing(self, ok: Any) -> None:
        service = ok("S1", "R1")

        assert await Aggregator().collect([service], []) == []
        assert service.call_count == 0


class TestReport:
    """Scenario: reports keep per-task outcomes alongside the result."""

    @pytest.mark.asyncio
    async def test_fail_fast_failure_is_captured(self, ok: Any, failing: Any) -> None:
        report = await Aggregator().report(
            "fail-fast", [ok("S1", "R1"), failing("S2")], ["a", "b"]
        )

        assert report.status == "failed"
        assert isinstance(report.error, ServiceFailureError)
        assert report.result is None
        assert len(report.outcomes) == 2

    @pytest.mark.asyncio
    async def test_fail_fast_mismatch_is_captured(self, ok: Any) -> None:
        report = await Aggregator().report("fail-fast", [ok("S1", "R1")], [])

        assert isinstance(report.error, ArgumentMismatchError)
        assert report.outcomes == []

    @pytest.mark.asyncio
    async def test_fail_soft_mismatch_reports_empty_result(self, ok: Any) -> None:
        report = await Aggregator().report("fail-soft", [ok("S1", "R1")], [], "X")

        assert report.status == "success"
        assert report.result == ""

    @pytest.mark.asyncio
    async def test_fail_partial_report(self, ok: Any, failing: Any) -> None:
        report = await Aggregator().report(
            Policy.FAIL_PARTIAL, [failing("S1"), ok("S2", "R2")], ["a", "b"]
        )

        assert report.policy == "fail-partial"
        assert report.result == ["R2"]
        assert [o.service_id for o in report.outcomes] == ["S1", "S2"]


class TestCombine:
    """Scenario: combination rules are pure functions of ordered outcomes."""

    def _outcomes(self) -> list[TaskOutcome]:
        return [
            TaskOutcome.success(0, "S1", "R1"),
            TaskOutcome.failure(1, "S2", RuntimeError("b")),
            TaskOutcome.failure(2, "S3", RuntimeError("c")),
        ]

    def test_fail_fast_reports_first_failure_in_list_order(self) -> None:
        with pytest.raises(ServiceFailureError) as exc_info:
            Aggregator.combine(Policy.FAIL_FAST, self._outcomes())

        assert exc_info.value.index == 1

    def test_fail_partial(self) -> None:
        assert Aggregator.combine(Policy.FAIL_PARTIAL, self._outcomes()) == ["R1"]

    def test_fail_soft(self) -> None:
        assert Aggregator.combine(Policy.FAIL_SOFT, self._outcomes(), "X") == "R1 X X"
