"""Execution listener that scores tests as the engine reports them."""

import logging
import traceback
from collections.abc import Sequence

from points_runner.aggregator import aggregate
from points_runner.capture import OutputInterceptor
from points_runner.identity import parse_test_class, parse_test_method
from points_runner.models.execution import TestIdentifier, TestOutcome
from points_runner.models.result import (
    LogSource,
    TestResult,
    TestSuiteResult,
    format_log_entry,
)
from points_runner.resolvers.base import PointsResolver
from points_runner.store import ResultStore

log = logging.getLogger(__name__)


def format_cause(cause: BaseException) -> tuple[str, Sequence[str]]:
    """Return the one-line summary and stack trace lines of an exception."""
    try:
        message = str(cause)
    except Exception:
        message = "<exception str() failed>"
    summary = f"{type(cause).__name__}: {message}"
    trace = "".join(traceback.format_exception(cause))
    return summary, tuple(line for line in trace.splitlines() if line)


class PointsExecutionListener:
    """Collects one scored result per finished test.

    Events are expected one test at a time: output capture is process-wide,
    so a test must finish before the next one starts. Containers and other
    non-test nodes are ignored.
    """

    def __init__(
        self,
        resolver: PointsResolver,
        interceptor: OutputInterceptor | None = None,
    ) -> None:
        self._resolver = resolver
        self._interceptor = interceptor or OutputInterceptor()
        self._store = ResultStore()

    def plan_started(self, total_tests: int) -> None:
        """Reset state for a fresh run."""
        self._store.clear()
        log.info("Test plan execution started with %d tests", total_tests)

    def test_started(self, identifier: TestIdentifier) -> None:
        """Open the log list and capture window for a test."""
        if not identifier.is_test:
            return

        self._store.open_logs(identifier.unique_id)
        log.debug("Test started: %s", identifier.display_name)
        self._interceptor.begin(identifier.unique_id)

    def test_finished(self, identifier: TestIdentifier, outcome: TestOutcome) -> None:
        """Record the scored result of a finished test.

        Failures while collecting logs are logged and the test is still
        recorded. Failures while resolving points are logged and the test is
        left out of the report. Neither interrupts the run.
        """
        if not identifier.is_test:
            return

        test_id = identifier.unique_id
        log.debug(
            "Test finished: %s with status %s", identifier.display_name, outcome.status
        )

        try:
            self._collect_logs(test_id, outcome)
        except Exception as exc:
            log.error(
                "Error collecting logs for %s: %s",
                identifier.display_name,
                exc,
                exc_info=exc,
            )

        type_name = parse_test_class(test_id)
        method_name = parse_test_method(test_id)
        log.debug("Parsed - class: %s, method: %s", type_name, method_name)

        if type_name is None or method_name is None:
            log.warning(
                "Cannot determine test class and method of %s, skipping", test_id
            )
            return

        try:
            points = self._resolver.resolve(type_name, method_name)
            result = TestResult(
                test_name=f"{type_name}#{method_name}",
                display_name=identifier.display_name,
                possible_points=points,
                earned_points=points if outcome.passed else 0,
                passed=outcome.passed,
                logs=self._store.logs(test_id),
            )
        except Exception as exc:
            log.error(
                "Error processing test result for %s: %s",
                identifier.display_name,
                exc,
                exc_info=exc,
            )
            return

        self._store.put(test_id, result)
        log.debug(
            "Recorded %s: %d/%d point(s)",
            result.test_name,
            result.earned_points,
            result.possible_points,
        )

    def _collect_logs(self, test_id: str, outcome: TestOutcome) -> None:
        stdout, stderr = self._interceptor.end(test_id)
        for line in stdout:
            self.add_log(test_id, "STDOUT", line)
        for line in stderr:
            self.add_log(test_id, "STDERR", line)

        if not outcome.passed and outcome.cause is not None:
            summary, trace = format_cause(outcome.cause)
            self.add_log(test_id, "EXCEPTION", summary)
            for line in trace:
                self.add_log(test_id, "STACK_TRACE", line)

    def add_log(self, test_id: str, source: LogSource, message: str) -> None:
        """Append a tagged log line to a running or just-finished test."""
        self._store.append_log(test_id, format_log_entry(source, message))

    def get_suite_result(self) -> TestSuiteResult:
        """Aggregate the results recorded so far."""
        return aggregate(self._store.snapshot())
