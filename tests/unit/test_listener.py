"""Tests for the points execution listener."""

import logging
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import pytest

from points_runner.capture import OutputInterceptor
from points_runner.identity import build_unique_id
from points_runner.listener import PointsExecutionListener, format_cause
from points_runner.models.execution import TestIdentifier, TestOutcome
from points_runner.resolvers.base import PointsResolver


@dataclass(frozen=True, kw_only=True)
class StaticResolver(PointsResolver):
    """Resolver backed by a fixed mapping of test names to points."""

    points: Mapping[str, int] = field(default_factory=dict)
    unknown_types: frozenset[str] = frozenset()

    def resolve(self, type_name: str, method_name: str) -> int:
        """Return mapped points, raising for unknown types."""
        if type_name in self.unknown_types:
            raise LookupError(f"Cannot locate type '{type_name}'")
        return self.points.get(f"{type_name}#{method_name}", 0)


def make_identifier(
    type_name: str = "tests.test_math.TestMath",
    method: str = "test_add",
    *,
    is_test: bool = True,
) -> TestIdentifier:
    """Build an identifier for a plain test method."""
    unique_id = build_unique_id(
        [("engine", "pytest"), ("class", type_name), ("method", f"{method}()")]
    )
    return TestIdentifier(unique_id=unique_id, display_name=method, is_test=is_test)


def raise_and_catch(exc: BaseException) -> BaseException:
    """Return the exception with a populated traceback."""
    try:
        raise exc
    except BaseException as caught:
        return caught


SUCCESS = TestOutcome(status="successful")


@pytest.fixture
def resolver() -> StaticResolver:
    """Create resolver with a few declared tests."""
    return StaticResolver(
        points={
            "tests.test_math.TestMath#test_add": 10,
            "tests.test_math.TestMath#test_sub": 20,
        },
        unknown_types=frozenset({"tests.gone.TestGone"}),
    )


@pytest.fixture
def listener(resolver: StaticResolver) -> PointsExecutionListener:
    """Create listener with a started plan."""
    listener = PointsExecutionListener(resolver=resolver)
    listener.plan_started(total_tests=2)
    return listener


def run_test(
    listener: PointsExecutionListener,
    identifier: TestIdentifier,
    outcome: TestOutcome = SUCCESS,
    stdout: str = "",
    stderr: str = "",
) -> None:
    """Deliver started/finished events, writing output in between."""
    listener.test_started(identifier)
    sys.stdout.write(stdout)
    sys.stderr.write(stderr)
    listener.test_finished(identifier, outcome)


def test_passing_test_earns_points(listener: PointsExecutionListener) -> None:
    """Records full points for a passing 10-point test."""
    run_test(listener, make_identifier(method="test_add"))

    suite = listener.get_suite_result()

    assert len(suite.test_results) == 1
    result = suite.test_results[0]
    assert result.test_name == "tests.test_math.TestMath#test_add"
    assert result.display_name == "test_add"
    assert result.possible_points == 10
    assert result.earned_points == 10
    assert result.passed is True
    assert suite.total_possible_points == 10
    assert suite.total_earned_points == 10
    assert suite.percentage_earned == 100.0


def test_failing_test_earns_nothing(listener: PointsExecutionListener) -> None:
    """Records zero earned points for a failing 20-point test."""
    cause = raise_and_catch(AssertionError("expected 3"))
    run_test(
        listener,
        make_identifier(method="test_sub"),
        TestOutcome(status="failed", cause=cause),
    )

    suite = listener.get_suite_result()

    result = suite.test_results[0]
    assert result.possible_points == 20
    assert result.earned_points == 0
    assert result.passed is False
    assert (suite.total_possible_points, suite.total_earned_points) == (20, 0)
    assert suite.percentage_earned == 0.0


def test_mixed_results(listener: PointsExecutionListener) -> None:
    """Totals a passing 10-point and a failing 20-point test."""
    run_test(listener, make_identifier(method="test_add"))
    run_test(
        listener, make_identifier(method="test_sub"), TestOutcome(status="errored")
    )

    suite = listener.get_suite_result()

    assert suite.total_possible_points == 30
    assert suite.total_earned_points == 10
    assert suite.percentage_earned == pytest.approx(100 / 3)


def test_undeclared_points_are_zero(listener: PointsExecutionListener) -> None:
    """Records tests without declared points with zero possible points."""
    run_test(listener, make_identifier(method="test_plain"))
    run_test(
        listener, make_identifier(method="test_other"), TestOutcome(status="failed")
    )

    suite = listener.get_suite_result()

    assert [r.possible_points for r in suite.test_results] == [0, 0]
    assert suite.total_possible_points == 0
    assert suite.percentage_earned == 0.0


def test_logs_output_then_exception(listener: PointsExecutionListener) -> None:
    """Orders stdout lines before the exception and its stack trace."""
    cause = raise_and_catch(RuntimeError("boom"))
    run_test(
        listener,
        make_identifier(method="test_add"),
        TestOutcome(status="failed", cause=cause),
        stdout="line one\nline two\n",
    )

    logs = listener.get_suite_result().test_results[0].logs

    assert logs[:3] == (
        "[STDOUT] line one",
        "[STDOUT] line two",
        "[EXCEPTION] RuntimeError: boom",
    )
    assert len(logs) > 3
    assert all(entry.startswith("[STACK_TRACE] ") for entry in logs[3:])
    assert logs[3] == "[STACK_TRACE] Traceback (most recent call last):"
    assert logs[-1] == "[STACK_TRACE] RuntimeError: boom"


def test_stdout_before_stderr(listener: PointsExecutionListener) -> None:
    """Appends all stdout lines before stderr lines."""
    identifier = make_identifier()
    listener.test_started(identifier)
    sys.stderr.write("err first\n")
    sys.stdout.write("out second\n")
    listener.test_finished(identifier, SUCCESS)

    logs = listener.get_suite_result().test_results[0].logs

    assert logs == ("[STDOUT] out second", "[STDERR] err first")


def test_successful_outcome_never_logs_cause(
    listener: PointsExecutionListener,
) -> None:
    """Ignores a cause attached to a successful outcome."""
    cause = raise_and_catch(ValueError("ignored"))
    run_test(listener, make_identifier(), TestOutcome(status="successful", cause=cause))

    assert listener.get_suite_result().test_results[0].logs == ()


def test_logs_are_isolated_between_tests(listener: PointsExecutionListener) -> None:
    """Keeps each test's output in its own log list."""
    run_test(listener, make_identifier(method="test_add"), stdout="from add\n")
    run_test(listener, make_identifier(method="test_sub"), stdout="from sub\n")

    logs = {r.display_name: r.logs for r in listener.get_suite_result().test_results}

    assert logs == {
        "test_add": ("[STDOUT] from add",),
        "test_sub": ("[STDOUT] from sub",),
    }


def test_restores_streams(listener: PointsExecutionListener) -> None:
    """Leaves the standard streams as they were after each test."""
    original_out, original_err = sys.stdout, sys.stderr

    run_test(listener, make_identifier(), stdout="x\n", stderr="y\n")

    assert sys.stdout is original_out
    assert sys.stderr is original_err


def test_ignores_containers(listener: PointsExecutionListener) -> None:
    """Produces no result and no capture for non-test nodes."""
    container = make_identifier(is_test=False)
    original_out = sys.stdout

    listener.test_started(container)
    assert sys.stdout is original_out
    listener.test_finished(container, SUCCESS)

    assert listener.get_suite_result().test_results == []


def test_skips_malformed_identity(
    listener: PointsExecutionListener, caplog: pytest.LogCaptureFixture
) -> None:
    """Omits tests whose identity has no class or method and keeps going."""
    malformed = TestIdentifier(
        unique_id="[engine:pytest]/[item:docs/index.txt::index.txt]",
        display_name="index.txt",
    )

    with caplog.at_level(logging.WARNING):
        run_test(listener, malformed, stdout="ignored\n")
        run_test(listener, make_identifier(method="test_add"))

    suite = listener.get_suite_result()
    assert [r.display_name for r in suite.test_results] == ["test_add"]
    assert "Cannot determine test class and method" in caplog.text


def test_resolver_failure_is_contained(
    listener: PointsExecutionListener, caplog: pytest.LogCaptureFixture
) -> None:
    """Logs resolver errors and keeps results of other tests."""
    run_test(listener, make_identifier(method="test_add"))

    with caplog.at_level(logging.ERROR):
        run_test(listener, make_identifier("tests.gone.TestGone", "test_x"))
    run_test(listener, make_identifier(method="test_sub"))

    suite = listener.get_suite_result()
    assert sorted(r.display_name for r in suite.test_results) == [
        "test_add",
        "test_sub",
    ]
    assert "Error processing test result for test_x" in caplog.text


class Unprintable(Exception):
    """Exception whose message cannot be rendered."""

    def __str__(self) -> str:
        raise RuntimeError("no str")


class BrokenInterceptor(OutputInterceptor):
    """Interceptor that restores streams and then fails to hand back output."""

    def end(self, test_id: str) -> tuple[Sequence[str], Sequence[str]]:
        super().end(test_id)
        raise OSError("capture lost")


def test_unprintable_exception_is_contained(
    listener: PointsExecutionListener,
) -> None:
    """Records a test whose exception cannot be turned into text."""
    cause = raise_and_catch(Unprintable())
    run_test(
        listener,
        make_identifier(method="test_add"),
        TestOutcome(status="failed", cause=cause),
    )
    run_test(listener, make_identifier(method="test_sub"))

    suite = listener.get_suite_result()
    results = {r.display_name: r for r in suite.test_results}
    assert results["test_add"].earned_points == 0
    assert results["test_add"].logs[0] == (
        "[EXCEPTION] Unprintable: <exception str() failed>"
    )
    assert results["test_sub"].earned_points == 20
    assert suite.total_possible_points == 30


def test_capture_failure_is_contained(
    resolver: StaticResolver, caplog: pytest.LogCaptureFixture
) -> None:
    """Logs capture errors and still records the test."""
    original_out = sys.stdout
    listener = PointsExecutionListener(
        resolver=resolver, interceptor=BrokenInterceptor()
    )
    listener.plan_started(total_tests=1)

    with caplog.at_level(logging.ERROR):
        run_test(listener, make_identifier(method="test_add"), stdout="lost\n")

    assert sys.stdout is original_out
    [result] = listener.get_suite_result().test_results
    assert result.earned_points == 10
    assert result.logs == ()
    assert "Error collecting logs for test_add" in caplog.text


def test_plan_started_clears_previous_run(listener: PointsExecutionListener) -> None:
    """Starts every plan with an empty result set."""
    run_test(listener, make_identifier())

    listener.plan_started(total_tests=0)

    assert listener.get_suite_result().test_results == []


def test_template_invocations_recorded_separately(
    listener: PointsExecutionListener,
) -> None:
    """Records one result per parametrized invocation."""
    for param in ("1-2", "3-4"):
        unique_id = build_unique_id(
            [
                ("engine", "pytest"),
                ("class", "tests.test_math.TestMath"),
                ("test-template-invocation", f"test_add({param})"),
            ]
        )
        run_test(
            listener,
            TestIdentifier(unique_id=unique_id, display_name=f"test_add[{param}]"),
        )

    suite = listener.get_suite_result()

    assert {r.test_name for r in suite.test_results} == {
        "tests.test_math.TestMath#test_add"
    }
    assert suite.total_possible_points == 20


def test_report_is_idempotent(listener: PointsExecutionListener) -> None:
    """Returns identical totals when asked twice without new events."""
    run_test(listener, make_identifier(method="test_add"))
    run_test(
        listener, make_identifier(method="test_sub"), TestOutcome(status="failed")
    )

    first = listener.get_suite_result()
    second = listener.get_suite_result()

    assert (
        first.total_possible_points,
        first.total_earned_points,
        first.percentage_earned,
    ) == (
        second.total_possible_points,
        second.total_earned_points,
        second.percentage_earned,
    )


def test_add_log_after_finish_is_ignored_by_result(
    listener: PointsExecutionListener,
) -> None:
    """Does not change a result once it has been recorded."""
    identifier = make_identifier()
    run_test(listener, identifier, stdout="kept\n")

    listener.add_log(identifier.unique_id, "STDOUT", "late")

    assert listener.get_suite_result().test_results[0].logs == ("[STDOUT] kept",)


def test_uses_given_interceptor(resolver: StaticResolver) -> None:
    """Drives the interceptor passed in."""
    interceptor = OutputInterceptor()
    listener = PointsExecutionListener(resolver=resolver, interceptor=interceptor)
    identifier = make_identifier()

    listener.test_started(identifier)
    try:
        assert interceptor.current_test_id == identifier.unique_id
    finally:
        listener.test_finished(identifier, SUCCESS)

    assert interceptor.current_test_id is None


def test_format_cause() -> None:
    """Summarises an exception and splits its trace into lines."""
    summary, trace = format_cause(raise_and_catch(KeyError("k")))

    assert summary == "KeyError: 'k'"
    assert trace[0] == "Traceback (most recent call last):"
    assert trace[-1] == "KeyError: 'k'"
    assert all(trace)


def test_format_cause_with_unprintable_message() -> None:
    """Falls back to a placeholder when the message cannot be rendered."""
    summary, trace = format_cause(raise_and_catch(Unprintable()))

    assert summary == "Unprintable: <exception str() failed>"
    assert trace[0] == "Traceback (most recent call last):"
