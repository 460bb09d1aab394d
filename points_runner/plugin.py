"""pytest integration: turns pytest's run protocol into listener events."""

import logging
from collections.abc import Generator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import pytest

from points_runner.identity import (
    CLASS_TAG,
    ENGINE_TAG,
    ITEM_TAG,
    METHOD_TAG,
    TEMPLATE_INVOCATION_TAG,
    build_unique_id,
)
from points_runner.listener import PointsExecutionListener
from points_runner.markers import MARKER_HELP
from points_runner.models.execution import TestIdentifier, TestOutcome
from points_runner.report import write_report
from points_runner.resolvers.loading import (
    ResolverNotFoundError,
    load_resolver_manifest,
)

log = logging.getLogger(__name__)

ENGINE_NAME = "pytest"

points_plugin_key = pytest.StashKey["PointsPlugin"]()


@dataclass(frozen=True, kw_only=True)
class PhaseReport:
    """Outcome of one of the setup, call and teardown phases of an item."""

    when: Literal["setup", "call", "teardown"]
    outcome: Literal["passed", "failed", "skipped"]
    exception: BaseException | None = None


def build_identifier(item: pytest.Item) -> TestIdentifier:
    """Encode a collected item as a structured test identity."""
    if not isinstance(item, pytest.Function):
        unique_id = build_unique_id(
            [(ENGINE_TAG, ENGINE_NAME), (ITEM_TAG, item.nodeid)]
        )
        return TestIdentifier(unique_id=unique_id, display_name=item.name)

    class_names = [
        node.name for node in item.listchain() if isinstance(node, pytest.Class)
    ]
    type_name = ".".join([item.module.__name__, *class_names])

    callspec = getattr(item, "callspec", None)
    if callspec is not None:
        method_segment = (
            TEMPLATE_INVOCATION_TAG,
            f"{item.originalname}({callspec.id})",
        )
    else:
        method_segment = (METHOD_TAG, f"{item.originalname}()")

    unique_id = build_unique_id(
        [(ENGINE_TAG, ENGINE_NAME), (CLASS_TAG, type_name), method_segment]
    )
    return TestIdentifier(unique_id=unique_id, display_name=item.name)


def outcome_from_phases(phases: Sequence[PhaseReport]) -> TestOutcome:
    """Combine phase reports into a single test outcome.

    The first failing phase decides: a failing call is a failure, a failing
    setup or teardown an error. Skips (including expected failures) abort the
    test. A test passes only if its call phase ran and passed.
    """
    for phase in phases:
        if phase.outcome == "failed":
            status = "failed" if phase.when == "call" else "errored"
            return TestOutcome(status=status, cause=phase.exception)

    for phase in phases:
        if phase.outcome == "skipped":
            return TestOutcome(status="aborted", cause=phase.exception)

    if any(phase.when == "call" and phase.outcome == "passed" for phase in phases):
        return TestOutcome(status="successful")
    return TestOutcome(status="aborted")


class PointsPlugin:
    """Feeds pytest's run protocol to a points listener.

    Items must run one at a time with pytest's own output capturing disabled
    (``-s``): the listener redirects the process-wide streams itself.
    """

    def __init__(
        self, listener: PointsExecutionListener, report_path: Path | None = None
    ) -> None:
        self.listener = listener
        self.report_path = report_path
        self._phases: dict[str, list[PhaseReport]] = {}

    def pytest_collection_finish(self, session: pytest.Session) -> None:
        self.listener.plan_started(len(session.items))

    @pytest.hookimpl(wrapper=True)
    def pytest_runtest_protocol(
        self, item: pytest.Item, nextitem: pytest.Item | None
    ) -> Generator[None, object, object]:
        identifier = build_identifier(item)
        self._phases[item.nodeid] = []
        self.listener.test_started(identifier)
        try:
            return (yield)
        finally:
            phases = self._phases.pop(item.nodeid, [])
            self.listener.test_finished(identifier, outcome_from_phases(phases))

    @pytest.hookimpl(wrapper=True)
    def pytest_runtest_makereport(
        self, item: pytest.Item, call: pytest.CallInfo[None]
    ) -> Generator[None, pytest.TestReport, pytest.TestReport]:
        report = yield
        self._phases.setdefault(item.nodeid, []).append(
            PhaseReport(
                when=report.when,
                outcome=report.outcome,
                exception=call.excinfo.value if call.excinfo is not None else None,
            )
        )
        return report

    def pytest_terminal_summary(
        self, terminalreporter: pytest.TerminalReporter
    ) -> None:
        suite = self.listener.get_suite_result()
        terminalreporter.write_sep("=", "points summary")
        if terminalreporter.verbosity > 0:
            for result in sorted(suite.test_results, key=lambda r: r.display_name):
                terminalreporter.write_line(
                    f"{result.test_name} [{result.display_name}]: "
                    f"{result.earned_points}/{result.possible_points}"
                )
        terminalreporter.write_line(
            f"Points earned: {suite.total_earned_points}/"
            f"{suite.total_possible_points} ({suite.percentage_earned:.2f}%)"
        )

    def pytest_sessionfinish(self, session: pytest.Session) -> None:
        if self.report_path is not None:
            write_report(self.listener.get_suite_result(), self.report_path)


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("points", "point-scored test runs")
    group.addoption(
        "--points-report",
        dest="points_report",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write a JSON points report to PATH (requires -s)",
    )
    group.addoption(
        "--points-resolver",
        dest="points_resolver",
        default="reflection",
        help="Resolver used to look up declared points (default: reflection)",
    )
    group.addoption(
        "--points-resolver-config",
        dest="points_resolver_config",
        default="{}",
        help="JSON configuration for the resolver",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", MARKER_HELP)

    report_path: Path | None = config.getoption("points_report")
    if report_path is None:
        return

    if config.getoption("numprocesses", None):
        raise pytest.UsageError("--points-report requires sequential test execution")
    if config.getoption("capture", "no") != "no":
        log.warning("Output capturing is enabled, test logs will be empty; use -s")

    try:
        manifest = load_resolver_manifest(config.getoption("points_resolver"))
    except ResolverNotFoundError as exc:
        raise pytest.UsageError(str(exc)) from exc
    resolver = manifest.create(config.getoption("points_resolver_config"))

    plugin = PointsPlugin(
        listener=PointsExecutionListener(resolver=resolver),
        report_path=report_path,
    )
    config.stash[points_plugin_key] = plugin
    config.pluginmanager.register(plugin)


def pytest_unconfigure(config: pytest.Config) -> None:
    plugin = config.stash.get(points_plugin_key, None)
    if plugin is not None:
        del config.stash[points_plugin_key]
        config.pluginmanager.unregister(plugin)
