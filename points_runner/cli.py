"""CLI entry point for point-scored test runs."""

import argparse
import logging
import shlex
import sys
from collections.abc import Sequence
from pathlib import Path

import pytest

from points_runner.aggregator import aggregate
from points_runner.listener import PointsExecutionListener
from points_runner.models.result import TestSuiteResult
from points_runner.plugin import PointsPlugin
from points_runner.report import write_report
from points_runner.resolvers.loading import load_resolver_manifest

STATUS_SYMBOLS = {
    True: "✅",
    False: "❌",
}

COMPLETED_EXIT_CODES = {pytest.ExitCode.OK, pytest.ExitCode.TESTS_FAILED}


def log_results_summary(log: logging.Logger, suite: TestSuiteResult) -> None:
    """Log a formatted summary of scored test results."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for result in sorted(suite.test_results, key=lambda r: r.test_name):
        log.info(
            "%s %s [%s]: %d/%d",
            STATUS_SYMBOLS[result.passed],
            result.test_name,
            result.display_name,
            result.earned_points,
            result.possible_points,
        )

    log.info("Total tests: %d", len(suite.test_results))
    log.info("Passed tests: %d", suite.passed_count)
    log.info("Failed tests: %d", suite.failed_count)
    log.info(
        "Points earned: %d/%d (%.2f%%)",
        suite.total_earned_points,
        suite.total_possible_points,
        suite.percentage_earned,
    )


def build_pytest_args(
    paths: Sequence[Path],
    package: str | None = None,
    pythonpath: Sequence[Path] = (),
    extra_args: Sequence[str] = (),
) -> list[str]:
    """Build the pytest command line for a sequential, uncaptured run."""
    args = ["--capture=no", "-p", "no:xdist"]
    if pythonpath:
        # pytest splits "paths" ini values with shlex
        joined = " ".join(shlex.quote(str(path)) for path in pythonpath)
        args += ["-o", f"pythonpath={joined}"]
    args += extra_args

    if package:
        args += ["--pyargs", package]
    else:
        args += [str(path) for path in paths]
    return args


def run(
    paths: Sequence[Path],
    output_file: Path,
    resolver_key: str = "reflection",
    resolver_config_json: str = "{}",
    package: str | None = None,
    pythonpath: Sequence[Path] = (),
    pytest_args: Sequence[str] = (),
) -> int:
    """Run the tests, write the points report and return an exit code."""
    log = logging.getLogger("points_runner")

    log.info("Loading resolver: %s", resolver_key)
    resolver = load_resolver_manifest(resolver_key).create(resolver_config_json)

    if package:
        log.info("Scanning package: %s", package)
    else:
        log.info("Looking for tests in:")
        for path in paths:
            log.info("  %s (exists: %s)", path.absolute(), path.exists())

        paths = [path for path in paths if path.exists()]
        if not paths:
            log.error("No test paths found")
            write_report(aggregate([]), output_file)
            return 1

    listener = PointsExecutionListener(resolver=resolver)
    args = build_pytest_args(paths, package, pythonpath, pytest_args)

    log.info("Executing test discovery and execution...")
    exit_code = pytest.main(args, plugins=[PointsPlugin(listener=listener)])

    suite = listener.get_suite_result()
    write_report(suite, output_file)
    log_results_summary(log, suite)

    if exit_code == pytest.ExitCode.NO_TESTS_COLLECTED:
        log.error("No tests were collected")
        return 1
    if exit_code not in COMPLETED_EXIT_CODES:
        log.error("Test run did not complete: %s", exit_code)
        return int(exit_code)
    return 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run tests and score them by declared points"
    )
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        default=[Path("tests")],
        help="Test files or directories (default: tests)",
    )
    parser.add_argument(
        "--package",
        default=None,
        help="Run the tests of an importable package instead of paths",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("build/points-results.json"),
        help="Path of the JSON report (default: build/points-results.json)",
    )
    parser.add_argument(
        "--resolver",
        default="reflection",
        help="Resolver key (reflection, registry)",
    )
    parser.add_argument(
        "--resolver-config",
        default="{}",
        help="JSON configuration for the resolver",
    )
    parser.add_argument(
        "--pythonpath",
        type=Path,
        action="append",
        default=[],
        help="Directory to add to sys.path for the run (repeatable)",
    )
    parser.add_argument(
        "--pytest-arg",
        action="append",
        default=[],
        help="Extra argument passed through to pytest (repeatable)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = run(
        paths=args.paths,
        output_file=args.output,
        resolver_key=args.resolver,
        resolver_config_json=args.resolver_config,
        package=args.package,
        pythonpath=args.pythonpath,
        pytest_args=args.pytest_arg,
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
