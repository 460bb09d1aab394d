"""JSON report of a scored run."""

import json
import logging
from pathlib import Path
from typing import Any

from points_runner.models.result import TestResult, TestSuiteResult

log = logging.getLogger(__name__)


def format_test_result(result: TestResult) -> dict[str, Any]:
    """Format a single test result for JSON output."""
    return {
        "testName": result.test_name,
        "displayName": result.display_name,
        "possiblePoints": result.possible_points,
        "earnedPoints": result.earned_points,
        "passed": result.passed,
        "logs": list(result.logs),
    }


def format_report(suite: TestSuiteResult) -> dict[str, Any]:
    """Format a suite result for JSON output, keeping the field order."""
    return {
        "testResults": [format_test_result(r) for r in suite.test_results],
        "totalPossiblePoints": suite.total_possible_points,
        "totalEarnedPoints": suite.total_earned_points,
        "percentageEarned": suite.percentage_earned,
    }


def write_report(suite: TestSuiteResult, output_file: Path) -> None:
    """Write the suite result as JSON, creating parent directories."""
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(json.dumps(format_report(suite), indent=2) + "\n")
    log.info("Test results written to: %s", output_file.absolute())
