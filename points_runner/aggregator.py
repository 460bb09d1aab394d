"""Reduction of per-test results into suite totals."""

from collections.abc import Iterable

from points_runner.models.result import TestResult, TestSuiteResult


def calculate_percentage_earned(earned_points: int, possible_points: int) -> float:
    """Return earned points as a percentage of possible points.

    A suite with no possible points scores 0%.
    """
    if possible_points <= 0:
        return 0.0
    return 100.0 * earned_points / possible_points


def aggregate(results: Iterable[TestResult]) -> TestSuiteResult:
    """Build a suite result from a snapshot of test results."""
    test_results = list(results)
    total_possible = sum(result.possible_points for result in test_results)
    total_earned = sum(result.earned_points for result in test_results)

    return TestSuiteResult(
        test_results=test_results,
        total_possible_points=total_possible,
        total_earned_points=total_earned,
        percentage_earned=calculate_percentage_earned(total_earned, total_possible),
    )
