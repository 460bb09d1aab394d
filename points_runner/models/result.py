"""Models for scored test results."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

LogSource = Literal["STDOUT", "STDERR", "EXCEPTION", "STACK_TRACE"]


def format_log_entry(source: LogSource, message: str) -> str:
    """Tag a log line with the stream or event it came from."""
    return f"[{source}] {message}"


@dataclass(frozen=True, kw_only=True)
class TestResult:
    """Result of a single test execution.

    Points are all-or-nothing: a passed test earns its possible points, any
    other outcome earns zero.
    """

    __test__ = False

    test_name: str
    display_name: str
    possible_points: int
    earned_points: int
    passed: bool
    logs: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.possible_points < 0:
            raise ValueError(
                f"possible_points must be non-negative, got {self.possible_points}"
            )
        expected = self.possible_points if self.passed else 0
        if self.earned_points != expected:
            raise ValueError(
                f"earned_points must be {expected} for a "
                f"{'passed' if self.passed else 'failed'} test, "
                f"got {self.earned_points}"
            )


@dataclass(frozen=True, kw_only=True)
class TestSuiteResult:
    """Aggregated results of one run."""

    __test__ = False

    test_results: Sequence[TestResult]
    total_possible_points: int
    total_earned_points: int
    percentage_earned: float

    @property
    def passed_count(self) -> int:
        return sum(1 for result in self.test_results if result.passed)

    @property
    def failed_count(self) -> int:
        return len(self.test_results) - self.passed_count
