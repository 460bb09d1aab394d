"""Lifecycle event payloads delivered by the test engine."""

from dataclasses import dataclass
from typing import Literal

ExecutionStatus = Literal["successful", "failed", "errored", "aborted"]


@dataclass(frozen=True, kw_only=True)
class TestIdentifier:
    """Engine-assigned identity of a node in the test plan.

    ``unique_id`` is opaque to consumers of the report and only used to
    correlate the started and finished events of one execution.
    """

    __test__ = False

    unique_id: str
    display_name: str
    is_test: bool = True


@dataclass(frozen=True, kw_only=True)
class TestOutcome:
    """Outcome reported by the engine when a test finishes."""

    __test__ = False

    status: ExecutionStatus
    cause: BaseException | None = None

    @property
    def passed(self) -> bool:
        """Whether the test finished successfully."""
        return self.status == "successful"
