"""Thread-safe storage for per-test results and logs of one run."""

import threading
from collections.abc import Sequence

from points_runner.models.result import TestResult


class ResultStore:
    """Results and log lines keyed by test identity.

    Engines may deliver events from worker threads while setup or teardown
    code runs elsewhere, so every access goes through one lock. Readers get
    snapshots, never the live containers.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: dict[str, TestResult] = {}
        self._logs: dict[str, list[str]] = {}

    def clear(self) -> None:
        with self._lock:
            self._results.clear()
            self._logs.clear()

    def open_logs(self, test_id: str) -> None:
        """Start an empty log list for ``test_id``, replacing any previous one."""
        with self._lock:
            self._logs[test_id] = []

    def append_log(self, test_id: str, entry: str) -> None:
        """Append an entry for ``test_id``; ignored if its logs were never opened."""
        with self._lock:
            if (entries := self._logs.get(test_id)) is not None:
                entries.append(entry)

    def logs(self, test_id: str) -> Sequence[str]:
        with self._lock:
            return tuple(self._logs.get(test_id, ()))

    def put(self, test_id: str, result: TestResult) -> None:
        with self._lock:
            self._results[test_id] = result

    def snapshot(self) -> Sequence[TestResult]:
        with self._lock:
            return list(self._results.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
