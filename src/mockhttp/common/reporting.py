"""
mockhttp Failure Reporting

Accumulating, non-fatal test-failure channel shared by matchers, endpoints
and the mock server. Every failure is kept so a single test run surfaces
every violation instead of stopping at the first one.
"""

import logging
import threading
from typing import List


logger = logging.getLogger("mockhttp.common.reporting")


class FailureReporter:
    """
    Thread-safe collector of test failures.

    Request handlers run on worker threads, so failures may be reported
    concurrently from several in-flight requests.

    Example:
        reporter = FailureReporter()
        reporter.error("expected endpoint was not called: GET /users")

        if reporter.failed:
            print(reporter.failures)
    """

    def __init__(self, name: str = "mockhttp"):
        """
        Initialize reporter.

        Args:
            name: Label used in log messages and in the assertion summary
        """
        self.name = name
        self._failures: List[str] = []
        self._lock = threading.Lock()

    def error(self, message: str):
        """Record a failure without interrupting the caller."""
        with self._lock:
            self._failures.append(message)
        logger.warning(f"[{self.name}] {message}")

    @property
    def failed(self) -> bool:
        with self._lock:
            return bool(self._failures)

    @property
    def failures(self) -> List[str]:
        """Copy of the recorded failures, in report order."""
        with self._lock:
            return list(self._failures)

    def clear(self):
        with self._lock:
            self._failures.clear()

    def summary(self) -> str:
        failures = self.failures
        lines = [f"{self.name}: {len(failures)} failure(s)"]
        lines.extend(f"  - {failure}" for failure in failures)
        return "\n".join(lines)

    def assert_ok(self):
        """
        Raise AssertionError listing every recorded failure.

        Raises:
            AssertionError: If at least one failure was recorded
        """
        if self.failed:
            raise AssertionError(self.summary())

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._failures)
