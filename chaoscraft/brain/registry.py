"""Test Registry - in-memory store of chaos test runs with change notifications."""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from chaoscraft.brain.errors import ErrorKind, InvalidTransitionError
from chaoscraft.brain.events import EventHook
from chaoscraft.brain.models import ChaosTest, TestStatus

logger = logging.getLogger(__name__)


def format_log_line(message: str, now: Optional[datetime] = None) -> str:
    """Prefix a message with a local ``[HH:MM:SS]`` timestamp."""
    now = now or datetime.now()
    return f"[{now:%H:%M:%S}] {message}"


_STATUS_RANK = {
    TestStatus.NOT_STARTED: 0,
    TestStatus.RUNNING: 1,
    TestStatus.COMPLETED: 2,
    TestStatus.FAILED: 2,
}


class TestRegistry:
    """Thread-safe, insertion-ordered registry of ``ChaosTest`` records.

    Readers always receive deep copies, so callers can never mutate stored
    state behind the lock. Events:

    - ``log_added(line)`` fires for every log line, per-test or global.
    - ``tests_updated()`` fires on insert and on status change; observers
      re-fetch ``list()`` on receipt.
    """

    __test__ = False

    def __init__(self) -> None:
        self._tests: Dict[str, ChaosTest] = {}
        self._lock = threading.RLock()
        self.log_added = EventHook("log_added")
        self.tests_updated = EventHook("tests_updated")

    def add(self, test: ChaosTest) -> str:
        with self._lock:
            if test.id in self._tests:
                raise ValueError(f"Test id already registered: {test.id}")
            self._tests[test.id] = test
        logger.debug("Registered test %s (%s)", test.id, test.name)
        self.tests_updated.emit()
        return test.id

    def list(self) -> List[ChaosTest]:
        with self._lock:
            return [t.copy() for t in self._tests.values()]

    def get(self, test_id: str) -> Optional[ChaosTest]:
        with self._lock:
            test = self._tests.get(test_id)
            return test.copy() if test is not None else None

    def append_log(self, test_id: str, message: str) -> str:
        """Append a timestamped line to a test's log and publish it.

        Raises:
            KeyError: If ``test_id`` is not registered.
        """
        line = format_log_line(message)
        with self._lock:
            self._tests[test_id].logs.append(line)
        self.log_added.emit(line)
        return line

    def publish_log(self, line: str) -> None:
        """Publish a process-wide log line that belongs to no test."""
        self.log_added.emit(line)

    def set_status(
        self,
        test_id: str,
        status: TestStatus,
        error_kind: Optional[ErrorKind] = None,
    ) -> None:
        """Move a test to ``status``.

        Raises:
            KeyError: If ``test_id`` is not registered.
            InvalidTransitionError: If the move is not forward along
                NotStarted -> Running -> Completed | Failed.
        """
        with self._lock:
            test = self._tests[test_id]
            if _STATUS_RANK[status] <= _STATUS_RANK[test.status]:
                raise InvalidTransitionError(
                    f"Test {test_id} is already {test.status}; cannot move to {status}"
                )
            test.status = status
            if status.is_terminal:
                test.completed_at = datetime.now(timezone.utc)
            if error_kind is not None:
                test.error_kind = error_kind
        logger.debug("Test %s is now %s", test_id, status)
        self.tests_updated.emit()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tests)

    def __contains__(self, test_id: object) -> bool:
        with self._lock:
            return test_id in self._tests
