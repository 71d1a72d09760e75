"""Data model for chaos templates, test runs and reports."""

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from chaoscraft.brain.errors import ErrorKind


class TestStatus(Enum):
    __test__ = False

    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TestStatus.COMPLETED, TestStatus.FAILED)

    def __str__(self) -> str:
        return self.value


@dataclass
class ChaosTemplate:
    """A named, reusable fault-injection configuration.

    ``is_malformed`` is documentary only; nothing parses the body.
    """

    name: str
    description: str = ""
    status_code: int = 200
    delay_ms: int = 0
    response_body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    is_malformed: bool = False

    def snapshot(self) -> "ChaosTemplate":
        """Return a deep copy decoupled from this instance."""
        return copy.deepcopy(self)


def _new_test_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ChaosTest:
    """One recorded run applying a template to an endpoint."""

    name: str
    endpoint: str
    template: ChaosTemplate
    description: str = ""
    status: TestStatus = TestStatus.NOT_STARTED
    id: str = field(default_factory=_new_test_id)
    created_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None
    error_kind: Optional[ErrorKind] = None
    logs: List[str] = field(default_factory=list)

    def copy(self) -> "ChaosTest":
        return copy.deepcopy(self)


@dataclass
class TestReport:
    """Ephemeral projection of a finished test, built on demand."""

    __test__ = False

    test_id: str
    api_tested: str
    chaos_scenario: str
    start_time: datetime
    end_time: Optional[datetime]
    explanation: str
    logs: List[str] = field(default_factory=list)
