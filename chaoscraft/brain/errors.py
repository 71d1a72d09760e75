"""Error taxonomy for chaos test orchestration."""

from enum import Enum


class ErrorKind(Enum):
    START_FAILED = "start_failed"
    INTERNAL = "internal"


class ChaosCraftError(Exception):
    """Base class for errors raised by ChaosCraft."""

    kind = ErrorKind.INTERNAL


class MockServerStartError(ChaosCraftError):
    """The mock server could not bind its port or register the route."""

    kind = ErrorKind.START_FAILED


class InvalidTransitionError(ChaosCraftError):
    """A test status change would leave a terminal state."""
