"""ChaosCraft - fault-injection templates against a local mock HTTP server."""

__version__ = "0.1.0"
