"""The Paws - mock server lifecycle and simulated traffic."""

from chaoscraft.paws.activity import ActivitySimulator
from chaoscraft.paws.controller import MockServerController
from chaoscraft.paws.mock_server import FlaskMockServer, MockServer, Route

__all__ = ["ActivitySimulator", "MockServerController", "FlaskMockServer", "MockServer", "Route"]
