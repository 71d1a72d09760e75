import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import pytest

from chaoscraft.brain.errors import MockServerStartError
from chaoscraft.brain.orchestrator import Orchestrator
from chaoscraft.brain.planner import Recipe, ResponseRecipePlanner
from chaoscraft.brain.registry import TestRegistry
from chaoscraft.brain.templates import TemplateCatalog
from chaoscraft.paws.controller import MockServerController
from chaoscraft.paws.mock_server import Route


@dataclass
class FakeHandle:
    index: int
    port: int
    alive: bool = True
    routes: Dict[str, Recipe] = field(default_factory=dict)


class FakeMockServer:
    """In-memory stand-in for the Flask mock server.

    Records every start/configure/stop and how many servers were live at
    once, so tests can assert the one-server invariant.
    """

    def __init__(self, fail_start: bool = False, fail_configure: bool = False) -> None:
        self.fail_start = fail_start
        self.fail_configure = fail_configure
        self.handles: List[FakeHandle] = []
        self.max_live = 0
        self._lock = threading.Lock()

    def start(self, port: int) -> FakeHandle:
        if self.fail_start:
            raise MockServerStartError(f"Port {port} already in use")
        with self._lock:
            handle = FakeHandle(index=len(self.handles), port=port)
            self.handles.append(handle)
            self.max_live = max(self.max_live, len(self.live_handles()))
        return handle

    def configure(self, handle: FakeHandle, route: Route, recipe: Recipe) -> None:
        if self.fail_configure:
            raise ValueError(f"Bad route {route.path}")
        handle.routes[route.path] = recipe

    def stop(self, handle: FakeHandle) -> None:
        with self._lock:
            handle.alive = False

    def is_running(self, handle: FakeHandle) -> bool:
        return handle.alive

    def live_handles(self) -> List[FakeHandle]:
        return [h for h in self.handles if h.alive]

    def live_paths(self) -> Set[str]:
        return {path for h in self.live_handles() for path in h.routes}

    def recipe_for(self, path: str) -> Optional[Recipe]:
        for handle in self.live_handles():
            if path in handle.routes:
                return handle.routes[path]
        return None


@pytest.fixture
def catalog():
    return TemplateCatalog()


@pytest.fixture
def fake_server():
    return FakeMockServer()


@pytest.fixture
def controller(fake_server):
    return MockServerController(server=fake_server, drain_interval=0)


@pytest.fixture
def registry():
    return TestRegistry()


@pytest.fixture
def make_orchestrator(fake_server):
    """Build orchestrators wired to a fake mock server with short waits."""

    def _make(server=None, **kwargs):
        kwargs.setdefault("settle_interval", 0.01)
        kwargs.setdefault("planner", ResponseRecipePlanner())
        controller = MockServerController(server=server or fake_server, drain_interval=0)
        return Orchestrator(controller=controller, **kwargs)

    return _make


@pytest.fixture
def orchestrator(make_orchestrator):
    return make_orchestrator()


@pytest.fixture
def fake_server_factory():
    return FakeMockServer
