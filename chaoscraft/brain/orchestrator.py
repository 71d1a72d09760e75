"""The Orchestrator - runs chaos tests against the single mock server."""

import asyncio
import logging
from typing import Any, List, Optional, Tuple

from chaoscraft.brain.errors import ChaosCraftError, ErrorKind
from chaoscraft.brain.models import ChaosTemplate, ChaosTest, TestStatus
from chaoscraft.brain.planner import ResponseRecipePlanner
from chaoscraft.brain.registry import TestRegistry
from chaoscraft.brain.templates import DEFAULT_ENDPOINTS, TemplateCatalog
from chaoscraft.litterbox.reporter import Reporter, explain, mock_config
from chaoscraft.paws.activity import ActivitySimulator
from chaoscraft.paws.controller import MockServerController

logger = logging.getLogger(__name__)

# Fixed wait after reconfiguring before a test is marked complete
SETTLE_INTERVAL_SECONDS = 1.0


class Orchestrator:
    """
    Sequences one chaos test run:
    1. Registers a ``RUNNING`` test holding a snapshot of the template
    2. Plans a response recipe and hands it to the mock server controller
    3. Waits a fixed settle interval
    4. Marks the test ``COMPLETED`` or ``FAILED``

    ``run_test`` never raises; every failure becomes a ``FAILED`` test with
    one ``Error:`` log line. Runs are serialised because they all share the
    one mock server. Runs that reach the server after ``shutdown`` fail
    instead of starting a new one.

    The orchestrator also owns the process-lifetime collaborators: use it as
    an async context manager, or call ``start`` and ``shutdown``.
    """

    def __init__(
        self,
        controller: Optional[MockServerController] = None,
        registry: Optional[TestRegistry] = None,
        planner: Optional[ResponseRecipePlanner] = None,
        catalog: Optional[TemplateCatalog] = None,
        reporter: Optional[Reporter] = None,
        endpoints: Optional[List[str]] = None,
        settle_interval: float = SETTLE_INTERVAL_SECONDS,
        activity_interval: Optional[float] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            controller: Mock server controller (a Flask-backed one by default)
            registry: Test registry shared with observers
            planner: Recipe planner; controls per-request randomisation
            catalog: Template catalog
            reporter: Report generator
            endpoints: Endpoints offered to the operator
            settle_interval: Seconds to wait after reconfiguring the server
            activity_interval: Override for the activity simulator period
        """
        self.controller = controller or MockServerController()
        self.registry = registry or TestRegistry()
        self.planner = planner or ResponseRecipePlanner()
        self.catalog = catalog or TemplateCatalog()
        self.reporter = reporter or Reporter()
        self.endpoints = list(endpoints) if endpoints else list(DEFAULT_ENDPOINTS)
        self.settle_interval = settle_interval

        simulator_kwargs = {}
        if activity_interval is not None:
            simulator_kwargs["interval"] = activity_interval
        self.activity = ActivitySimulator(
            is_server_running=lambda: self.controller.is_running,
            publish=self.registry.publish_log,
            **simulator_kwargs,
        )

        self._run_lock = asyncio.Lock()
        self._started = False
        self._closed = False

    async def __aenter__(self) -> "Orchestrator":
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.shutdown()

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.activity.start()

    async def shutdown(self) -> None:
        """Stop the activity simulator and the mock server exactly once."""
        if self._closed:
            return
        self._closed = True
        await self.activity.stop()
        # Wait out any run still configuring the server
        async with self._run_lock:
            await self.controller.stop()
        logger.info("Orchestrator shut down")

    @property
    def templates(self) -> Tuple[ChaosTemplate, ...]:
        return self.catalog.templates

    def list_tests(self) -> List[ChaosTest]:
        return self.registry.list()

    def get_test(self, test_id: str) -> Optional[ChaosTest]:
        return self.registry.get(test_id)

    async def run_test(self, endpoint: str, template: ChaosTemplate) -> str:
        """Apply ``template`` to ``endpoint`` and return the new test id."""
        test = ChaosTest(
            name=f"{template.name} on {endpoint}",
            description=template.description,
            endpoint=endpoint,
            template=template.snapshot(),
            status=TestStatus.RUNNING,
        )
        self.registry.add(test)

        try:
            async with self._run_lock:
                if self._closed:
                    raise ChaosCraftError("Orchestrator is shut down")
                await self._execute(test)
        except Exception as e:
            kind = e.kind if isinstance(e, ChaosCraftError) else ErrorKind.INTERNAL
            logger.exception("Chaos test %s failed (%s)", test.id, kind.value)
            self._fail(test.id, str(e) or type(e).__name__, kind)

        return test.id

    async def _execute(self, test: ChaosTest) -> None:
        recipe = self.planner.build(test.template)
        await self.controller.start_or_replace(test.endpoint, recipe)
        self.registry.append_log(test.id, f"Started mock server on port {self.controller.bound_port}")
        self.registry.append_log(
            test.id, f"Configured endpoint {test.endpoint} with {test.template.name}"
        )
        self.registry.append_log(test.id, f"Server URL: {self.controller.url_for(test.endpoint)}")

        await asyncio.sleep(self.settle_interval)

        self.registry.append_log(test.id, "Test completed successfully")
        self.registry.set_status(test.id, TestStatus.COMPLETED)

    def _fail(self, test_id: str, message: str, kind: ErrorKind) -> None:
        self.registry.append_log(test_id, f"Error: {message}")
        current = self.registry.get(test_id)
        if current is not None and not current.status.is_terminal:
            self.registry.set_status(test_id, TestStatus.FAILED, error_kind=kind)

    def explain(self, template: ChaosTemplate, endpoint: str) -> str:
        return explain(template, endpoint)

    def markdown_report(self, test_id: str) -> str:
        """Render the Markdown report for a registered test.

        Raises:
            KeyError: If no test has that id.
        """
        test = self.registry.get(test_id)
        if test is None:
            raise KeyError(f"No chaos test with id {test_id}")
        return self.reporter.markdown_report(test)

    def mock_config(self, endpoint: str, template: ChaosTemplate) -> str:
        return mock_config(endpoint, template)
