"""Mock Server Controller - owns the single active mock server instance."""

import asyncio
import logging
from typing import Any, Optional

from chaoscraft.brain.errors import MockServerStartError
from chaoscraft.brain.planner import Recipe
from chaoscraft.paws.mock_server import (
    MOCK_SERVER_HOST,
    MOCK_SERVER_PORT,
    FlaskMockServer,
    MockServer,
    Route,
)

logger = logging.getLogger(__name__)

# Wait after releasing the port before binding it again
DRAIN_INTERVAL_SECONDS = 0.5


class MockServerController:
    """Stop-then-start lifecycle for the one mock server.

    Starting a new server always retires the previous one, so at most one
    endpoint mapping is live at any time. The raw server handle never leaves
    this class. Blocking server calls run in the default executor so the
    event loop stays responsive.
    """

    port = MOCK_SERVER_PORT
    host = MOCK_SERVER_HOST

    def __init__(
        self,
        server: Optional[MockServer] = None,
        drain_interval: float = DRAIN_INTERVAL_SECONDS,
    ) -> None:
        self._server: MockServer = server if server is not None else FlaskMockServer(host=self.host)
        self._handle: Optional[Any] = None
        self._bound_port: Optional[int] = None
        self.drain_interval = drain_interval

    @property
    def is_running(self) -> bool:
        handle = self._handle
        return handle is not None and self._server.is_running(handle)

    @property
    def bound_port(self) -> int:
        """Port of the active server, or the fixed port when none is running."""
        return self._bound_port if self._bound_port is not None else self.port

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.bound_port}"

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    async def start_or_replace(self, endpoint: str, recipe: Recipe) -> None:
        """Retire any running server and serve ``recipe`` at ``endpoint``.

        Raises:
            MockServerStartError: If the server cannot bind or the route
                cannot be registered. No server is left running in that case.
        """
        await self.stop()

        loop = asyncio.get_running_loop()
        try:
            handle = await loop.run_in_executor(None, self._server.start, self.port)
        except MockServerStartError:
            raise
        except Exception as e:
            raise MockServerStartError(f"Mock server failed to start: {e}") from e

        try:
            self._server.configure(handle, Route(endpoint), recipe)
        except Exception as e:
            logger.warning("Configuring %s failed, shutting the new server down", endpoint)
            await loop.run_in_executor(None, self._server.stop, handle)
            if isinstance(e, MockServerStartError):
                raise
            raise MockServerStartError(f"Could not configure {endpoint}: {e}") from e

        self._handle = handle
        self._bound_port = getattr(handle, "port", None)
        logger.info("Serving %s with status %d", self.url_for(endpoint), recipe.status_code)

    async def stop(self) -> None:
        """Stop the active server; a no-op when none is running."""
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        self._bound_port = None

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._server.stop, handle)
        await asyncio.sleep(self.drain_interval)

