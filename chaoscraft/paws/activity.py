"""Activity Simulator - synthetic mock-server traffic lines for the log stream."""

import asyncio
import logging
import random
from datetime import datetime
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ACTIVITY_INTERVAL_SECONDS = 3.0

ACTIVITIES = (
    "Incoming request processed",
    "Response sent to client",
    "Health check performed",
    "Request matched mapping",
)


class ActivitySimulator:
    """Publish one canned activity line per tick while the mock server runs.

    Lines go to the process-wide log stream only; they are never attached to
    a particular test.
    """

    def __init__(
        self,
        is_server_running: Callable[[], bool],
        publish: Callable[[str], None],
        interval: float = ACTIVITY_INTERVAL_SECONDS,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._is_server_running = is_server_running
        self._publish = publish
        self.interval = interval
        self.rng = rng or random.Random()
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> Optional[str]:
        """Emit a single activity line if the server is up; return it."""
        if not self._is_server_running():
            return None
        activity = self.rng.choice(ACTIVITIES)
        line = f"[{datetime.now():%H:%M:%S}] MockServer: {activity}"
        self._publish(line)
        return line

    async def _run(self) -> None:
        while True:
            try:
                self.tick()
            except Exception:
                logger.exception("Activity tick failed")
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.is_active:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Activity simulator started (every %.1fs)", self.interval)

    async def stop(self) -> None:
        """Cancel the periodic task; safe to call when already stopped."""
        task = self._task
        if task is None:
            return
        self._task = None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Activity simulator stopped")
