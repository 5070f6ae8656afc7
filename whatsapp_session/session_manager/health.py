"""Keep-alive loop that notices a silently dead browser."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Awaitable, Callable, Optional

from ..config import LOG_LEVEL
from .errors import ConnectionLost

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(LOG_LEVEL)


class HealthMonitor:
    """Probes the page every ``interval`` seconds while the session is ready.

    The first failed probe reports a ConnectionLost through ``on_lost`` and
    ends the loop; the owner decides how to recover.
    """

    def __init__(
        self,
        probe: Callable[[], Awaitable[object]],
        on_lost: Callable[[ConnectionLost], None],
        interval: float,
        probe_timeout: float,
    ):
        self._probe = probe
        self._on_lost = on_lost
        self._interval = interval
        self._probe_timeout = probe_timeout
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    def stop(self):
        task, self._task = self._task, None
        if task is None or task.done():
            return
        # on_lost runs inside the loop task; it finishes on its own right after.
        if task is asyncio.current_task():
            return
        task.cancel()

    async def _run(self):
        while True:
            await asyncio.sleep(self._interval)
            try:
                await asyncio.wait_for(self._probe(), timeout=self._probe_timeout)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                lost = e if isinstance(e, ConnectionLost) else ConnectionLost(
                    f"Keep-alive probe failed: {e!r}"
                )
                logger.error(f"Page closed or unresponsive, reinitializing... ({lost})")
                self._on_lost(lost)
                return
            logger.debug("Keep-alive ping")
