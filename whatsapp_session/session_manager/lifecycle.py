"""Session lifecycle: launch, restore or log in, persist, keep alive, retry.

States::

    idle -> launching -> awaiting_marker -> ready
                 |              |            |
                 +--> retrying <+            +--> degraded -> launching
                        |
                        +--> launching (after retry_delay)

Only the driver task mutates state. ``start()`` is single-flight, so the
keep-alive monitor and anything else may call it freely.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Awaitable, Callable, Optional

from ..config import LOG_LEVEL
from ..constants import (
    LINK_DEVICE_HINT,
    MARKER_LOGIN,
    MARKER_QR_GONE,
    MARKER_READY,
    PAGE_MARKERS,
    QR_SELECTOR,
    READY_SELECTORS,
)
from ..models.session import Cookie, LifecycleState, session_adapter
from ..models.settings import LifecycleSettings
from .detection import race_markers
from .errors import (
    ConnectionLost,
    DetectionTimeoutError,
    LaunchError,
    LifecycleError,
    LoginRequiredError,
    NavigationError,
    PersistError,
)
from .handle import AutomationHandle
from .health import HealthMonitor
from .status import StatusPublisher
from .store import SessionStore

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(LOG_LEVEL)


class LifecycleController:
    """Owns the single WhatsApp Web session of this process."""

    def __init__(
        self,
        settings: LifecycleSettings,
        store: SessionStore,
        handle_factory: Callable[[], AutomationHandle],
        status: Optional[StatusPublisher] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self.store = store
        self.status = status or StatusPublisher()
        self._handle_factory = handle_factory
        self._sleep = sleep
        self._state = LifecycleState.IDLE
        self._handle: Optional[AutomationHandle] = None
        self._driver: Optional[asyncio.Task] = None
        self._monitor: Optional[HealthMonitor] = None
        self._releasing: set[asyncio.Task] = set()
        self._closing = False

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def busy(self) -> bool:
        """True while a launch, detection or retry wait is in flight."""
        return self._driver is not None and not self._driver.done()

    def _set_state(self, state: LifecycleState):
        if state is not self._state:
            logger.debug(f"State {self._state.value} -> {state.value}")
            self._state = state

    # ── Driver ───────────────────────────────────────────────────────────────

    def start(self) -> bool:
        """Begin (or resume) the lifecycle.

        Returns False without doing anything if a run is already in flight, the
        session is already ready, or the controller is shutting down.
        """
        if self._closing or self.busy or self._state is LifecycleState.READY:
            return False
        self._driver = asyncio.create_task(self._drive())
        return True

    async def _drive(self):
        while not self._closing:
            try:
                await self.attempt()
                return
            except asyncio.CancelledError:
                raise
            except LifecycleError as e:
                error = e
                logger.error(f"Error initializing WhatsApp: {e}")
            except Exception as e:
                error = e
                logger.error(f"Unexpected error initializing WhatsApp: {e}", exc_info=True)

            await self._release_handle()
            self._set_state(LifecycleState.RETRYING)
            self.status.set_not_ready(self._state, f"{type(error).__name__}: {error}")
            logger.info(f"Retrying in {self.settings.retry_delay:g} seconds...")
            await self._sleep(self.settings.retry_delay)

    async def attempt(self) -> list[Cookie]:
        """Run one pass from launch to ready.

        Returns the persisted session on success.

        Raises:
            LaunchError, NavigationError, DetectionTimeoutError, LoginRequiredError,
            or whatever the automation engine raised while extracting cookies.
        """
        await self._release_handle()

        self._set_state(LifecycleState.LAUNCHING)
        self.status.set_not_ready(self._state)
        handle = self._handle_factory()
        self._handle = handle
        logger.info("Launching browser...")
        try:
            await handle.launch()
        except Exception as e:
            raise LaunchError(f"Failed to launch browser: {e}") from e

        self._set_state(LifecycleState.AWAITING_MARKER)
        self.status.set_not_ready(self._state)

        session = self.store.load()
        if session:
            logger.info("Restoring session cookies...")
            await handle.add_cookies([cookie.to_record() for cookie in session])

        logger.info(f"Navigating to {self.settings.url}...")
        try:
            await handle.navigate(self.settings.url, self.settings.navigation_timeout)
        except Exception as e:
            raise NavigationError(f"Could not load {self.settings.url}: {e}") from e

        marker = await race_markers(handle, PAGE_MARKERS, self.settings.detection_timeout)
        if marker is None:
            if not self.settings.interactive_login:
                raise DetectionTimeoutError(
                    f"Could not detect WhatsApp interface within {self.settings.detection_timeout:g}s."
                )
            # A human is watching the window; a slow QR is not fatal.
            logger.info(f"QR code should appear in the browser window. {LINK_DEVICE_HINT}")
            await self._await_login(handle, qr_seen=False)
        elif marker == MARKER_LOGIN:
            await self._await_login(handle, qr_seen=True)
        else:
            logger.info("Session restored - logged in!")

        cookies = session_adapter.validate_python(await handle.cookies())
        try:
            self.store.save(cookies)
        except PersistError as e:
            logger.warning(f"Session not persisted, continuing with live session: {e}")

        self._set_state(LifecycleState.READY)
        self.status.set_ready()
        logger.info("WhatsApp Web is ready!")
        self._start_monitor(handle)
        return cookies

    async def _await_login(self, handle: AutomationHandle, qr_seen: bool):
        if not self.settings.interactive_login:
            raise LoginRequiredError(
                "QR code detected. Headless server cannot scan QR, generate a session locally first."
            )

        if qr_seen:
            logger.info(f"QR code detected! Scan it with your phone. {LINK_DEVICE_HINT}")
        logger.info(f"Waiting up to {self.settings.login_timeout:g}s for the QR code to be scanned...")
        # The QR vanishing only means a scan when it was on screen to begin with.
        gone = {MARKER_QR_GONE: [QR_SELECTOR]} if qr_seen else {}
        marker = await race_markers(
            handle, {MARKER_READY: READY_SELECTORS}, self.settings.login_timeout, gone=gone
        )
        if marker is None:
            raise LoginRequiredError("Login timeout - QR code was not scanned in time.")

        logger.info(f"Successfully logged in (detected via: {marker})! Waiting for session to stabilize...")
        await self._sleep(self.settings.session_settle_delay)

    # ── Keep-alive ───────────────────────────────────────────────────────────

    def _start_monitor(self, handle: AutomationHandle):
        async def probe():
            if handle.is_closed:
                raise ConnectionLost("Page is closed.")
            return await handle.probe()

        self._stop_monitor()
        self._monitor = HealthMonitor(
            probe,
            self.connection_lost,
            interval=self.settings.keepalive_interval,
            probe_timeout=self.settings.probe_timeout,
        )
        self._monitor.start()

    def _stop_monitor(self):
        monitor, self._monitor = self._monitor, None
        if monitor is not None:
            monitor.stop()

    def connection_lost(self, error: ConnectionLost) -> bool:
        """Recover a ready session whose browser stopped answering.

        Reinitializes immediately, without the retry delay. Ignored unless the
        session is currently ready, so overlapping reports cause one relaunch.
        """
        if self._closing or self._state is not LifecycleState.READY:
            return False
        logger.warning(f"Connection lost: {error}")
        self._set_state(LifecycleState.DEGRADED)
        self.status.set_not_ready(self._state, f"ConnectionLost: {error}")
        self._stop_monitor()
        return self.start()

    # ── Shutdown ─────────────────────────────────────────────────────────────

    async def _close_handle(self, handle: AutomationHandle):
        try:
            await handle.close()
        except Exception as e:
            logger.warning(f"Error closing browser: {e}")

    async def _release_handle(self):
        """Close the current handle and wait for every close still in flight.

        Closes run in their own tasks behind a shield, so cancelling the caller
        (shutdown cancelling the driver) never interrupts a half-done release.
        """
        handle, self._handle = self._handle, None
        if handle is not None:
            task = asyncio.create_task(self._close_handle(handle))
            self._releasing.add(task)
            task.add_done_callback(self._releasing.discard)
        if self._releasing:
            await asyncio.shield(asyncio.gather(*self._releasing))

    async def shutdown(self):
        """Stop every timer and release the browser. Safe to call repeatedly."""
        self._closing = True
        self._stop_monitor()

        driver, self._driver = self._driver, None
        if driver is not None and not driver.done():
            driver.cancel()
            await asyncio.gather(driver, return_exceptions=True)

        await self._release_handle()
        self._set_state(LifecycleState.IDLE)
        self.status.set_not_ready(self._state)
        logger.info("Session lifecycle stopped.")
