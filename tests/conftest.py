from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

import pytest

from whatsapp_session.models.settings import LifecycleSettings
from whatsapp_session.session_manager.store import SessionStore

SAMPLE_COOKIES: list[dict[str, Any]] = [
    {
        "name": "wa_ul",
        "value": "abc123",
        "domain": ".web.whatsapp.com",
        "path": "/",
        "expires": 1893456000.5,
        "httpOnly": True,
        "secure": True,
        "sameSite": "Lax",
    },
    {
        "name": "wa_lang_pref",
        "value": "en",
        "domain": "web.whatsapp.com",
        "path": "/",
        "expires": -1,
        "httpOnly": False,
        "secure": True,
        "sameSite": "Strict",
    },
]

CHAT_LIST = '[data-testid="chat-list"]'
SIDE = "#side"
QR = "canvas"


class FakeHandle:
    """In-memory stand-in for a browser context."""

    def __init__(
        self,
        visible: Iterable[str] = (),
        launch_error: Optional[Exception] = None,
        launch_gate: bool = False,
        navigate_error: Optional[Exception] = None,
        probe_error: Optional[Exception] = None,
        failing: Optional[dict[str, Exception]] = None,
        cookie_jar: Optional[list[dict]] = None,
        close_delay: float = 0,
    ):
        self._shown = set(visible)
        self._events: dict[str, asyncio.Event] = {}
        self._launch_gate = launch_gate
        self.launch_error = launch_error
        self.navigate_error = navigate_error
        self.probe_error = probe_error
        self.failing = failing or {}
        self.cookie_jar = cookie_jar if cookie_jar is not None else [dict(c) for c in SAMPLE_COOKIES]
        self.launch_calls = 0
        self.close_calls = 0
        self.probe_calls = 0
        self.injected: list[list[dict]] = []
        self.navigated: list[str] = []
        self.waits: list[str] = []
        self.cancelled: list[str] = []
        self.closed = False
        self.close_delay = close_delay
        self.completed_closes = 0
        self.gone_waits: list[str] = []
        self._gone: dict[str, asyncio.Event] = {}

    @property
    def is_closed(self) -> bool:
        return self.closed

    def show(self, selector: str) -> None:
        self._shown.add(selector)
        if selector in self._events:
            self._events[selector].set()

    def hide(self, selector: str) -> None:
        self._shown.discard(selector)
        if selector in self._gone:
            self._gone[selector].set()

    async def launch(self) -> None:
        self.launch_calls += 1
        if self._launch_gate:
            await asyncio.Event().wait()
        if self.launch_error:
            raise self.launch_error

    async def navigate(self, url: str, timeout: float) -> None:
        self.navigated.append(url)
        if self.navigate_error:
            raise self.navigate_error

    async def wait_for_selector(self, selector: str, timeout: float) -> None:
        self.waits.append(selector)
        if selector in self.failing:
            raise self.failing[selector]
        if selector in self._shown:
            return
        event = self._events.setdefault(selector, asyncio.Event())
        try:
            await asyncio.wait_for(event.wait(), timeout)
        except asyncio.CancelledError:
            self.cancelled.append(selector)
            raise

    async def wait_for_selector_gone(self, selector: str, timeout: float) -> None:
        self.gone_waits.append(selector)
        if selector not in self._shown:
            return
        event = self._gone.setdefault(selector, asyncio.Event())
        await asyncio.wait_for(event.wait(), timeout)

    async def add_cookies(self, cookies: list[dict]) -> None:
        self.injected.append(cookies)

    async def cookies(self) -> list[dict]:
        return self.cookie_jar

    async def probe(self) -> str:
        self.probe_calls += 1
        if self.probe_error:
            raise self.probe_error
        return "WhatsApp"

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True
        if self.close_delay:
            await asyncio.sleep(self.close_delay)
        self.completed_closes += 1


class HandleFactory:
    """Hands out the prepared handles in order, then blank ones."""

    def __init__(self, *handles: FakeHandle):
        self._queue = list(handles)
        self.created: list[FakeHandle] = []

    def __call__(self) -> FakeHandle:
        handle = self._queue.pop(0) if self._queue else FakeHandle()
        self.created.append(handle)
        return handle


class RecordingStore(SessionStore):
    """Notes what the status endpoint would have shown at each save."""

    def __init__(self, path: Path):
        super().__init__(path)
        self.status = None
        self.ready_at_save: list[bool] = []

    def save(self, session):
        self.ready_at_save.append(self.status.ready if self.status else None)
        super().save(session)


class GatedSleep:
    """Replaces asyncio.sleep: records each delay and blocks until released."""

    def __init__(self):
        self.delays: list[float] = []
        self._gate: Optional[asyncio.Event] = None

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self._gate = asyncio.Event()
        await self._gate.wait()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()


def fast_settings(**overrides: Any) -> LifecycleSettings:
    values: dict[str, Any] = dict(
        navigation_timeout=1.0,
        detection_timeout=0.5,
        login_timeout=1.0,
        retry_delay=30.0,
        keepalive_interval=60.0,
        probe_timeout=0.2,
        session_settle_delay=0,
    )
    values.update(overrides)
    return LifecycleSettings(**values)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def session_path(tmp_path: Path) -> Path:
    return tmp_path / "session.json"
