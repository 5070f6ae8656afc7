"""The browser-control capability the lifecycle depends on."""

from __future__ import annotations

from typing import Protocol


class AutomationHandle(Protocol):
    """One controlled browser context. All timeouts are in seconds."""

    @property
    def is_closed(self) -> bool: ...

    async def launch(self) -> None: ...

    async def navigate(self, url: str, timeout: float) -> None: ...

    async def wait_for_selector(self, selector: str, timeout: float) -> None:
        """Return once ``selector`` is present; raise on timeout."""
        ...

    async def wait_for_selector_gone(self, selector: str, timeout: float) -> None:
        """Return once ``selector`` is no longer in the page; raise on timeout."""
        ...

    async def add_cookies(self, cookies: list[dict]) -> None: ...

    async def cookies(self) -> list[dict]: ...

    async def probe(self) -> str:
        """Cheap round trip through the page (reads ``document.title``)."""
        ...

    async def close(self) -> None:
        """Release the browser. Safe to call more than once."""
        ...
