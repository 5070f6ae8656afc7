"""Page-state detection: race several selector waits and keep the first hit."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Mapping, Optional, Sequence

from ..config import LOG_LEVEL
from .handle import AutomationHandle

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(LOG_LEVEL)


async def race_markers(
    handle: AutomationHandle,
    markers: Mapping[str, Sequence[str]],
    timeout: float,
    gone: Mapping[str, Sequence[str]] = {},
) -> Optional[str]:
    """Wait for whichever marker appears first.

    ``markers`` maps a marker name to the selectors that signal it by
    appearing; ``gone`` maps names to selectors that signal it by detaching.
    Every selector is awaited concurrently; the first wait that succeeds
    decides the result and all the others are cancelled. A wait that fails
    (its own timeout, page error) simply drops out of the race.

    Returns:
        The winning marker name, or None if nothing resolved within ``timeout``.
    """
    waiters: dict[asyncio.Task, str] = {}
    for name, selectors in markers.items():
        for selector in selectors:
            task = asyncio.create_task(handle.wait_for_selector(selector, timeout))
            waiters[task] = name
    for name, selectors in gone.items():
        for selector in selectors:
            task = asyncio.create_task(handle.wait_for_selector_gone(selector, timeout))
            waiters[task] = name

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    pending = set(waiters)
    try:
        while pending:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            done, pending = await asyncio.wait(
                pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
            # Insertion order keeps the result deterministic when several finish together.
            for task in waiters:
                if task not in done or task.cancelled():
                    continue
                error = task.exception()
                if error is None:
                    logger.debug(f"Marker '{waiters[task]}' detected")
                    return waiters[task]
                logger.debug(f"Marker wait for '{waiters[task]}' dropped out: {error!r}")
        return None
    finally:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
