"""Interactive session generator.

Opens a visible browser on WhatsApp Web, waits for you to scan the QR code,
and writes the resulting cookies to the session file so a headless server can
start without a scan.

    uv run python -m whatsapp_session.setup_session
"""

from __future__ import annotations

import asyncio
import logging
import sys

from .config import LOG_LEVEL, SESSION_FILE, browser_options, ensure_dirs, lifecycle_settings
from .session_manager.browser import PlaywrightHandle
from .session_manager.errors import LifecycleError
from .session_manager.lifecycle import LifecycleController
from .session_manager.store import SessionStore

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(LOG_LEVEL)


async def generate_session(controller: LifecycleController) -> int:
    """Run one interactive login and report what was saved.

    Returns a process exit code: 0 when a non-empty session is on disk.
    """
    try:
        await controller.attempt()
    except LifecycleError as e:
        logger.error(f"Session setup failed: {e}")
        return 1
    finally:
        await controller.shutdown()

    session = controller.store.load()
    if not session:
        logger.error(f"No session was written to {controller.store.path}")
        return 1

    size_kb = controller.store.path.stat().st_size / 1024
    logger.info(f"Session saved successfully! File: {controller.store.path}")
    logger.info(f"Size: {size_kb:.2f} KB, cookies: {len(session)}")
    logger.info("Keep the session file private; it grants access to your WhatsApp account.")
    return 0


def build_setup_controller() -> LifecycleController:
    ensure_dirs()
    settings = lifecycle_settings().model_copy(update={"interactive_login": True})
    options = browser_options().model_copy(update={"headless": False})
    return LifecycleController(
        settings,
        SessionStore(SESSION_FILE),
        lambda: PlaywrightHandle(options),
    )


def main():
    logger.info("WhatsApp Session Generator")
    try:
        code = asyncio.run(generate_session(build_setup_controller()))
    except KeyboardInterrupt:
        logger.warning("Setup interrupted by user")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
