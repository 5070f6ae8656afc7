"""Session Manager HTTP service.

Runs the WhatsApp Web session lifecycle in the background and serves a
read-only status surface for operators and orchestrators.

Endpoints:
    GET  /        - ready / initializing with a human message
    GET  /health  - liveness plus the WhatsApp readiness flag
    GET  /status  - full lifecycle snapshot, including the last error
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from aiohttp import web

from ..config import (
    HOST,
    LOG_LEVEL,
    PORT,
    SESSION_FILE,
    browser_options,
    ensure_dirs,
    lifecycle_settings,
)
from ..constants import MESSAGE_INITIALIZING, MESSAGE_READY
from .browser import PlaywrightHandle
from .lifecycle import LifecycleController
from .store import SessionStore

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(LOG_LEVEL)

CONTROLLER_KEY = web.AppKey("controller", LifecycleController)


def build_controller() -> LifecycleController:
    """Wire the lifecycle from environment configuration."""
    ensure_dirs()
    options = browser_options()
    return LifecycleController(
        lifecycle_settings(),
        SessionStore(SESSION_FILE),
        lambda: PlaywrightHandle(options),
    )


# ── HTTP Handlers ────────────────────────────────────────────────────────────


async def handle_index(request: web.Request) -> web.Response:
    ready = request.app[CONTROLLER_KEY].status.ready
    return web.json_response({
        "status": "ready" if ready else "initializing",
        "message": MESSAGE_READY if ready else MESSAGE_INITIALIZING,
    })


async def handle_health(request: web.Request) -> web.Response:
    ready = request.app[CONTROLLER_KEY].status.ready
    return web.json_response({
        "status": "ok",
        "whatsappReady": ready,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


async def handle_status(request: web.Request) -> web.Response:
    snapshot = request.app[CONTROLLER_KEY].status.snapshot
    return web.json_response(snapshot.model_dump(mode="json", by_alias=True))


# ── App Factory ──────────────────────────────────────────────────────────────


async def on_startup(app: web.Application):
    controller = app[CONTROLLER_KEY]
    controller.start()
    logger.info(f"Server listening on {HOST}:{PORT}")


async def on_cleanup(app: web.Application):
    await app[CONTROLLER_KEY].shutdown()
    logger.info("Session Manager stopped.")


def create_app(controller: Optional[LifecycleController] = None) -> web.Application:
    app = web.Application()
    app[CONTROLLER_KEY] = controller or build_controller()
    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)

    app.router.add_get("/", handle_index)
    app.router.add_get("/health", handle_health)
    app.router.add_get("/status", handle_status)

    return app


def main():
    """Run the session manager as a standalone HTTP service.

    SIGINT/SIGTERM make aiohttp run the cleanup hooks, which close the browser
    before the process exits with status 0.
    """
    app = create_app()
    web.run_app(app, host=HOST, port=PORT)


if __name__ == "__main__":
    main()
