from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx

from conftest import CHAT_LIST, QR, FakeHandle, HandleFactory, fast_settings
from whatsapp_session.session_manager.lifecycle import LifecycleController
from whatsapp_session.session_manager.store import SessionStore
from whatsapp_session.setup_session import generate_session
from whatsapp_session.tools.status_tools import fetch_health, fetch_status, health_exit_code


def _transport(payloads: dict[str, dict], status: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=payloads.get(request.url.path, {}))

    return httpx.MockTransport(handler)


def test_fetch_health_decodes_payload() -> None:
    payload = {"status": "ok", "whatsappReady": True, "timestamp": "2026-01-01T00:00:00+00:00"}
    transport = _transport({"/health": payload})

    health = asyncio.run(fetch_health("http://wa.test", transport=transport))

    assert health == payload
    assert health_exit_code(health) == 0


def test_fetch_status_decodes_snapshot() -> None:
    snapshot = {"ready": False, "state": "retrying", "lastError": "LaunchError: boom", "updatedAt": "x"}
    transport = _transport({"/status": snapshot})

    assert asyncio.run(fetch_status("http://wa.test", transport=transport)) == snapshot


def test_not_ready_or_unreachable_is_unhealthy() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    down = asyncio.run(fetch_health("http://wa.test", transport=httpx.MockTransport(refuse)))
    assert "not reachable" in down["error"]
    assert health_exit_code(down) == 1

    failing = asyncio.run(fetch_health("http://wa.test", transport=_transport({}, status=503)))
    assert failing == {"error": "HTTP 503"}

    assert health_exit_code({"status": "ok", "whatsappReady": False}) == 1


def test_generate_session_writes_file(session_path: Path) -> None:
    async def scenario() -> None:
        handle = FakeHandle(visible={CHAT_LIST})
        controller = LifecycleController(
            fast_settings(interactive_login=True),
            SessionStore(session_path),
            HandleFactory(handle),
        )

        assert await generate_session(controller) == 0
        assert handle.close_calls == 1
        assert len(json.loads(session_path.read_text(encoding="utf-8"))) == 2

    asyncio.run(scenario())


def test_generate_session_reports_unscanned_qr(session_path: Path) -> None:
    async def scenario() -> None:
        handle = FakeHandle(visible={QR})
        controller = LifecycleController(
            fast_settings(interactive_login=True, login_timeout=0.05),
            SessionStore(session_path),
            HandleFactory(handle),
        )

        assert await generate_session(controller) == 1
        assert handle.close_calls == 1
        assert not session_path.exists()

    asyncio.run(scenario())
