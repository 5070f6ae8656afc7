"""Command-line probe of a running session manager (container health checks)."""

from __future__ import annotations

import asyncio
import json
import sys

import httpx

from ..config import STATUS_URL


async def _call_session_manager(path: str, base_url: str = STATUS_URL, transport=None) -> dict:
    """GET a session manager endpoint and decode its JSON body."""
    url = f"{base_url}{path}"
    try:
        async with httpx.AsyncClient(timeout=10.0, transport=transport) as client:
            resp = await client.get(url)
            if resp.status_code >= 400:
                return {"error": f"HTTP {resp.status_code}"}
            return resp.json()

    except httpx.ConnectError:
        return {"error": f"Session Manager is not reachable at {base_url}."}
    except httpx.TimeoutException:
        return {"error": "Session Manager timed out."}
    except Exception as e:
        return {"error": f"Failed to query Session Manager: {e}"}


async def fetch_health(base_url: str = STATUS_URL, transport=None) -> dict:
    """Return the /health payload, or {"error": ...} when it can't be read."""
    return await _call_session_manager("/health", base_url, transport)


async def fetch_status(base_url: str = STATUS_URL, transport=None) -> dict:
    """Return the /status snapshot, or {"error": ...} when it can't be read."""
    return await _call_session_manager("/status", base_url, transport)


def health_exit_code(health: dict) -> int:
    return 0 if health.get("whatsappReady") is True else 1


def main():
    """Print the health payload; exit 0 only when WhatsApp is ready.

    When the session is not ready the lifecycle snapshot is printed to stderr
    as well, so the last error shows up in the orchestrator's logs.
    """
    health = asyncio.run(fetch_health())
    print(json.dumps(health, indent=2))
    code = health_exit_code(health)
    if code and "error" not in health:
        print(json.dumps(asyncio.run(fetch_status()), indent=2), file=sys.stderr)
    sys.exit(code)


if __name__ == "__main__":
    main()
