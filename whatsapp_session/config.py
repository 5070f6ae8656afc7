"""Application configuration loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

from .models.settings import BrowserOptions, LifecycleSettings

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# Paths
SESSION_FILE = Path(os.getenv("SESSION_FILE", "./session.json"))

# Status server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
STATUS_URL = os.getenv("STATUS_URL", f"http://127.0.0.1:{PORT}")

# Browser
BROWSER_ENGINE = os.getenv("BROWSER_ENGINE", "chromium").lower()
BROWSER_HEADLESS = _flag("BROWSER_HEADLESS", "true")
BROWSER_NO_SANDBOX = _flag("BROWSER_NO_SANDBOX", "true")
BROWSER_EXECUTABLE_PATH = os.getenv("BROWSER_EXECUTABLE_PATH") or None
BROWSER_USER_AGENT = os.getenv("BROWSER_USER_AGENT") or None

# Lifecycle (seconds)
WHATSAPP_URL = os.getenv("WHATSAPP_URL", "https://web.whatsapp.com")
NAVIGATION_TIMEOUT = float(os.getenv("NAVIGATION_TIMEOUT", "60"))
DETECTION_TIMEOUT = float(os.getenv("DETECTION_TIMEOUT", "15"))
LOGIN_TIMEOUT = float(os.getenv("LOGIN_TIMEOUT", "120"))
RETRY_DELAY = float(os.getenv("RETRY_DELAY", "30"))
KEEPALIVE_INTERVAL = float(os.getenv("KEEPALIVE_INTERVAL", "60"))
PROBE_TIMEOUT = float(os.getenv("PROBE_TIMEOUT", "10"))
SESSION_SETTLE_DELAY = float(os.getenv("SESSION_SETTLE_DELAY", "5"))
INTERACTIVE_LOGIN = _flag("INTERACTIVE_LOGIN", "false")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def lifecycle_settings() -> LifecycleSettings:
    """Lifecycle timings and login policy from the environment."""
    return LifecycleSettings(
        url=WHATSAPP_URL,
        navigation_timeout=NAVIGATION_TIMEOUT,
        detection_timeout=DETECTION_TIMEOUT,
        login_timeout=LOGIN_TIMEOUT,
        retry_delay=RETRY_DELAY,
        keepalive_interval=KEEPALIVE_INTERVAL,
        probe_timeout=PROBE_TIMEOUT,
        session_settle_delay=SESSION_SETTLE_DELAY,
        interactive_login=INTERACTIVE_LOGIN,
    )


def browser_options() -> BrowserOptions:
    """Browser launch options from the environment."""
    return BrowserOptions(
        engine=BROWSER_ENGINE,
        headless=BROWSER_HEADLESS,
        no_sandbox=BROWSER_NO_SANDBOX,
        executable_path=BROWSER_EXECUTABLE_PATH,
        user_agent=BROWSER_USER_AGENT,
    )


def ensure_dirs():
    """Create the session file's parent directory if it doesn't exist."""
    SESSION_FILE.parent.mkdir(parents=True, exist_ok=True)
