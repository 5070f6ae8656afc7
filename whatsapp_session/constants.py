"""WhatsApp Web page markers and browser launch arguments."""

# ── Page Markers ─────────────────────────────────────────────────────────────

MARKER_READY = "ready"
MARKER_LOGIN = "login_required"
MARKER_QR_GONE = "qr_gone"

# Any of these means the chat UI is loaded and the session is authenticated.
READY_SELECTORS = [
    '[data-testid="chat-list"]',
    "#side",
    '[data-testid="conversation-panel-wrapper"]',
]

# The QR canvas only renders on the login screen and detaches once it is scanned.
QR_SELECTOR = "canvas"

LOGIN_SELECTORS = [
    QR_SELECTOR,
]

PAGE_MARKERS = {
    MARKER_READY: READY_SELECTORS,
    MARKER_LOGIN: LOGIN_SELECTORS,
}

# ── Browser ──────────────────────────────────────────────────────────────────

CHROMIUM_ARGS = [
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--disable-extensions",
]

SANDBOX_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
]

VIEWPORT = {"width": 1280, "height": 800}

# Fields Playwright's add_cookies() accepts; anything else is dropped on injection.
INJECTABLE_COOKIE_FIELDS = (
    "name",
    "value",
    "domain",
    "path",
    "expires",
    "httpOnly",
    "secure",
    "sameSite",
)

# ── Messages ─────────────────────────────────────────────────────────────────

MESSAGE_READY = "WhatsApp headless bot is running successfully!"
MESSAGE_INITIALIZING = "Bot is initializing..."

LINK_DEVICE_HINT = "Open WhatsApp -> Settings -> Linked Devices -> Link a Device"
