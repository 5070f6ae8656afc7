"""Playwright browser automation: launch, navigate, cookies, probe, close."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from ..config import LOG_LEVEL
from ..constants import CHROMIUM_ARGS, INJECTABLE_COOKIE_FIELDS, SANDBOX_ARGS, VIEWPORT
from ..models.settings import BrowserOptions

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(LOG_LEVEL)


def _ms(seconds: float) -> float:
    return seconds * 1000


class PlaywrightHandle:
    """One browser context driving WhatsApp Web.

    Chromium goes through Playwright directly; the Camoufox engine wraps a
    patched Firefox that is harder to fingerprint.
    """

    def __init__(self, options: BrowserOptions):
        self.options = options
        self._playwright: Optional[Playwright] = None
        self._camoufox = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def is_closed(self) -> bool:
        return self._page is None or self._page.is_closed()

    def launch_args(self) -> list[str]:
        args = list(CHROMIUM_ARGS)
        if self.options.no_sandbox:
            args = SANDBOX_ARGS + args
        return args

    async def launch(self):
        opts = self.options
        logger.info(f"Launching {opts.engine} (headless={opts.headless})...")

        if opts.engine == "camoufox":
            # Imported lazily: camoufox pulls its fingerprint data on import.
            from camoufox.async_api import AsyncCamoufox

            self._camoufox = AsyncCamoufox(
                headless=opts.headless,
                humanize=True,
                executable_path=opts.executable_path,
                i_know_what_im_doing=True,
            )
            self._browser = await self._camoufox.__aenter__()
        else:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=opts.headless,
                args=self.launch_args(),
                executable_path=opts.executable_path,
            )

        self._context = await self._browser.new_context(
            viewport=VIEWPORT,
            user_agent=opts.user_agent,
        )
        self._page = await self._context.new_page()

    async def navigate(self, url: str, timeout: float):
        await self._page.goto(url, wait_until="domcontentloaded", timeout=_ms(timeout))
        logger.info(f"After navigation, URL: {self._page.url}")

    async def wait_for_selector(self, selector: str, timeout: float):
        await self._page.wait_for_selector(selector, timeout=_ms(timeout))

    async def wait_for_selector_gone(self, selector: str, timeout: float):
        await self._page.wait_for_selector(selector, state="detached", timeout=_ms(timeout))

    async def add_cookies(self, cookies: list[dict]):
        records = [
            {k: c[k] for k in INJECTABLE_COOKIE_FIELDS if c.get(k) is not None}
            for c in cookies
        ]
        await self._context.add_cookies(records)

    async def cookies(self) -> list[dict]:
        cookies = await self._context.cookies()
        logger.info(f"Extracted {len(cookies)} cookies")
        return cookies

    async def probe(self) -> str:
        return await self._page.evaluate("() => document.title")

    async def close(self):
        """Close context, browser and driver.

        Every layer is attempted even if an earlier one fails or the close is
        cancelled part way; a skipped layer would orphan the browser process.
        """
        logger.info("Closing browser...")
        try:
            await self._close_context()
        finally:
            try:
                await self._close_browser()
            finally:
                await self._stop_playwright()
        logger.info("Browser closed.")

    async def _close_context(self):
        context, self._context, self._page = self._context, None, None
        try:
            if context:
                await context.close()
        except Exception as e:
            logger.warning(f"Error closing context: {e}")

    async def _close_browser(self):
        camoufox, browser = self._camoufox, self._browser
        self._camoufox, self._browser = None, None
        try:
            if camoufox:
                await camoufox.__aexit__(None, None, None)
            elif browser:
                await browser.close()
        except Exception as e:
            logger.warning(f"Error closing browser: {e}")

    async def _stop_playwright(self):
        playwright, self._playwright = self._playwright, None
        try:
            if playwright:
                await playwright.stop()
        except Exception as e:
            logger.warning(f"Error stopping playwright: {e}")
