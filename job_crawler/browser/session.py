"""Playwright browser session.

Owns one headless Chromium process for the whole run and hands out
browser contexts. A context carries cookies and session state, so the
crawler keeps one context per site for all of that site's listing pages
and opens a fresh one for the next site.

Lifecycle
---------
1. ``start()``: launch Playwright and Chromium.
2. ``site_context()``: async context manager yielding a fresh stealth
   context with a randomized fingerprint; closed on exit.
3. ``stop()``: close the browser and the Playwright process.

``BrowserSession`` is also an async context manager wrapping start/stop.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from job_crawler.browser.fingerprint import STEALTH_INIT_JS, FingerprintRandomizer

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext

logger = logging.getLogger(__name__)

# Chromium flags that hide the most common automation markers
CHROMIUM_ARGS: list[str] = [
    "--disable-blink-features=AutomationControlled",
    "--no-first-run",
    "--disable-default-apps",
    "--disable-dev-shm-usage",
]


class BrowserSession:
    """A single Chromium browser shared by every stage of a run."""

    def __init__(
        self,
        *,
        headless: bool = True,
        executable_path: str | None = None,
        fingerprint: FingerprintRandomizer | None = None,
    ) -> None:
        self._headless = headless
        self._executable_path = executable_path
        self._fingerprint = fingerprint or FingerprintRandomizer()
        self._playwright: Any = None  # Playwright instance (lazy import)
        self._browser: Any = None
        self._contexts_opened = 0

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # start / stop
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Launch Playwright and a Chromium instance."""
        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()

        launch_kwargs: dict = {"headless": self._headless, "args": CHROMIUM_ARGS}
        if self._executable_path:
            launch_kwargs["executable_path"] = self._executable_path
        self._browser = await self._playwright.chromium.launch(**launch_kwargs)

        logger.info("Browser started (headless=%s)", self._headless)

    async def stop(self) -> None:
        """Close the browser and stop Playwright."""
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception:
                logger.debug("Error closing browser (may already be closed)", exc_info=True)
            self._browser = None

        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

        logger.info("Browser stopped after %d context(s)", self._contexts_opened)

    # ------------------------------------------------------------------
    # contexts
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def site_context(self, region: str | None = None) -> AsyncIterator["BrowserContext"]:
        """Yield a fresh stealth context, closing it (and its pages) on exit."""
        if self._browser is None:
            raise RuntimeError("BrowserSession.start() has not been called")

        profile = self._fingerprint.generate(region)
        context = await self._browser.new_context(**profile.context_options())
        await context.add_init_script(STEALTH_INIT_JS)
        self._contexts_opened += 1
        logger.debug(
            "Opened browser context (ua=%s, viewport=%dx%d)",
            profile.user_agent,
            profile.viewport_width,
            profile.viewport_height,
        )
        try:
            yield context
        finally:
            try:
                await context.close()
            except Exception:
                logger.debug("Error closing browser context", exc_info=True)
