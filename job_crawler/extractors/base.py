"""Base class for page extractors.

Holds the page-interaction helpers shared by the listing crawler and the
detail extractor: soft waits, popup dismissal, login waits, scroll-container
lazy loading and human-like pauses. Every helper treats a missing element
as an expected condition and logs instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from job_crawler.browser.fingerprint import FingerprintRandomizer
from job_crawler.config.settings import CrawlerSettings
from job_crawler.config.site_schema import LoginWait
from job_crawler.errors import NavigationError

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

# Returns [scrollHeight, clientHeight] for a scrollable element.
SCROLL_METRICS_JS = "el => [el.scrollHeight, el.clientHeight]"
SET_SCROLL_TOP_JS = "(el, top) => { el.scrollTop = top; }"


class BaseExtractor:
    """Shared page helpers for extractors.

    Parameters
    ----------
    settings:
        Timeouts and pacing.
    fingerprint:
        Source of jittered delays.
    """

    def __init__(
        self,
        settings: CrawlerSettings,
        fingerprint: FingerprintRandomizer | None = None,
    ) -> None:
        self._settings = settings
        self._fingerprint = fingerprint or FingerprintRandomizer()

    async def navigate(self, page: "Page", url: str, timeout: int) -> None:
        """Open *url* and wait for the DOM to be parsed.

        Raises
        ------
        NavigationError
            If the page cannot be loaded within *timeout* milliseconds.
        """
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout)
        except Exception as exc:
            raise NavigationError(f"Navigation to {url} failed: {exc}", url=url) from exc

    async def wait_for_content(
        self,
        page: "Page",
        selector: str,
        timeout: int | None = None,
    ) -> bool:
        """Wait for *selector* to appear; ``False`` (logged) if it never does."""
        if timeout is None:
            timeout = self._settings.list_wait_timeout_ms
        try:
            await page.wait_for_selector(selector, timeout=timeout)
        except Exception:
            logger.warning(
                "Selector %r not found within %dms on %s, continuing anyway",
                selector,
                timeout,
                page.url,
            )
            return False
        return True

    async def dismiss_popups(self, page: "Page", selectors: list[str]) -> int:
        """Click every currently visible popup-close control once.

        Returns the number of popups closed.
        """
        closed = 0
        for selector in selectors:
            try:
                control = page.locator(selector).first
                if not await control.is_visible():
                    continue
                logger.info("Closing popup %r", selector)
                await control.click(timeout=self._settings.element_timeout_ms)
                closed += 1
                await self._fingerprint.pause(self._settings.popup_pause_ms)
            except Exception as exc:
                logger.debug("Popup %r not dismissed: %s", selector, exc)
        return closed

    async def wait_for_login(self, page: "Page", login: LoginWait) -> bool:
        """Poll until the login indicator disappears or the timeout elapses.

        Returns ``True`` if the indicator went away. A timeout is logged and
        the crawl proceeds.
        """
        interval = self._settings.login_poll_interval_ms / 1000.0
        deadline = time.monotonic() + login.timeout_ms / 1000.0
        indicator = page.locator(login.selector).first

        while True:
            try:
                visible = await indicator.is_visible()
            except Exception:
                visible = False
            if not visible:
                return True
            if time.monotonic() >= deadline:
                logger.warning(
                    "Login indicator %r still visible after %dms, proceeding anyway",
                    login.selector,
                    login.timeout_ms,
                )
                return False
            logger.info("Waiting for login (%r visible)", login.selector)
            await asyncio.sleep(interval)

    async def scroll_container_to_end(self, page: "Page", selector: str) -> int:
        """Scroll the container matching *selector* to its end in steps.

        Returns the number of scroll steps taken (0 if the container is
        missing or not scrollable).
        """
        container = page.locator(selector).first
        try:
            if await container.count() == 0:
                logger.debug("Scroll container %r not found", selector)
                return 0
            scroll_height, client_height = await container.evaluate(SCROLL_METRICS_JS)
        except Exception as exc:
            logger.debug("Could not measure scroll container %r: %s", selector, exc)
            return 0

        max_scroll = int(scroll_height) - int(client_height)
        if max_scroll <= 0:
            return 0

        step = self._settings.scroll_step_px
        steps = 0
        position = 0
        while position < max_scroll and steps < self._settings.max_scroll_steps:
            position = min(position + step, max_scroll)
            await container.evaluate(SET_SCROLL_TOP_JS, position)
            steps += 1
            await self._fingerprint.pause(self._settings.scroll_step_delay_ms)
        return steps

    async def human_pause(self, min_ms: int, max_ms: int) -> None:
        await self._fingerprint.pause(min_ms, max_ms)
