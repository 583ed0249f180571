"""Listing crawl engine.

For every path suffix of a site schema, opens the listing page, waits for
login and content, dismisses popups, drives the site's pagination control
and collects :class:`ListingReference` values for each listing found.

Pagination is a small state machine::

    READY → CHECKING → (EXTRACTING) → CLICKING → WAITING → CHECKING …
                    ↘ EXHAUSTED                ↘ ABORTED

``EXHAUSTED`` is reached when the load-more control is gone, hidden by
style (if the schema says so), or the click budget is spent. ``ABORTED``
is reached on any interaction error; it ends pagination for the current
path only. In ``live-paginated`` mode the DOM is replaced on each click,
so listings are extracted before every click and on the final page; in
``click-more`` mode they are extracted once from the fully expanded page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from job_crawler.browser.fingerprint import FingerprintRandomizer
from job_crawler.config.settings import CrawlerSettings
from job_crawler.config.site_schema import PaginationMode, SiteSchema
from job_crawler.errors import NavigationError, PaginationAbortedError
from job_crawler.extractors.base import BaseExtractor
from job_crawler.extractors.field import extract_text
from job_crawler.models.normalizer import absolute_url
from job_crawler.models.records import ListingReference

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Locator, Page

logger = logging.getLogger(__name__)

DISPLAY_STYLE_JS = "el => window.getComputedStyle(el).display"
SCROLL_INTO_VIEW_JS = "el => el.scrollIntoView({behavior: 'smooth', block: 'center'})"


class DuplicateChecker(Protocol):
    async def check_duplicate(
        self, job_name: str, company_name: str, job_url: str
    ) -> bool: ...


class PaginationState(str, Enum):
    """States of the pagination loop for one listing page."""

    READY = "ready"
    CHECKING = "checking"
    EXTRACTING = "extracting"
    CLICKING = "clicking"
    WAITING = "waiting"
    EXHAUSTED = "exhausted"
    ABORTED = "aborted"


_TERMINAL_STATES = frozenset({PaginationState.EXHAUSTED, PaginationState.ABORTED})


@dataclass
class PaginationResult:
    """Outcome of paginating one listing page."""

    state: PaginationState
    clicks: int
    references: list[ListingReference] = field(default_factory=list)
    error: PaginationAbortedError | None = None


class ListingCrawler(BaseExtractor):
    """Collects listing references for a site.

    Parameters
    ----------
    settings:
        Timeouts and pacing.
    duplicate_checker:
        Remote duplicate authority (usually the jobs API client). When
        ``None``, no listing is filtered.
    fingerprint:
        Source of jittered delays.
    """

    def __init__(
        self,
        settings: CrawlerSettings,
        duplicate_checker: DuplicateChecker | None = None,
        fingerprint: FingerprintRandomizer | None = None,
    ) -> None:
        super().__init__(settings, fingerprint)
        self._duplicates = duplicate_checker

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def crawl(
        self, context: "BrowserContext", schema: SiteSchema
    ) -> list[ListingReference]:
        """Crawl every path of *schema* in configuration order.

        A failure on one path is logged and the next path is crawled.
        """
        logger.info("Starting to crawl %s", schema.name, extra={"website": schema.name})
        references: list[ListingReference] = []

        for path in schema.paths:
            try:
                found = await self.crawl_path(context, schema, path)
            except Exception:
                logger.error(
                    "Crawl of %s%s failed",
                    schema.base_url,
                    path,
                    exc_info=True,
                    extra={"website": schema.name, "path": path},
                )
                continue
            references.extend(found)
            logger.info(
                "Completed %s: %d listing(s)",
                path,
                len(found),
                extra={"website": schema.name, "path": path},
            )

        logger.info(
            "Crawling complete for %s: %d job URL(s) found",
            schema.name,
            len(references),
            extra={"website": schema.name},
        )
        return references

    async def crawl_path(
        self, context: "BrowserContext", schema: SiteSchema, path: str
    ) -> list[ListingReference]:
        """Open ``base_url + path`` in a new page and collect its listings."""
        url = schema.base_url + path
        page = await context.new_page()
        try:
            logger.info("Opening %s", url, extra={"website": schema.name, "path": path})
            try:
                await self.navigate(page, url, self._settings.listing_navigation_timeout_ms)
            except NavigationError as exc:
                logger.warning(
                    "%s, skipping path",
                    exc,
                    extra={"website": schema.name, "path": path},
                )
                return []

            await self.human_pause(
                self._settings.page_settle_min_ms, self._settings.page_settle_max_ms
            )

            if schema.awaits_login is not None:
                await self.wait_for_login(page, schema.awaits_login)

            await self.wait_for_content(page, schema.list_selector)
            await self.dismiss_popups(page, schema.popup_close_selectors)

            result = await self.paginate(page, schema, path)
            return result.references
        finally:
            try:
                await page.close()
            except Exception:
                logger.debug("Error closing page for %s", url, exc_info=True)

    async def paginate(
        self, page: "Page", schema: SiteSchema, path: str
    ) -> PaginationResult:
        """Run the pagination state machine on an already loaded page."""
        live = schema.pagination is PaginationMode.LIVE_PAGINATED
        control = (
            page.locator(schema.load_more_selector).first
            if schema.load_more_selector
            else None
        )
        result = PaginationResult(state=PaginationState.READY, clicks=0)
        extracted_current = False
        log_extra = {"website": schema.name, "path": path}

        while result.state not in _TERMINAL_STATES:
            if result.state is PaginationState.READY:
                result.state = PaginationState.CHECKING

            elif result.state is PaginationState.CHECKING:
                try:
                    has_more = await self._has_more(control, schema, result.clicks)
                except Exception as exc:
                    logger.info("Load-more check failed: %s", exc, extra=log_extra)
                    result.error = PaginationAbortedError(
                        f"Load-more check failed: {exc}", clicks=result.clicks
                    )
                    result.state = PaginationState.ABORTED
                    continue
                if not has_more:
                    result.state = PaginationState.EXHAUSTED
                elif live:
                    result.state = PaginationState.EXTRACTING
                else:
                    result.state = PaginationState.CLICKING

            elif result.state is PaginationState.EXTRACTING:
                result.references.extend(await self.extract_listings(page, schema, path))
                extracted_current = True
                result.state = PaginationState.CLICKING

            elif result.state is PaginationState.CLICKING:
                logger.info(
                    "Clicking load more (click #%d)", result.clicks + 1, extra=log_extra
                )
                try:
                    await self._click_load_more(page, control, schema)
                except Exception as exc:
                    logger.info(
                        "Load more control not clickable, stopping: %s", exc, extra=log_extra
                    )
                    result.error = PaginationAbortedError(
                        f"Load more click failed: {exc}", clicks=result.clicks
                    )
                    result.state = PaginationState.ABORTED
                    continue
                result.clicks += 1
                extracted_current = False
                result.state = PaginationState.WAITING

            elif result.state is PaginationState.WAITING:
                await self._fingerprint.pause(self._settings.click_settle_ms)
                try:
                    count = await page.locator(schema.list_selector).count()
                    logger.debug("Current listing count: %d", count, extra=log_extra)
                except Exception as exc:
                    logger.debug("Listing count unavailable: %s", exc, extra=log_extra)
                await self.dismiss_popups(page, schema.popup_close_selectors)
                result.state = PaginationState.CHECKING

        if result.state is PaginationState.EXHAUSTED and result.clicks >= schema.max_clicks > 0:
            logger.warning(
                "Reached maximum clicks (%d) for %s", schema.max_clicks, path, extra=log_extra
            )
        logger.info(
            "Pagination %s after %d click(s)",
            result.state.value,
            result.clicks,
            extra=log_extra,
        )

        if not live or not extracted_current:
            result.references.extend(await self.extract_listings(page, schema, path))
        return result

    async def extract_listings(
        self, page: "Page", schema: SiteSchema, path: str
    ) -> list[ListingReference]:
        """Build references for every listing item currently in the DOM.

        Items without a resolvable link are skipped; a failing item never
        aborts the others.
        """
        log_extra = {"website": schema.name, "path": path}
        try:
            items = await page.locator(schema.list_selector).all()
        except Exception as exc:
            logger.error("Error extracting job URLs: %s", exc, extra=log_extra)
            return []

        logger.info("Found %d job listing(s)", len(items), extra=log_extra)
        timeout_ms = self._settings.element_timeout_ms
        references: list[ListingReference] = []

        for item in items:
            try:
                link = item.locator(schema.listing_link).first
                if await link.count() == 0:
                    continue
                href = await link.get_attribute("href", timeout=timeout_ms)
            except Exception as exc:
                logger.debug("Listing link unreadable: %s", exc, extra=log_extra)
                continue
            if not href or not href.strip():
                continue

            url = absolute_url(href, schema.base_url)
            job_name = await extract_text(item, schema.listing_job_name, timeout_ms=timeout_ms)
            company_name = await extract_text(
                item, schema.listing_job_company, timeout_ms=timeout_ms
            )

            if await self._is_known_duplicate(job_name, company_name, url):
                logger.info(
                    "Duplicate found: %s at %s",
                    job_name,
                    company_name,
                    extra={**log_extra, "job_url": url},
                )
                continue

            references.append(
                ListingReference(
                    url=url,
                    source=path,
                    website=schema.name,
                    job_name=job_name,
                    company_name=company_name,
                )
            )

        return references

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _has_more(
        self, control: "Locator | None", schema: SiteSchema, clicks: int
    ) -> bool:
        if control is None or clicks >= schema.max_clicks:
            return False
        if not await control.is_visible():
            return False
        if schema.load_more_hidden_by_style:
            display = await control.evaluate(DISPLAY_STYLE_JS)
            if display == "none":
                return False
        return True

    async def _click_load_more(
        self, page: "Page", control: "Locator", schema: SiteSchema
    ) -> None:
        if schema.scroll_container:
            await self.scroll_container_to_end(page, schema.scroll_container)
        if schema.scroll_to_button:
            await control.evaluate(SCROLL_INTO_VIEW_JS)
            await self.human_pause(
                self._settings.scroll_to_button_pause_ms,
                self._settings.scroll_to_button_pause_ms * 2,
            )
        await control.click(timeout=self._settings.click_timeout_ms)

    async def _is_known_duplicate(
        self, job_name: str | None, company_name: str | None, url: str
    ) -> bool:
        if self._duplicates is None or not job_name or not company_name:
            return False
        try:
            return await self._duplicates.check_duplicate(job_name, company_name, url)
        except Exception as exc:
            # fail open
            logger.warning("Duplicate check raised for %s: %s", url, exc)
            return False
