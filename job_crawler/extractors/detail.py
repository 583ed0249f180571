"""Job detail page extractor.

Navigates to a listing's URL and applies the site's field rules to build a
:class:`JobRecord`. A record is only produced when both the job name and
the company name resolve; missing values are never replaced by defaults.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from job_crawler.config.site_schema import SiteSchema
from job_crawler.errors import NavigationError
from job_crawler.extractors.base import BaseExtractor
from job_crawler.extractors.field import FieldValue, extract_field
from job_crawler.models.records import JobRecord, ListingReference

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

# Logical fields in extraction order
_FIELDS = (
    "job_name",
    "company_name",
    "job_description",
    "location",
    "publication_date",
)


def _as_text(value: FieldValue) -> str | None:
    """Collapse a list value (split without join) to one string."""
    if isinstance(value, list):
        value = " ".join(value)
    return value or None


class DetailExtractor(BaseExtractor):
    """Builds a JobRecord from a single job detail page."""

    async def extract_record(
        self,
        page: "Page",
        reference: ListingReference,
        schema: SiteSchema,
    ) -> JobRecord | None:
        """Extract the record behind *reference*.

        Returns ``None`` when the schema has no job data rules, navigation
        fails, or the job name / company name cannot be resolved.
        """
        rules = schema.job_data
        if rules is None:
            return None

        try:
            await self.navigate(
                page, reference.url, self._settings.detail_navigation_timeout_ms
            )
        except NavigationError as exc:
            logger.warning(
                "Error extracting data: %s",
                exc,
                extra={"website": schema.name, "job_url": reference.url},
            )
            return None

        await self.human_pause(
            self._settings.detail_delay_min_ms, self._settings.detail_delay_max_ms
        )

        values: dict[str, FieldValue] = {}
        for name in _FIELDS:
            values[name] = await extract_field(
                page,
                getattr(rules, name),
                timeout_ms=self._settings.element_timeout_ms,
            )

        job_name = _as_text(values["job_name"])
        company_name = _as_text(values["company_name"])
        if not job_name or not company_name:
            logger.info(
                "Missing job name or company on %s",
                reference.url,
                extra={"website": schema.name, "job_url": reference.url},
            )
            return None

        return JobRecord(
            url=reference.url,
            job_name=job_name,
            company_name=company_name,
            website_name=schema.name,
            source=reference.source,
            job_description=values["job_description"],
            location=values["location"],
            publication_date=values["publication_date"],
        )
