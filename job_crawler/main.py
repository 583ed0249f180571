"""Command-line entry point.

Startup: validate settings, configure logging, load site schemas, start the
browser and the jobs API client.
Run: collect listings for every site, extract and persist the details.
Shutdown: drain outstanding saves, close the API client and the browser.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from job_crawler.browser.fingerprint import FingerprintRandomizer
from job_crawler.browser.session import BrowserSession
from job_crawler.config.settings import CrawlerSettings
from job_crawler.config.site_schema import SiteSchema, load_site_schemas
from job_crawler.integration.jobs_api import JobsApiClient
from job_crawler.logging_config import configure_logging
from job_crawler.models.records import PipelineStats
from job_crawler.services.runner import CrawlRunner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="job-crawler",
        description="Crawl job boards described by site schemas and save the postings.",
    )
    parser.add_argument(
        "--schema-dir",
        help="Directory of site schema files (default: CRAWLER_SCHEMA_DIR or ./sites)",
    )
    parser.add_argument(
        "--site",
        action="append",
        dest="sites",
        metavar="KEY",
        help="Only crawl this site (file stem); may be repeated",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )
    return parser


async def run(settings: CrawlerSettings, schemas: dict[str, SiteSchema]) -> PipelineStats:
    """Run one full crawl with real browser and API clients."""
    fingerprint = FingerprintRandomizer()
    async with BrowserSession(
        headless=settings.headless,
        executable_path=settings.browser_executable_path,
        fingerprint=fingerprint,
    ) as browser, JobsApiClient(
        settings.api_base_url,
        duplicate_check_timeout=settings.duplicate_check_timeout_seconds,
        save_timeout=settings.save_timeout_seconds,
    ) as api:
        runner = CrawlRunner(
            settings=settings,
            browser=browser,
            api=api,
            fingerprint=fingerprint,
        )
        return await runner.run(schemas)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    overrides: dict = {}
    if args.schema_dir:
        overrides["schema_dir"] = args.schema_dir
    if args.headed:
        overrides["headless"] = False
    settings = CrawlerSettings(**overrides)

    configure_logging(settings.log_level, json_output=settings.log_json)
    logger.info("Starting job crawler against %s", settings.api_base_url)

    schemas = load_site_schemas(settings.schema_dir, only=args.sites)
    if not schemas:
        logger.error("No site schemas loaded from %s", settings.schema_dir)
        return 1

    stats = asyncio.run(run(settings, schemas))
    print(
        f"Processed: {stats.processed}  Saved: {stats.saved}  "
        f"Duplicates: {stats.duplicate}  Failed: {stats.failed}  "
        f"Skipped: {stats.skipped}  Success rate: {stats.success_rate:.1f}%"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
