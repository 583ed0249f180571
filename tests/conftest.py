"""Shared test fixtures for the crawler test suite."""

from __future__ import annotations

import os
import random

import pytest

from job_crawler.browser.fingerprint import FingerprintRandomizer
from job_crawler.config.settings import CrawlerSettings
from job_crawler.config.site_schema import SiteSchema
from tests.fakes import fast_settings, make_schema


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CRAWLER_* variables from the host environment out of tests."""
    for key in list(os.environ):
        if key.startswith("CRAWLER_"):
            monkeypatch.delenv(key)


@pytest.fixture
def settings() -> CrawlerSettings:
    return fast_settings()


@pytest.fixture
def fingerprint() -> FingerprintRandomizer:
    return FingerprintRandomizer(rng=random.Random(1234))


@pytest.fixture
def schema() -> SiteSchema:
    return make_schema()

