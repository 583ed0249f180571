"""Browser session and fingerprint randomization components."""

from job_crawler.browser.fingerprint import (
    CURATED_USER_AGENTS,
    REGION_GEOLOCATIONS,
    REGION_LOCALES,
    VALID_TIMEZONES,
    FingerprintProfile,
    FingerprintRandomizer,
)
from job_crawler.browser.session import CHROMIUM_ARGS, BrowserSession

__all__ = [
    "CHROMIUM_ARGS",
    "CURATED_USER_AGENTS",
    "REGION_GEOLOCATIONS",
    "REGION_LOCALES",
    "VALID_TIMEZONES",
    "BrowserSession",
    "FingerprintProfile",
    "FingerprintRandomizer",
]
