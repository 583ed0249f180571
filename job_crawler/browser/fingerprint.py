"""Fingerprint randomization and human-like pacing.

Generates randomized browser fingerprint profiles (user agent, viewport,
timezone, locale, geolocation) and turns them into Playwright context
options. Also supplies the jittered delays the crawler inserts between
interactions; only the jitter matters, not the exact durations.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Curated user agent list: real Chrome UA strings (desktop, recent versions)
# ---------------------------------------------------------------------------

CURATED_USER_AGENTS: list[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/117.0.0.0 Safari/537.36",
]


# ---------------------------------------------------------------------------
# Region → (timezones, locale, geolocation)
# ---------------------------------------------------------------------------

VALID_TIMEZONES: dict[str, list[str]] = {
    "US": ["America/New_York", "America/Chicago", "America/Los_Angeles"],
    "UK": ["Europe/London"],
    "DE": ["Europe/Berlin"],
    "CA": ["America/Toronto", "America/Vancouver"],
}

REGION_LOCALES: dict[str, str] = {
    "US": "en-US",
    "UK": "en-GB",
    "DE": "de-DE",
    "CA": "en-CA",
}

REGION_GEOLOCATIONS: dict[str, dict[str, float]] = {
    "US": {"latitude": 40.7128, "longitude": -74.0060},   # New York
    "UK": {"latitude": 51.5074, "longitude": -0.1278},    # London
    "DE": {"latitude": 52.5200, "longitude": 13.4050},    # Berlin
    "CA": {"latitude": 43.6532, "longitude": -79.3832},   # Toronto
}

DEFAULT_REGION = "US"

_EXTRA_HEADERS = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}


# ---------------------------------------------------------------------------
# JavaScript overrides to mask automation detection
# ---------------------------------------------------------------------------

STEALTH_INIT_JS = """
() => {
    // Mask navigator.webdriver
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined,
        configurable: true,
    });

    // Only add chrome.runtime when missing so real pages keep working
    if (!window.chrome) {
        window.chrome = { runtime: {}, loadTimes: function() {}, csi: function() {}, app: {} };
    }

    if (!screen.availTop) Object.defineProperty(screen, 'availTop', { get: () => 0 });
    if (!screen.availLeft) Object.defineProperty(screen, 'availLeft', { get: () => 0 });
    if (!screen.colorDepth) Object.defineProperty(screen, 'colorDepth', { get: () => 24 });
}
"""


@dataclass
class FingerprintProfile:
    """A randomized browser fingerprint profile."""

    user_agent: str
    viewport_width: int    # 1280 to 1920
    viewport_height: int   # 720 to 1080
    timezone: str
    locale: str
    geolocation: dict[str, float]

    def context_options(self) -> dict:
        """Keyword arguments for ``Browser.new_context``."""
        return {
            "user_agent": self.user_agent,
            "viewport": {"width": self.viewport_width, "height": self.viewport_height},
            "locale": self.locale,
            "timezone_id": self.timezone,
            "permissions": ["geolocation"],
            "geolocation": self.geolocation,
            "color_scheme": "light",
            "extra_http_headers": {
                **_EXTRA_HEADERS,
                "Accept-Language": f"{self.locale},{self.locale.split('-')[0]};q=0.9",
            },
        }


class FingerprintRandomizer:
    """Generates fingerprint profiles and jittered pauses.

    A seeded ``random.Random`` can be injected for deterministic tests.
    """

    def __init__(self, *, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def generate(self, region: str | None = None) -> FingerprintProfile:
        """Return a randomized, geo-consistent :class:`FingerprintProfile`.

        Unknown or missing regions fall back to ``DEFAULT_REGION``.
        """
        region = (region or DEFAULT_REGION).upper()
        if region not in VALID_TIMEZONES:
            region = DEFAULT_REGION

        return FingerprintProfile(
            user_agent=self._rng.choice(CURATED_USER_AGENTS),
            viewport_width=self._rng.randint(1280, 1920),
            viewport_height=self._rng.randint(720, 1080),
            timezone=self._rng.choice(VALID_TIMEZONES[region]),
            locale=REGION_LOCALES[region],
            geolocation=dict(REGION_GEOLOCATIONS[region]),
        )

    def get_action_delay(
        self,
        min_delay_ms: int = 500,
        max_delay_ms: int = 2000,
    ) -> float:
        """Return a random delay in milliseconds within the given range."""
        return self._rng.uniform(min_delay_ms, max_delay_ms)

    async def pause(self, min_delay_ms: int, max_delay_ms: int | None = None) -> None:
        """Sleep for a jittered duration (a fixed one when *max_delay_ms* is omitted)."""
        if max_delay_ms is None:
            delay_ms = float(min_delay_ms)
        else:
            delay_ms = self.get_action_delay(min_delay_ms, max_delay_ms)
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000.0)
