"""Unit tests for fingerprint profiles and jittered pauses."""

from __future__ import annotations

import random
from unittest.mock import AsyncMock, patch

import pytest

from job_crawler.browser.fingerprint import (
    CURATED_USER_AGENTS,
    REGION_LOCALES,
    VALID_TIMEZONES,
    FingerprintRandomizer,
)


class TestGenerate:
    def test_profile_within_ranges(self):
        profile = FingerprintRandomizer(rng=random.Random(7)).generate("DE")

        assert profile.user_agent in CURATED_USER_AGENTS
        assert 1280 <= profile.viewport_width <= 1920
        assert 720 <= profile.viewport_height <= 1080
        assert profile.timezone in VALID_TIMEZONES["DE"]
        assert profile.locale == REGION_LOCALES["DE"]

    def test_unknown_region_falls_back_to_us(self):
        profile = FingerprintRandomizer(rng=random.Random(7)).generate("ZZ")
        assert profile.locale == "en-US"
        assert profile.timezone in VALID_TIMEZONES["US"]

    def test_region_is_case_insensitive(self):
        profile = FingerprintRandomizer(rng=random.Random(7)).generate("uk")
        assert profile.locale == "en-GB"

    def test_seeded_generation_is_deterministic(self):
        first = FingerprintRandomizer(rng=random.Random(42)).generate()
        second = FingerprintRandomizer(rng=random.Random(42)).generate()
        assert first == second

    def test_context_options(self):
        profile = FingerprintRandomizer(rng=random.Random(7)).generate("CA")
        options = profile.context_options()

        assert options["user_agent"] == profile.user_agent
        assert options["viewport"] == {
            "width": profile.viewport_width,
            "height": profile.viewport_height,
        }
        assert options["timezone_id"] == profile.timezone
        assert options["extra_http_headers"]["Accept-Language"].startswith("en-CA")


class TestPause:
    def test_action_delay_within_range(self):
        randomizer = FingerprintRandomizer(rng=random.Random(3))
        for _ in range(50):
            assert 300 <= randomizer.get_action_delay(300, 1000) <= 1000

    @pytest.mark.asyncio
    async def test_jittered_pause_sleeps_in_seconds(self):
        randomizer = FingerprintRandomizer(rng=random.Random(3))
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await randomizer.pause(1000, 3000)

        delay = mock_sleep.call_args.args[0]
        assert 1.0 <= delay <= 3.0

    @pytest.mark.asyncio
    async def test_fixed_pause(self):
        randomizer = FingerprintRandomizer()
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await randomizer.pause(500)
        mock_sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_zero_pause_does_not_sleep(self):
        randomizer = FingerprintRandomizer()
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await randomizer.pause(0, 0)
        mock_sleep.assert_not_awaited()
