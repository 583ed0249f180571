"""Pydantic Settings for the crawler.

All environment variables use the CRAWLER_ prefix.
Example: CRAWLER_API_BASE_URL=http://localhost:3000, CRAWLER_HEADLESS=false
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class CrawlerSettings(BaseSettings):
    """Crawler configuration validated from environment variables."""

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Jobs API
    api_base_url: str = "http://localhost:3000"
    duplicate_check_timeout_seconds: float = Field(default=10.0, gt=0)
    save_timeout_seconds: float = Field(default=15.0, gt=0)

    # Site schemas
    schema_dir: str = "sites"

    # Browser
    headless: bool = True
    browser_executable_path: str | None = None
    listing_navigation_timeout_ms: int = Field(default=30000, ge=1000)
    detail_navigation_timeout_ms: int = Field(default=15000, ge=1000)
    list_wait_timeout_ms: int = Field(default=10000, ge=0)
    element_timeout_ms: int = Field(default=1000, ge=0)
    click_timeout_ms: int = Field(default=5000, ge=0)

    # Human-like pacing (all delays in milliseconds)
    page_settle_min_ms: int = Field(default=1000, ge=0)
    page_settle_max_ms: int = Field(default=3000, ge=0)
    detail_delay_min_ms: int = Field(default=300, ge=0)
    detail_delay_max_ms: int = Field(default=1000, ge=0)
    click_settle_ms: int = Field(default=2000, ge=0)
    popup_pause_ms: int = Field(default=500, ge=0)
    scroll_to_button_pause_ms: int = Field(default=2500, ge=0)
    login_poll_interval_ms: int = Field(default=1000, ge=1)
    site_pause_ms: int = Field(default=2000, ge=0)
    batch_pause_ms: int = Field(default=500, ge=0)

    # Scroll container
    scroll_step_px: int = Field(default=300, ge=1)
    scroll_step_delay_ms: int = Field(default=100, ge=0)
    max_scroll_steps: int = Field(default=200, ge=1)

    # Persistence pipeline
    max_concurrent_saves: int = Field(default=5, ge=1)
    save_max_attempts: int = Field(default=3, ge=1)
    save_backoff_base_seconds: float = Field(default=1.0, ge=0)
    batch_size: int = Field(default=10, ge=1)

    model_config = {"env_prefix": "CRAWLER_"}

    @model_validator(mode="after")
    def _check_delay_ranges(self) -> "CrawlerSettings":
        if self.page_settle_min_ms > self.page_settle_max_ms:
            raise ValueError("page_settle_min_ms must not exceed page_settle_max_ms")
        if self.detail_delay_min_ms > self.detail_delay_max_ms:
            raise ValueError("detail_delay_min_ms must not exceed detail_delay_max_ms")
        return self
