"""Site schema models and YAML loader.

Provides typed Pydantic models for the declarative per-site crawl
configuration and a loader that parses a directory of schema files (one
site per file, YAML or JSON) into those models. Unknown keys are rejected
at load time rather than silently ignored.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from job_crawler.errors import SchemaError

logger = logging.getLogger(__name__)

_SCHEMA_SUFFIXES = (".yaml", ".yml", ".json")


class PaginationMode(str, Enum):
    """How a listing page reveals further listings."""

    CLICK_MORE = "click-more"
    LIVE_PAGINATED = "live-paginated"


class FieldRule(BaseModel):
    """Declarative text transform: locate → sanitize → split → translate → join."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    selector: str = Field(min_length=1)
    sanitize: bool = False
    split: str | None = None
    translate: dict[str, str] | None = None
    join_after_split: str | None = None

    @field_validator("split", "join_after_split")
    @classmethod
    def _no_empty_delimiter(cls, value: str | None) -> str | None:
        if value == "":
            raise ValueError("delimiter must not be empty")
        return value

    @field_validator("translate")
    @classmethod
    def _normalize_translate_keys(
        cls, value: dict[str, str] | None
    ) -> dict[str, str] | None:
        if value is None:
            return None
        return {key.strip().lower(): canonical for key, canonical in value.items()}


class JobDataRules(BaseModel):
    """Field rules applied to a job detail page."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    job_name: FieldRule | None = None
    company_name: FieldRule | None = None
    job_description: FieldRule | None = None
    location: FieldRule | None = None
    publication_date: FieldRule | None = None


class LoginWait(BaseModel):
    """Indicator that stays visible while the site waits for a manual login."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    selector: str = Field(min_length=1)
    timeout_ms: int = Field(default=120_000, ge=0)


class SiteSchema(BaseModel):
    """Crawl and extraction configuration for a single website."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    base_url: str
    paths: list[str] = Field(min_length=1)
    list_selector: str = Field(min_length=1)
    listing_link: str = Field(min_length=1)
    listing_job_name: str | None = None
    listing_job_company: str | None = None

    pagination: PaginationMode = PaginationMode.CLICK_MORE
    load_more_selector: str | None = None
    load_more_hidden_by_style: bool = False
    max_clicks: int = Field(default=50, ge=0)
    scroll_container: str | None = None
    scroll_to_button: bool = False

    popup_close_selectors: list[str] = []
    awaits_login: LoginWait | None = None
    enabled: bool = True
    # fingerprint region for browser contexts, e.g. "DE"
    region: str | None = None

    job_data: JobDataRules | None = None

    @field_validator("base_url")
    @classmethod
    def _http_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must be an absolute http(s) URL")
        return value


def load_site_schema(path: str | Path) -> SiteSchema:
    """Parse a single schema file.

    Raises
    ------
    SchemaError
        If the file cannot be read, parsed, or validated.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raw = yaml.safe_load(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SchemaError(f"Failed to read site schema {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise SchemaError(f"Site schema {path} must be a mapping")

    try:
        return SiteSchema.model_validate(raw)
    except ValidationError as exc:
        raise SchemaError(f"Invalid site schema {path}: {exc}") from exc


def load_site_schemas(
    directory: str | Path,
    only: list[str] | None = None,
) -> dict[str, SiteSchema]:
    """Load every schema file in *directory*, keyed by file stem.

    Invalid files are logged and skipped, as are schemas with
    ``enabled: false``. When *only* is given, other sites are ignored.
    Files are read in name order so runs are reproducible.
    """
    root = Path(directory)
    if not root.is_dir():
        logger.warning("Site schema directory not found at %s", root)
        return {}

    schemas: dict[str, SiteSchema] = {}
    for path in sorted(root.iterdir()):
        if path.suffix.lower() not in _SCHEMA_SUFFIXES:
            continue
        key = path.stem
        if only is not None and key not in only:
            continue
        try:
            schema = load_site_schema(path)
        except SchemaError as exc:
            logger.error("%s, skipping", exc)
            continue
        if not schema.enabled:
            logger.info("Site schema '%s' is disabled, skipping", key)
            continue
        schemas[key] = schema

    logger.info("Loaded %d site schema(s) from %s", len(schemas), root)
    return schemas
