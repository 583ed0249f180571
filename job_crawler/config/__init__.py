"""Configuration module: settings and site schemas."""

from job_crawler.config.settings import CrawlerSettings
from job_crawler.config.site_schema import (
    FieldRule,
    JobDataRules,
    LoginWait,
    PaginationMode,
    SiteSchema,
    load_site_schema,
    load_site_schemas,
)

__all__ = [
    "CrawlerSettings",
    "FieldRule",
    "JobDataRules",
    "LoginWait",
    "PaginationMode",
    "SiteSchema",
    "load_site_schema",
    "load_site_schemas",
]
