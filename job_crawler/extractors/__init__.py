"""Page extractors: field pipeline, listing crawler and detail extractor."""

from job_crawler.extractors.base import BaseExtractor
from job_crawler.extractors.detail import DetailExtractor
from job_crawler.extractors.field import apply_rule, extract_field, extract_text
from job_crawler.extractors.listing import (
    ListingCrawler,
    PaginationResult,
    PaginationState,
)

__all__ = [
    "BaseExtractor",
    "DetailExtractor",
    "ListingCrawler",
    "PaginationResult",
    "PaginationState",
    "apply_rule",
    "extract_field",
    "extract_text",
]
