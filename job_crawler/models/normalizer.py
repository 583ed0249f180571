"""Text and URL normalization helpers.

Handles:
- Whitespace normalization (collapse runs of spaces/newlines to one space)
- Absolute URL construction for listing links
- Splitting a job URL into the (origin, path+query) pair the jobs API expects
"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse multiple whitespace characters into a single space and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def absolute_url(href: str, base_url: str) -> str:
    """Resolve *href* against the site's *base_url*.

    Absolute http(s) links are returned unchanged.
    """
    href = href.strip()
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(base_url, href)


def split_job_url(url: str) -> tuple[str, str]:
    """Split *url* into ``(origin, path + query)``.

    >>> split_job_url("https://jobs.example.com/view/42?ref=list#top")
    ('https://jobs.example.com', '/view/42?ref=list')
    """
    parsed = urlsplit(url)
    origin = f"{parsed.scheme}://{parsed.netloc}"
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return origin, path
