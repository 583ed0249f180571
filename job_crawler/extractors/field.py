"""Field extraction pipeline.

Evaluates one :class:`FieldRule` against a page or element:
locate → sanitize → split → translate → join.

Extraction failures are always soft. A missing element, a bad selector,
or a read timeout yields ``None`` and it is up to the caller to decide
whether the field was required.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Union

from job_crawler.config.site_schema import FieldRule
from job_crawler.models.normalizer import normalize_whitespace

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

logger = logging.getLogger(__name__)

FieldValue = Union[str, list[str], None]


def _translate(text: str, table: dict[str, str]) -> str:
    return table.get(text.strip().lower(), text)


def apply_rule(text: str, rule: FieldRule) -> str | list[str]:
    """Apply the text-transform part of *rule* to raw element text.

    Split parts are trimmed and empty parts (from repeated delimiters) are
    dropped, so ``"a,, b"`` split on ``","`` yields ``["a", "b"]``.
    """
    if rule.sanitize:
        text = normalize_whitespace(text)

    if rule.split is None:
        if rule.translate:
            text = _translate(text, rule.translate)
        return text

    parts = [part.strip() for part in text.split(rule.split)]
    parts = [part for part in parts if part]
    if rule.translate:
        parts = [_translate(part, rule.translate) for part in parts]

    if rule.join_after_split is not None:
        return rule.join_after_split.join(parts)
    return parts


async def extract_field(
    context: "Page | Locator",
    rule: FieldRule | None,
    *,
    timeout_ms: int = 1000,
) -> FieldValue:
    """Extract the value described by *rule* from *context*.

    Returns ``None`` when *rule* is absent, nothing matches the selector,
    or the element cannot be read. Never raises.
    """
    if rule is None:
        return None

    try:
        element = context.locator(rule.selector).first
        if await element.count() == 0:
            return None
        text = await element.text_content(timeout=timeout_ms)
    except Exception as exc:
        logger.debug("Could not read %r: %s", rule.selector, exc)
        return None

    if text is None:
        return None
    return apply_rule(text, rule)


async def extract_text(
    context: "Page | Locator",
    selector: str | None,
    *,
    timeout_ms: int = 1000,
) -> str | None:
    """Best-effort sanitized text of the first match of *selector*."""
    if not selector:
        return None
    value = await extract_field(
        context, FieldRule(selector=selector, sanitize=True), timeout_ms=timeout_ms
    )
    if isinstance(value, str) and value:
        return value
    return None
