"""URL helpers shared by the CSS rewriter and document walker."""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

logger = logging.getLogger("static_page")

ABSOLUTE_PREFIXES = (
    "http:",
    "https:",
    "data:",
    "blob:",
    "mailto:",
    "tel:",
    "javascript:",
    "ftp:",
)


def resolve_url(reference: str, base: str) -> str:
    """Resolve ``reference`` against ``base``; malformed input comes back unchanged."""
    try:
        return urljoin(base, reference.strip())
    except ValueError as exc:
        logger.debug("Could not resolve %r against %s: %s", reference, base, exc)
        return reference


def is_data_uri(value: str) -> bool:
    return value.lstrip()[:5].lower() == "data:"


def has_absolute_prefix(value: str) -> bool:
    """Heuristic used by the link pass: does the value already name a scheme?"""
    return value.lstrip().lower().startswith(ABSOLUTE_PREFIXES)


def url_path(url: str) -> str:
    """Return the path component of ``url``, or the whole value if it cannot be parsed."""
    try:
        return urlparse(url).path
    except ValueError:
        return url
