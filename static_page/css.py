"""Stylesheet rewriting: ``@import`` expansion and ``url()`` inlining.

Rewrites are span based. Every match is recorded with its position in the
original text, replacements are computed concurrently, and the output is
rebuilt once from the original text. A data URI produced for one token is
therefore never scanned again, and identical raw tokens at different
positions are replaced independently.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import List, Optional, Sequence, Tuple

from .config import SnapshotConfig
from .fetcher import Fetcher, fetch_as_payload, fetch_text
from .models import SnapshotStats
from .utils import is_data_uri, resolve_url, url_path

logger = logging.getLogger("static_page")

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp")
FONT_EXTENSIONS = (".woff2", ".woff", ".ttf", ".otf")
INLINE_EXTENSIONS = IMAGE_EXTENSIONS + FONT_EXTENSIONS

IMPORT_PATTERN = re.compile(
    r"""@import\s+
        (?:
            url\(\s*(?:"(?P<url_dq>[^"]*)"|'(?P<url_sq>[^']*)'|(?P<url_bare>[^"')\s]*))\s*\)
          | "(?P<str_dq>[^"]*)"
          | '(?P<str_sq>[^']*)'
          | (?P<bare>[^\s;"'()]+)
        )
        (?P<conditions>[^;{}]*);""",
    re.IGNORECASE | re.VERBOSE,
)
IMPORT_URL_GROUPS = ("url_dq", "url_sq", "url_bare", "str_dq", "str_sq", "bare")
LAYER_PATTERN = re.compile(r"layer(?:\(\s*(?P<name>[^)]*?)\s*\)|(?=\s|$))", re.IGNORECASE)
URL_PATTERN = re.compile(
    r"""(?<![\w-])url\(\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^"'()\s]+))\s*\)""",
    re.IGNORECASE,
)
CHARSET_PATTERN = re.compile(r"""^\s*@charset\s+["'][^"']*["']\s*;""", re.IGNORECASE)


def _css_url(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"url('{escaped}')"


def _splice(text: str, matches: Sequence[re.Match], replacements: Sequence[str]) -> str:
    parts: List[str] = []
    last = 0
    for match, replacement in zip(matches, replacements):
        parts.append(text[last : match.start()])
        parts.append(replacement)
        last = match.end()
    parts.append(text[last:])
    return "".join(parts)


def is_inlinable(url: str) -> bool:
    """True when the URL path names an image or font we embed."""
    return url_path(url).lower().endswith(INLINE_EXTENSIONS)


async def _replace_url_token(
    match: re.Match,
    base_url: str,
    fetcher: Fetcher,
    config: SnapshotConfig,
    stats: Optional[SnapshotStats],
) -> str:
    value = match.group("dq")
    if value is None:
        value = match.group("sq")
    if value is None:
        value = match.group("bare")
    if is_data_uri(value):
        return match.group(0)

    absolute_url = resolve_url(value, base_url)
    if not is_inlinable(absolute_url):
        return _css_url(absolute_url)

    payload = await fetch_as_payload(fetcher, absolute_url, config.fetch_timeout)
    if stats is not None:
        stats.record("css url", payload is not None)
    if payload is None:
        return _css_url(absolute_url)
    return _css_url(payload.to_data_uri())


async def rewrite_inline_style(
    style: str,
    base_url: str,
    fetcher: Fetcher,
    config: SnapshotConfig,
    stats: Optional[SnapshotStats] = None,
) -> str:
    """Rewrite every ``url()`` in ``style`` to a data URI or an absolute URL."""
    matches = list(URL_PATTERN.finditer(style))
    if not matches:
        return style
    replacements = await asyncio.gather(
        *(_replace_url_token(m, base_url, fetcher, config, stats) for m in matches)
    )
    return _splice(style, matches, replacements)


def _split_import_conditions(conditions: str) -> Tuple[Optional[str], Optional[str], str]:
    """Split the `layer` and `supports()` parts off an import's media list."""
    layer = supports = None
    rest = conditions.strip()
    match = LAYER_PATTERN.match(rest)
    if match:
        layer = match.group("name") or ""
        rest = rest[match.end() :].lstrip()
    if rest[:9].lower() == "supports(":
        depth = 0
        for index in range(8, len(rest)):
            if rest[index] == "(":
                depth += 1
            elif rest[index] == ")":
                depth -= 1
                if depth == 0:
                    supports = rest[9:index].strip()
                    rest = rest[index + 1 :].lstrip()
                    break
    return layer, supports, rest


def _wrap_conditions(body: str, conditions: str) -> str:
    """Wrap an inlined import body in the block rules its conditions imply."""
    layer, supports, media = _split_import_conditions(conditions)
    if media:
        body = f"@media {media} {{\n{body}\n}}"
    if supports is not None:
        body = f"@supports ({supports}) {{\n{body}\n}}"
    if layer is not None:
        name = f" {layer}" if layer else ""
        body = f"@layer{name} {{\n{body}\n}}"
    return body


async def _expand_import(
    match: re.Match,
    base_url: str,
    fetcher: Fetcher,
    config: SnapshotConfig,
    stats: Optional[SnapshotStats],
    chain: Tuple[str, ...],
) -> str:
    reference = next((match.group(name) for name in IMPORT_URL_GROUPS if match.group(name) is not None), "")
    conditions = match.group("conditions").strip()
    absolute_url = resolve_url(reference, base_url)
    fallback = f"@import {_css_url(absolute_url)}{' ' + conditions if conditions else ''};"

    if absolute_url in chain:
        logger.warning("Dropping circular @import of %s from %s", absolute_url, base_url)
        return ""
    if len(chain) > config.max_import_depth:
        logger.warning(
            "Not expanding @import of %s: nesting deeper than %d",
            absolute_url,
            config.max_import_depth,
        )
        return fallback

    imported = await fetch_text(fetcher, absolute_url, config.fetch_timeout)
    if stats is not None:
        stats.record("stylesheet", imported is not None)
    if imported is None:
        return fallback

    body = await rewrite_stylesheet(
        CHARSET_PATTERN.sub("", imported, count=1),
        absolute_url,
        fetcher,
        config,
        stats,
        _chain=chain,
    )
    return _wrap_conditions(body, conditions)


async def rewrite_stylesheet(
    css: str,
    base_url: str,
    fetcher: Fetcher,
    config: SnapshotConfig,
    stats: Optional[SnapshotStats] = None,
    _chain: Tuple[str, ...] = (),
) -> str:
    """Inline the ``@import`` chain of ``css`` and rewrite its ``url()`` references.

    ``base_url`` is the location the stylesheet was loaded from. Imported
    sheets are rewritten against their own location before being spliced
    in place of the ``@import`` statement, in source order.
    """
    chain = _chain + (base_url,)
    imports = list(IMPORT_PATTERN.finditer(css))
    bodies = await asyncio.gather(
        *(_expand_import(m, base_url, fetcher, config, stats, chain) for m in imports)
    )

    own_segments: List[str] = []
    last = 0
    for match in imports:
        own_segments.append(css[last : match.start()])
        last = match.end()
    own_segments.append(css[last:])

    rewritten = await asyncio.gather(
        *(rewrite_inline_style(segment, base_url, fetcher, config, stats) for segment in own_segments)
    )

    parts: List[str] = [rewritten[0]]
    for body, segment in zip(bodies, rewritten[1:]):
        parts.append(body)
        parts.append(segment)
    return "".join(parts)
