"""Fixed-order snapshot pipeline over an explicit document, location and fetcher."""

from __future__ import annotations

import logging
from typing import Optional

from bs4 import BeautifulSoup

from .config import SnapshotConfig
from .document import DocumentWalker, ensure_charset_meta
from .fetcher import Fetcher
from .models import SnapshotStats, StaticPage
from .sanitize import remove_event_handlers, remove_scripts
from .serialize import package

logger = logging.getLogger("static_page")


async def snapshot_document(
    soup: BeautifulSoup,
    base_url: str,
    fetcher: Fetcher,
    config: Optional[SnapshotConfig] = None,
) -> SnapshotStats:
    """Inline resources and sanitize ``soup`` in place.

    Steps run strictly one after another; the fan-out inside each async step
    has fully settled before the next one starts. Scripts and handlers are
    removed only after every inlining pass has read the tree.
    """
    config = config or SnapshotConfig()
    stats = SnapshotStats()
    walker = DocumentWalker(soup, base_url, fetcher, config, stats)

    ensure_charset_meta(soup)
    await walker.inline_images()
    await walker.inline_stylesheets()
    await walker.inline_style_attributes()
    await walker.inline_frames()
    links = walker.absolutize_links()
    scripts = remove_scripts(soup)
    handlers = remove_event_handlers(soup)
    walker.normalize_text_entities()

    logger.debug(
        "Processed %s (%s; %d links resolved, %d scripts and %d handlers removed)",
        base_url,
        stats.summary(),
        links,
        scripts,
        handlers,
    )
    return stats


async def snapshot_html(
    html: str,
    source_url: str,
    fetcher: Fetcher,
    config: Optional[SnapshotConfig] = None,
) -> StaticPage:
    """Parse rendered markup, run the pipeline and package the result."""
    soup = BeautifulSoup(html, "html.parser")
    await snapshot_document(soup, source_url, fetcher, config)
    return package(soup, source_url)
