"""Tree walking and in-place mutation of the captured document."""

from __future__ import annotations

import asyncio
import html as htmllib
import logging
from typing import Optional

from bs4 import BeautifulSoup, Doctype, NavigableString, Tag
from bs4.element import Stylesheet

from .config import SnapshotConfig
from .css import rewrite_inline_style, rewrite_stylesheet
from .fetcher import Fetcher, fetch_as_payload, fetch_text
from .models import SnapshotStats
from .sanitize import remove_event_handlers, remove_scripts, sanitize_frames, sanitize_markup
from .utils import has_absolute_prefix, is_data_uri, resolve_url

logger = logging.getLogger("static_page")

LINK_ATTRIBUTES = {"a": "href", "link": "href", "img": "src"}


def ensure_charset_meta(soup: BeautifulSoup) -> None:
    """Make sure ``<head>`` starts with a UTF-8 charset declaration."""
    head = soup.head
    if head is None:
        head = soup.new_tag("head")
        if soup.html is not None:
            soup.html.insert(0, head)
        else:
            first = soup.contents[0] if soup.contents else None
            soup.insert(1 if isinstance(first, Doctype) else 0, head)
    if head.find("meta", charset=True) is not None:
        return
    head.insert(0, soup.new_tag("meta", attrs={"charset": "UTF-8"}))


def _is_stylesheet_link(tag: Tag) -> bool:
    if tag.name != "link" or not tag.get("href"):
        return False
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    tokens = {value.lower() for value in rel}
    # Alternate and disabled sheets do not apply to the rendered page.
    if "alternate" in tokens or tag.has_attr("disabled"):
        return False
    return "stylesheet" in tokens


class DocumentWalker:
    """Apply the fetch and rewrite passes to one parsed document.

    Every async step fans out one task per matching element and returns only
    once all of them have settled. Each task mutates nothing but its own
    element, so tasks within a step need no ordering.
    """

    def __init__(
        self,
        soup: BeautifulSoup,
        base_url: str,
        fetcher: Fetcher,
        config: SnapshotConfig,
        stats: Optional[SnapshotStats] = None,
    ) -> None:
        self.soup = soup
        self.base_url = base_url
        self.fetcher = fetcher
        self.config = config
        self.stats = stats if stats is not None else SnapshotStats()

    async def inline_images(self) -> None:
        images = self.soup.find_all("img", src=True)
        await asyncio.gather(*(self._inline_image(img) for img in images))

    async def _inline_image(self, img: Tag) -> None:
        src = img.get("src")
        if not src or is_data_uri(src):
            return
        absolute_url = resolve_url(src, self.base_url)
        payload = await fetch_as_payload(self.fetcher, absolute_url, self.config.fetch_timeout)
        self.stats.record("image", payload is not None)
        img["src"] = payload.to_data_uri() if payload is not None else absolute_url

    async def inline_stylesheets(self) -> None:
        """Replace linked stylesheets with ``<style>`` and rewrite existing ``<style>`` blocks."""
        links = self.soup.find_all(_is_stylesheet_link)
        styles = [style for style in self.soup.find_all("style") if style.string]
        await asyncio.gather(
            *(self._inline_link(link) for link in links),
            *(self._rewrite_style_element(style) for style in styles),
        )

    async def _inline_link(self, link: Tag) -> None:
        href = link["href"]
        if is_data_uri(href):
            return
        absolute_url = resolve_url(href, self.base_url)
        css = await fetch_text(self.fetcher, absolute_url, self.config.fetch_timeout)
        self.stats.record("stylesheet", css is not None)
        if css is None:
            link["href"] = absolute_url
            return
        rewritten = await rewrite_stylesheet(
            css, absolute_url, self.fetcher, self.config, self.stats
        )
        style = self.soup.new_tag("style")
        if link.get("media"):
            style["media"] = link["media"]
        style.string = self.soup.new_string(rewritten, Stylesheet)
        link.replace_with(style)

    async def _rewrite_style_element(self, style: Tag) -> None:
        rewritten = await rewrite_stylesheet(
            style.string, self.base_url, self.fetcher, self.config, self.stats
        )
        style.string = self.soup.new_string(rewritten, Stylesheet)

    async def inline_style_attributes(self) -> None:
        elements = self.soup.find_all(style=True)
        await asyncio.gather(*(self._inline_style_attribute(el) for el in elements))

    async def _inline_style_attribute(self, element: Tag) -> None:
        style = element.get("style")
        if not style:
            return
        element["style"] = await rewrite_inline_style(
            style, self.base_url, self.fetcher, self.config, self.stats
        )

    async def inline_frames(self) -> None:
        frames = self.soup.find_all("iframe")
        await asyncio.gather(*(self._inline_frame(frame) for frame in frames))

    async def _inline_frame(self, frame: Tag) -> None:
        src = frame.get("src")
        if not src or is_data_uri(src):
            if frame.get("srcdoc"):
                frame["srcdoc"] = sanitize_markup(frame["srcdoc"])
            return
        absolute_url = resolve_url(src, self.base_url)
        markup = await fetch_text(self.fetcher, absolute_url, self.config.fetch_timeout)
        self.stats.record("frame", markup is not None)
        if markup is None:
            frame["src"] = absolute_url
            if frame.get("srcdoc"):
                frame["srcdoc"] = sanitize_markup(frame["srcdoc"])
            return
        frame["srcdoc"] = await render_subdocument(
            markup, absolute_url, self.fetcher, self.config, self.stats
        )
        del frame["src"]

    def absolutize_links(self) -> int:
        """Resolve relative ``href``/``src`` values on ``a``, ``link`` and ``img``."""
        changed = 0
        for tag in self.soup.find_all(list(LINK_ATTRIBUTES)):
            attribute = LINK_ATTRIBUTES[tag.name]
            value = tag.get(attribute)
            if not value or has_absolute_prefix(value):
                continue
            tag[attribute] = resolve_url(value, self.base_url)
            changed += 1
        return changed

    def normalize_text_entities(self) -> int:
        """Decode entity text left behind in the body's plain text nodes."""
        root = self.soup.body or self.soup
        changed = 0
        for node in root.find_all(string=True):
            # Comments, doctypes and script/style contents are subclasses.
            if type(node) is not NavigableString:
                continue
            decoded = htmllib.unescape(node)
            if decoded != node:
                node.replace_with(decoded)
                changed += 1
        return changed


async def render_subdocument(
    markup: str,
    frame_url: str,
    fetcher: Fetcher,
    config: SnapshotConfig,
    stats: Optional[SnapshotStats] = None,
) -> str:
    """Run the reduced pipeline on frame markup and return static markup."""
    sub = BeautifulSoup(markup, "html.parser")
    remove_scripts(sub)
    walker = DocumentWalker(sub, frame_url, fetcher, config, stats)
    await walker.inline_images()
    await walker.inline_style_attributes()
    remove_event_handlers(sub)
    sanitize_frames(sub)
    logger.debug("Rendered sub-document %s", frame_url)
    return sub.decode()
