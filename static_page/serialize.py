"""Serialization of the processed tree into a downloadable artifact."""

from __future__ import annotations

import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from .models import StaticPage

FILENAME_PREFIX = "static_page"
NUMERIC_REFERENCE = re.compile(r"&#(?:(\d+)|[xX]([0-9a-fA-F]+));")


def _is_encodable(code: int) -> bool:
    return 0 < code <= 0x10FFFF and not 0xD800 <= code <= 0xDFFF


def decode_numeric_entities(text: str) -> str:
    """Replace decimal and hexadecimal character references with literal characters."""

    def _replace(match: re.Match) -> str:
        if match.group(1) is not None:
            code = int(match.group(1))
        else:
            code = int(match.group(2), 16)
        if not _is_encodable(code):
            return match.group(0)
        return chr(code)

    return NUMERIC_REFERENCE.sub(_replace, text)


def serialize_document(soup: BeautifulSoup) -> str:
    return decode_numeric_entities(soup.decode())


def build_filename(url: str) -> str:
    """Derive ``static_page_<host>_<path>.html`` from the page location."""
    parsed = urlparse(url)
    host = (parsed.hostname or "").replace(".", "_")
    path = parsed.path.replace("/", "_").strip("_")
    name = f"{FILENAME_PREFIX}_{host}"
    if path:
        name = f"{name}_{path}"
    return f"{name}.html"


def package(soup: BeautifulSoup, source_url: str) -> StaticPage:
    return StaticPage(
        source_url=source_url,
        filename=build_filename(source_url),
        html=serialize_document(soup),
    )
