"""Removal of executable content from parsed documents."""

from __future__ import annotations

from bs4 import BeautifulSoup

EVENT_HANDLER_PREFIX = "on"


def remove_scripts(soup: BeautifulSoup) -> int:
    """Decompose every ``<script>`` element and return how many were removed."""
    scripts = soup.find_all("script")
    for script in scripts:
        script.decompose()
    return len(scripts)


def remove_event_handlers(soup: BeautifulSoup) -> int:
    """Delete ``on*`` attributes from every element and return how many were removed."""
    removed = 0
    for tag in soup.find_all(True):
        handlers = [name for name in tag.attrs if name.lower().startswith(EVENT_HANDLER_PREFIX)]
        for name in handlers:
            del tag[name]
        removed += len(handlers)
    return removed


def sanitize_frames(soup: BeautifulSoup) -> int:
    """Sanitize the markup held in every ``srcdoc`` attribute, at any depth."""
    frames = soup.find_all("iframe", srcdoc=True)
    for frame in frames:
        frame["srcdoc"] = sanitize_markup(frame["srcdoc"])
    return len(frames)


def sanitize(soup: BeautifulSoup) -> None:
    remove_scripts(soup)
    remove_event_handlers(soup)
    sanitize_frames(soup)


def sanitize_markup(markup: str) -> str:
    sub = BeautifulSoup(markup, "html.parser")
    sanitize(sub)
    return sub.decode()
