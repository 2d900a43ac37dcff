"""High-level orchestration for rendering pages and saving static snapshots."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import requests
from playwright.async_api import (
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import SnapshotConfig
from .fetcher import PlaywrightFetcher, SessionFetcher
from .models import StaticPage
from .pipeline import snapshot_html

logger = logging.getLogger("static_page")


@dataclass
class SnapshotMetrics:
    """Timing and output details for a processed URL."""

    url: str
    output_path: Path
    total_seconds: float
    page: StaticPage


async def render_page(page: Page, url: str, config: SnapshotConfig) -> Tuple[str, str]:
    """Navigate to a URL and return the rendered HTML and final URL."""
    page.set_default_navigation_timeout(config.navigation_timeout * 1000)
    logger.info("Loading %s", url)
    await page.goto(url, wait_until="networkidle")
    if config.wait_after_load:
        await page.wait_for_timeout(int(config.wait_after_load * 1000))
    return await page.content(), page.url


async def snapshot_url(
    playwright: Playwright,
    url: str,
    config: SnapshotConfig,
) -> Optional[StaticPage]:
    """Render ``url`` in Chromium and inline its resources through the page's network stack."""
    browser = await playwright.chromium.launch(headless=True)
    try:
        context = await browser.new_context(user_agent=config.user_agent)
        page = await context.new_page()
        try:
            html, final_url = await render_page(page, url, config)
        except PlaywrightTimeoutError as exc:
            logger.error("Timeout while loading %s: %s", url, exc)
            return None
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error loading %s", url)
            return None

        fetcher = PlaywrightFetcher(context.request, timeout=config.fetch_timeout)
        try:
            return await snapshot_html(html, final_url, fetcher, config)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error capturing %s", final_url)
            return None
    finally:
        await browser.close()


def _save(static_page: StaticPage, config: SnapshotConfig, start_time: float) -> SnapshotMetrics:
    output_path = static_page.write(config.output_root)
    logger.info("Saved snapshot to %s", output_path)
    return SnapshotMetrics(
        url=static_page.source_url,
        output_path=output_path,
        total_seconds=time.perf_counter() - start_time,
        page=static_page,
    )


async def run_snapshots(urls: List[str], config: SnapshotConfig) -> List[SnapshotMetrics]:
    """Render each URL sequentially and write its static snapshot."""
    metrics: List[SnapshotMetrics] = []
    async with async_playwright() as playwright:
        for url in urls:
            start_time = time.perf_counter()
            static_page = await snapshot_url(playwright, url, config)
            if static_page:
                metrics.append(_save(static_page, config, start_time))
    return metrics


async def snapshot_saved_html(
    path: Path,
    base_url: str,
    config: SnapshotConfig,
    session: Optional[requests.Session] = None,
) -> SnapshotMetrics:
    """Snapshot an HTML file saved from a browser, fetching resources with requests."""
    start_time = time.perf_counter()
    html = await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")
    if session is None:
        session = requests.Session()
        if config.user_agent:
            session.headers["User-Agent"] = config.user_agent
    fetcher = SessionFetcher(session, timeout=config.fetch_timeout)
    static_page = await snapshot_html(html, base_url, fetcher, config)
    return _save(static_page, config, start_time)
