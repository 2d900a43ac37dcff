"""MCP server exposing the static page snapshot tool."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .config import SnapshotConfig
from .crawler import run_snapshots

logger = logging.getLogger("static_page.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="static-page")


class SnapshotError(RuntimeError):
    """Raised when a page could not be captured."""


async def _snapshot_once(url: str, config: SnapshotConfig) -> str:
    metrics = await run_snapshots([url], config)
    if not metrics:
        raise SnapshotError(f"Failed to snapshot {url}")
    return metrics[0].page.html


@mcp.tool()
async def snapshot(url: str) -> str:
    """Render a web page with Playwright and return it as self-contained HTML."""

    with tempfile.TemporaryDirectory(prefix="static-page-") as tmp_dir:
        config = SnapshotConfig(output_root=Path(tmp_dir))
        html = await _snapshot_once(url, config)
    return html


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
