"""Configuration objects and constants for page snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_FETCH_TIMEOUT = 15.0
DEFAULT_MAX_IMPORT_DEPTH = 16


@dataclass
class SnapshotConfig:
    """Top-level settings that control rendering and resource inlining."""

    output_root: Path = Path("output")
    wait_after_load: float = 1.0
    navigation_timeout: float = 30.0
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    max_import_depth: int = DEFAULT_MAX_IMPORT_DEPTH
    user_agent: Optional[str] = None
