"""Data models used throughout the snapshot pipeline."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

HTML_MEDIA_TYPE = "text/html;charset=utf-8"


@dataclass(frozen=True)
class Payload:
    """Fetched resource bytes ready to be embedded as a data URI."""

    media_type: str
    data: bytes

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"


@dataclass
class FetchedResource:
    """Raw response returned by a fetcher."""

    url: str
    body: bytes
    content_type: Optional[str] = None


@dataclass
class SnapshotStats:
    """Counts of inlined references and live fallbacks, keyed by kind."""

    inlined: Dict[str, int] = field(default_factory=dict)
    fallbacks: Dict[str, int] = field(default_factory=dict)

    def record(self, kind: str, inlined: bool) -> None:
        bucket = self.inlined if inlined else self.fallbacks
        bucket[kind] = bucket.get(kind, 0) + 1

    def summary(self) -> str:
        kinds = sorted(set(self.inlined) | set(self.fallbacks))
        if not kinds:
            return "nothing to inline"
        return ", ".join(
            f"{kind}: {self.inlined.get(kind, 0)} inlined/{self.fallbacks.get(kind, 0)} live"
            for kind in kinds
        )


@dataclass
class StaticPage:
    """Packaged self-contained HTML artifact."""

    source_url: str
    filename: str
    html: str
    media_type: str = HTML_MEDIA_TYPE

    def encode(self) -> bytes:
        return self.html.encode("utf-8")

    def write(self, directory: Path) -> Path:
        """Write the artifact into ``directory`` and return its path."""
        directory.mkdir(parents=True, exist_ok=True)
        destination = directory / self.filename
        destination.write_bytes(self.encode())
        return destination
