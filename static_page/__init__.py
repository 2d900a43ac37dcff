"""static_page package."""

from .config import SnapshotConfig
from .fetcher import FetchError, Fetcher, PlaywrightFetcher, SessionFetcher
from .models import Payload, SnapshotStats, StaticPage
from .pipeline import snapshot_document, snapshot_html

__all__ = [
    "FetchError",
    "Fetcher",
    "Payload",
    "PlaywrightFetcher",
    "SessionFetcher",
    "SnapshotConfig",
    "SnapshotStats",
    "StaticPage",
    "snapshot_document",
    "snapshot_html",
]
