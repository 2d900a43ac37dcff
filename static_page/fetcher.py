"""Resource retrieval and data URI encoding."""

from __future__ import annotations

import asyncio
import codecs
import logging
import mimetypes
from abc import ABC, abstractmethod
from typing import Optional

import requests
from filetype import guess
from playwright.async_api import APIRequestContext
from playwright.async_api import Error as PlaywrightError

from .config import DEFAULT_FETCH_TIMEOUT
from .models import FetchedResource, Payload
from .utils import url_path

logger = logging.getLogger("static_page")

GENERIC_MEDIA_TYPES = {"application/octet-stream", "binary/octet-stream"}


class FetchError(RuntimeError):
    """Raised by fetchers when a resource cannot be retrieved."""


class Fetcher(ABC):
    """Capability used by the pipeline to retrieve resources.

    Implementations return a :class:`FetchedResource` for successful
    responses and raise :class:`FetchError` for anything else (non-success
    status, transport error, unreadable body).
    """

    @abstractmethod
    async def fetch(self, url: str) -> FetchedResource:
        """Return the resource at ``url`` or raise :class:`FetchError`."""


class PlaywrightFetcher(Fetcher):
    """Fetch through the rendered page's request context (shares its cookies)."""

    def __init__(
        self,
        request_context: APIRequestContext,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        self.request_context = request_context
        self.timeout = timeout

    async def fetch(self, url: str) -> FetchedResource:
        try:
            response = await self.request_context.get(
                url,
                timeout=self.timeout * 1000,
                fail_on_status_code=False,
            )
        except PlaywrightError as exc:
            raise FetchError(f"{url}: {exc.message}") from exc
        try:
            if not response.ok:
                raise FetchError(f"{url}: HTTP {response.status}")
            try:
                body = await response.body()
            except PlaywrightError as exc:
                raise FetchError(f"{url}: {exc.message}") from exc
            return FetchedResource(
                url=url,
                body=body,
                content_type=response.headers.get("content-type"),
            )
        finally:
            await response.dispose()


class SessionFetcher(Fetcher):
    """Fetch with a ``requests`` session; blocking calls run in a worker thread."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    async def fetch(self, url: str) -> FetchedResource:
        return await asyncio.to_thread(self._get, url)

    def _get(self, url: str) -> FetchedResource:
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(f"{url}: {exc}") from exc
        return FetchedResource(
            url=url,
            body=resp.content,
            content_type=resp.headers.get("Content-Type"),
        )


def infer_media_type(content_type: Optional[str], data: bytes, url: str) -> str:
    """Pick a media type from the response header, the file signature, or the URL."""
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared and declared not in GENERIC_MEDIA_TYPES:
        return declared
    kind = guess(data)
    if kind:
        return kind.mime
    guessed, _ = mimetypes.guess_type(url_path(url))
    return guessed or "application/octet-stream"


def _declared_charset(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    for param in content_type.split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset":
            charset = value.strip().strip("\"'")
            try:
                return codecs.lookup(charset).name
            except LookupError:
                return None
    return None


def decode_text(resource: FetchedResource) -> str:
    encoding = _declared_charset(resource.content_type) or "utf-8-sig"
    return resource.body.decode(encoding, errors="replace")


async def _fetch(fetcher: Fetcher, url: str, timeout: Optional[float]) -> Optional[FetchedResource]:
    try:
        return await asyncio.wait_for(fetcher.fetch(url), timeout)
    except FetchError as exc:
        logger.warning("Failed to fetch %s", exc)
    except asyncio.TimeoutError:
        logger.warning("Timed out after %.1fs fetching %s", timeout, url)
    return None


async def fetch_as_payload(
    fetcher: Fetcher,
    url: str,
    timeout: Optional[float] = DEFAULT_FETCH_TIMEOUT,
) -> Optional[Payload]:
    """Fetch ``url`` and wrap it as an embeddable payload, or ``None`` on failure."""
    resource = await _fetch(fetcher, url, timeout)
    if resource is None:
        return None
    media_type = infer_media_type(resource.content_type, resource.body, url)
    return Payload(media_type=media_type, data=resource.body)


async def fetch_text(
    fetcher: Fetcher,
    url: str,
    timeout: Optional[float] = DEFAULT_FETCH_TIMEOUT,
) -> Optional[str]:
    """Fetch ``url`` and decode it as text, or ``None`` on failure."""
    resource = await _fetch(fetcher, url, timeout)
    if resource is None:
        return None
    return decode_text(resource)
