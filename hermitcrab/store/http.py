"""Artifact store served over HTTP."""

import asyncio
import logging
from typing import AsyncIterator, Optional
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError

from ..errors import ArtifactNotFound, FetchError
from ..utils import AsyncHTTPClient
from ..versions.manifest import Manifest
from ..versions.models import Version
from .base import DEFAULT_ARCHIVE_TEMPLATE, ArtifactStore

logger = logging.getLogger(__name__)


class HTTPArtifactStore(ArtifactStore):
    """Archives and a ``manifest.json`` catalog published under one base URL."""

    def __init__(self, base_url: str, archive_template: str = DEFAULT_ARCHIVE_TEMPLATE,
                 manifest_name: str = "manifest.json", timeout: Optional[float] = 60.0,
                 chunk_size: int = 64 * 1024):
        super().__init__(archive_template)
        self.base_url = base_url.rstrip("/")
        self.manifest_name = manifest_name
        self.chunk_size = chunk_size
        self.client = AsyncHTTPClient(timeout=timeout)

    async def __aenter__(self):
        await self.client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.client.__aexit__(exc_type, exc, tb)

    def url_for(self, name: str) -> str:
        return f"{self.base_url}/{quote(name)}"

    async def download(self, version: Version) -> AsyncIterator[bytes]:
        url = self.url_for(self.archive_name(version))
        logger.info("Downloading %s", url)
        try:
            async for chunk in self.client.stream(url, self.chunk_size):
                yield chunk
        except aiohttp.ClientResponseError as exc:
            if exc.status == 404:
                raise ArtifactNotFound(f"no archive for version {version} at {url}") from exc
            raise FetchError(f"artifact store returned {exc.status} for {url}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise FetchError(f"failed to download {url}: {exc}") from exc

    async def fetch_manifest(self) -> Manifest:
        """Fetch and parse the store's version catalog."""
        url = self.url_for(self.manifest_name)
        try:
            data = await self.client.get(url)
        except aiohttp.ClientResponseError as exc:
            if exc.status == 404:
                raise ArtifactNotFound(f"no manifest at {url}") from exc
            raise FetchError(f"artifact store returned {exc.status} for {url}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise FetchError(f"failed to fetch {url}: {exc}") from exc
        try:
            return Manifest.model_validate(data)
        except ValidationError as exc:
            raise FetchError(f"malformed manifest at {url}") from exc

    async def latest(self, series_hint: Optional[str] = None) -> Version:
        manifest = await self.fetch_manifest()
        version = manifest.latest(series_hint)
        if version is None:
            raise ArtifactNotFound(f"no versions published for series {series_hint or '*'}")
        return version
