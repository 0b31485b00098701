"""Async HTTP client utilities."""

import aiohttp
from typing import AsyncIterator, Optional, Dict, Any


class AsyncHTTPClient:
    """Reusable async HTTP client."""

    def __init__(self, headers: Optional[Dict[str, str]] = None, timeout: Optional[float] = None):
        self.default_headers = headers or {}
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(headers=self.default_headers, timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self.session:
            await self.session.close()
            self.session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            raise RuntimeError("AsyncHTTPClient must be used as an async context manager")
        return self.session

    async def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> Any:
        """GET request returning decoded JSON."""
        async with self._require_session().get(url, headers=headers) as resp:
            resp.raise_for_status()
            return await resp.json(content_type=None)

    async def stream(self, url: str, chunk_size: int = 64 * 1024,
                     headers: Optional[Dict[str, str]] = None) -> AsyncIterator[bytes]:
        """GET request yielding the body in chunks."""
        async with self._require_session().get(url, headers=headers) as resp:
            resp.raise_for_status()
            async for chunk in resp.content.iter_chunked(chunk_size):
                yield chunk
