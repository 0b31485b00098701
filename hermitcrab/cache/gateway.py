"""On-demand cache of unpacked release archives."""

import asyncio
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

import aiofiles

from ..errors import ExtractError, FetchAborted, NotFound
from ..store.base import ArtifactStore
from ..versions.models import Version
from ..versions.parser import parse
from .extract import extract_tar

logger = logging.getLogger(__name__)

LATEST = "latest"
STAGING_DIR = ".staging"


class CacheState(str, Enum):
    UNRESOLVED = "unresolved"
    FETCHING = "fetching"
    EXTRACTED = "extracted"
    SERVING = "serving"
    FAILED = "failed"


@dataclass(frozen=True)
class CacheHandle:
    version: Version
    root: Path


class CacheGateway:
    """Resolve requested versions and materialize their archives exactly once.

    A version's directory under ``cache_root`` is the only record that it is
    cached. Concurrent requests for the same missing version share one
    fetch through an in-flight future keyed by the canonical version string;
    unrelated versions never wait on each other.
    """

    def __init__(self, store: ArtifactStore, cache_root: Path,
                 series_hint: Optional[str] = None, root_file: str = "index.html"):
        self.store = store
        self.cache_root = Path(cache_root)
        self.series_hint = series_hint
        self.root_file = root_file
        self._inflight: Dict[str, asyncio.Future] = {}
        self._states: Dict[str, CacheState] = {}

    def state(self, version: Version) -> CacheState:
        return self._states.get(version.canonical, CacheState.UNRESOLVED)

    def cache_dir(self, version: Version) -> Path:
        return self.cache_root / version.canonical

    async def resolve(self, requested: Optional[str]) -> Version:
        """Turn "latest" or an explicit version string into a Version."""
        if not requested or requested == LATEST:
            version = await self.store.latest(self.series_hint)
            logger.debug("Resolved latest to %s", version)
            return version
        return parse(requested)

    async def ensure_cached(self, version: Version) -> CacheHandle:
        """Return a handle to the unpacked archive, fetching and extracting it if needed."""
        key = version.canonical
        target = self.cache_dir(version)
        if target.is_dir():
            logger.debug("Cache hit for %s", key)
            return CacheHandle(version, target)

        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug("Waiting for in-flight fetch of %s", key)
            await asyncio.shield(pending)
            return CacheHandle(version, target)

        future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            await self._fill(version, target)
        except asyncio.CancelledError:
            self._states[key] = CacheState.FAILED
            self._fail(future, FetchAborted(f"fetch of {key} was cancelled"))
            raise
        except Exception as exc:
            self._states[key] = CacheState.FAILED
            self._fail(future, exc)
            logger.warning("Failed to prepare %s: %s", key, exc)
            raise
        else:
            self._states[key] = CacheState.EXTRACTED
            future.set_result(target)
        finally:
            self._inflight.pop(key, None)
        return CacheHandle(version, target)

    @staticmethod
    def _fail(future: asyncio.Future, exc: BaseException) -> None:
        future.set_exception(exc)
        # Mark retrieved so an unwaited future does not log a warning.
        future.exception()

    async def _fill(self, version: Version, target: Path) -> None:
        self._states[version.canonical] = CacheState.FETCHING
        staging_root = self.cache_root / STAGING_DIR
        staging_root.mkdir(parents=True, exist_ok=True)
        workdir = Path(tempfile.mkdtemp(prefix=f"{version.canonical}-", dir=staging_root))
        archive = workdir / "archive"
        try:
            await self._download(version, archive)
        except BaseException:
            await asyncio.shield(asyncio.to_thread(shutil.rmtree, workdir, True))
            raise
        # The worker thread cannot be interrupted, so it owns the staging
        # directory from here on and removes it whether or not we are cancelled.
        count = await asyncio.shield(asyncio.to_thread(self._unpack, archive, workdir, target))
        logger.info("Cached %s (%d files) in %s", version, count, target)

    @classmethod
    def _unpack(cls, archive: Path, workdir: Path, target: Path) -> int:
        try:
            unpacked = workdir / "root"
            count = extract_tar(archive, unpacked)
            cls._promote(unpacked, target)
            return count
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

    async def _download(self, version: Version, dest: Path) -> None:
        logger.info("Fetching archive for %s", version)
        size = 0
        try:
            async with aiofiles.open(dest, "wb") as f:
                async for chunk in self.store.download(version):
                    await f.write(chunk)
                    size += len(chunk)
        except OSError as exc:
            raise ExtractError(f"failed to spool archive for {version}: {exc}") from exc
        logger.debug("Fetched %d bytes for %s", size, version)

    @staticmethod
    def _promote(unpacked: Path, target: Path) -> None:
        try:
            os.rename(unpacked, target)
        except OSError as exc:
            # Another process may have finished the same version first.
            if target.is_dir():
                return
            raise ExtractError(f"failed to move extracted archive into {target}: {exc}") from exc

    def serve(self, handle: CacheHandle, relative_path: str = "") -> Path:
        """Map a request path beneath the version's cache root to a file."""
        root = handle.root.resolve()
        relative = relative_path.strip("/")
        candidate = (root / relative).resolve() if relative else root
        try:
            candidate.relative_to(root)
        except ValueError:
            raise NotFound(f"{relative_path} is outside the cache for {handle.version}") from None
        if candidate.is_dir():
            candidate = candidate / self.root_file
        if not candidate.is_file():
            raise NotFound(f"{relative_path or self.root_file} not found in {handle.version}")
        self._states[handle.version.canonical] = CacheState.SERVING
        return candidate
