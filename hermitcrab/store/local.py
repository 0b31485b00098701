"""Artifact store backed by a local directory of archives."""

import logging
import tarfile
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles

from ..errors import ArtifactNotFound, FetchError, ParseError
from ..versions.manifest import Manifest
from ..versions.models import Version
from .base import DEFAULT_ARCHIVE_TEMPLATE, ArtifactStore

logger = logging.getLogger(__name__)

ZSTD_SUFFIX = ".tar.zst"


class LocalArtifactStore(ArtifactStore):
    def __init__(self, root: Path, archive_template: str = DEFAULT_ARCHIVE_TEMPLATE,
                 chunk_size: int = 64 * 1024):
        super().__init__(archive_template)
        self.root = Path(root)
        self.chunk_size = chunk_size

    def catalog(self) -> Manifest:
        """Build a manifest from the archive names found in the store."""
        manifest = Manifest(name=self.root.name)
        if not self.root.is_dir():
            return manifest
        for path in sorted(self.root.iterdir()):
            if not path.is_file():
                continue
            if path.name.endswith(ZSTD_SUFFIX) and "zst" not in tarfile.TarFile.OPEN_METH:
                logger.debug("Ignoring %s: zstd archives are not readable here", path.name)
                continue
            try:
                manifest.add_version(path.name)
            except ParseError as exc:
                logger.debug("Ignoring %s: %s", path.name, exc)
        manifest.deduplicate()
        return manifest

    def find_archive(self, version: Version) -> Path:
        """Archive path for ``version``: the templated name, else any file naming the same version."""
        path = self.root / self.archive_name(version)
        if path.is_file():
            return path
        for candidate in self.catalog().versions:
            if candidate == version:
                return self.root / candidate.source
        raise ArtifactNotFound(f"no archive for version {version} in {self.root}")

    async def download(self, version: Version) -> AsyncIterator[bytes]:
        path = self.find_archive(version)
        try:
            async with aiofiles.open(path, "rb") as f:
                while chunk := await f.read(self.chunk_size):
                    yield chunk
        except OSError as exc:
            raise FetchError(f"failed to read {path}: {exc}") from exc

    async def latest(self, series_hint: Optional[str] = None) -> Version:
        version = self.catalog().latest(series_hint)
        if version is None:
            raise ArtifactNotFound(f"no versions in {self.root} for series {series_hint or '*'}")
        return version
