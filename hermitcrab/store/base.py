"""Artifact store interface."""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from ..versions.models import Version

DEFAULT_ARCHIVE_TEMPLATE = "{version}.tar.gz"


class ArtifactStore(ABC):
    """Remote holder of compressed archives addressed by version.

    Stores are async context managers so implementations can hold a session
    open for the lifetime of a server.
    """

    def __init__(self, archive_template: str = DEFAULT_ARCHIVE_TEMPLATE):
        self.archive_template = archive_template

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    def archive_name(self, version: Version) -> str:
        """Archive file name for ``version``, built from the archive template."""
        return self.archive_template.format(
            version=version.canonical,
            semver=version.semver_string,
            build=version.build_number,
        )

    @abstractmethod
    def download(self, version: Version) -> AsyncIterator[bytes]:
        """Yield the compressed archive for ``version`` in chunks.

        Raises ArtifactNotFound when the store has no such archive and
        FetchError when the store cannot be reached.
        """

    @abstractmethod
    async def latest(self, series_hint: Optional[str] = None) -> Version:
        """Newest version available, optionally restricted to a series like "24.1"."""
