"""Test helpers: in-memory archives and a scriptable artifact store."""

import asyncio
import io
import tarfile
from typing import Dict, Iterable, Optional, Tuple

from hermitcrab.errors import ArtifactNotFound, FetchError
from hermitcrab.store.base import ArtifactStore
from hermitcrab.versions.manifest import Manifest
from hermitcrab.versions.parser import parse


def make_archive(files: Dict[str, bytes], modes: Optional[Dict[str, int]] = None,
                 dirs: Iterable[str] = (), links: Iterable[Tuple[str, str]] = ()) -> bytes:
    """Build a gzip-compressed tar archive in memory."""
    modes = modes or {}
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as archive:
        for name in dirs:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            archive.addfile(info)
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = modes.get(name, 0o644)
            archive.addfile(info, io.BytesIO(data))
        for name, target in links:
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            archive.addfile(info)
    return buf.getvalue()


def site_archive(label: str) -> bytes:
    return make_archive(
        {
            "index.html": f"<h1>{label}</h1>".encode(),
            "assets/app.js": b"console.log('hi');",
        },
        dirs=["assets"],
    )


class MemoryStore(ArtifactStore):
    """Archives held in memory, keyed by canonical version string."""

    def __init__(self, archives: Optional[Dict[str, bytes]] = None):
        super().__init__()
        self.archives = dict(archives or {})
        self.downloads: Dict[str, int] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.fail = False

    @property
    def total_downloads(self) -> int:
        return sum(self.downloads.values())

    async def download(self, version):
        key = version.canonical
        self.downloads[key] = self.downloads.get(key, 0) + 1
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if self.fail:
            raise FetchError("store unavailable")
        data = self.archives.get(key)
        if data is None:
            raise ArtifactNotFound(f"no archive for {key}")
        for start in range(0, len(data), 256):
            yield data[start:start + 256]

    async def latest(self, series_hint=None):
        manifest = Manifest(versions=[parse(key) for key in self.archives])
        version = manifest.latest(series_hint)
        if version is None:
            raise ArtifactNotFound("empty store")
        return version
