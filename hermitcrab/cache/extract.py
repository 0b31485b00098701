"""Unpack release archives into the cache."""

import logging
import os
import shutil
import tarfile
import zlib
from pathlib import Path

from ..errors import ExtractError

logger = logging.getLogger(__name__)

ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"
# tarfile only reads zstd from Python 3.14 on.
ZSTD_READABLE = "zst" in tarfile.TarFile.OPEN_METH


def _member_target(destination: Path, name: str) -> Path:
    """Destination path for an archive member, refusing anything outside ``destination``."""
    if Path(name).is_absolute():
        raise ExtractError(f"absolute path in archive: {name}")
    target = (destination / name).resolve()
    try:
        target.relative_to(destination.resolve())
    except ValueError:
        raise ExtractError(f"archive member escapes destination: {name}") from None
    return target


def _is_zstd(archive_path: Path) -> bool:
    with open(archive_path, "rb") as f:
        return f.read(len(ZSTD_MAGIC)) == ZSTD_MAGIC


def extract_tar(archive_path: Path, destination: Path) -> int:
    """Sequentially unpack a (compressed) tar archive into ``destination``.

    Directories are created and regular files written with the member's
    permission bits. Links, devices and other member types are skipped.
    Returns the number of files written.
    """
    destination.mkdir(parents=True, exist_ok=True)
    written = 0
    try:
        if not ZSTD_READABLE and _is_zstd(archive_path):
            raise ExtractError(f"cannot extract {archive_path.name}: "
                               "zstd archives are not supported by this Python's tarfile")
        with tarfile.open(archive_path, mode="r:*") as archive:
            for member in archive:
                target = _member_target(destination, member.name)
                if member.isdir():
                    target.mkdir(parents=True, exist_ok=True)
                elif member.isfile():
                    target.parent.mkdir(parents=True, exist_ok=True)
                    source = archive.extractfile(member)
                    if source is None:
                        raise ExtractError(f"failed to read archive member: {member.name}")
                    with source, open(target, "wb") as out:
                        shutil.copyfileobj(source, out)
                    os.chmod(target, member.mode & 0o777)
                    written += 1
                else:
                    logger.debug("Skipping unsupported archive member %s", member.name)
    except (tarfile.TarError, OSError, EOFError, zlib.error) as exc:
        raise ExtractError(f"failed to extract {archive_path.name}: {exc}") from exc
    return written
