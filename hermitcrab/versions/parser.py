"""Extract versions from artifact names and order them."""

import re
from typing import Optional
from urllib.parse import urlsplit

import semver

from ..errors import InvalidBuildNumber, InvalidSemver, NoVersionFound
from .models import Version

VERSION_PATTERN = re.compile(
    r"v?([0-9]+)(\.[0-9]+)?(\.[0-9]+)?"
    r"(-([0-9A-Za-z\-]+(\.[0-9A-Za-z\-]+)*))?"
    r"(\+([0-9A-Za-z\-]+(\.[0-9A-Za-z\-]+)*))?"
)

# Longest first, so ".tar.gz" wins over ".tar".
ARCHIVE_SUFFIXES = ("tar.zst", "tar.gz", "tgz", "tar")

BUILD_PATTERN = re.compile(r"(?:ui\.)?([0-9]+)")


def _base_name(identifier: str) -> str:
    """Final path segment of a path or URL."""
    if "://" in identifier:
        identifier = urlsplit(identifier).path
    return identifier.rstrip("/").rsplit("/", 1)[-1]


def _strip_archive_suffix(candidate: str) -> str:
    for suffix in ARCHIVE_SUFFIXES:
        token = "." + suffix
        if candidate.endswith(token):
            return candidate[: -len(token)]
    return candidate


def _extract(identifier: str) -> semver.Version:
    name = _base_name(identifier)
    match = VERSION_PATTERN.search(name)
    if match is None:
        raise NoVersionFound(f"no semantic version found in {identifier!r}", fragment=name)

    candidate = _strip_archive_suffix(match.group(0))
    try:
        return semver.Version.parse(candidate.lstrip("v"), optional_minor_and_patch=True)
    except ValueError as exc:
        raise InvalidSemver(f"invalid semantic version {candidate!r}: {exc}", fragment=candidate) from exc


def _build_number(metadata: Optional[str]) -> int:
    if not metadata:
        return 0
    match = BUILD_PATTERN.fullmatch(metadata)
    if match is None:
        fragment = metadata[3:] if metadata.startswith("ui.") else metadata
        raise InvalidBuildNumber(f"invalid build number: {fragment}", fragment=fragment)
    return int(match.group(1))


def parse(identifier: str) -> Version:
    """Parse a bare version, file name, path or URL into a Version.

    Only the last path segment is scanned. The first semver-looking substring
    is taken, trailing archive suffixes are dropped and build metadata
    (``N`` or ``ui.N``) becomes the build number.
    """
    core = _extract(identifier)
    return Version(
        major=core.major,
        minor=core.minor,
        patch=core.patch,
        prerelease=core.prerelease or "",
        build_number=_build_number(core.build),
        source=identifier,
    )


def validate(identifier: str) -> None:
    """Raise a ParseError if ``identifier`` does not carry a usable version."""
    _build_number(_extract(identifier).build)


def compare(a: Version, b: Version) -> int:
    """Three-way comparison: semver precedence first, then build number."""
    result = a.core.compare(b.core)
    if result:
        return result
    if a.build_number == b.build_number:
        return 0
    return 1 if a.build_number > b.build_number else -1


def matches_series(version: Version, series: Optional[str]) -> bool:
    """True when the version's leading core fields equal ``series`` (e.g. "24.1")."""
    if not series:
        return True
    try:
        wanted = [int(part) for part in series.lstrip("v").split(".")]
    except ValueError:
        raise InvalidSemver(f"invalid version series {series!r}", fragment=series) from None
    if len(wanted) > 3:
        raise InvalidSemver(f"invalid version series {series!r}", fragment=series)
    return [version.major, version.minor, version.patch][: len(wanted)] == wanted
