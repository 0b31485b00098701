"""Version catalog: insertion, de-duplication, ordering and persistence."""

import logging
from functools import cmp_to_key
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_serializer, field_validator

from .models import Version
from .parser import compare, matches_series, parse

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _entry_to_version(entry: Any) -> Version:
    if isinstance(entry, Version):
        return entry
    if not isinstance(entry, dict):
        raise ValueError(f"manifest entry must be an object, got {type(entry).__name__}")
    identifier = entry.get("filename") or entry.get("version")
    if not identifier:
        raise ValueError("manifest entry has neither a filename nor a version")
    # The stored fields are informational; the file name is re-parsed so loading
    # and adding a new artifact interpret names the same way.
    return parse(identifier)


class Manifest(BaseModel):
    name: str = ""
    description: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    versions: List[Version] = Field(default_factory=list)

    @field_validator("versions", mode="before")
    @classmethod
    def _reparse_versions(cls, value: Any) -> List[Version]:
        if value is None:
            return []
        return [_entry_to_version(entry) for entry in value]

    @field_serializer("versions")
    def _dump_versions(self, versions: List[Version]) -> List[Dict[str, Any]]:
        return [
            {"version": v.canonical, "build_number": v.build_number, "filename": v.source}
            for v in versions
        ]

    def add_version(self, identifier: str) -> Version:
        """Parse ``identifier`` and append it. No de-duplication or sorting."""
        version = parse(identifier)
        self.add(version)
        return version

    def add(self, version: Version) -> List[Version]:
        self.versions.append(version)
        return self.versions

    def deduplicate(self) -> List[Version]:
        """Keep the first occurrence of every (canonical, build number) pair."""
        seen = set()
        unique = []
        for version in self.versions:
            if version.key in seen:
                continue
            seen.add(version.key)
            unique.append(version)
        self.versions = unique
        return self.versions

    def sort(self) -> List[Version]:
        """Stable ascending sort."""
        self.versions = sorted(self.versions, key=cmp_to_key(compare))
        return self.versions

    def latest(self, series: Optional[str] = None) -> Optional[Version]:
        """Sort the catalog and return its maximum, optionally within a series.

        A final release outranks every prerelease of the same core, and among
        entries sharing core and prerelease the highest build number wins.
        """
        if not self.versions:
            return None
        self.sort()
        for version in reversed(self.versions):
            if matches_series(version, series):
                return version
        return None


def load_manifest(path: PathLike) -> Manifest:
    """Read a manifest JSON document, re-parsing every entry."""
    data = Path(path).read_text(encoding="utf-8")
    return Manifest.model_validate_json(data)


def write_manifest(manifest: Manifest, path: PathLike) -> None:
    """Write the manifest as indented JSON with stable key order."""
    Path(path).write_text(manifest.model_dump_json(indent=2) + "\n", encoding="utf-8")


def merge_new_version(prev_manifest_path: Optional[PathLike], output_path: Optional[PathLike],
                      identifier: str, *, name: Optional[str] = None,
                      description: Optional[str] = None) -> Manifest:
    """Load a manifest, add ``identifier``, de-duplicate, sort and persist it.

    Without a previous manifest a new one is started from ``name`` and
    ``description``. The result is written to ``output_path``, or back to the
    previous manifest when no output path is given.
    """
    target = output_path or prev_manifest_path
    if not target:
        raise ValueError("an output path is required when no previous manifest is given")

    if prev_manifest_path:
        manifest = load_manifest(prev_manifest_path)
    else:
        manifest = Manifest()
    if name is not None:
        manifest.name = name
    if description is not None:
        manifest.description = description

    version = manifest.add_version(identifier)
    before = len(manifest.versions)
    manifest.deduplicate()
    manifest.sort()
    if len(manifest.versions) < before:
        logger.info("Version %s already in manifest", version)
    else:
        logger.info("Added version %s to manifest", version)

    write_manifest(manifest, target)
    return manifest
