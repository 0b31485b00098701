"""Data models for release versions."""

from typing import Tuple

import semver
from pydantic import BaseModel, ConfigDict, Field


class Version(BaseModel):
    """One release artifact: semver core, prerelease tag and numeric build id.

    Two versions are equal when their canonical string and build number match;
    the identifier they were parsed from does not take part. Ordering goes
    through ``hermitcrab.versions.parser.compare`` only.
    """

    model_config = ConfigDict(frozen=True)

    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)
    prerelease: str = ""
    build_number: int = Field(default=0, ge=0)
    source: str = ""

    @property
    def core(self) -> semver.Version:
        """Standard semver value, without the build number."""
        return semver.Version(self.major, self.minor, self.patch, self.prerelease or None)

    @property
    def semver_string(self) -> str:
        return str(self.core)

    @property
    def canonical(self) -> str:
        """``MAJOR.MINOR.PATCH[-PRERELEASE][+ui.BUILD]``, parseable back into an equal version."""
        if self.build_number:
            return f"{self.semver_string}+ui.{self.build_number}"
        return self.semver_string

    @property
    def key(self) -> Tuple[str, int]:
        return (self.canonical, self.build_number)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.canonical
