"""Error types shared by the parser, the manifest and the cache gateway."""

from typing import Optional


class HermitcrabError(Exception):
    """Base class for every error raised by hermitcrab."""


class ParseError(HermitcrabError, ValueError):
    """An artifact identifier could not be turned into a version."""

    def __init__(self, message: str, fragment: Optional[str] = None):
        super().__init__(message)
        self.fragment = fragment


class NoVersionFound(ParseError):
    """No semantic version appears in the identifier."""


class InvalidSemver(ParseError):
    """The matched substring is not a valid semantic version."""


class InvalidBuildNumber(ParseError):
    """Build metadata is present but is not a non-negative integer."""


class NotFound(HermitcrabError, LookupError):
    """Requested file or version does not exist."""


class FetchError(HermitcrabError):
    """The artifact store could not deliver an archive."""


class ArtifactNotFound(FetchError, NotFound):
    """The artifact store has nothing for the requested version."""


class FetchAborted(FetchError):
    """The request that started a shared fetch went away before it finished."""


class ExtractError(HermitcrabError):
    """An archive could not be unpacked into the cache."""
