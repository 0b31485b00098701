"""Artifact stores holding release archives."""

from .base import ArtifactStore
from .http import HTTPArtifactStore
from .local import LocalArtifactStore

__all__ = ["ArtifactStore", "HTTPArtifactStore", "LocalArtifactStore"]
