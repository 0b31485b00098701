"""Version parsing and catalog management."""

from .models import Version
from .parser import compare, matches_series, parse, validate
from .manifest import Manifest, load_manifest, merge_new_version, write_manifest

__all__ = [
    "Version", "Manifest", "parse", "validate", "compare", "matches_series",
    "load_manifest", "write_manifest", "merge_new_version",
]
