"""Release manifest management and on-demand archive cache server."""

__version__ = "0.1.0"
