"""Shared HTTP client and logging helpers."""

from .async_http import AsyncHTTPClient
from .logger import setup_logging

__all__ = ["AsyncHTTPClient", "setup_logging"]
