"""Local cache of unpacked release archives."""

from .gateway import CacheGateway, CacheHandle, CacheState
from .extract import extract_tar

__all__ = ["CacheGateway", "CacheHandle", "CacheState", "extract_tar"]
