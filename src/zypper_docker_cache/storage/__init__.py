"""Storage layer for the image classification cache file."""

from .cache import CacheIssue, FlushResult, ImageCache
from .location import ResolvedLocation, resolve_cache_location

__all__ = [
    "CacheIssue",
    "FlushResult",
    "ImageCache",
    "ResolvedLocation",
    "resolve_cache_location",
]
