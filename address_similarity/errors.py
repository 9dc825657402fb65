from __future__ import annotations
from typing import Optional


class SimilarityError(Exception):
    """Base error for similar address search."""


class InputError(SimilarityError, ValueError):
    """Raised when the query address is empty or can't be interpreted."""


class UnknownModeError(SimilarityError, ValueError):
    """Raised when an unsupported similarity mode is requested."""


class NoCorpusError(SimilarityError):
    """Raised when the region of the query address has no cached corpus."""

    def __init__(self, region_name: str):
        super().__init__(f"No history address data for region: {region_name}")
        self.region_name = region_name


class CacheIOError(SimilarityError):
    """Raised when a vector cache file can't be created or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
