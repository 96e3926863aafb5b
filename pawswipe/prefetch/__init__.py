"""
Prefetch - Loads a fixed-size batch of images before a session starts.

Every slot resolves, either to a validated payload held in the batch's
ResourceArena or to a deterministic fallback reference.
"""

from .arena import ResourceArena, StoredPayload
from .prefetcher import AttemptOutcome, BatchPrefetcher, FetchAttempt
from .source import HttpImageSource, ImageSource, cache_bust_token
from .validator import ImageValidator, decode_media_type

__all__ = [
    "ResourceArena",
    "StoredPayload",
    "AttemptOutcome",
    "BatchPrefetcher",
    "FetchAttempt",
    "HttpImageSource",
    "ImageSource",
    "cache_bust_token",
    "ImageValidator",
    "decode_media_type",
]
