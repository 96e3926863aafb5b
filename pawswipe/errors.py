"""
Error taxonomy.

Prefetch errors are recovered inside the prefetcher and never escape it.
Session-level invalid operations are not exceptions at all: the reducer
returns an ignored EventResult instead.
"""


class PrefetchError(Exception):
    """Base class for per-attempt prefetch failures."""

    def __init__(self, message: str, slot_index: int | None = None):
        super().__init__(message)
        self.slot_index = slot_index


class FetchFailure(PrefetchError):
    """Network error, timeout, or non-success status."""


class ValidationFailure(PrefetchError):
    """Payload did not decode as an image within the timeout."""


class ShareUnavailable(Exception):
    """A share target cannot deliver on this device."""
