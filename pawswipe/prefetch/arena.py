"""
Resource Arena - Owns the transient payload handles of one batch.

Each batch gets its own arena. Handles are released together when the
session resets, so repeated plays never accumulate payloads.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import uuid

from ..engine_core.state import BLOB_PREFIX


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredPayload:
    """Bytes of a validated image and its media type."""
    data: bytes
    media_type: str


class ResourceArena:
    """
    Handle registry for one batch.

    Usage:
        arena = ResourceArena()
        handle = arena.allocate(payload, "image/jpeg")
        arena.resolve(handle).data
        arena.release_all()
    """

    def __init__(self):
        self.arena_id = uuid.uuid4().hex[:12]
        self._payloads: dict[str, StoredPayload] = {}
        self._released = False

    def allocate(self, data: bytes, media_type: str) -> str:
        """Store a payload and return its handle."""
        if self._released:
            raise RuntimeError(f"Arena {self.arena_id} has been released")

        handle = f"{BLOB_PREFIX}{self.arena_id}/{uuid.uuid4().hex}"
        self._payloads[handle] = StoredPayload(data=data, media_type=media_type)
        return handle

    def resolve(self, handle: str) -> StoredPayload | None:
        return self._payloads.get(handle)

    def release(self, handle: str) -> bool:
        """Release a single handle. Returns False if it was not live."""
        return self._payloads.pop(handle, None) is not None

    def release_all(self) -> int:
        """Release every handle and refuse further allocations."""
        count = len(self._payloads)
        self._payloads.clear()
        self._released = True
        logger.debug("Released arena %s (%d handles)", self.arena_id, count)
        return count

    @property
    def is_released(self) -> bool:
        return self._released

    def __contains__(self, handle: object) -> bool:
        return handle in self._payloads

    def __len__(self) -> int:
        return len(self._payloads)
