"""
Session State - Immutable-friendly containers for one swipe session.

Design principles:
- Immutable-friendly: the reducer returns new state, never mutates
- Items are fixed once the batch is loaded
- Accepted items are append-only
- At most one live DragState, always bound to the top item
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum


BLOB_PREFIX = "blob:"


class SessionPhase(Enum):
    """High-level session lifecycle phases."""
    IDLE = "idle"
    PREFETCHING = "prefetching"
    ACTIVE = "active"
    COMPLETE = "complete"


class Outcome(Enum):
    """Decision for a single item."""
    ACCEPT = "accept"
    REJECT = "reject"


@dataclass(frozen=True)
class ImageItem:
    """
    One resolved slot of a prefetched batch.

    The handle is opaque: either an arena handle (``blob:`` prefix) for a
    payload that was fetched and validated, or the static fallback reference.
    """
    id: int
    handle: str
    acquired_at: float
    is_fallback: bool = False

    @property
    def is_revocable(self) -> bool:
        """Only arena handles need releasing."""
        return self.handle.startswith(BLOB_PREFIX)


@dataclass(frozen=True)
class DragState:
    """Live drag on the top card."""
    item_id: int
    origin_x: float
    origin_y: float
    start_time: float
    current_dx: float = 0.0
    current_dy: float = 0.0

    def moved_to(self, x: float, y: float) -> DragState:
        """Return drag with displacement measured from the origin."""
        return replace(self, current_dx=x - self.origin_x, current_dy=y - self.origin_y)

    def elapsed_ms(self, now: float) -> float:
        return max(0.0, (now - self.start_time) * 1000.0)


@dataclass(frozen=True)
class SessionSummary:
    """Aggregate outcome reported when a session completes."""
    accepted_count: int
    total_count: int

    @property
    def percentage(self) -> int:
        if self.total_count == 0:
            return 0
        return round(self.accepted_count / self.total_count * 100)


@dataclass(frozen=True)
class Progress:
    """Position of the cursor for display (1-based, capped at total)."""
    position: int
    total: int
    accepted: int


@dataclass(frozen=True)
class SessionState:
    """
    State of a swipe session.

    Invariants:
    - cursor only grows, by exactly one per decision, never past len(items)
    - accepted is a subsequence of items[:cursor]
    - cursor == len(items) while ACTIVE never happens (that is COMPLETE)
    """
    phase: SessionPhase = SessionPhase.IDLE
    items: tuple[ImageItem, ...] = field(default_factory=tuple)
    cursor: int = 0
    accepted: tuple[ImageItem, ...] = field(default_factory=tuple)
    drag: DragState | None = None

    # Monotonic timestamp before which the next item is not interactive
    settle_until: float | None = None

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def current_item(self) -> ImageItem | None:
        """The top card, if any."""
        if self.phase != SessionPhase.ACTIVE or self.cursor >= len(self.items):
            return None
        return self.items[self.cursor]

    @property
    def remaining(self) -> int:
        return len(self.items) - self.cursor

    @property
    def is_complete(self) -> bool:
        return self.phase == SessionPhase.COMPLETE

    def is_settling(self, now: float) -> bool:
        """True while the exit animation of the last decision is running."""
        return self.settle_until is not None and now < self.settle_until

    def summary(self) -> SessionSummary:
        return SessionSummary(
            accepted_count=len(self.accepted),
            total_count=len(self.items),
        )

    def progress(self) -> Progress:
        total = len(self.items)
        return Progress(
            position=min(self.cursor + 1, total),
            total=total,
            accepted=len(self.accepted),
        )

    def revocable_handles(self) -> list[str]:
        """Arena handles owned by the current batch."""
        return [item.handle for item in self.items if item.is_revocable]

    def _copy_with(self, **changes) -> SessionState:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
