"""
Event System - Session events, payloads, and results.

Events represent:
1. Lifecycle steps (start, batch loaded, prefetch failed, reset)
2. Pointer input on the top card (down, move, up, cancel)
3. Direct decisions from keyboard or buttons

All state changes flow through events.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .state import Outcome

if TYPE_CHECKING:
    from .gesture import CardTransform
    from .state import ImageItem, SessionState, SessionSummary


class EventType(Enum):
    """Types of events the reducer understands."""
    # Lifecycle
    START = "start"
    BATCH_LOADED = "batch_loaded"
    PREFETCH_FAILED = "prefetch_failed"
    RESET = "reset"

    # Pointer input
    POINTER_DOWN = "pointer_down"
    POINTER_MOVE = "pointer_move"
    POINTER_UP = "pointer_up"
    POINTER_CANCEL = "pointer_cancel"

    # Direct decision (keyboard, buttons, classified gestures)
    DECIDE = "decide"


@dataclass
class EventPayload:
    """
    Payload for an event.

    Different event types use different fields; the reducer validates.
    """
    x: float | None = None
    y: float | None = None
    outcome: Outcome | None = None
    items: tuple[ImageItem, ...] | None = None


@dataclass
class Event:
    """
    A single input to the session reducer.

    The timestamp is a monotonic clock reading in seconds. The session
    stamps events that arrive without one.
    """
    event_type: EventType
    payload: EventPayload = field(default_factory=EventPayload)
    timestamp: float | None = None

    def stamped(self, now: float) -> Event:
        """Return the event with a timestamp, keeping an existing one."""
        if self.timestamp is not None:
            return self
        return Event(event_type=self.event_type, payload=self.payload, timestamp=now)

    @classmethod
    def start(cls, timestamp: float | None = None) -> Event:
        return cls(event_type=EventType.START, timestamp=timestamp)

    @classmethod
    def batch_loaded(cls, items: list[ImageItem], timestamp: float | None = None) -> Event:
        return cls(
            event_type=EventType.BATCH_LOADED,
            payload=EventPayload(items=tuple(items)),
            timestamp=timestamp,
        )

    @classmethod
    def prefetch_failed(cls, timestamp: float | None = None) -> Event:
        return cls(event_type=EventType.PREFETCH_FAILED, timestamp=timestamp)

    @classmethod
    def reset(cls, timestamp: float | None = None) -> Event:
        return cls(event_type=EventType.RESET, timestamp=timestamp)

    @classmethod
    def pointer_down(cls, x: float, y: float, timestamp: float | None = None) -> Event:
        return cls(
            event_type=EventType.POINTER_DOWN,
            payload=EventPayload(x=x, y=y),
            timestamp=timestamp,
        )

    @classmethod
    def pointer_move(cls, x: float, y: float, timestamp: float | None = None) -> Event:
        return cls(
            event_type=EventType.POINTER_MOVE,
            payload=EventPayload(x=x, y=y),
            timestamp=timestamp,
        )

    @classmethod
    def pointer_up(
        cls,
        x: float | None = None,
        y: float | None = None,
        timestamp: float | None = None,
    ) -> Event:
        """Release; coordinates are optional, the last move is used otherwise."""
        return cls(
            event_type=EventType.POINTER_UP,
            payload=EventPayload(x=x, y=y),
            timestamp=timestamp,
        )

    @classmethod
    def pointer_cancel(cls, timestamp: float | None = None) -> Event:
        return cls(event_type=EventType.POINTER_CANCEL, timestamp=timestamp)

    @classmethod
    def decide(cls, outcome: Outcome, timestamp: float | None = None) -> Event:
        return cls(
            event_type=EventType.DECIDE,
            payload=EventPayload(outcome=outcome),
            timestamp=timestamp,
        )

    @classmethod
    def accept(cls, timestamp: float | None = None) -> Event:
        return cls.decide(Outcome.ACCEPT, timestamp)

    @classmethod
    def reject(cls, timestamp: float | None = None) -> Event:
        return cls.decide(Outcome.REJECT, timestamp)


class TransitionKind(Enum):
    """Discrete card transitions for the presentation layer."""
    ENTERED = "entered"
    EXITED = "exited"


@dataclass(frozen=True)
class CardTransition:
    """A card entering the top of the stack or leaving it."""
    kind: TransitionKind
    item_id: int
    outcome: Outcome | None = None


@dataclass
class EventResult:
    """
    Result of applying an event.

    Contains:
    - Whether the event changed anything
    - The state after the event (the unchanged state when ignored)
    - Why it was ignored (for logs and API responses)
    - Side effects for listeners (transform, transitions, summary)
    """
    applied: bool
    new_state: SessionState
    reason: str | None = None
    error_code: str | None = None

    # Human-readable changes
    state_changes: list[str] = field(default_factory=list)

    # Gesture outputs
    decision: Outcome | None = None
    transform: CardTransform | None = None
    transitions: list[CardTransition] = field(default_factory=list)

    # Set exactly once per batch, on the ACTIVE -> COMPLETE transition
    summary: SessionSummary | None = None

    # Arena handles the session must release
    released_handles: list[str] = field(default_factory=list)

    @classmethod
    def ignored(
        cls,
        state: SessionState,
        reason: str,
        error_code: str | None = None,
    ) -> EventResult:
        """Create a no-op result."""
        return cls(applied=False, new_state=state, reason=reason, error_code=error_code)

    @classmethod
    def with_state(
        cls,
        state: SessionState,
        changes: list[str] | None = None,
    ) -> EventResult:
        """Create an applied result with new state."""
        return cls(applied=True, new_state=state, state_changes=changes or [])
