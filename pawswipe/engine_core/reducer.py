"""
Reducer - Applies events to session state.

The reducer is the single point of state mutation.
All state changes must go through apply_event().

Design principles:
- Pure function: (state, event) -> new_state
- Validates before applying
- Invalid events are ignored, never raised: the dominant caller is a human
  whose input devices double-fire
- Returns EventResult with side effects for the session to carry out
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .event import CardTransition, Event, EventResult, EventType, TransitionKind
from .gesture import (
    DEFAULT_THRESHOLDS,
    IDENTITY_TRANSFORM,
    SwipeThresholds,
    card_transform,
    classify_release,
)
from .state import DragState, Outcome, SessionPhase, SessionState


logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 0.5


class IgnoreCode:
    """Error codes carried by ignored results."""
    INVALID_STATE = "INVALID_STATE"
    SETTLING = "SETTLING"
    NO_DRAG = "NO_DRAG"
    DRAG_IN_PROGRESS = "DRAG_IN_PROGRESS"
    MISSING_PAYLOAD = "MISSING_PAYLOAD"


_ALLOWED_PHASES = {
    EventType.START: {SessionPhase.IDLE},
    EventType.BATCH_LOADED: {SessionPhase.PREFETCHING},
    EventType.PREFETCH_FAILED: {SessionPhase.PREFETCHING},
    EventType.RESET: {SessionPhase.COMPLETE},
    EventType.POINTER_DOWN: {SessionPhase.ACTIVE},
    EventType.POINTER_MOVE: {SessionPhase.ACTIVE},
    EventType.POINTER_UP: {SessionPhase.ACTIVE},
    EventType.POINTER_CANCEL: {SessionPhase.ACTIVE},
    EventType.DECIDE: {SessionPhase.ACTIVE},
}


@dataclass
class Reducer:
    """
    Reducer applies events to session state.

    Stateless - all state is in SessionState.
    Thresholds and the settle delay are the only configuration.
    """
    settle_delay: float = DEFAULT_SETTLE_DELAY
    thresholds: SwipeThresholds = field(default_factory=lambda: DEFAULT_THRESHOLDS)

    def apply(self, state: SessionState, event: Event) -> EventResult:
        """
        Apply an event to the session state.

        Returns EventResult with the new state, or an ignored result.
        """
        if event.timestamp is None:
            raise ValueError(f"Event {event.event_type.value} has no timestamp")

        ignore = self._validate_event(state, event)
        if ignore:
            reason, code = ignore
            logger.debug("Ignored %s: %s", event.event_type.value, reason)
            return EventResult.ignored(state, reason, error_code=code)

        handler = self._get_handler(event.event_type)
        return handler(state, event)

    def _validate_event(self, state: SessionState, event: Event) -> tuple[str, str] | None:
        """
        Check that an event is meaningful in the current state.

        Returns (reason, code) if it must be ignored, None if valid.
        """
        allowed = _ALLOWED_PHASES[event.event_type]
        if state.phase not in allowed:
            return (
                f"{event.event_type.value} not allowed while {state.phase.value}",
                IgnoreCode.INVALID_STATE,
            )

        now = event.timestamp

        if event.event_type in {EventType.DECIDE, EventType.POINTER_DOWN}:
            if state.current_item is None:
                return "No current item", IgnoreCode.INVALID_STATE
            if state.is_settling(now):
                return "Previous card is still settling", IgnoreCode.SETTLING

        if event.event_type == EventType.POINTER_DOWN and state.drag is not None:
            return "A drag is already in progress", IgnoreCode.DRAG_IN_PROGRESS

        if event.event_type in {
            EventType.POINTER_MOVE,
            EventType.POINTER_UP,
            EventType.POINTER_CANCEL,
        } and state.drag is None:
            return "No drag in progress", IgnoreCode.NO_DRAG

        if event.event_type == EventType.DECIDE and event.payload.outcome is None:
            return "Decision has no outcome", IgnoreCode.MISSING_PAYLOAD

        if event.event_type == EventType.BATCH_LOADED and event.payload.items is None:
            return "Batch has no items", IgnoreCode.MISSING_PAYLOAD

        if event.event_type in {EventType.POINTER_DOWN, EventType.POINTER_MOVE}:
            if event.payload.x is None or event.payload.y is None:
                return "Pointer event has no position", IgnoreCode.MISSING_PAYLOAD

        return None

    def _get_handler(self, event_type: EventType):
        """Get the handler function for an event type."""
        handlers = {
            EventType.START: self._handle_start,
            EventType.BATCH_LOADED: self._handle_batch_loaded,
            EventType.PREFETCH_FAILED: self._handle_prefetch_failed,
            EventType.RESET: self._handle_reset,
            EventType.POINTER_DOWN: self._handle_pointer_down,
            EventType.POINTER_MOVE: self._handle_pointer_move,
            EventType.POINTER_UP: self._handle_release,
            EventType.POINTER_CANCEL: self._handle_release,
            EventType.DECIDE: self._handle_decide,
        }
        return handlers[event_type]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _handle_start(self, state: SessionState, event: Event) -> EventResult:
        new_state = SessionState(phase=SessionPhase.PREFETCHING)
        return EventResult.with_state(new_state, ["Prefetching batch"])

    def _handle_batch_loaded(self, state: SessionState, event: Event) -> EventResult:
        items = tuple(event.payload.items)

        if not items:
            new_state = state._copy_with(phase=SessionPhase.COMPLETE, items=items)
            result = EventResult.with_state(new_state, ["Empty batch, session complete"])
            result.summary = new_state.summary()
            return result

        new_state = state._copy_with(phase=SessionPhase.ACTIVE, items=items)
        result = EventResult.with_state(new_state, [f"Loaded {len(items)} items"])
        result.transitions.append(CardTransition(TransitionKind.ENTERED, items[0].id))
        return result

    def _handle_prefetch_failed(self, state: SessionState, event: Event) -> EventResult:
        return EventResult.with_state(
            SessionState(phase=SessionPhase.IDLE),
            ["Prefetch failed, back to idle"],
        )

    def _handle_reset(self, state: SessionState, event: Event) -> EventResult:
        released = state.revocable_handles()
        result = EventResult.with_state(
            SessionState(phase=SessionPhase.IDLE),
            [f"Reset, releasing {len(released)} handles"],
        )
        result.released_handles = released
        return result

    # =========================================================================
    # Pointer input
    # =========================================================================

    def _handle_pointer_down(self, state: SessionState, event: Event) -> EventResult:
        drag = DragState(
            item_id=state.current_item.id,
            origin_x=event.payload.x,
            origin_y=event.payload.y,
            start_time=event.timestamp,
        )
        result = EventResult.with_state(state._copy_with(drag=drag))
        result.transform = IDENTITY_TRANSFORM
        return result

    def _handle_pointer_move(self, state: SessionState, event: Event) -> EventResult:
        drag = state.drag.moved_to(event.payload.x, event.payload.y)
        result = EventResult.with_state(state._copy_with(drag=drag))
        result.transform = card_transform(drag.current_dx, drag.current_dy, self.thresholds)
        return result

    def _handle_release(self, state: SessionState, event: Event) -> EventResult:
        """Pointer up or cancel: commit the swipe or snap back."""
        drag = state.drag
        if event.payload.x is not None and event.payload.y is not None:
            drag = drag.moved_to(event.payload.x, event.payload.y)

        outcome = classify_release(
            drag.current_dx,
            drag.elapsed_ms(event.timestamp),
            self.thresholds,
        )
        released = state._copy_with(drag=None)

        if outcome is None:
            result = EventResult.with_state(released, ["Snap back"])
            result.transform = IDENTITY_TRANSFORM
            return result

        return self._commit(released, outcome, event.timestamp)

    # =========================================================================
    # Decisions
    # =========================================================================

    def _handle_decide(self, state: SessionState, event: Event) -> EventResult:
        return self._commit(state._copy_with(drag=None), event.payload.outcome, event.timestamp)

    def _commit(self, state: SessionState, outcome: Outcome, now: float) -> EventResult:
        """Record a decision for the current item and advance the cursor."""
        item = state.items[state.cursor]
        accepted = state.accepted + (item,) if outcome == Outcome.ACCEPT else state.accepted
        cursor = state.cursor + 1

        new_state = state._copy_with(
            cursor=cursor,
            accepted=accepted,
            drag=None,
            settle_until=now + self.settle_delay,
        )

        transitions = [CardTransition(TransitionKind.EXITED, item.id, outcome)]
        if cursor >= len(state.items):
            new_state = new_state._copy_with(phase=SessionPhase.COMPLETE)
        else:
            transitions.append(CardTransition(TransitionKind.ENTERED, state.items[cursor].id))

        result = EventResult.with_state(
            new_state,
            [f"{outcome.value.capitalize()}ed item {item.id}"],
        )
        result.decision = outcome
        result.transitions = transitions
        if new_state.is_complete:
            result.summary = new_state.summary()
        return result


def apply_event(state: SessionState, event: Event, reducer: Reducer | None = None) -> EventResult:
    """Convenience wrapper using the default reducer."""
    return (reducer or Reducer()).apply(state, event)
