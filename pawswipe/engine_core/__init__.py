"""
Engine Core - Deterministic session state and gesture classification.

The engine is the runtime that:
1. Holds SessionState
2. Turns pointer motion into card transforms
3. Classifies releases as accept, reject, or snap back
4. Applies events via the reducer
"""

from .state import (
    DragState,
    ImageItem,
    Outcome,
    Progress,
    SessionPhase,
    SessionState,
    SessionSummary,
)
from .event import CardTransition, Event, EventPayload, EventResult, EventType, TransitionKind
from .gesture import (
    CardTransform,
    Highlight,
    StackCard,
    SwipeThresholds,
    card_transform,
    classify_release,
    stack_layout,
    swipe_velocity,
)
from .reducer import IgnoreCode, Reducer, apply_event

__all__ = [
    "DragState",
    "ImageItem",
    "Outcome",
    "Progress",
    "SessionPhase",
    "SessionState",
    "SessionSummary",
    "CardTransition",
    "Event",
    "EventPayload",
    "EventResult",
    "EventType",
    "TransitionKind",
    "CardTransform",
    "Highlight",
    "StackCard",
    "SwipeThresholds",
    "card_transform",
    "classify_release",
    "stack_layout",
    "swipe_velocity",
    "IgnoreCode",
    "Reducer",
    "apply_event",
]
