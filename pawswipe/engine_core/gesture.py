"""
Gesture Classification - Pointer motion to swipe decisions.

Everything here is a pure function of its inputs so it can run on every
pointer event and be replayed in tests without a UI.

A release commits when either trigger fires:
- distance: |dx| > distance_px
- velocity: |dx| / elapsed_ms > velocity_px_per_ms

Elapsed time is clamped to one frame so a near-instant tap cannot produce an
unbounded velocity.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from .state import Outcome, SessionState


ROTATION_PER_PX = 0.1
MIN_OPACITY = 0.7
OPACITY_FALLOFF_PX = 300.0

STACK_DEPTH = 3
STACK_SCALE_STEP = 0.05
STACK_OFFSET_PX = 10
STACK_TOP_Z = 10


@dataclass(frozen=True)
class SwipeThresholds:
    """Tunable gesture thresholds."""
    distance_px: float = 100.0
    velocity_px_per_ms: float = 0.5
    min_elapsed_ms: float = 16.0


DEFAULT_THRESHOLDS = SwipeThresholds()


class Highlight(Enum):
    """Directional pre-commit affordance."""
    NONE = "none"
    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def color(self) -> str | None:
        return _HIGHLIGHT_COLORS.get(self)


_HIGHLIGHT_COLORS = {
    Highlight.ACCEPT: "#10B981",
    Highlight.REJECT: "#EF4444",
}


@dataclass(frozen=True)
class CardTransform:
    """Continuous visual state of the dragged card."""
    translate_x: float
    translate_y: float
    rotate_deg: float
    opacity: float
    highlight: Highlight = Highlight.NONE


IDENTITY_TRANSFORM = CardTransform(
    translate_x=0.0,
    translate_y=0.0,
    rotate_deg=0.0,
    opacity=1.0,
)


@dataclass(frozen=True)
class StackCard:
    """Layout of one visible card in the stack."""
    item_id: int
    depth: int
    scale: float
    offset_y: float
    z_index: int
    draggable: bool


def swipe_velocity(
    dx: float,
    elapsed_ms: float,
    thresholds: SwipeThresholds = DEFAULT_THRESHOLDS,
) -> float:
    """Horizontal speed in px/ms, with the denominator clamped."""
    return abs(dx) / max(elapsed_ms, thresholds.min_elapsed_ms)


def classify_release(
    dx: float,
    elapsed_ms: float,
    thresholds: SwipeThresholds = DEFAULT_THRESHOLDS,
) -> Outcome | None:
    """
    Classify a pointer release.

    Returns ACCEPT / REJECT when the gesture commits, None for a snap back.
    """
    if dx == 0:
        return None

    distance_hit = abs(dx) > thresholds.distance_px
    velocity_hit = swipe_velocity(dx, elapsed_ms, thresholds) > thresholds.velocity_px_per_ms

    if not (distance_hit or velocity_hit):
        return None
    return Outcome.ACCEPT if dx > 0 else Outcome.REJECT


def highlight_for(dx: float, thresholds: SwipeThresholds = DEFAULT_THRESHOLDS) -> Highlight:
    if dx > thresholds.distance_px:
        return Highlight.ACCEPT
    if dx < -thresholds.distance_px:
        return Highlight.REJECT
    return Highlight.NONE


def card_transform(
    dx: float,
    dy: float,
    thresholds: SwipeThresholds = DEFAULT_THRESHOLDS,
) -> CardTransform:
    """Transform to render for a card dragged by (dx, dy)."""
    return CardTransform(
        translate_x=dx,
        translate_y=dy,
        rotate_deg=dx * ROTATION_PER_PX,
        opacity=max(MIN_OPACITY, 1.0 - abs(dx) / OPACITY_FALLOFF_PX),
        highlight=highlight_for(dx, thresholds),
    )


def stack_layout(state: SessionState, depth: int = STACK_DEPTH) -> list[StackCard]:
    """
    Visible cards from the cursor, top first.

    Only the top card accepts drags.
    """
    if state.current_item is None:
        return []

    visible = state.items[state.cursor:state.cursor + depth]
    return [
        StackCard(
            item_id=item.id,
            depth=k,
            scale=round(1.0 - k * STACK_SCALE_STEP, 4),
            offset_y=float(k * STACK_OFFSET_PX),
            z_index=STACK_TOP_Z - k,
            draggable=k == 0,
        )
        for k, item in enumerate(visible)
    ]
