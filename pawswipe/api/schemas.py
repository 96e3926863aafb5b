"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the swipe client and the engine.

Error Codes:
- ITEM_NOT_FOUND: No item with that id in the current batch
- VALIDATION_ERROR: Request body is invalid
- INTERNAL_ERROR: Unexpected failure

Commands issued in the wrong state are not errors: they return
``applied=false`` with a reason.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionPhase(str, Enum):
    """Session lifecycle phase."""
    IDLE = "idle"
    PREFETCHING = "prefetching"
    ACTIVE = "active"
    COMPLETE = "complete"


class Decision(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class HighlightColor(str, Enum):
    NONE = "none"
    ACCEPT = "accept"
    REJECT = "reject"


class ErrorCode(str, Enum):
    """Structured error codes."""
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Nested models
# =============================================================================

class ItemInfo(BaseModel):
    """One prefetched image."""
    item_id: int = Field(..., description="Slot index")
    image_url: str = Field(..., description="Where the client loads the image from")
    is_fallback: bool = Field(..., description="True if the slot used its placeholder")
    acquired_at: float


class StackCardInfo(BaseModel):
    """Layout of one visible card."""
    item_id: int
    depth: int
    scale: float
    offset_y: float
    z_index: int
    draggable: bool


class ProgressInfo(BaseModel):
    position: int = Field(..., description="1-based position of the top card")
    total: int
    accepted: int


class TransformInfo(BaseModel):
    """Continuous transform for the dragged card."""
    translate_x: float
    translate_y: float
    rotate_deg: float
    opacity: float
    highlight: HighlightColor = HighlightColor.NONE
    highlight_color: Optional[str] = Field(None, description="CSS color of the border")


class TransitionInfo(BaseModel):
    kind: str = Field(..., description="entered or exited")
    item_id: int
    decision: Optional[Decision] = None


class SummaryInfo(BaseModel):
    accepted_count: int
    total_count: int
    percentage: int


# =============================================================================
# Requests
# =============================================================================

class PointerRequest(BaseModel):
    """Pointer position in client pixels."""
    x: float
    y: float


class PointerReleaseRequest(BaseModel):
    """Release position; omitted coordinates reuse the last move."""
    x: Optional[float] = None
    y: Optional[float] = None


class KeyRequest(BaseModel):
    key: str = Field(..., description="KeyboardEvent.key value, e.g. ArrowRight")


class ShareRequest(BaseModel):
    url: Optional[str] = Field(None, description="Link appended to the share text")


# =============================================================================
# Responses
# =============================================================================

class SessionResponse(BaseModel):
    """Snapshot of the session."""
    phase: SessionPhase
    progress: ProgressInfo
    current_item: Optional[ItemInfo] = None
    stack: list[StackCardInfo] = Field(default_factory=list)
    interactive: bool = False
    dragging: bool = False
    summary: Optional[SummaryInfo] = None


class CommandResponse(BaseModel):
    """Result of a command or pointer event."""
    applied: bool
    reason: Optional[str] = None
    reason_code: Optional[str] = None
    decision: Optional[Decision] = None
    transform: Optional[TransformInfo] = None
    transitions: list[TransitionInfo] = Field(default_factory=list)
    session: SessionResponse


class ResultsResponse(BaseModel):
    """Results of a completed session."""
    complete: bool
    summary: Optional[SummaryInfo] = None
    accepted: list[ItemInfo] = Field(default_factory=list)
    empty_message: Optional[str] = None


class ShareResponse(BaseModel):
    shared: bool
    text: Optional[str] = None
    feedback: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    error_code: ErrorCode
    details: Optional[dict] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    phase: SessionPhase
