"""
Report - Human-readable results and sharing.

The report layer only consumes finished sessions. Share failures become
feedback text; they never touch session state.
"""

from .share import (
    EMPTY_GALLERY_MESSAGE,
    SHARE_TITLE,
    ShareData,
    ShareOutcome,
    ShareService,
    ShareTarget,
    TargetKind,
    summary_text,
)

__all__ = [
    "EMPTY_GALLERY_MESSAGE",
    "SHARE_TITLE",
    "ShareData",
    "ShareOutcome",
    "ShareService",
    "ShareTarget",
    "TargetKind",
    "summary_text",
]
