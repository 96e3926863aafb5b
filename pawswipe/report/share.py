"""
Share - Summary messages and share targets.

Targets are tried in order. A native share target either delivers or
raises ShareUnavailable; a clipboard target copies the text plus the URL.

No targets ship with the engine: the embedding application supplies them
(a browser bridge, a desktop clipboard). With none configured the service
answers with FEEDBACK_UNAVAILABLE and the share text for manual copying.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
import logging
import random

from ..engine_core.state import SessionSummary
from ..errors import ShareUnavailable


logger = logging.getLogger(__name__)

SHARE_TITLE = "Paws & Preferences - My Cat Results"

MESSAGE_TEMPLATES = [
    "I just discovered my cat preferences! I liked {accepted} out of {total} "
    "adorable kitties ({percentage}%) on Paws & Preferences! 🐱💕",
    "Paws & Preferences revealed my cat taste: {accepted}/{total} kitties won my heart! 😻",
    "Just swiped through {total} cats and fell in love with {accepted} of them! 🐾 "
    "My cat preferences are now clear!",
]

EMPTY_GALLERY_MESSAGE = (
    "No cats were liked this time. "
    "Maybe try again? You might find some adorable kitties! 😸"
)

FEEDBACK_SHARED = "Shared successfully"
FEEDBACK_COPIED = "Results copied to clipboard! 📋"
FEEDBACK_COPY_FAILED = "Unable to copy to clipboard 😅"
FEEDBACK_UNAVAILABLE = "Share feature not available on this device 📱"


def summary_text(summary: SessionSummary, rng: random.Random | None = None) -> str:
    """Pick one of the summary messages at random."""
    template = (rng or random).choice(MESSAGE_TEMPLATES)
    return template.format(
        accepted=summary.accepted_count,
        total=summary.total_count,
        percentage=summary.percentage,
    )


class TargetKind(Enum):
    NATIVE = "native"
    CLIPBOARD = "clipboard"


@dataclass(frozen=True)
class ShareData:
    title: str
    text: str
    url: str | None = None

    def as_clipboard_text(self) -> str:
        return f"{self.text} {self.url}" if self.url else self.text


class ShareTarget(ABC):
    """A platform share capability."""
    kind: TargetKind = TargetKind.NATIVE

    def can_share(self, data: ShareData) -> bool:
        return True

    @abstractmethod
    def share(self, data: ShareData) -> None:
        """Deliver the data or raise ShareUnavailable."""


@dataclass(frozen=True)
class ShareOutcome:
    shared: bool
    text: str
    feedback: str | None = None
    target: TargetKind | None = None


class ShareService:
    """
    Routes a finished session's summary to the first usable target.

    Usage:
        service = ShareService(targets=[NativeShare(), Clipboard()])
        outcome = service.share(summary, url="https://example.test")
        show(outcome.feedback)
    """

    def __init__(self, targets: list[ShareTarget] | None = None, rng: random.Random | None = None):
        self.targets = list(targets or [])
        self._rng = rng

    def share(self, summary: SessionSummary, url: str | None = None) -> ShareOutcome:
        data = ShareData(title=SHARE_TITLE, text=summary_text(summary, self._rng), url=url)

        for target in self.targets:
            if target.kind == TargetKind.NATIVE:
                if not target.can_share(data):
                    continue
                try:
                    target.share(data)
                except ShareUnavailable as e:
                    # Native share dismissed or failed: report, do not fall through
                    logger.info("Share failed: %s", e)
                    return ShareOutcome(shared=False, text=data.text, target=target.kind)
                return ShareOutcome(
                    shared=True, text=data.text, feedback=FEEDBACK_SHARED, target=target.kind
                )

            if target.kind == TargetKind.CLIPBOARD:
                try:
                    target.share(data)
                except ShareUnavailable as e:
                    logger.info("Clipboard copy failed: %s", e)
                    return ShareOutcome(
                        shared=False,
                        text=data.text,
                        feedback=FEEDBACK_COPY_FAILED,
                        target=target.kind,
                    )
                return ShareOutcome(
                    shared=True, text=data.text, feedback=FEEDBACK_COPIED, target=target.kind
                )

        return ShareOutcome(shared=False, text=data.text, feedback=FEEDBACK_UNAVAILABLE)
