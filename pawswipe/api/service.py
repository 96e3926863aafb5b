"""
API Service - Business logic layer between the API and the session.

The service:
1. Translates API requests to session calls
2. Formats session state for the client
3. Resolves item images (arena payload, fallback URL, or placeholder)
4. Routes finished sessions to the share layer

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from ..engine_core.event import EventResult
from ..engine_core.gesture import CardTransform
from ..engine_core.state import ImageItem, Outcome, SessionSummary
from ..report import EMPTY_GALLERY_MESSAGE, ShareService
from ..session import SwipeSession, command_for_key, run_command
from .schemas import (
    CommandResponse,
    Decision,
    HighlightColor,
    ItemInfo,
    ProgressInfo,
    ResultsResponse,
    SessionPhase,
    SessionResponse,
    ShareResponse,
    StackCardInfo,
    SummaryInfo,
    TransformInfo,
    TransitionInfo,
)


PLACEHOLDER_SVG = (
    '<svg width="400" height="400" xmlns="http://www.w3.org/2000/svg">'
    '<rect width="100%" height="100%" fill="#f3f4f6"/>'
    '<text x="50%" y="45%" font-family="Arial, sans-serif" font-size="24" '
    'fill="#97a3b4" text-anchor="middle">🐱</text>'
    '<text x="50%" y="60%" font-family="Arial, sans-serif" font-size="16" '
    'fill="#97a3b4" text-anchor="middle">Cat image not available</text>'
    "</svg>"
)

FEEDBACK_NOT_COMPLETE = "Finish swiping before sharing your results"


@dataclass(frozen=True)
class ImagePayload:
    """How the API should answer an image request."""
    data: bytes | None = None
    media_type: str | None = None
    redirect_url: str | None = None


@dataclass
class APIService:
    """
    API service for the swipe client.

    Usage:
        service = APIService(session=SwipeSession(prefetcher))

        await service.start()
        service.pointer_down(10, 10)
        service.pointer_move(150, 12)
        response = service.pointer_up()
    """
    session: SwipeSession
    share_service: ShareService = field(default_factory=ShareService)
    image_route: str = "/api/v1/items/{item_id}/image"

    # =========================================================================
    # Commands
    # =========================================================================

    async def start(self) -> CommandResponse:
        return self._command_response(await self.session.start())

    async def reset(self) -> CommandResponse:
        return self._command_response(await self.session.reset())

    def accept(self) -> CommandResponse:
        return self._command_response(self.session.accept())

    def reject(self) -> CommandResponse:
        return self._command_response(self.session.reject())

    async def press_key(self, key: str) -> CommandResponse | None:
        """Run the command bound to a key; None when the key is unbound."""
        command = command_for_key(key)
        if command is None:
            return None
        return self._command_response(await run_command(self.session, command))

    def pointer_down(self, x: float, y: float) -> CommandResponse:
        return self._command_response(self.session.pointer_down(x, y))

    def pointer_move(self, x: float, y: float) -> CommandResponse:
        return self._command_response(self.session.pointer_move(x, y))

    def pointer_up(self, x: float | None = None, y: float | None = None) -> CommandResponse:
        return self._command_response(self.session.pointer_up(x, y))

    def pointer_cancel(self) -> CommandResponse:
        return self._command_response(self.session.pointer_cancel())

    # =========================================================================
    # Queries
    # =========================================================================

    def get_session(self) -> SessionResponse:
        state = self.session.state
        progress = state.progress()
        summary = self.session.summary()
        current = state.current_item

        return SessionResponse(
            phase=SessionPhase(state.phase.value),
            progress=ProgressInfo(
                position=progress.position,
                total=progress.total,
                accepted=progress.accepted,
            ),
            current_item=self._item_info(current) if current else None,
            stack=[
                StackCardInfo(
                    item_id=card.item_id,
                    depth=card.depth,
                    scale=card.scale,
                    offset_y=card.offset_y,
                    z_index=card.z_index,
                    draggable=card.draggable,
                )
                for card in self.session.stack()
            ],
            interactive=self.session.is_interactive(),
            dragging=state.drag is not None,
            summary=self._summary_info(summary) if summary else None,
        )

    def get_results(self) -> ResultsResponse:
        summary = self.session.summary()
        if summary is None:
            return ResultsResponse(complete=False)

        accepted = [self._item_info(item) for item in self.session.state.accepted]
        return ResultsResponse(
            complete=True,
            summary=self._summary_info(summary),
            accepted=accepted,
            empty_message=EMPTY_GALLERY_MESSAGE if not accepted else None,
        )

    def share(self, url: str | None = None) -> ShareResponse:
        summary = self.session.summary()
        if summary is None:
            return ShareResponse(shared=False, feedback=FEEDBACK_NOT_COMPLETE)

        outcome = self.share_service.share(summary, url=url)
        return ShareResponse(shared=outcome.shared, text=outcome.text, feedback=outcome.feedback)

    def get_image(self, item_id: int) -> ImagePayload | None:
        """
        Resolve the image of an item in the current batch.

        Returns None if the batch has no such item. A revoked handle falls
        back to the SVG placeholder.
        """
        item = self.session.get_item(item_id)
        if item is None:
            return None

        if not item.is_revocable:
            return ImagePayload(redirect_url=item.handle)

        stored = self.session.resolve_handle(item.handle)
        if stored is None:
            return ImagePayload(data=PLACEHOLDER_SVG.encode("utf-8"), media_type="image/svg+xml")
        return ImagePayload(data=stored.data, media_type=stored.media_type)

    # =========================================================================
    # Formatting
    # =========================================================================

    def _item_info(self, item: ImageItem) -> ItemInfo:
        image_url = (
            self.image_route.format(item_id=item.id) if item.is_revocable else item.handle
        )
        return ItemInfo(
            item_id=item.id,
            image_url=image_url,
            is_fallback=item.is_fallback,
            acquired_at=item.acquired_at,
        )

    @staticmethod
    def _summary_info(summary: SessionSummary) -> SummaryInfo:
        return SummaryInfo(
            accepted_count=summary.accepted_count,
            total_count=summary.total_count,
            percentage=summary.percentage,
        )

    @staticmethod
    def _transform_info(transform: CardTransform) -> TransformInfo:
        return TransformInfo(
            translate_x=transform.translate_x,
            translate_y=transform.translate_y,
            rotate_deg=transform.rotate_deg,
            opacity=transform.opacity,
            highlight=HighlightColor(transform.highlight.value),
            highlight_color=transform.highlight.color,
        )

    @staticmethod
    def _decision(outcome: Outcome | None) -> Decision | None:
        return Decision(outcome.value) if outcome else None

    def _command_response(self, result: EventResult) -> CommandResponse:
        return CommandResponse(
            applied=result.applied,
            reason=result.reason,
            reason_code=result.error_code,
            decision=self._decision(result.decision),
            transform=self._transform_info(result.transform) if result.transform else None,
            transitions=[
                TransitionInfo(
                    kind=t.kind.value,
                    item_id=t.item_id,
                    decision=self._decision(t.outcome),
                )
                for t in result.transitions
            ],
            session=self.get_session(),
        )
