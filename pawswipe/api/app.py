"""
FastAPI Application - REST API for the swipe client.

Endpoints:
    GET    /api/v1/health                      Liveness and session phase
    GET    /api/v1/session                     Session snapshot
    POST   /api/v1/session/start               Prefetch a batch and begin
    POST   /api/v1/session/accept              Accept the top card
    POST   /api/v1/session/reject              Reject the top card
    POST   /api/v1/session/reset               Release the batch and restart
    POST   /api/v1/session/keys                Keyboard shortcut
    POST   /api/v1/session/pointer/down        Begin a drag on the top card
    POST   /api/v1/session/pointer/move        Drag; returns the card transform
    POST   /api/v1/session/pointer/up          Release; commits or snaps back
    POST   /api/v1/session/pointer/cancel      Cancelled drag
    GET    /api/v1/session/summary             Results of a completed session
    POST   /api/v1/session/share               Share text and feedback
    GET    /api/v1/items/{item_id}/image       Image bytes of an item

Commands sent in the wrong state succeed with ``applied=false``; input
devices double-fire and the client should not have to care.

Run with: uvicorn --factory pawswipe.api.app:create_app
"""

from contextlib import asynccontextmanager
from typing import Optional, Union
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response

from .. import __version__
from ..config import Settings
from ..engine_core.gesture import SwipeThresholds
from ..engine_core.reducer import Reducer
from ..prefetch import BatchPrefetcher, HttpImageSource, ImageValidator
from ..session import SwipeSession
from .schemas import (
    CommandResponse,
    ErrorCode,
    ErrorResponse,
    HealthResponse,
    KeyRequest,
    PointerReleaseRequest,
    PointerRequest,
    ResultsResponse,
    SessionPhase,
    SessionResponse,
    ShareRequest,
    ShareResponse,
)
from .service import APIService


logger = logging.getLogger(__name__)


def build_session(settings: Settings) -> SwipeSession:
    """Wire a session from settings."""
    source = HttpImageSource(
        base_url=settings.source_url,
        width=settings.image_width,
        height=settings.image_height,
        timeout=settings.request_timeout,
    )
    prefetcher = BatchPrefetcher(
        source,
        validator=ImageValidator(timeout=settings.validation_timeout),
        max_retries=settings.max_retries,
        backoff_step=settings.backoff_step,
    )
    reducer = Reducer(
        settle_delay=settings.settle_delay,
        thresholds=SwipeThresholds(
            distance_px=settings.swipe_distance_px,
            velocity_px_per_ms=settings.swipe_velocity_px_per_ms,
            min_elapsed_ms=settings.min_elapsed_ms,
        ),
    )
    return SwipeSession(prefetcher, batch_size=settings.batch_size, reducer=reducer)


def create_app(service: Optional[APIService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from settings if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    settings = settings or Settings.from_env()
    api_service = service or APIService(session=build_session(settings))

    @asynccontextmanager
    async def lifespan(app):
        try:
            yield
        finally:
            await api_service.session.close()
            logger.info("Session closed")

    app = FastAPI(
        title="Paws & Preferences API",
        description="Swipe through a prefetched batch of cat images.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
        return make_error_response(
            ErrorCode.INTERNAL_ERROR,
            "Internal server error",
            status_code=500,
        )

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(
            version=__version__,
            phase=SessionPhase(api_service.session.phase.value),
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/session",
        response_model=SessionResponse,
        tags=["Session"],
        summary="Get the session snapshot",
    )
    async def get_session() -> SessionResponse:
        return api_service.get_session()

    @app.post(
        "/api/v1/session/start",
        response_model=CommandResponse,
        tags=["Session"],
        summary="Prefetch a batch and begin",
    )
    async def start_session() -> CommandResponse:
        """
        Prefetch the batch and make the first card interactive.

        The response is sent once every slot has resolved.
        """
        return await api_service.start()

    @app.post("/api/v1/session/accept", response_model=CommandResponse, tags=["Session"])
    async def accept() -> CommandResponse:
        return api_service.accept()

    @app.post("/api/v1/session/reject", response_model=CommandResponse, tags=["Session"])
    async def reject() -> CommandResponse:
        return api_service.reject()

    @app.post(
        "/api/v1/session/reset",
        response_model=CommandResponse,
        tags=["Session"],
        summary="Release the finished batch and start over",
    )
    async def reset() -> CommandResponse:
        return await api_service.reset()

    @app.post(
        "/api/v1/session/keys",
        response_model=CommandResponse,
        responses={400: {"model": ErrorResponse, "description": "Unbound key"}},
        tags=["Session"],
    )
    async def press_key(request: KeyRequest) -> Union[CommandResponse, JSONResponse]:
        response = await api_service.press_key(request.key)
        if response is None:
            return make_error_response(
                ErrorCode.VALIDATION_ERROR,
                f"Key {request.key!r} is not bound",
            )
        return response

    # =========================================================================
    # Pointer Endpoints
    # =========================================================================

    @app.post("/api/v1/session/pointer/down", response_model=CommandResponse, tags=["Gesture"])
    async def pointer_down(request: PointerRequest) -> CommandResponse:
        return api_service.pointer_down(request.x, request.y)

    @app.post("/api/v1/session/pointer/move", response_model=CommandResponse, tags=["Gesture"])
    async def pointer_move(request: PointerRequest) -> CommandResponse:
        return api_service.pointer_move(request.x, request.y)

    @app.post("/api/v1/session/pointer/up", response_model=CommandResponse, tags=["Gesture"])
    async def pointer_up(request: PointerReleaseRequest) -> CommandResponse:
        return api_service.pointer_up(request.x, request.y)

    @app.post("/api/v1/session/pointer/cancel", response_model=CommandResponse, tags=["Gesture"])
    async def pointer_cancel() -> CommandResponse:
        return api_service.pointer_cancel()

    # =========================================================================
    # Results
    # =========================================================================

    @app.get("/api/v1/session/summary", response_model=ResultsResponse, tags=["Results"])
    async def get_summary() -> ResultsResponse:
        return api_service.get_results()

    @app.post("/api/v1/session/share", response_model=ShareResponse, tags=["Results"])
    async def share(request: ShareRequest) -> ShareResponse:
        return api_service.share(url=request.url)

    # =========================================================================
    # Images
    # =========================================================================

    @app.get(
        "/api/v1/items/{item_id}/image",
        responses={
            200: {"content": {"image/*": {}}},
            404: {"model": ErrorResponse, "description": "Item not found"},
        },
        tags=["Images"],
    )
    async def get_image(item_id: int):
        payload = api_service.get_image(item_id)
        if payload is None:
            return make_error_response(
                ErrorCode.ITEM_NOT_FOUND,
                f"Item {item_id} is not in the current batch",
                status_code=404,
            )
        if payload.redirect_url:
            return RedirectResponse(payload.redirect_url)
        return Response(
            content=payload.data,
            media_type=payload.media_type,
            headers={"Cache-Control": "no-store"},
        )

    return app
