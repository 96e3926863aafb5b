"""
Tests for API Pydantic schemas.

Validates that:
- Request/response models serialize correctly
- Error codes are properly structured
- Release coordinates are optional
"""

import pytest
from pydantic import ValidationError

from ..api.schemas import (
    CommandResponse,
    Decision,
    ErrorCode,
    ErrorResponse,
    HighlightColor,
    KeyRequest,
    PointerReleaseRequest,
    PointerRequest,
    ProgressInfo,
    SessionPhase,
    SessionResponse,
    TransformInfo,
    TransitionInfo,
)


def _session(**overrides):
    fields = dict(
        phase=SessionPhase.ACTIVE,
        progress=ProgressInfo(position=1, total=15, accepted=0),
    )
    fields.update(overrides)
    return SessionResponse(**fields)


class TestPydanticSchemas:
    """Tests for Pydantic schema validation."""

    def test_session_response_defaults(self):
        data = _session().model_dump(mode="json")

        assert data["phase"] == "active"
        assert data["current_item"] is None
        assert data["stack"] == []
        assert data["summary"] is None
        assert data["dragging"] is False

    def test_command_response_serializes_enums(self):
        response = CommandResponse(
            applied=True,
            decision=Decision.ACCEPT,
            transform=TransformInfo(
                translate_x=120,
                translate_y=0,
                rotate_deg=12,
                opacity=0.7,
                highlight=HighlightColor.ACCEPT,
                highlight_color="#10B981",
            ),
            transitions=[
                TransitionInfo(kind="exited", item_id=0, decision=Decision.ACCEPT),
                TransitionInfo(kind="entered", item_id=1),
            ],
            session=_session(),
        )

        data = response.model_dump(mode="json")
        assert data["decision"] == "accept"
        assert data["transform"]["highlight"] == "accept"
        assert data["transitions"][1]["decision"] is None

    def test_ignored_command(self):
        response = CommandResponse(
            applied=False,
            reason="Previous card is still settling",
            reason_code="SETTLING",
            session=_session(),
        )

        assert response.decision is None
        assert response.transitions == []

    def test_release_coordinates_optional(self):
        request = PointerReleaseRequest()

        assert request.x is None
        assert request.y is None

    def test_pointer_requires_position(self):
        with pytest.raises(ValidationError):
            PointerRequest(x=10)

    def test_key_required(self):
        with pytest.raises(ValidationError):
            KeyRequest()


class TestErrorCodes:
    """Tests for structured error codes."""

    def test_error_codes(self):
        assert {code.value for code in ErrorCode} == {
            "ITEM_NOT_FOUND",
            "VALIDATION_ERROR",
            "INTERNAL_ERROR",
        }

    def test_error_response(self):
        error = ErrorResponse(
            error="Item 99 is not in the current batch",
            error_code=ErrorCode.ITEM_NOT_FOUND,
        )

        data = error.model_dump(mode="json")
        assert data["error_code"] == "ITEM_NOT_FOUND"
        assert data["details"] is None

    def test_invalid_error_code(self):
        with pytest.raises(ValidationError):
            ErrorResponse(error="boom", error_code="NOT_A_CODE")
