"""
API Module - REST API for the swipe client.

Provides:
- FastAPI application (create_app)
- APIService business layer (framework-agnostic)
- Pydantic request/response schemas
"""

from .app import build_session, create_app
from .service import APIService, ImagePayload

__all__ = [
    "APIService",
    "ImagePayload",
    "build_session",
    "create_app",
]
