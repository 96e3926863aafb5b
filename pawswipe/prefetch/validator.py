"""
Image Validator - Checks that a payload decodes as a displayable image.

Decoding runs in a worker thread and is bounded by a timeout; a payload that
fails to decode in time counts as a failed attempt.
"""

from __future__ import annotations
import asyncio
import io

from PIL import Image, UnidentifiedImageError

from ..errors import ValidationFailure


DEFAULT_MEDIA_TYPE = "application/octet-stream"


def decode_media_type(payload: bytes) -> str:
    """
    Fully decode the payload and return its media type.

    Raises ValidationFailure if Pillow cannot decode it.
    """
    try:
        with Image.open(io.BytesIO(payload)) as img:
            img.load()
            image_format = img.format
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as e:
        raise ValidationFailure(f"Payload is not a decodable image: {e}") from e

    return Image.MIME.get(image_format, DEFAULT_MEDIA_TYPE) if image_format else DEFAULT_MEDIA_TYPE


class ImageValidator:
    """Decodes payloads with Pillow under a timeout."""

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout

    async def validate(self, payload: bytes) -> str:
        """Return the media type of a valid payload."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(decode_media_type, payload),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ValidationFailure(f"Decode exceeded {self.timeout}s") from e
