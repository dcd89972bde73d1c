"""PNG encode/decode through Pillow."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Optional, Protocol

from PIL import Image, UnidentifiedImageError

from snapverify.errors import DecodeError, EncodingFailedError


class ImageCodec(Protocol):
    def encode(self, image: Image.Image) -> bytes: ...

    def decode(self, data: bytes, path: Optional[Path] = None) -> Image.Image: ...


class PngCodec:
    """Encodes bitmaps as PNG bytes and decodes PNG (or any Pillow-readable) bytes."""

    def encode(self, image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        try:
            image.save(buffer, format="PNG")
        except (OSError, ValueError, KeyError, SystemError) as e:
            raise EncodingFailedError(f"PNG creation failed: {e}") from e
        return buffer.getvalue()

    def decode(self, data: bytes, path: Optional[Path] = None) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
            raise DecodeError(f"Unable to decode image: {e}", path) from e
        return image
