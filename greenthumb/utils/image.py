import io
import base64
import logging

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

JPEG_MIME = "image/jpeg"


def to_jpeg_bytes(image_bytes: bytes, quality: int = 90) -> bytes:
    """Re-encode any Pillow-readable image as JPEG; JPEG input is returned untouched.

    Raises ValueError when the bytes are not an image.
    """
    if not image_bytes:
        raise ValueError("Empty image payload")
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            if image.format == "JPEG":
                return image_bytes
            logger.info(f"Converting {image.format} image ({image.size[0]}x{image.size[1]}) to JPEG")
            buffer = io.BytesIO()
            image.convert("RGB").save(buffer, format="JPEG", quality=quality)
            return buffer.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Unreadable image: {e}") from e


def to_base64(image_bytes: bytes) -> str:
    return base64.b64encode(image_bytes).decode("utf-8")


def to_data_uri(image_bytes: bytes, mime_type: str = JPEG_MIME) -> str:
    """Embed image bytes as a self-contained data URI."""
    return f"data:{mime_type};base64,{to_base64(image_bytes)}"
