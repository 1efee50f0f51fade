import re
import logging

from greenthumb.exceptions import ValidationError

logger = logging.getLogger(__name__)

# 5 digits with an optional 4-digit extension, e.g. 94043 or 94043-1234
LOCATION_CODE_PATTERN = re.compile(r"\d{5}(?:-\d{4})?", re.ASCII)

_CODE_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)


def is_valid_location_code(code: str) -> bool:
    """Empty means "no location supplied" and is accepted."""
    code = (code or "").strip()
    if not code:
        return True
    return LOCATION_CODE_PATTERN.fullmatch(code) is not None


def validate_location_code(code: str) -> str:
    """Return the normalised code or raise ValidationError."""
    normalised = (code or "").strip()
    if not is_valid_location_code(normalised):
        raise ValidationError(f"Invalid location code: {normalised!r}")
    return normalised


def strip_code_fences(text: str) -> str:
    """Remove markdown ```json / ``` wrappers that models put around JSON."""
    if not text:
        return ""
    return _CODE_FENCE_PATTERN.sub("", text).strip()


def preview(text: str, limit: int = 200) -> str:
    """Single-line preview for log messages."""
    if not text:
        return ""
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else f"{flat[:limit]}..."
