"""
Custom validators
"""
import re
from typing import Optional

from app.utils.exceptions import ValidationFailedError

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_TAG_RE = re.compile(r"<[^>]*>")


def sanitize_input(value: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Strip markup and control characters from free text before it is stored
    or sent to the model.
    """
    if not value:
        return ""
    cleaned = _TAG_RE.sub("", value)
    cleaned = _CONTROL_CHARS_RE.sub("", cleaned).strip()
    if max_length is not None:
        cleaned = cleaned[:max_length]
    return cleaned


def require_text(value: Optional[str], message: str, min_length: int = 1) -> str:
    """Sanitized value, or a 400 with ``message`` when it is too short."""
    cleaned = sanitize_input(value)
    if len(cleaned) < min_length:
        raise ValidationFailedError(message)
    return cleaned

