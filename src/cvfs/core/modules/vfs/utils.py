"""Name and media type helpers for VFS entries."""

import mimetypes
import re

from cvfs.errors import ValidationError

MAX_NAME_LENGTH = 255
# Path separators, characters reserved on common filesystems and ASCII control characters
HOSTILE_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')
TEXT_MEDIA_TYPES = frozenset(
    {
        "application/json",
        "application/javascript",
        "application/xml",
        "application/x-sh",
        "application/x-python",
        "image/svg+xml",
    }
)


def sanitize_name(name: str) -> str:
    """Strip hostile characters from a file or folder name.

    Raises:
        ValidationError: If nothing usable remains
    """
    sanitized = HOSTILE_CHARS_RE.sub("", name).strip()
    if not sanitized or sanitized in (".", ".."):
        raise ValidationError("File or folder name cannot be blank or only invalid characters")
    if len(sanitized.encode("utf-8")) > MAX_NAME_LENGTH:
        raise ValidationError(f"File or folder name must be at most {MAX_NAME_LENGTH} bytes long")
    return sanitized


def guess_media_type(name: str) -> str:
    """Guess the media type from the file extension."""
    media_type, _ = mimetypes.guess_type(name, strict=False)
    return media_type or "application/octet-stream"


def is_text_name(name: str) -> bool:
    """Whether a file is served as JSON text rather than raw bytes.

    Files without a recognizable extension are treated as text.
    """
    media_type, _ = mimetypes.guess_type(name, strict=False)
    if media_type is None:
        return True
    return media_type.startswith("text/") or media_type in TEXT_MEDIA_TYPES
