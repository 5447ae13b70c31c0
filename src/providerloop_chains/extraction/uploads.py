"""Upload validation for images, audio recordings and PDFs.

Files are checked for type and size before any network call so that bad input
fails fast with a message the user can act on.
"""

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional

from providerloop_chains.config.schema import UploadsConfig
from providerloop_chains.utils.exceptions import InputValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS: dict[str, set[str]] = {
    "image": {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".heic"},
    "audio": {".webm", ".mp3", ".mp4", ".m4a", ".mpeg", ".mpga", ".wav", ".ogg"},
    "pdf": {".pdf"},
}

_MIME_PREFIXES = {"image": "image/", "audio": "audio/", "pdf": "application/pdf"}

# Extensions the platform MIME table may not know, or maps to video/*
_MIME_OVERRIDES = {
    ".webm": "audio/webm",
    ".mp4": "audio/mp4",
    ".mpeg": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".mpga": "audio/mpeg",
    ".ogg": "audio/ogg",
    ".heic": "image/heic",
    ".webp": "image/webp",
}

_BYTES_PER_MB = 1024 * 1024


def guess_mime(path: Path) -> str:
    """Guess a file's MIME type from its extension.

    Returns:
        MIME type, or "application/octet-stream" if unknown
    """
    mime = _MIME_OVERRIDES.get(path.suffix.lower())
    if mime is None:
        mime, _ = mimetypes.guess_type(str(path))
    return mime or "application/octet-stream"


def _size_limit_mb(kind: str, limits: UploadsConfig) -> float:
    return {
        "image": limits.max_image_mb,
        "audio": limits.max_audio_mb,
        "pdf": limits.max_pdf_mb,
    }[kind]


def validate_upload(path: Path, kind: str, limits: Optional[UploadsConfig] = None) -> Path:
    """Validate an uploaded file.

    Args:
        path: File to validate
        kind: "image", "audio" or "pdf"
        limits: Size limits; defaults to UploadsConfig()

    Returns:
        The validated path

    Raises:
        InputValidationError: If the file is missing, empty, of the wrong type,
            or larger than the limit for its kind
        ValueError: If kind is not a known upload kind
    """
    if kind not in ALLOWED_EXTENSIONS:
        raise ValueError(
            f"Unknown upload kind: {kind}. Must be one of: {', '.join(ALLOWED_EXTENSIONS)}"
        )
    limits = limits or UploadsConfig()
    path = Path(path)

    if not path.is_file():
        raise InputValidationError(f"File not found: {path}")

    suffix = path.suffix.lower()
    mime = guess_mime(path)
    if suffix not in ALLOWED_EXTENSIONS[kind] or not mime.startswith(_MIME_PREFIXES[kind]):
        allowed = ", ".join(sorted(ALLOWED_EXTENSIONS[kind]))
        raise InputValidationError(
            f"Please select a valid {kind} file. '{path.name}' is not one of: {allowed}"
        )

    size = path.stat().st_size
    if size == 0:
        raise InputValidationError(f"File is empty: {path.name}")

    limit_mb = _size_limit_mb(kind, limits)
    if size > limit_mb * _BYTES_PER_MB:
        raise InputValidationError(
            f"File too large: {path.name} is {size / _BYTES_PER_MB:.1f} MB. "
            f"Maximum {kind} size is {limit_mb:g} MB."
        )

    logger.debug(f"Validated {kind} upload {path.name} ({size} bytes, {mime})")
    return path


def encode_base64(path: Path) -> str:
    """Read a file and return its contents base64-encoded as ASCII."""
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")


def data_url(path: Path) -> str:
    """Build a data: URL suitable for an image_url message part."""
    return f"data:{guess_mime(path)};base64,{encode_base64(path)}"
