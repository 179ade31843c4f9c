"""
Upload checks applied before any record is created.
"""

from pathlib import Path
from ..core.errors import FileUploadError

ALLOWED_MEDIA_TYPES = {
    "application/pdf": {".pdf"},
    "image/jpeg": {".jpg", ".jpeg"},
    "image/jpg": {".jpg", ".jpeg"},
    "image/png": {".png"},
}
ALLOWED_EXTENSIONS = sorted({ext for exts in ALLOWED_MEDIA_TYPES.values() for ext in exts})


def validate_upload(file_name: str | None, media_type: str | None, size: int, max_size_bytes: int) -> None:
    """
    Reject files by media type, extension and size.

    Raises:
        FileUploadError: on the first violated constraint
    """
    if not file_name:
        raise FileUploadError("No file uploaded")

    if media_type not in ALLOWED_MEDIA_TYPES:
        raise FileUploadError(f"Invalid file type: {media_type}. Allowed: PDF, JPG, PNG")

    ext = Path(file_name).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise FileUploadError(f"Invalid file extension: {ext or '(none)'}. Allowed: {', '.join(ALLOWED_EXTENSIONS)}")
    if ext not in ALLOWED_MEDIA_TYPES[media_type]:
        raise FileUploadError(f"File extension {ext} does not match file type {media_type}")

    if size > max_size_bytes:
        max_mb = max_size_bytes / (1024 * 1024)
        raise FileUploadError(f"File too large. Maximum size is {max_mb:g}MB")
