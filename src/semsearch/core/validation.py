"""Input validation for search requests."""

from __future__ import annotations

from urllib.parse import urlparse

from semsearch.core.errors import QueryValidationError
from semsearch.core.types import ImageUpload

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 500

SUPPORTED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp")
SUPPORTED_IMAGE_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/bmp",
    "image/webp",
)
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def validate_search_query(query: str | None) -> str:
    """Validate a text query.

    Args:
        query: Raw query string

    Returns:
        The query stripped of surrounding whitespace

    Raises:
        QueryValidationError: If the query is empty, shorter than 2
            characters or longer than 500
    """
    if query is None or not query.strip():
        raise QueryValidationError("Search query cannot be empty")
    if len(query.strip()) < MIN_QUERY_LENGTH:
        raise QueryValidationError(
            f"Search query must be at least {MIN_QUERY_LENGTH} characters long"
        )
    if len(query) > MAX_QUERY_LENGTH:
        raise QueryValidationError(
            f"Search query cannot exceed {MAX_QUERY_LENGTH} characters"
        )
    return query.strip()


def validate_image_url(url: str | None) -> str:
    """Validate an image URL.

    The URL must be absolute and mention one of the supported image
    extensions somewhere (CDN URLs often carry it before the query string).

    Raises:
        QueryValidationError: If the URL is empty, malformed or not an image
    """
    if url is None or not url.strip():
        raise QueryValidationError("Image URL cannot be empty")
    url = url.strip()

    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise QueryValidationError(f"Invalid URL format: {url}")

    lowered = url.lower()
    if not any(ext in lowered for ext in SUPPORTED_IMAGE_EXTENSIONS):
        raise QueryValidationError(
            f"Supported formats: {', '.join(SUPPORTED_IMAGE_EXTENSIONS)}"
        )
    return url


def validate_image_upload(upload: ImageUpload) -> ImageUpload:
    """Check the type and size of an uploaded image.

    Raises:
        QueryValidationError: On an unsupported MIME type or a file over 10MB
    """
    if upload.mime_type not in SUPPORTED_IMAGE_TYPES:
        raise QueryValidationError(
            f"Unsupported file type '{upload.mime_type}'. "
            "Please use JPEG, PNG, GIF, BMP, or WebP."
        )
    if upload.size > MAX_UPLOAD_BYTES:
        raise QueryValidationError("File size cannot exceed 10MB")
    if upload.size == 0:
        raise QueryValidationError(f"Image file '{upload.filename}' is empty")
    return upload


__all__ = [
    "MAX_UPLOAD_BYTES",
    "SUPPORTED_IMAGE_EXTENSIONS",
    "SUPPORTED_IMAGE_TYPES",
    "validate_image_upload",
    "validate_image_url",
    "validate_search_query",
]
