"""Naming and content type helpers for uploaded files."""

import mimetypes
import uuid
from pathlib import Path
from typing import Final

_DEFAULT_CONTENT_TYPE: Final = 'application/octet-stream'


def detect_mime_type(filename: str) -> str:
    """Detect MIME type from a filename.

    Uses Python's built-in mimetypes module to guess the type from the
    extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _DEFAULT_CONTENT_TYPE
    return mime_type


def resolve_content_type(declared: str | None, filename: str) -> str:
    """Pick the content type to record for an upload.

    Args:
        declared: Content type sent with the multipart part, if any.
        filename: Original filename.

    Returns:
        The declared type, or one detected from the filename.
    """
    if declared:
        return declared
    return detect_mime_type(filename)


def get_file_extension(filename: str) -> str:
    """Get file extension from filename.

    Args:
        filename: Filename (e.g., 'document.pdf').

    Returns:
        Extension without dot, lowercase (e.g., 'pdf').
        Returns empty string if no extension.
    """
    extension = Path(filename).suffix
    return extension.lstrip('.').lower()


def generate_storage_path(owner_id: str, original_name: str) -> str:
    """Compose a fresh blob path for an upload.

    The random part makes every path unique, so paths are never reused
    even when the same name is uploaded twice.

    Example: ('u1', 'report.PDF') -> 'u1/2f0c...9a.pdf'

    Args:
        owner_id: Owner of the upload.
        original_name: User-supplied filename.

    Returns:
        Storage path ``{owner_id}/{random id}.{ext}`` (no dot when the
        name has no extension).
    """
    unique = str(uuid.uuid4())
    extension = get_file_extension(original_name)
    if extension:
        return f'{owner_id}/{unique}.{extension}'
    return f'{owner_id}/{unique}'


def extract_owner_id(storage_path: str) -> str:
    """Extract the owner id prefix from a storage path.

    Args:
        storage_path: Full path (e.g., 'u1/abc.pdf').

    Returns:
        Owner id (e.g., 'u1').
    """
    return storage_path.split('/', 1)[0]
