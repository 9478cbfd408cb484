"""JSON shapes of file and folder records."""

from typing import Any

from server.apps.files.infrastructure.repository import FileRecord, FolderRecord


def serialize_file(record: FileRecord) -> dict[str, Any]:
    """Render a FileRecord for API responses."""
    return {
        'id': str(record.id),
        'user_id': record.owner_id,
        'name': record.name,
        'path': record.storage_path,
        'size': record.size_bytes,
        'type': record.content_type,
        'folder_id': str(record.folder_id) if record.folder_id else None,
        'created_at': record.created_at.isoformat(),
    }


def serialize_folder(record: FolderRecord) -> dict[str, Any]:
    """Render a FolderRecord for API responses."""
    return {
        'id': str(record.id),
        'user_id': record.owner_id,
        'name': record.name,
        'parent_id': str(record.parent_id) if record.parent_id else None,
        'created_at': record.created_at.isoformat(),
    }
