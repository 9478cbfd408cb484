"""Business logic for file operations."""

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final, final

from django.conf import settings
from django.core.files.base import File as DjangoFile
from django.core.files.storage import default_storage

from server.apps.api.exceptions import NotFoundError, ValidationError
from server.apps.files.infrastructure.metadata import (
    generate_storage_path,
    resolve_content_type,
)
from server.apps.files.infrastructure.repository import (
    FILE_SORT_FIELDS,
    DjangoMetadataStore,
    FilePage,
    FileRecord,
    FolderScope,
    MetadataStore,
)
from server.apps.files.infrastructure.storage import BlobStore

logger = logging.getLogger(__name__)

_DEFAULT_SORT_FIELD: Final = 'created_at'
_ASCENDING_ORDER: Final = 'asc'
_FILE_NOT_FOUND: Final = 'File not found'


def _get_storage() -> BlobStore:
    """Get the configured default storage backend.

    Returns:
        FileStorage instance with proper S3 configuration.
    """
    return default_storage  # type: ignore[return-value]


def _get_metadata_store() -> MetadataStore:
    """Get the metadata store.

    Returns:
        Store backed by the Django ORM.
    """
    return DjangoMetadataStore()


@final
@dataclass(frozen=True, slots=True)
class PageRequest:
    """Normalized listing parameters."""

    limit: int
    offset: int
    sort_field: str = _DEFAULT_SORT_FIELD
    ascending: bool = False


def _to_int(raw: str | int | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def build_page_request(
    limit: str | int | None = None,
    offset: str | int | None = None,
    sort_by: str | None = None,
    order: str | None = None,
) -> PageRequest:
    """Normalize raw listing parameters.

    Invalid values never raise: a limit that is missing, malformed or not
    positive becomes the default page size, a malformed or negative offset
    becomes 0 and an unknown sort field becomes ``created_at``. Limits are
    capped at ``FILES_MAX_PAGE_SIZE``. Only ``order='asc'`` sorts
    ascending.

    Args:
        limit: Page size.
        offset: Number of entries to skip.
        sort_by: Sort field name.
        order: 'asc' or 'desc'.

    Returns:
        PageRequest with safe values.
    """
    page_size = _to_int(limit)
    if page_size is None or page_size <= 0:
        page_size = settings.FILES_DEFAULT_PAGE_SIZE
    page_size = min(page_size, settings.FILES_MAX_PAGE_SIZE)

    skip = _to_int(offset)
    if skip is None or skip < 0:
        skip = 0

    sort_field = sort_by if sort_by in FILE_SORT_FIELDS else _DEFAULT_SORT_FIELD

    return PageRequest(
        limit=page_size,
        offset=skip,
        sort_field=sort_field,
        ascending=order == _ASCENDING_ORDER,
    )


def _get_file_size(file_obj: DjangoFile) -> int:
    """Get file size from file object.

    Args:
        file_obj: File-like object.

    Returns:
        File size in bytes.
    """
    if getattr(file_obj, 'size', None) is not None:
        return file_obj.size
    file_size = len(file_obj.read())
    file_obj.seek(0)
    return file_size


def upload_file(
    owner_id: str,
    files: Sequence[DjangoFile],
    folder_id: uuid.UUID | None = None,
) -> FileRecord:
    """Upload file to blob store and create its metadata row.

    Transaction safety: write the blob first, then insert the row. If the
    insert fails, the blob is deleted again (best effort) and the
    failure is re-raised. Only the first file part is stored.

    Args:
        owner_id: Owner of the file.
        files: File parts from the request.
        folder_id: Target folder, None for root.

    Returns:
        Created FileRecord.

    Raises:
        ValidationError: If no file part was sent.
        NotFoundError: If the folder is not owned by ``owner_id``.
        UpstreamStoreError: If the blob or metadata write fails.
    """
    if not files:
        raise ValidationError('No file uploaded')

    file_obj = files[0]
    original_name = (file_obj.name or '').strip()
    if not original_name:
        raise ValidationError('File name is required')

    metadata = _get_metadata_store()
    if folder_id is not None and metadata.get_folder(owner_id, folder_id) is None:
        raise NotFoundError('Folder not found')

    storage_path = generate_storage_path(owner_id, original_name)
    content_type = resolve_content_type(
        getattr(file_obj, 'content_type', None),
        original_name,
    )
    file_size = _get_file_size(file_obj)

    # Initialize storage
    storage = _get_storage()

    # Step 1: Upload to storage first
    try:
        logger.info('Uploading file to storage: %s', storage_path)
        saved_name = storage.put(storage_path, file_obj)
        logger.info('File uploaded successfully: %s', saved_name)
    except Exception:
        logger.exception('Failed to upload file to storage: %s', storage_path)
        raise

    # Step 2: Create metadata row
    try:
        record = metadata.create_file(
            owner_id=owner_id,
            name=original_name,
            storage_path=saved_name,
            size_bytes=file_size,
            content_type=content_type,
            folder_id=folder_id,
        )
    except Exception:
        # Rollback: Delete blob since the metadata insert failed
        logger.exception(
            'Metadata insert failed, rolling back storage upload: %s',
            saved_name,
        )
        storage.rollback_upload(saved_name)
        raise

    logger.info(
        'File record created: %s (ID: %s)',
        saved_name,
        record.id,
    )
    return record


def list_files(
    owner_id: str,
    scope: FolderScope,
    page: PageRequest,
) -> FilePage:
    """List files at one level of the owner's hierarchy.

    Args:
        owner_id: Owner of the files.
        scope: Root or a specific folder.
        page: Normalized paging and sorting.

    Returns:
        FilePage whose ``total`` counts the whole filtered set.
    """
    logger.debug(
        'Listing files for %s in %s',
        owner_id,
        scope.folder_id or 'root',
    )
    return _get_metadata_store().list_files(
        owner_id=owner_id,
        scope=scope,
        sort_field=page.sort_field,
        ascending=page.ascending,
        offset=page.offset,
        limit=page.limit,
    )


def search_files(
    owner_id: str,
    scope: FolderScope,
    query: str | None,
) -> list[FileRecord]:
    """Find files whose name contains ``query`` (case-insensitive).

    Results are newest first and not paginated.

    Args:
        owner_id: Owner of the files.
        scope: Root or a specific folder.
        query: Substring to look for.

    Returns:
        Matching FileRecords.

    Raises:
        ValidationError: If the query is empty or whitespace.
    """
    if query is None or not query.strip():
        raise ValidationError('Search query is required')
    return _get_metadata_store().search_files(owner_id, scope, query)


def get_file(owner_id: str, file_id: uuid.UUID) -> FileRecord:
    """Get a file owned by ``owner_id``.

    Args:
        owner_id: Caller's owner id.
        file_id: File to look up.

    Returns:
        FileRecord.

    Raises:
        NotFoundError: If missing or owned by someone else.
    """
    record = _get_metadata_store().get_file(owner_id, file_id)
    if record is None:
        raise NotFoundError(_FILE_NOT_FOUND)
    return record


def get_download_link(owner_id: str, file_id: uuid.UUID) -> str:
    """Create a short-lived signed URL for a file.

    Args:
        owner_id: Caller's owner id.
        file_id: File to download.

    Returns:
        Signed URL valid for ``FILES_SIGNED_URL_TTL`` seconds.

    Raises:
        NotFoundError: If missing or owned by someone else.
        UpstreamStoreError: If the blob store cannot sign the link.
    """
    record = get_file(owner_id, file_id)
    url = _get_storage().signed_url(
        record.storage_path,
        expires_in=settings.FILES_SIGNED_URL_TTL,
    )
    logger.info('Signed download link for %s (ID: %s)', record.storage_path, file_id)
    return url


def delete_file(owner_id: str, file_id: uuid.UUID) -> None:
    """Delete file from storage and metadata store.

    Transaction safety: remove the blob first. If that fails, the row is
    left untouched and the failure is re-raised.

    Args:
        owner_id: Caller's owner id.
        file_id: ID of file to delete.

    Raises:
        NotFoundError: If missing or owned by someone else.
        UpstreamStoreError: If either store call fails.
    """
    record = get_file(owner_id, file_id)
    logger.info(
        'Deleting file: ID=%s, path=%s',
        file_id,
        record.storage_path,
    )

    # Step 1: Remove blob
    try:
        _get_storage().remove(record.storage_path)
    except Exception:
        logger.exception(
            'Failed to delete file from storage, keeping record: %s',
            record.storage_path,
        )
        raise

    # Step 2: Remove metadata row
    try:
        _get_metadata_store().delete_file(owner_id, file_id)
    except Exception:
        logger.exception(
            'Failed to delete file record (blob already removed): ID=%s',
            file_id,
        )
        raise
    logger.info('File deleted: ID=%s', file_id)
