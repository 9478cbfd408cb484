"""Business logic for the folder hierarchy."""

import logging
import uuid
from typing import Final

from django.conf import settings
from django.db import transaction

from server.apps.api.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from server.apps.files.exceptions import FolderCycleError, FolderNotEmptyError
from server.apps.files.infrastructure.repository import (
    DjangoMetadataStore,
    FolderRecord,
    FolderScope,
    MetadataStore,
)

logger = logging.getLogger(__name__)

_FOLDER_NOT_FOUND: Final = 'Folder not found'
_PARENT_NOT_FOUND: Final = 'Parent folder not found'


def _get_metadata_store() -> MetadataStore:
    """Get the metadata store.

    Returns:
        Store backed by the Django ORM.
    """
    return DjangoMetadataStore()


def _clean_name(name: str | None) -> str:
    """Trim a folder name, rejecting empty ones.

    Raises:
        ValidationError: If nothing is left after trimming.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Folder name required')
    return name.strip()


def _require_folder(
    metadata: MetadataStore,
    owner_id: str,
    folder_id: uuid.UUID,
    message: str = _FOLDER_NOT_FOUND,
) -> FolderRecord:
    folder = metadata.get_folder(owner_id, folder_id)
    if folder is None:
        raise NotFoundError(message)
    return folder


def create_folder(
    owner_id: str,
    name: str | None,
    parent_id: uuid.UUID | None = None,
) -> FolderRecord:
    """Create a folder at the root or under one of the owner's folders.

    Args:
        owner_id: Owner of the new folder.
        name: Folder name, trimmed before storing.
        parent_id: Parent folder, None for root.

    Returns:
        Created FolderRecord.

    Raises:
        ValidationError: If the name is empty.
        NotFoundError: If the parent is missing or owned by someone else.
        ConflictError: If the parent is too deep in the hierarchy.
    """
    clean_name = _clean_name(name)
    metadata = _get_metadata_store()
    if parent_id is not None:
        parent = _require_folder(metadata, owner_id, parent_id, _PARENT_NOT_FOUND)
        _check_ancestors(metadata, owner_id, parent)

    folder = metadata.create_folder(owner_id, clean_name, parent_id)
    logger.info(
        'Folder created: %s (ID: %s, parent: %s)',
        folder.name,
        folder.id,
        parent_id or 'root',
    )
    return folder


def list_folders(owner_id: str, scope: FolderScope) -> list[FolderRecord]:
    """List the owner's folders directly under a parent.

    Args:
        owner_id: Owner of the folders.
        scope: Root or a specific parent folder.

    Returns:
        FolderRecords ordered by name.
    """
    return _get_metadata_store().list_folders(owner_id, scope)


def rename_folder(
    owner_id: str,
    folder_id: uuid.UUID,
    name: str | None,
) -> None:
    """Rename a folder.

    The new name follows the same rules as on creation.

    Args:
        owner_id: Caller's owner id.
        folder_id: Folder to rename.
        name: New name.

    Raises:
        ValidationError: If the name is empty.
        NotFoundError: If missing or owned by someone else.
    """
    clean_name = _clean_name(name)
    updated = _get_metadata_store().rename_folder(owner_id, folder_id, clean_name)
    if not updated:
        raise NotFoundError(_FOLDER_NOT_FOUND)
    logger.info('Folder renamed: ID=%s -> %s', folder_id, clean_name)


def _check_ancestors(
    metadata: MetadataStore,
    owner_id: str,
    new_parent: FolderRecord,
    folder_id: uuid.UUID | None = None,
) -> None:
    """Walk from a prospective parent up to the root.

    Create and move share this check, so both refuse the same parents.
    The limit bounds the ancestors of the parent only; the height of a
    subtree being moved is not counted.

    Raises:
        FolderCycleError: If the new parent is ``folder_id`` or inside it.
        ConflictError: If the walk exceeds ``FOLDERS_MAX_DEPTH``.
    """
    max_depth = settings.FOLDERS_MAX_DEPTH
    current: FolderRecord | None = new_parent
    depth = 0
    while current is not None:
        if current.id == folder_id:
            raise FolderCycleError()
        if current.parent_id is None:
            return
        depth += 1
        if depth > max_depth:
            raise ConflictError(
                f'Folder hierarchy deeper than {max_depth} levels',
            )
        current = metadata.get_folder(owner_id, current.parent_id)


def move_folder(
    owner_id: str,
    folder_id: uuid.UUID,
    parent_id: uuid.UUID | None,
) -> None:
    """Move a folder under another parent (or to the root).

    Args:
        owner_id: Caller's owner id.
        folder_id: Folder to move.
        parent_id: New parent, None for root.

    Raises:
        NotFoundError: If the folder or new parent is not the caller's.
        FolderCycleError: If the move would create a cycle.
    """
    metadata = _get_metadata_store()
    _require_folder(metadata, owner_id, folder_id)

    if parent_id is not None:
        new_parent = _require_folder(
            metadata,
            owner_id,
            parent_id,
            _PARENT_NOT_FOUND,
        )
        _check_ancestors(metadata, owner_id, new_parent, folder_id)

    if not metadata.move_folder(owner_id, folder_id, parent_id):
        raise NotFoundError(_FOLDER_NOT_FOUND)
    logger.info('Folder moved: ID=%s -> parent %s', folder_id, parent_id or 'root')


def update_folder(  # noqa: WPS211
    owner_id: str,
    folder_id: uuid.UUID,
    name: str | None = None,
    parent_id: uuid.UUID | None = None,
    *,
    rename: bool = True,
    move: bool = False,
) -> None:
    """Rename and/or move a folder as a single change.

    Both writes run in one transaction: if the move is refused, the
    rename is rolled back too.

    Args:
        owner_id: Caller's owner id.
        folder_id: Folder to update.
        name: New name, used when ``rename`` is set.
        parent_id: New parent (None for root), used when ``move`` is set.
        rename: Whether to rename.
        move: Whether to move.

    Raises:
        ValidationError: If the new name is empty.
        NotFoundError: If the folder or new parent is not the caller's.
        ConflictError: If the move would create a cycle or is too deep.
    """
    with transaction.atomic():
        if rename:
            rename_folder(owner_id, folder_id, name)
        if move:
            move_folder(owner_id, folder_id, parent_id)


def delete_folder(owner_id: str, folder_id: uuid.UUID) -> None:
    """Delete an empty folder.

    Deletion is never recursive: any direct child folder or file blocks
    it. The child probes look at the parent link only, which is enough
    because folder ids are globally unique.

    Args:
        owner_id: Caller's owner id.
        folder_id: Folder to delete.

    Raises:
        NotFoundError: If missing or owned by someone else.
        FolderNotEmptyError: If the folder has child folders or files.
    """
    metadata = _get_metadata_store()
    _require_folder(metadata, owner_id, folder_id)

    if metadata.has_child_folders(folder_id):
        raise FolderNotEmptyError('folders')
    if metadata.has_files(folder_id):
        raise FolderNotEmptyError('files')

    metadata.delete_folder(owner_id, folder_id)
    logger.info('Folder deleted: ID=%s', folder_id)
