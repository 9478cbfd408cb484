"""Metadata store: typed access to File and Folder records.

The business logic only sees the ``MetadataStore`` protocol and the
frozen records below. ``DjangoMetadataStore`` implements the protocol on
top of the ORM and turns database failures into ``UpstreamStoreError``.
"""

import contextlib
import logging
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Final, Protocol, Self, final

from django.db import DatabaseError
from django.db.models import Q

from server.apps.api.exceptions import UpstreamStoreError
from server.apps.files.models import File, Folder

logger = logging.getLogger(__name__)

# Sort keys accepted from callers, mapped to model fields
FILE_SORT_FIELDS: Final = {
    'created_at': 'created_at',
    'name': 'name',
    'size': 'size_bytes',
    'type': 'content_type',
}


@final
@dataclass(frozen=True, slots=True)
class FolderScope:
    """Selects either the root level or one specific folder.

    Root must be matched with an "is null" test; an equality test
    against null never matches.
    """

    folder_id: uuid.UUID | None = None

    @classmethod
    def root(cls) -> Self:
        """Scope selecting entries without a parent folder."""
        return cls()

    @classmethod
    def of(cls, folder_id: uuid.UUID | None) -> Self:
        """Scope for the given folder id, or root when it is None."""
        return cls(folder_id=folder_id)

    @property
    def is_root(self) -> bool:
        """Whether this scope selects the root level."""
        return self.folder_id is None

    def as_filter(self, field: str) -> Q:
        """Translate the scope into an ORM filter on ``field``."""
        if self.is_root:
            return Q(**{f'{field}__isnull': True})
        return Q(**{f'{field}_id': self.folder_id})


@final
@dataclass(frozen=True, slots=True)
class FileRecord:
    """Persisted description of an uploaded file."""

    id: uuid.UUID
    owner_id: str
    name: str
    storage_path: str
    size_bytes: int
    content_type: str
    folder_id: uuid.UUID | None
    created_at: datetime

    @classmethod
    def from_model(cls, instance: File) -> Self:
        """Build a record from a File model instance."""
        return cls(
            id=instance.id,
            owner_id=instance.owner_id,
            name=instance.name,
            storage_path=instance.storage_path,
            size_bytes=instance.size_bytes,
            content_type=instance.content_type,
            folder_id=instance.folder_id,
            created_at=instance.created_at,
        )


@final
@dataclass(frozen=True, slots=True)
class FolderRecord:
    """Persisted description of a folder."""

    id: uuid.UUID
    owner_id: str
    name: str
    parent_id: uuid.UUID | None
    created_at: datetime

    @classmethod
    def from_model(cls, instance: Folder) -> Self:
        """Build a record from a Folder model instance."""
        return cls(
            id=instance.id,
            owner_id=instance.owner_id,
            name=instance.name,
            parent_id=instance.parent_id,
            created_at=instance.created_at,
        )


@final
@dataclass(frozen=True, slots=True)
class FilePage:
    """One page of a file listing plus the size of the whole result."""

    items: list[FileRecord]
    total: int


class MetadataStore(Protocol):  # noqa: WPS214
    """Commands and queries the core issues against the metadata store."""

    def create_file(  # noqa: WPS211
        self,
        owner_id: str,
        name: str,
        storage_path: str,
        size_bytes: int,
        content_type: str,
        folder_id: uuid.UUID | None,
    ) -> FileRecord:
        """Insert a file row."""

    def get_file(self, owner_id: str, file_id: uuid.UUID) -> FileRecord | None:
        """Fetch one file owned by ``owner_id``."""

    def list_files(  # noqa: WPS211
        self,
        owner_id: str,
        scope: FolderScope,
        sort_field: str,
        ascending: bool,
        offset: int,
        limit: int,
    ) -> FilePage:
        """Page through files at one level."""

    def search_files(
        self,
        owner_id: str,
        scope: FolderScope,
        query: str,
    ) -> list[FileRecord]:
        """Case-insensitive substring match on file names at one level."""

    def delete_file(self, owner_id: str, file_id: uuid.UUID) -> int:
        """Delete a file row; returns the number of rows removed."""

    def iter_files(self, owner_id: str | None = None) -> Iterator[FileRecord]:
        """Iterate over every file row, optionally for one owner."""

    def create_folder(
        self,
        owner_id: str,
        name: str,
        parent_id: uuid.UUID | None,
    ) -> FolderRecord:
        """Insert a folder row."""

    def get_folder(
        self,
        owner_id: str,
        folder_id: uuid.UUID,
    ) -> FolderRecord | None:
        """Fetch one folder owned by ``owner_id``."""

    def list_folders(self, owner_id: str, scope: FolderScope) -> list[FolderRecord]:
        """List folders directly under a parent."""

    def rename_folder(
        self,
        owner_id: str,
        folder_id: uuid.UUID,
        name: str,
    ) -> int:
        """Rename a folder; returns the number of rows updated."""

    def move_folder(
        self,
        owner_id: str,
        folder_id: uuid.UUID,
        parent_id: uuid.UUID | None,
    ) -> int:
        """Reparent a folder; returns the number of rows updated."""

    def delete_folder(self, owner_id: str, folder_id: uuid.UUID) -> int:
        """Delete a folder row; returns the number of rows removed."""

    def has_child_folders(self, folder_id: uuid.UUID) -> bool:
        """Whether any folder has ``folder_id`` as parent."""

    def has_files(self, folder_id: uuid.UUID) -> bool:
        """Whether any file sits in ``folder_id``."""


@contextlib.contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except DatabaseError as error:
        logger.exception('Metadata store failed: %s', operation)
        raise UpstreamStoreError(f'Metadata store error: {error}') from error


@final
class DjangoMetadataStore:  # noqa: WPS214
    """Metadata store backed by the Django ORM.

    Every query against a single entity is filtered by owner id; child
    probes used by folder deletion filter on the parent link only.
    """

    def create_file(  # noqa: WPS211
        self,
        owner_id: str,
        name: str,
        storage_path: str,
        size_bytes: int,
        content_type: str,
        folder_id: uuid.UUID | None,
    ) -> FileRecord:
        with _translate_errors('create file'):
            instance = File.objects.create(
                owner_id=owner_id,
                name=name,
                storage_path=storage_path,
                size_bytes=size_bytes,
                content_type=content_type,
                folder_id=folder_id,
            )
        return FileRecord.from_model(instance)

    def get_file(self, owner_id: str, file_id: uuid.UUID) -> FileRecord | None:
        with _translate_errors('get file'):
            instance = File.objects.filter(id=file_id, owner_id=owner_id).first()
        return FileRecord.from_model(instance) if instance else None

    def list_files(  # noqa: WPS211
        self,
        owner_id: str,
        scope: FolderScope,
        sort_field: str,
        ascending: bool,
        offset: int,
        limit: int,
    ) -> FilePage:
        model_field = FILE_SORT_FIELDS[sort_field]
        ordering = model_field if ascending else f'-{model_field}'
        queryset = File.objects.filter(
            scope.as_filter('folder'),
            owner_id=owner_id,
        )
        with _translate_errors('list files'):
            total = queryset.count()
            page = queryset.order_by(ordering, 'id')[offset:offset + limit]
            items = [FileRecord.from_model(instance) for instance in page]
        return FilePage(items=items, total=total)

    def search_files(
        self,
        owner_id: str,
        scope: FolderScope,
        query: str,
    ) -> list[FileRecord]:
        queryset = File.objects.filter(
            scope.as_filter('folder'),
            owner_id=owner_id,
            name__icontains=query,
        ).order_by('-created_at', 'id')
        with _translate_errors('search files'):
            return [FileRecord.from_model(instance) for instance in queryset]

    def delete_file(self, owner_id: str, file_id: uuid.UUID) -> int:
        with _translate_errors('delete file'):
            deleted, _ = File.objects.filter(
                id=file_id,
                owner_id=owner_id,
            ).delete()
        return deleted

    def iter_files(self, owner_id: str | None = None) -> Iterator[FileRecord]:
        queryset = File.objects.order_by('storage_path')
        if owner_id is not None:
            queryset = queryset.filter(owner_id=owner_id)
        with _translate_errors('iterate files'):
            for instance in queryset.iterator():
                yield FileRecord.from_model(instance)

    def create_folder(
        self,
        owner_id: str,
        name: str,
        parent_id: uuid.UUID | None,
    ) -> FolderRecord:
        with _translate_errors('create folder'):
            instance = Folder.objects.create(
                owner_id=owner_id,
                name=name,
                parent_id=parent_id,
            )
        return FolderRecord.from_model(instance)

    def get_folder(
        self,
        owner_id: str,
        folder_id: uuid.UUID,
    ) -> FolderRecord | None:
        with _translate_errors('get folder'):
            instance = Folder.objects.filter(
                id=folder_id,
                owner_id=owner_id,
            ).first()
        return FolderRecord.from_model(instance) if instance else None

    def list_folders(self, owner_id: str, scope: FolderScope) -> list[FolderRecord]:
        queryset = Folder.objects.filter(
            scope.as_filter('parent'),
            owner_id=owner_id,
        ).order_by('name', 'id')
        with _translate_errors('list folders'):
            return [FolderRecord.from_model(instance) for instance in queryset]

    def rename_folder(
        self,
        owner_id: str,
        folder_id: uuid.UUID,
        name: str,
    ) -> int:
        with _translate_errors('rename folder'):
            return Folder.objects.filter(
                id=folder_id,
                owner_id=owner_id,
            ).update(name=name)

    def move_folder(
        self,
        owner_id: str,
        folder_id: uuid.UUID,
        parent_id: uuid.UUID | None,
    ) -> int:
        with _translate_errors('move folder'):
            return Folder.objects.filter(
                id=folder_id,
                owner_id=owner_id,
            ).update(parent_id=parent_id)

    def delete_folder(self, owner_id: str, folder_id: uuid.UUID) -> int:
        with _translate_errors('delete folder'):
            deleted, _ = Folder.objects.filter(
                id=folder_id,
                owner_id=owner_id,
            ).delete()
        return deleted

    def has_child_folders(self, folder_id: uuid.UUID) -> bool:
        with _translate_errors('probe child folders'):
            return Folder.objects.filter(parent_id=folder_id).exists()

    def has_files(self, folder_id: uuid.UUID) -> bool:
        with _translate_errors('probe folder files'):
            return File.objects.filter(folder_id=folder_id).exists()
