"""Database models for files app."""

import uuid
from typing import ClassVar, Final, final, override

from django.db import models

# Constants for field max lengths
_OWNER_ID_MAX_LENGTH: Final = 64
_NAME_MAX_LENGTH: Final = 255
_STORAGE_PATH_MAX_LENGTH: Final = 1024
_CONTENT_TYPE_MAX_LENGTH: Final = 255


@final
class Folder(models.Model):
    """Node of a user's folder hierarchy.

    A folder with no parent sits at the root. Parents always belong to
    the same owner. Deletion never cascades: a folder must be empty
    before it can be removed, which ``PROTECT`` enforces at the database
    level as well.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Identity issued by the external auth provider
    owner_id = models.CharField(
        max_length=_OWNER_ID_MAX_LENGTH,
        db_index=True,
    )

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    parent = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='children',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folders'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['name', 'id']

        indexes: ClassVar[list[models.Index]] = [
            # Optimize per-level folder listing
            models.Index(
                fields=['owner_id', 'parent'],
                name='folders_owner_parent_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}:{self.name}'


@final
class File(models.Model):
    """Metadata row for one blob in the blob store.

    The blob lives at ``storage_path`` ({owner_id}/{random id}.{ext}),
    which is written before this row and never reused.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    owner_id = models.CharField(
        max_length=_OWNER_ID_MAX_LENGTH,
        db_index=True,
    )

    # Original, user-supplied name (not unique)
    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    storage_path = models.CharField(
        max_length=_STORAGE_PATH_MAX_LENGTH,
        unique=True,
        help_text='Key in blob store: {owner_id}/{random id}.{ext}',
    )

    size_bytes = models.BigIntegerField(
        help_text='File size in bytes',
    )

    content_type = models.CharField(
        max_length=_CONTENT_TYPE_MAX_LENGTH,
        help_text='MIME type sent with the upload',
    )

    # Null means the file sits at the root
    folder = models.ForeignKey(
        Folder,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='files',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at', 'id']

        indexes: ClassVar[list[models.Index]] = [
            # Optimize folder listing queries
            models.Index(
                fields=['owner_id', 'folder'],
                name='files_owner_folder_idx',
            ),
            # Optimize recent files queries
            models.Index(
                fields=['owner_id', '-created_at'],
                name='files_owner_recent_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}:{self.name}'
