"""Exceptions for files app."""

from server.apps.api.exceptions import ConflictError, UpstreamStoreError


class FolderNotEmptyError(ConflictError):
    """Raised when deleting a folder that still has children."""

    def __init__(self, contains: str) -> None:
        """Initialize FolderNotEmptyError.

        Args:
            contains: Kind of child blocking deletion ('folders' or 'files').
        """
        self.contains = contains
        super().__init__(f'Folder not empty (contains {contains}).')


class FolderCycleError(ConflictError):
    """Raised when a move would place a folder inside its own subtree."""

    default_message = 'Cannot move a folder into itself or its descendants'


class BlobExistsError(UpstreamStoreError):
    """Raised when writing a blob to a path that is already taken."""

    def __init__(self, storage_path: str) -> None:
        """Initialize BlobExistsError.

        Args:
            storage_path: Path that already holds a blob.
        """
        self.storage_path = storage_path
        super().__init__(f'Blob already exists: {storage_path}')
