"""Blob store: S3-compatible storage backend for uploaded files."""

import logging
from collections.abc import Iterator
from datetime import datetime
from typing import Any, Protocol, final, override

from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError
from storages.backends.s3 import S3Storage

from server.apps.api.exceptions import UpstreamStoreError
from server.apps.files.exceptions import BlobExistsError

logger = logging.getLogger(__name__)

_STORE_ERRORS = (Boto3Error, BotoCoreError, ClientError, OSError)


class BlobStore(Protocol):
    """Operations the file registry needs from the blob store."""

    def put(self, name: str, content: Any) -> str:
        """Write a new blob, refusing to replace an existing one."""

    def remove(self, name: str) -> None:
        """Delete a blob."""

    def signed_url(self, name: str, expires_in: int) -> str:
        """Return a time-limited, unauthenticated download link."""

    def rollback_upload(self, name: str) -> None:
        """Best-effort delete of a blob whose metadata write failed."""

    def list_blobs(self, prefix: str = '') -> Iterator[tuple[str, datetime]]:
        """Yield ``(path, last_modified)`` for every blob under prefix."""


@final
class FileStorage(S3Storage):
    """S3 storage backend for user files.

    Extends django-storages S3Storage with:
    - No-clobber writes that fail on an existing path
    - Signed download links with a caller-chosen validity
    - Rollback support for failed metadata writes
    - Translation of boto errors into UpstreamStoreError
    """

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save file to S3 with error handling and logging.

        Args:
            name: Storage path for the file.
            content: File content (file-like object).
            max_length: Optional maximum length for the filename.

        Returns:
            Actual storage path used.

        Raises:
            Exception: If S3 upload fails.
        """
        try:
            logger.info('Uploading file to storage: %s', name)
            saved_name = super().save(name, content, max_length)
            logger.info('Successfully uploaded file: %s', saved_name)
        except Exception:
            logger.exception('Failed to upload file to storage: %s', name)
            raise
        else:
            return saved_name

    @override
    def delete(self, name: str) -> None:
        """Delete file from S3 with error handling and logging.

        Args:
            name: Storage path of file to delete.

        Raises:
            Exception: If S3 delete fails.
        """
        try:
            logger.info('Deleting file from storage: %s', name)
            super().delete(name)
            logger.info('Successfully deleted file: %s', name)
        except Exception:
            logger.exception('Failed to delete file from storage: %s', name)
            raise

    def put(self, name: str, content: Any) -> str:
        """Write a new blob without ever replacing an existing one.

        Args:
            name: Storage path for the blob.
            content: File-like object with the bytes.

        Returns:
            Storage path the blob was written to.

        Raises:
            BlobExistsError: If a blob already exists at ``name``.
            UpstreamStoreError: If the store call fails.
        """
        try:
            if self.exists(name):
                raise BlobExistsError(name)
            saved_name = self.save(name, content)
        except _STORE_ERRORS as error:
            raise UpstreamStoreError(f'Failed to store file: {error}') from error

        if saved_name != name:
            # Lost a race for the path; the backend picked another name.
            self.rollback_upload(saved_name)
            raise BlobExistsError(name)
        return saved_name

    def remove(self, name: str) -> None:
        """Delete a blob.

        Args:
            name: Storage path of the blob.

        Raises:
            UpstreamStoreError: If the store call fails.
        """
        try:
            self.delete(name)
        except _STORE_ERRORS as error:
            raise UpstreamStoreError(f'Failed to remove file: {error}') from error

    def signed_url(self, name: str, expires_in: int) -> str:
        """Create a signed download link.

        Args:
            name: Storage path of the blob.
            expires_in: Link validity in seconds.

        Returns:
            Presigned GET URL.

        Raises:
            UpstreamStoreError: If the link cannot be signed.
        """
        try:
            return self.url(name, expire=expires_in)
        except _STORE_ERRORS as error:
            logger.exception('Failed to sign download link: %s', name)
            raise UpstreamStoreError(
                f'Failed to create download link: {error}',
            ) from error

    def rollback_upload(self, name: str) -> None:
        """Delete uploaded file after a failed metadata write.

        This method is called when the metadata insert fails after the
        blob has been successfully uploaded. It attempts to delete the
        blob to maintain consistency.

        This is a best-effort operation - if deletion fails, the error
        is logged but not raised, as the upload has already failed.

        Args:
            name: Storage path of file to delete.
        """
        try:
            logger.warning('Rolling back upload, deleting file: %s', name)
            self.delete(name)
            logger.info('Successfully rolled back file upload: %s', name)
        except Exception:
            # The blob stays orphaned; reconcile_storage picks it up
            logger.exception(
                'Failed to rollback upload, orphaned file: %s',
                name,
            )

    def list_blobs(self, prefix: str = '') -> Iterator[tuple[str, datetime]]:
        """List every blob under a prefix.

        Args:
            prefix: Key prefix, e.g. ``'{owner_id}/'``; empty for all.

        Yields:
            ``(path, last_modified)`` pairs.

        Raises:
            UpstreamStoreError: If listing fails.
        """
        try:
            for summary in self.bucket.objects.filter(Prefix=prefix):
                yield summary.key, summary.last_modified
        except _STORE_ERRORS as error:
            raise UpstreamStoreError(f'Failed to list files: {error}') from error
