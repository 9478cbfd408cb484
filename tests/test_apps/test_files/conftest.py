"""Shared fixtures for files app tests."""

import pytest
from django.core.files.base import ContentFile

from server.apps.api.exceptions import UpstreamStoreError
from server.apps.files.infrastructure.repository import DjangoMetadataStore


class FailingMetadataStore:
    """Metadata store whose writes fail, reads delegate to the ORM store."""

    def __init__(self) -> None:
        self._delegate = DjangoMetadataStore()

    def __getattr__(self, name):
        return getattr(self._delegate, name)

    def create_file(self, **kwargs):
        raise UpstreamStoreError('insert failed')

    def delete_file(self, owner_id, file_id):
        raise UpstreamStoreError('delete failed')


class FailingBlobStore:
    """Blob store whose remove and sign calls fail."""

    def __init__(self, storage) -> None:
        self._delegate = storage

    def __getattr__(self, name):
        return getattr(self._delegate, name)

    def remove(self, name):
        raise UpstreamStoreError('remove failed')

    def signed_url(self, name, expires_in):
        raise UpstreamStoreError('signing failed')


@pytest.fixture
def failing_metadata_store():
    """Metadata store that rejects inserts and deletes.

    Returns:
        FailingMetadataStore instance.
    """
    return FailingMetadataStore()


@pytest.fixture
def failing_blob_store():
    """Blob store that rejects removals and signing.

    Returns:
        FailingBlobStore wrapping the default storage.
    """
    from django.core.files.storage import default_storage

    return FailingBlobStore(default_storage)


@pytest.fixture
def sample_file_content():
    """Sample file content for testing.

    Returns:
        ContentFile with test data.
    """
    return ContentFile(b'test file content', name='test.txt')


@pytest.fixture
def make_upload():
    """Factory for in-memory file parts.

    Returns:
        Function building a ContentFile with the given name and bytes.
    """
    def _make(name: str = 'test.txt', content: bytes = b'content'):
        return ContentFile(content, name=name)
    return _make
