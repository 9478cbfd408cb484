"""Tests for file operations business logic."""

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from server.apps.api.exceptions import (
    NotFoundError,
    UpstreamStoreError,
    ValidationError,
)
from server.apps.files.infrastructure.repository import FolderScope
from server.apps.files.logic import file_operations
from server.apps.files.logic.file_operations import (
    build_page_request,
    delete_file,
    get_download_link,
    list_files,
    search_files,
    upload_file,
)
from server.apps.files.logic.folder_operations import create_folder
from server.apps.files.models import File


def _age(record, minutes):
    """Backdate a file so ordering by created_at is deterministic."""
    File.objects.filter(id=record.id).update(
        created_at=timezone.now() - timedelta(minutes=minutes),
    )


@pytest.mark.django_db
def test_upload_file_success(owner_id, mock_s3, bucket_keys, sample_file_content):
    """Test successful file upload (S3 + DB)."""
    record = upload_file(owner_id, [sample_file_content])

    assert record.owner_id == owner_id
    assert record.name == 'test.txt'
    assert record.storage_path.startswith(f'{owner_id}/')
    assert record.storage_path.endswith('.txt')
    assert record.size_bytes == len(b'test file content')
    assert record.content_type == 'text/plain'
    assert record.folder_id is None

    # Blob exists and the row points to it
    assert bucket_keys() == [record.storage_path]
    assert File.objects.filter(storage_path=record.storage_path).exists()


@pytest.mark.django_db
def test_upload_then_list_contains_exactly_one_new_entry(
    owner_id,
    mock_s3,
    make_upload,
):
    """Test that a listing after upload shows the returned path once."""
    record = upload_file(owner_id, [make_upload('notes.md')])

    page = list_files(owner_id, FolderScope.root(), build_page_request())

    paths = [item.storage_path for item in page.items]
    assert paths.count(record.storage_path) == 1
    assert page.total == 1


@pytest.mark.django_db
def test_upload_uses_unique_paths_for_same_name(owner_id, mock_s3, make_upload):
    """Test that uploading the same name twice never reuses a path."""
    first = upload_file(owner_id, [make_upload('same.txt')])
    second = upload_file(owner_id, [make_upload('same.txt')])

    assert first.storage_path != second.storage_path
    assert File.objects.filter(owner_id=owner_id, name='same.txt').count() == 2


@pytest.mark.django_db
def test_upload_without_files(owner_id, mock_s3, bucket_keys):
    """Test upload with zero file parts."""
    with pytest.raises(ValidationError, match='No file uploaded'):
        upload_file(owner_id, [])

    # Nothing written anywhere
    assert File.objects.count() == 0
    assert bucket_keys() == []


@pytest.mark.django_db
def test_upload_only_stores_first_part(owner_id, mock_s3, bucket_keys, make_upload):
    """Test that extra file parts are ignored."""
    record = upload_file(
        owner_id,
        [make_upload('first.txt'), make_upload('second.txt')],
    )

    assert record.name == 'first.txt'
    assert len(bucket_keys()) == 1


@pytest.mark.django_db
def test_upload_into_folder(owner_id, mock_s3, make_upload):
    """Test upload linked to a folder."""
    folder = create_folder(owner_id, 'Docs')

    record = upload_file(owner_id, [make_upload()], folder.id)

    assert record.folder_id == folder.id


@pytest.mark.django_db
def test_upload_into_unknown_folder(owner_id, mock_s3, bucket_keys, make_upload):
    """Test upload into a folder that does not exist."""
    with pytest.raises(NotFoundError, match='Folder not found'):
        upload_file(owner_id, [make_upload()], uuid.uuid4())

    assert bucket_keys() == []


@pytest.mark.django_db
def test_upload_into_other_owners_folder(
    owner_id,
    other_owner_id,
    mock_s3,
    bucket_keys,
    make_upload,
):
    """Test upload into a folder owned by someone else."""
    foreign = create_folder(other_owner_id, 'Theirs')

    with pytest.raises(NotFoundError):
        upload_file(owner_id, [make_upload()], foreign.id)

    assert bucket_keys() == []


@pytest.mark.django_db
def test_upload_rolls_back_blob_on_metadata_failure(
    owner_id,
    mock_s3,
    bucket_keys,
    make_upload,
    monkeypatch,
    failing_metadata_store,
):
    """Test that a failed insert removes the freshly written blob."""
    monkeypatch.setattr(
        file_operations,
        '_get_metadata_store',
        lambda: failing_metadata_store,
    )

    with pytest.raises(UpstreamStoreError, match='insert failed'):
        upload_file(owner_id, [make_upload()])

    assert bucket_keys() == []
    assert File.objects.count() == 0


@pytest.mark.django_db
def test_upload_without_extension(owner_id, mock_s3, make_upload):
    """Test storage path for a name without extension."""
    record = upload_file(owner_id, [make_upload('README')])

    blob_name = record.storage_path.split('/', 1)[1]
    assert '.' not in blob_name
    assert record.content_type == 'application/octet-stream'


@pytest.mark.django_db
def test_folder_scoped_listing_scenario(owner_id, mock_s3, make_upload):
    """Test file in a folder shows up there and not at the root."""
    docs = create_folder(owner_id, 'Docs')
    upload_file(owner_id, [make_upload('a.txt')], docs.id)

    in_docs = list_files(owner_id, FolderScope.of(docs.id), build_page_request())
    at_root = list_files(owner_id, FolderScope.root(), build_page_request())

    assert [item.name for item in in_docs.items] == ['a.txt']
    assert in_docs.total == 1
    assert at_root.items == []
    assert at_root.total == 0


@pytest.mark.django_db
def test_list_files_pagination(owner_id, mock_s3, make_upload):
    """Test total is independent of the page window."""
    for name in ('e.txt', 'a.txt', 'c.txt', 'b.txt', 'd.txt'):
        upload_file(owner_id, [make_upload(name)])

    page = list_files(
        owner_id,
        FolderScope.root(),
        build_page_request(limit='2', offset='2', sort_by='name', order='asc'),
    )

    assert page.total == 5
    assert [item.name for item in page.items] == ['c.txt', 'd.txt']


@pytest.mark.django_db
def test_list_files_default_order_newest_first(owner_id, mock_s3, make_upload):
    """Test default ordering by created_at descending."""
    old = upload_file(owner_id, [make_upload('old.txt')])
    new = upload_file(owner_id, [make_upload('new.txt')])
    _age(old, 10)
    _age(new, 1)

    page = list_files(owner_id, FolderScope.root(), build_page_request())

    assert [item.name for item in page.items] == ['new.txt', 'old.txt']


@pytest.mark.django_db
def test_list_files_sort_by_size(owner_id, mock_s3, make_upload):
    """Test sorting by size ascending."""
    upload_file(owner_id, [make_upload('big.txt', b'x' * 30)])
    upload_file(owner_id, [make_upload('small.txt', b'x')])

    page = list_files(
        owner_id,
        FolderScope.root(),
        build_page_request(sort_by='size', order='asc'),
    )

    assert [item.name for item in page.items] == ['small.txt', 'big.txt']


@pytest.mark.django_db
def test_list_files_user_isolation(owner_id, other_owner_id, mock_s3, make_upload):
    """Test that listing only returns the owner's files."""
    upload_file(owner_id, [make_upload('mine.txt')])
    upload_file(other_owner_id, [make_upload('theirs.txt')])

    page = list_files(owner_id, FolderScope.root(), build_page_request())

    assert [item.name for item in page.items] == ['mine.txt']
    assert page.total == 1


def test_build_page_request_defaults():
    """Test defaults when nothing is given."""
    page = build_page_request()

    assert page.limit == 10
    assert page.offset == 0
    assert page.sort_field == 'created_at'
    assert page.ascending is False


@pytest.mark.parametrize(('limit', 'offset'), [
    ('abc', 'xyz'),
    ('0', '-3'),
    ('-5', None),
    ('', ''),
])
def test_build_page_request_invalid_numbers_fall_back(limit, offset):
    """Test that invalid numeric input falls back to defaults."""
    page = build_page_request(limit=limit, offset=offset)

    assert page.limit == 10
    assert page.offset == 0


def test_build_page_request_caps_limit(settings):
    """Test that huge limits are capped."""
    settings.FILES_MAX_PAGE_SIZE = 50

    assert build_page_request(limit='1000').limit == 50


def test_build_page_request_unknown_sort_field():
    """Test that unknown sort fields fall back to created_at."""
    page = build_page_request(sort_by='storage_path; drop', order='asc')

    assert page.sort_field == 'created_at'
    assert page.ascending is True


@pytest.mark.django_db
@pytest.mark.parametrize('query', ['', '   ', None])
def test_search_requires_query(owner_id, query):
    """Test that empty queries are rejected regardless of scope."""
    with pytest.raises(ValidationError, match='Search query is required'):
        search_files(owner_id, FolderScope.root(), query)

    with pytest.raises(ValidationError):
        search_files(owner_id, FolderScope.of(uuid.uuid4()), query)


@pytest.mark.django_db
def test_search_is_case_insensitive_and_newest_first(
    owner_id,
    mock_s3,
    make_upload,
):
    """Test substring match ignoring case, newest first."""
    older = upload_file(owner_id, [make_upload('Report-2023.pdf')])
    newer = upload_file(owner_id, [make_upload('annual report.pdf')])
    upload_file(owner_id, [make_upload('photo.jpg')])
    _age(older, 10)
    _age(newer, 1)

    results = search_files(owner_id, FolderScope.root(), 'REPORT')

    assert [record.name for record in results] == [
        'annual report.pdf',
        'Report-2023.pdf',
    ]


@pytest.mark.django_db
def test_search_treats_wildcards_literally(owner_id, mock_s3, make_upload):
    """Test that % and _ are not pattern characters."""
    upload_file(owner_id, [make_upload('plain.txt')])
    upload_file(owner_id, [make_upload('100%.txt')])

    results = search_files(owner_id, FolderScope.root(), '%')

    assert [record.name for record in results] == ['100%.txt']


@pytest.mark.django_db
def test_search_scoped_by_folder_and_owner(
    owner_id,
    other_owner_id,
    mock_s3,
    make_upload,
):
    """Test that search honours folder scope and owner."""
    docs = create_folder(owner_id, 'Docs')
    upload_file(owner_id, [make_upload('a.txt')], docs.id)
    upload_file(owner_id, [make_upload('a-root.txt')])
    upload_file(other_owner_id, [make_upload('a-other.txt')])

    in_docs = search_files(owner_id, FolderScope.of(docs.id), 'a')
    at_root = search_files(owner_id, FolderScope.root(), 'a')

    assert [record.name for record in in_docs] == ['a.txt']
    assert [record.name for record in at_root] == ['a-root.txt']


@pytest.mark.django_db
def test_get_download_link(owner_id, mock_s3, bucket_name, sample_file_content):
    """Test signed link with five minute validity."""
    record = upload_file(owner_id, [sample_file_content])

    url = get_download_link(owner_id, record.id)

    assert bucket_name in url
    assert record.storage_path in url
    assert 'X-Amz-Expires=300' in url


@pytest.mark.django_db
def test_get_download_link_other_owner(
    owner_id,
    other_owner_id,
    mock_s3,
    sample_file_content,
):
    """Test that another owner's file looks missing."""
    record = upload_file(owner_id, [sample_file_content])

    with pytest.raises(NotFoundError, match='File not found'):
        get_download_link(other_owner_id, record.id)


@pytest.mark.django_db
def test_get_download_link_signing_failure(
    owner_id,
    mock_s3,
    sample_file_content,
    monkeypatch,
    failing_blob_store,
):
    """Test that signing failures surface as store errors."""
    record = upload_file(owner_id, [sample_file_content])
    monkeypatch.setattr(file_operations, '_get_storage', lambda: failing_blob_store)

    with pytest.raises(UpstreamStoreError, match='signing failed'):
        get_download_link(owner_id, record.id)


@pytest.mark.django_db
def test_delete_file_twice(owner_id, mock_s3, bucket_keys, sample_file_content):
    """Test that the second delete reports not found."""
    record = upload_file(owner_id, [sample_file_content])

    delete_file(owner_id, record.id)

    assert bucket_keys() == []
    assert not File.objects.filter(id=record.id).exists()

    with pytest.raises(NotFoundError):
        delete_file(owner_id, record.id)


@pytest.mark.django_db
def test_delete_file_other_owner(
    owner_id,
    other_owner_id,
    mock_s3,
    bucket_keys,
    sample_file_content,
):
    """Test that deleting another owner's file is refused."""
    record = upload_file(owner_id, [sample_file_content])

    with pytest.raises(NotFoundError):
        delete_file(other_owner_id, record.id)

    assert bucket_keys() == [record.storage_path]
    assert File.objects.filter(id=record.id).exists()


@pytest.mark.django_db
def test_delete_file_keeps_record_when_blob_removal_fails(
    owner_id,
    mock_s3,
    sample_file_content,
    monkeypatch,
    failing_blob_store,
):
    """Test that metadata survives a failed blob removal."""
    record = upload_file(owner_id, [sample_file_content])
    monkeypatch.setattr(file_operations, '_get_storage', lambda: failing_blob_store)

    with pytest.raises(UpstreamStoreError, match='remove failed'):
        delete_file(owner_id, record.id)

    assert File.objects.filter(id=record.id).exists()
