"""Reconciliation of the blob store against the metadata store.

Uploads and deletes are two-step writes without a shared transaction, so
a failure between the steps leaves either a blob without a row (failed
insert whose rollback also failed) or a row without a blob (failed row
delete after the blob was removed). This module finds and repairs both.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from django.core.files.storage import default_storage
from django.utils import timezone

from server.apps.files.infrastructure.metadata import extract_owner_id
from server.apps.files.infrastructure.repository import (
    DjangoMetadataStore,
    FileRecord,
    MetadataStore,
)
from server.apps.files.infrastructure.storage import BlobStore

logger = logging.getLogger(__name__)


def _get_storage() -> BlobStore:
    return default_storage  # type: ignore[return-value]


def _get_metadata_store() -> MetadataStore:
    return DjangoMetadataStore()


@dataclass(slots=True)
class ReconciliationReport:
    """Inconsistencies found between the two stores."""

    orphaned_blobs: list[str] = field(default_factory=list)
    dangling_records: list[FileRecord] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        """Whether both stores agree."""
        return not self.orphaned_blobs and not self.dangling_records

    def orphans_by_owner(self) -> dict[str, list[str]]:
        """Group orphaned blob paths by the owner prefix of their path."""
        grouped: dict[str, list[str]] = {}
        for path in self.orphaned_blobs:
            grouped.setdefault(extract_owner_id(path), []).append(path)
        return grouped


def find_inconsistencies(
    owner_id: str | None = None,
    min_age: timedelta = timedelta(hours=1),
    now: datetime | None = None,
) -> ReconciliationReport:
    """Compare blob paths with metadata rows.

    Blobs younger than ``min_age`` are skipped: an upload writes the blob
    before its row, so a fresh blob may simply be mid-upload.

    Args:
        owner_id: Restrict the check to one owner.
        min_age: Grace period for unreferenced blobs.
        now: Reference time (defaults to the current time).

    Returns:
        ReconciliationReport listing both kinds of orphans.
    """
    storage = _get_storage()
    metadata = _get_metadata_store()
    cutoff = (now or timezone.now()) - min_age
    prefix = f'{owner_id}/' if owner_id else ''

    records = {
        record.storage_path: record
        for record in metadata.iter_files(owner_id)
    }
    report = ReconciliationReport()
    seen: set[str] = set()

    for path, last_modified in storage.list_blobs(prefix):
        seen.add(path)
        if path not in records and last_modified <= cutoff:
            report.orphaned_blobs.append(path)

    report.dangling_records.extend(
        record
        for path, record in records.items()
        if path not in seen
    )

    logger.info(
        'Reconciliation found %d orphaned blobs and %d dangling records',
        len(report.orphaned_blobs),
        len(report.dangling_records),
    )
    return report


def repair(report: ReconciliationReport) -> tuple[int, int]:
    """Delete orphaned blobs and rows whose blob is gone.

    Each item is handled independently; failures are logged and counted
    as not repaired.

    Args:
        report: Result of ``find_inconsistencies``.

    Returns:
        Number of blobs removed and number of rows removed.
    """
    storage = _get_storage()
    metadata = _get_metadata_store()
    removed_blobs = 0
    removed_records = 0

    for path in report.orphaned_blobs:
        try:
            storage.remove(path)
        except Exception:
            logger.exception('Failed to remove orphaned blob: %s', path)
            continue
        removed_blobs += 1
        logger.info('Removed orphaned blob: %s', path)

    for record in report.dangling_records:
        try:
            removed_records += metadata.delete_file(record.owner_id, record.id)
        except Exception:
            logger.exception('Failed to remove dangling record: %s', record.id)
            continue
        logger.info(
            'Removed dangling record: %s (ID: %s)',
            record.storage_path,
            record.id,
        )

    return removed_blobs, removed_records
