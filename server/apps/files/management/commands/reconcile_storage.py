"""Management command to reconcile blobs with metadata rows."""

import logging
from datetime import timedelta
from typing import Any, final, override

from django.conf import settings
from django.core.management.base import BaseCommand

from server.apps.files.logic.reconciliation import find_inconsistencies, repair

logger = logging.getLogger(__name__)


@final
class Command(BaseCommand):
    """Report (and optionally remove) orphaned blobs and dangling rows."""

    help = 'Find blobs without metadata and metadata without blobs'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--owner',
            type=str,
            default=None,
            help='Only check files of this owner id',
        )
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Delete orphaned blobs and dangling rows',
        )
        parser.add_argument(
            '--min-age-minutes',
            type=int,
            default=None,
            help=(
                'Ignore unreferenced blobs younger than this '
                '(default: RECONCILE_MIN_AGE_MINUTES)'
            ),
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the reconciliation command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        min_age_minutes = options['min_age_minutes']
        if min_age_minutes is None:
            min_age_minutes = settings.RECONCILE_MIN_AGE_MINUTES

        report = find_inconsistencies(
            owner_id=options['owner'],
            min_age=timedelta(minutes=min_age_minutes),
        )

        for owner_id, paths in report.orphans_by_owner().items():
            for path in paths:
                self.stdout.write(f'Orphaned blob: {path} (owner {owner_id})')
        for record in report.dangling_records:
            self.stdout.write(
                f'Dangling record: {record.id} ({record.storage_path})',
            )

        self.stdout.write(
            f'Found {len(report.orphaned_blobs)} orphaned blobs and '
            f'{len(report.dangling_records)} dangling records',
        )

        if not options['fix'] or report.is_consistent:
            return

        removed_blobs, removed_records = repair(report)
        failed = (
            len(report.orphaned_blobs) - removed_blobs
            + len(report.dangling_records) - removed_records
        )
        logger.info(
            'Reconciliation removed %d blobs and %d records, %d failed',
            removed_blobs,
            removed_records,
            failed,
        )
        self.stdout.write(
            self.style.SUCCESS(
                f'Removed {removed_blobs} blobs and {removed_records} '
                f'records, {failed} failed',
            ),
        )
