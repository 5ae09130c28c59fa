"""
Management command to finish graduations whose belt change was never applied.
- Approved (or pending) graduations with student_updated=False are re-approved
- Already applied belt changes are left alone
"""
from django.core.management.base import BaseCommand

from graduations.models import Graduation
from graduations.services import reconcile_pending_graduations


class Command(BaseCommand):
    help = 'Re-apply pending belt changes for graduations that did not reach the student record'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the graduations that would be reconciled without changing them',
        )

    def handle(self, *args, **options):
        if options['dry_run']:
            pending = Graduation.objects.pending_cascade().select_related('student')
            count = pending.count()
            self.stdout.write(f'[DRY RUN] Found {count} graduation(s) awaiting a belt update')
            for graduation in pending:
                self.stdout.write(f'  {graduation.pk}: {graduation}')
            return

        summary = reconcile_pending_graduations()
        self.stdout.write(
            self.style.SUCCESS(
                f"Checked {summary['checked']}, repaired {summary['repaired']}, "
                f"failed {summary['failed']}"
            )
        )
