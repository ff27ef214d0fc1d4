"""
Run one SLA compliance sweep.

Usage:
    python manage.py check_sla
    python manage.py check_sla --dry-run
    python manage.py check_sla --verbose
"""

from django.core.management.base import BaseCommand
from django.utils import timezone

from sla.services import SLAComplianceService


class Command(BaseCommand):
    help = "Flag cases that exceeded their SLA threshold and clear stale flags"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Evaluate cases without writing flags or sending notifications",
        )
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Show the evaluation of every monitored case",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        verbose = options["verbose"]
        now = timezone.now()

        self.stdout.write(self.style.NOTICE(f"SLA check started at {now.isoformat()}"))
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE - No changes will be made"))

        summary = SLAComplianceService.run_sweep(now, dry_run=dry_run)

        if verbose:
            for case_number, evaluation in summary.evaluations:
                line = (
                    f"  {case_number}: {evaluation.status} for "
                    f"{evaluation.hours_elapsed}h (limit {evaluation.threshold_hours}h)"
                )
                if evaluation.is_overdue:
                    self.stdout.write(
                        self.style.WARNING(f"{line} - overdue by {evaluation.overdue_by_hours}h")
                    )
                else:
                    self.stdout.write(line)

        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS("=== SLA Check Summary ==="))
        self.stdout.write(f"  Checked: {summary.checked}")
        self.stdout.write(f"  Overdue: {summary.overdue}")
        self.stdout.write(f"  Newly overdue: {len(summary.newly_overdue)}")
        self.stdout.write(f"  Cleared: {summary.cleared}")
        if summary.errors:
            self.stdout.write(self.style.ERROR(f"  Errors: {summary.errors}"))
        else:
            self.stdout.write(f"  Errors: {summary.errors}")

        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN - No actual changes were made"))
