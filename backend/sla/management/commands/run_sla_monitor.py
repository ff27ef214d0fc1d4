"""
Run the SLA scheduler in the foreground.

Sweeps once immediately, then every ``SLA_CHECK_INTERVAL_HOURS`` hours,
until interrupted.

Usage:
    python manage.py run_sla_monitor
"""

from django.conf import settings
from django.core.management.base import BaseCommand

from sla.scheduler import make_scheduler


class Command(BaseCommand):
    help = "Run the periodic SLA compliance sweep in the foreground"

    def handle(self, *args, **options):
        scheduler = make_scheduler(blocking=True)
        self.stdout.write(
            self.style.SUCCESS(
                f"SLA monitor running every {settings.SLA_CHECK_INTERVAL_HOURS} hour(s). "
                "Press Ctrl+C to stop."
            )
        )
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            self.stdout.write(self.style.WARNING("SLA monitor stopped"))
