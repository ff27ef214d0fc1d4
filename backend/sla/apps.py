import os
import sys

from django.apps import AppConfig
from django.conf import settings


class SlaConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "sla"
    verbose_name = "SLA Monitoring"

    def ready(self):
        if not getattr(settings, "SLA_SCHEDULER_AUTOSTART", False):
            return

        command = sys.argv[1] if len(sys.argv) > 1 else ""
        via_manage = os.path.basename(sys.argv[0]) in ("manage.py", "django-admin")
        # migrate, shell, check_sla, run_sla_monitor ... never start it
        if via_manage and command != "runserver":
            return
        # runserver's autoreloader parent process
        if command == "runserver" and os.environ.get("RUN_MAIN") != "true":
            return

        from .scheduler import start_scheduler

        start_scheduler()
