"""
Tests for SLA monitoring: evaluation, the compliance sweep, scheduler
wiring, the ``check_sla`` command and the ``/api/sla/`` endpoints.

Dwell time is driven by the latest status history timestamp, which the
tests backdate with a queryset ``update()``.
"""

from __future__ import annotations

import datetime
from io import StringIO
from unittest import mock

from apscheduler.triggers.interval import IntervalTrigger
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import UserRole
from cases.models import Case, CaseStatus, CaseStatusHistory, CrimeType
from cases.services import CaseAssignmentService, CaseCreationService, CaseWorkflowService
from core.models import Notification
from sla.scheduler import JOB_ID, make_scheduler
from sla.services import SLAComplianceService, SweepSummary, with_status_since
from sla.thresholds import MONITORED_STATUSES, SLA_THRESHOLD_HOURS, threshold_for

User = get_user_model()

_COMPLAINT = {
    "title": "Street light vandalised",
    "description": "The street lights on our lane were broken deliberately last night.",
    "crime_type": CrimeType.PROPERTY_CRIME,
    "latitude": 17.385,
    "longitude": 78.4867,
    "address": "Banjara Hills, Hyderabad, Telangana",
}


class _SLATestMixin:

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="sla_admin",
            password="Admin!Pass1",
            email="sla_admin@test.local",
            role=UserRole.ADMIN,
        )
        cls.citizen = User.objects.create_user(
            username="sla_citizen",
            password="Citizen!Pass1",
            email="sla_citizen@test.local",
        )
        cls.staff = User.objects.create_user(
            username="sla_staff",
            password="Staff!Pass1",
            email="sla_staff@test.local",
            role=UserRole.STAFF,
            department="Property Crimes",
            staff_id="STF-001",
        )
        cls.supervisor = User.objects.create_user(
            username="sla_supervisor",
            password="Super!Pass1",
            email="sla_supervisor@test.local",
            role=UserRole.SUPERVISOR,
        )

    def _case(self) -> Case:
        return CaseCreationService.file_complaint(self.citizen, dict(_COMPLAINT))

    def _backdate(self, case: Case, hours: float, now: datetime.datetime) -> None:
        CaseStatusHistory.objects.filter(case=case).update(
            timestamp=now - datetime.timedelta(hours=hours)
        )


class TestThresholds(TestCase):

    def test_monitored_statuses(self):
        self.assertEqual(
            MONITORED_STATUSES,
            {
                CaseStatus.FILED,
                CaseStatus.ASSIGNED,
                CaseStatus.UNDER_INVESTIGATION,
                CaseStatus.EVIDENCE_COLLECTED,
            },
        )
        self.assertEqual(threshold_for(CaseStatus.FILED), 24)
        self.assertEqual(threshold_for(CaseStatus.UNDER_INVESTIGATION), 168)
        self.assertIsNone(threshold_for(CaseStatus.COMPLETED))
        self.assertEqual(len(SLA_THRESHOLD_HOURS), 4)


class TestEvaluation(_SLATestMixin, TestCase):

    def test_overdue_after_threshold(self):
        now = timezone.now()
        case = self._case()
        self._backdate(case, 25, now)

        evaluation = SLAComplianceService.evaluate(case, now)

        self.assertTrue(evaluation.is_overdue)
        self.assertEqual(evaluation.threshold_hours, 24)
        self.assertAlmostEqual(evaluation.overdue_by_hours, 1.0, places=2)
        self.assertAlmostEqual(evaluation.hours_elapsed, 25.0, places=2)

    def test_not_overdue_before_threshold(self):
        now = timezone.now()
        case = self._case()
        self._backdate(case, 23, now)

        evaluation = SLAComplianceService.evaluate(case, now)

        self.assertFalse(evaluation.is_overdue)
        self.assertEqual(evaluation.overdue_by_hours, 0)

    def test_clock_restarts_on_transition(self):
        now = timezone.now()
        case = self._case()
        self._backdate(case, 30, now)
        CaseWorkflowService.record_transition(case, CaseStatus.ASSIGNED, actor=self.admin)

        evaluation = SLAComplianceService.evaluate(case)

        self.assertEqual(evaluation.status, CaseStatus.ASSIGNED)
        self.assertEqual(evaluation.threshold_hours, 72)
        self.assertFalse(evaluation.is_overdue)

    def test_annotation_matches_latest_history_entry(self):
        now = timezone.now()
        case = self._case()
        self._backdate(case, 10, now)

        annotated = with_status_since(Case.objects.filter(pk=case.pk)).get()
        latest = case.status_history.order_by("-timestamp", "-id").first()
        self.assertEqual(annotated.status_since, latest.timestamp)

    def test_unmonitored_status_is_not_evaluated(self):
        case = self._case()
        CaseWorkflowService.record_transition(case, CaseStatus.REJECTED, actor=self.admin)
        self.assertIsNone(SLAComplianceService.evaluate(case))


class TestSweep(_SLATestMixin, TestCase):

    def test_sweep_flags_overdue_case_and_notifies_staff(self):
        now = timezone.now()
        case = self._case()
        CaseAssignmentService.assign_staff(self.admin, case.pk, self.staff.pk)
        case.refresh_from_db()
        self._backdate(case, 80, now)

        summary = SLAComplianceService.run_sweep(now)

        case.refresh_from_db()
        self.assertTrue(case.is_overdue)
        self.assertAlmostEqual(case.overdue_by_hours, 8.0, places=2)
        self.assertEqual(case.last_sla_check, now)
        self.assertEqual(summary.checked, 1)
        self.assertEqual(summary.overdue, 1)
        self.assertEqual(summary.newly_overdue, [case.case_number])

        alert = Notification.objects.get(recipient=self.staff, notification_type="system_alert")
        self.assertEqual(alert.data["case_number"], case.case_number)

    def test_second_sweep_does_not_notify_again(self):
        now = timezone.now()
        case = self._case()
        CaseAssignmentService.assign_staff(self.admin, case.pk, self.staff.pk)
        case.refresh_from_db()
        self._backdate(case, 80, now)

        SLAComplianceService.run_sweep(now)
        summary = SLAComplianceService.run_sweep(now + datetime.timedelta(hours=1))

        self.assertEqual(summary.overdue, 1)
        self.assertEqual(summary.newly_overdue, [])
        self.assertEqual(
            Notification.objects.filter(recipient=self.staff, notification_type="system_alert").count(),
            1,
        )

    def test_flag_clears_when_no_longer_overdue(self):
        now = timezone.now()
        case = self._case()
        Case.objects.filter(pk=case.pk).update(is_overdue=True, overdue_by_hours=3)
        self._backdate(case, 2, now)

        summary = SLAComplianceService.run_sweep(now)

        case.refresh_from_db()
        self.assertFalse(case.is_overdue)
        self.assertEqual(case.overdue_by_hours, 0)
        self.assertEqual(summary.cleared, 1)

    def test_flag_clears_for_unmonitored_status(self):
        case = self._case()
        CaseAssignmentService.assign_staff(self.admin, case.pk, self.staff.pk)
        case.refresh_from_db()
        for target in (CaseStatus.UNDER_INVESTIGATION, CaseStatus.REPORT_SUBMITTED):
            CaseWorkflowService.record_transition(case, target, actor=self.staff)
        Case.objects.filter(pk=case.pk).update(is_overdue=True, overdue_by_hours=12)

        summary = SLAComplianceService.run_sweep()

        case.refresh_from_db()
        self.assertFalse(case.is_overdue)
        self.assertEqual(summary.checked, 0)
        self.assertEqual(summary.cleared, 1)

    def test_dry_run_writes_nothing(self):
        now = timezone.now()
        case = self._case()
        self._backdate(case, 48, now)

        summary = SLAComplianceService.run_sweep(now, dry_run=True)

        case.refresh_from_db()
        self.assertEqual(summary.overdue, 1)
        self.assertFalse(case.is_overdue)
        self.assertIsNone(case.last_sla_check)

    def test_concurrent_transition_wins(self):
        now = timezone.now()
        case = self._case()
        self._backdate(case, 48, now)
        stale = with_status_since(Case.objects.filter(pk=case.pk)).get()
        CaseAssignmentService.assign_staff(self.admin, case.pk, self.staff.pk)

        summary = SweepSummary()
        SLAComplianceService._sweep_case(stale, now, summary, False, True)

        case.refresh_from_db()
        self.assertEqual(case.status, CaseStatus.ASSIGNED)
        self.assertFalse(case.is_overdue)
        self.assertEqual(summary.overdue, 0)

    def test_sweep_never_raises(self):
        self._case()
        self._case()

        with mock.patch.object(
            SLAComplianceService, "evaluate", side_effect=RuntimeError("boom")
        ), self.assertLogs("sla.services", level="ERROR"):
            summary = SLAComplianceService.run_sweep()

        self.assertEqual(summary.errors, 2)
        self.assertEqual(summary.checked, 0)

    def test_sweep_survives_query_failure(self):
        with mock.patch(
            "sla.services.with_status_since", side_effect=RuntimeError("db down")
        ), self.assertLogs("sla.services", level="ERROR"):
            summary = SLAComplianceService.run_sweep()

        self.assertEqual(summary.errors, 1)


class TestStatistics(_SLATestMixin, TestCase):

    def test_full_compliance_without_active_cases(self):
        stats = SLAComplianceService.get_statistics()

        self.assertEqual(stats["total_active"], 0)
        self.assertEqual(stats["compliance_rate"], 100.0)
        self.assertEqual(stats["avg_resolution_days"], 0.0)

    def test_compliance_rate(self):
        first = self._case()
        self._case()
        Case.objects.filter(pk=first.pk).update(is_overdue=True, overdue_by_hours=4)

        stats = SLAComplianceService.get_statistics()

        self.assertEqual(stats["total_active"], 2)
        self.assertEqual(stats["overdue_count"], 1)
        self.assertEqual(stats["on_time_count"], 1)
        self.assertEqual(stats["compliance_rate"], 50.0)

    def test_overdue_cases_worst_first(self):
        first = self._case()
        second = self._case()
        Case.objects.filter(pk=first.pk).update(is_overdue=True, overdue_by_hours=2)
        Case.objects.filter(pk=second.pk).update(is_overdue=True, overdue_by_hours=9)

        numbers = [case.case_number for case in SLAComplianceService.get_overdue_cases()]
        self.assertEqual(numbers, [second.case_number, first.case_number])


class TestScheduler(TestCase):

    @override_settings(SLA_CHECK_INTERVAL_HOURS=2)
    def test_job_is_registered_with_configured_interval(self):
        scheduler = make_scheduler()

        job = scheduler.get_job(JOB_ID)

        self.assertIsNotNone(job)
        self.assertIsInstance(job.trigger, IntervalTrigger)
        self.assertEqual(job.trigger.interval, datetime.timedelta(hours=2))
        self.assertEqual(job.max_instances, 1)
        self.assertTrue(job.coalesce)
        self.assertFalse(scheduler.running)


class TestCheckSlaCommand(_SLATestMixin, TestCase):

    def test_dry_run_reports_without_writing(self):
        now = timezone.now()
        case = self._case()
        self._backdate(case, 30, now)
        out = StringIO()

        call_command("check_sla", "--dry-run", "--verbose", stdout=out)

        output = out.getvalue()
        self.assertIn("DRY RUN MODE", output)
        self.assertIn("=== SLA Check Summary ===", output)
        self.assertIn(case.case_number, output)
        self.assertIn("Overdue: 1", output)
        case.refresh_from_db()
        self.assertFalse(case.is_overdue)

    def test_run_flags_case(self):
        now = timezone.now()
        case = self._case()
        self._backdate(case, 30, now)

        call_command("check_sla", stdout=StringIO())

        case.refresh_from_db()
        self.assertTrue(case.is_overdue)


class TestSLAEndpoints(_SLATestMixin, TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_citizen_and_staff_are_forbidden(self):
        for user in (self.citizen, self.staff):
            self.client.force_authenticate(user)
            for url in ("/api/sla/statistics/", "/api/sla/overdue/"):
                response = self.client.get(url)
                self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, url)

    def test_supervisor_reads_statistics_and_overdue(self):
        case = self._case()
        Case.objects.filter(pk=case.pk).update(is_overdue=True, overdue_by_hours=1.5)

        self.client.force_authenticate(self.supervisor)
        response = self.client.get("/api/sla/statistics/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["overdue_count"], 1)

        response = self.client.get("/api/sla/overdue/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["case_number"], case.case_number)
        self.assertEqual(response.data["results"][0]["sla"]["threshold_hours"], 24)

    def test_case_status(self):
        case = self._case()
        self.client.force_authenticate(self.supervisor)

        response = self.client.get(f"/api/sla/cases/{case.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["sla"]["is_overdue"])

        response = self.client.get("/api/sla/cases/999999/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_only_admin_runs_sweep(self):
        self.client.force_authenticate(self.supervisor)
        self.assertEqual(
            self.client.post("/api/sla/sweep/").status_code,
            status.HTTP_403_FORBIDDEN,
        )

        self.client.force_authenticate(self.admin)
        response = self.client.post("/api/sla/sweep/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["errors"], 0)
