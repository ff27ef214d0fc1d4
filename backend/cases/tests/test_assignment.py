"""
Integration tests — staff assignment.

Endpoint under test:  POST /api/cases/{id}/assign/   {"staff_id": <pk>}
"""

from __future__ import annotations

from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import AccountStatus, UserRole
from cases.models import Case, CaseStatus, CrimeType
from cases.services import CaseAssignmentService, CaseCreationService, CaseWorkflowService
from core.domain.exceptions import Conflict, PermissionDenied
from core.domain.transactions import lock_for_update
from core.models import Notification

User = get_user_model()


class TestCaseAssignment(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="assign_admin",
            password="Admin!Pass1",
            email="assign_admin@test.local",
            role=UserRole.ADMIN,
        )
        cls.supervisor = User.objects.create_user(
            username="assign_supervisor",
            password="Super!Pass1",
            email="assign_supervisor@test.local",
            role=UserRole.SUPERVISOR,
        )
        cls.citizen = User.objects.create_user(
            username="assign_citizen",
            password="Citizen!Pass1",
            email="assign_citizen@test.local",
        )
        cls.staff = User.objects.create_user(
            username="assign_staff",
            password="Staff!Pass1",
            email="assign_staff@test.local",
            first_name="Meera",
            last_name="Rao",
            role=UserRole.STAFF,
            department="Cyber Crimes",
            staff_id="STF-001",
        )
        cls.other_staff = User.objects.create_user(
            username="assign_staff2",
            password="Staff!Pass2",
            email="assign_staff2@test.local",
            role=UserRole.STAFF,
            department="Cyber Crimes",
            staff_id="STF-002",
        )
        cls.inactive_staff = User.objects.create_user(
            username="assign_inactive",
            password="Staff!Pass3",
            email="assign_inactive@test.local",
            role=UserRole.STAFF,
            status=AccountStatus.INACTIVE,
            department="Cyber Crimes",
            staff_id="STF-003",
        )

    def setUp(self):
        self.client = APIClient()
        self.case = CaseCreationService.file_complaint(
            self.citizen,
            {
                "title": "Phishing e-mail",
                "description": "I received an e-mail pretending to be my bank asking for my PIN.",
                "crime_type": CrimeType.CYBERCRIME,
                "latitude": 28.6139,
                "longitude": 77.209,
                "address": "Connaught Place, New Delhi, Delhi",
            },
        )

    def _url(self, case: Case) -> str:
        return f"/api/cases/{case.pk}/assign/"

    def test_admin_assigns_staff(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(self._url(self.case), {"staff_id": self.staff.pk}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.case.refresh_from_db()
        self.assertEqual(self.case.status, CaseStatus.ASSIGNED)
        self.assertEqual(self.case.assigned_staff, self.staff)
        self.assertIsNotNone(self.case.assignment_date)

        history = list(self.case.status_history.order_by("timestamp", "id"))
        self.assertEqual(len(history), 2)
        self.assertEqual(history[-1].status, CaseStatus.ASSIGNED)
        self.assertEqual(history[-1].note, "Assigned to Meera Rao (STF-001)")

    def test_assignee_is_notified(self):
        CaseAssignmentService.assign_staff(self.supervisor, self.case.pk, self.staff.pk)

        notification = Notification.objects.get(recipient=self.staff)
        self.assertEqual(notification.notification_type, "case_assigned")
        self.assertEqual(notification.data["case_number"], self.case.case_number)

    def test_assignment_forces_assigned_from_later_status(self):
        CaseAssignmentService.assign_staff(self.admin, self.case.pk, self.staff.pk)
        self.case.refresh_from_db()
        CaseWorkflowService.record_transition(
            self.case, CaseStatus.UNDER_INVESTIGATION, actor=self.staff
        )

        CaseAssignmentService.assign_staff(self.admin, self.case.pk, self.other_staff.pk)

        self.case.refresh_from_db()
        self.assertEqual(self.case.status, CaseStatus.ASSIGNED)
        self.assertEqual(self.case.assigned_staff, self.other_staff)
        self.assertEqual(self.case.status_history.count(), 4)

    def test_inactive_staff_is_rejected_without_mutation(self):
        with self.assertRaises(Conflict):
            CaseAssignmentService.assign_staff(self.admin, self.case.pk, self.inactive_staff.pk)

        self.case.refresh_from_db()
        self.assertIsNone(self.case.assigned_staff)
        self.assertEqual(self.case.status, CaseStatus.FILED)
        self.assertEqual(self.case.status_history.count(), 1)

    def test_non_staff_account_is_rejected(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(self._url(self.case), {"staff_id": self.citizen.pk}, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["kind"], "conflict")
        self.case.refresh_from_db()
        self.assertIsNone(self.case.assigned_staff)
        self.assertEqual(self.case.status_history.count(), 1)

    def test_unknown_staff_is_not_found(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(self._url(self.case), {"staff_id": 999999}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_terminal_case_cannot_be_assigned(self):
        CaseWorkflowService.record_transition(self.case, CaseStatus.REJECTED, actor=self.admin)

        with self.assertRaises(Conflict):
            CaseAssignmentService.assign_staff(self.admin, self.case.pk, self.staff.pk)

    def test_citizen_and_staff_cannot_assign(self):
        for user in (self.citizen, self.staff):
            with self.assertRaises(PermissionDenied):
                CaseAssignmentService.assign_staff(user, self.case.pk, self.staff.pk)

        self.client.force_authenticate(self.citizen)
        response = self.client.post(self._url(self.case), {"staff_id": self.staff.pk}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_row_is_locked_after_the_case(self):
        # deactivation locks the staff row, so assignment must wait on it too
        with mock.patch("cases.services.lock_for_update", wraps=lock_for_update) as locker:
            CaseAssignmentService.assign_staff(self.admin, self.case.pk, self.staff.pk)

        self.assertEqual(
            locker.call_args_list[:2],
            [
                mock.call(Case, self.case.pk, label="Case"),
                mock.call(User, self.staff.pk, label="Staff member"),
            ],
        )

    def test_assignment_sees_a_committed_deactivation(self):
        User.objects.filter(pk=self.staff.pk).update(status=AccountStatus.INACTIVE)

        with self.assertRaises(Conflict):
            CaseAssignmentService.assign_staff(self.admin, self.case.pk, self.staff.pk)

        self.case.refresh_from_db()
        self.assertIsNone(self.case.assigned_staff)
