"""
Integration tests — investigation reports.

Endpoints under test:
    GET/POST  /api/cases/{case_pk}/investigations/
    GET/PATCH/DELETE  /api/investigations/{id}/
    GET       /api/investigations/my-investigations/
    GET       /api/investigations/{id}/attachments/{attachment_pk}/download/
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import UserRole
from cases.models import CaseStatus, CrimeType
from cases.services import CaseAssignmentService, CaseCreationService
from core.models import Notification
from investigations.models import Investigation, InvestigationAttachment, InvestigationType

User = get_user_model()


class TestInvestigationReports(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="inv_admin",
            password="Admin!Pass1",
            email="inv_admin@test.local",
            role=UserRole.ADMIN,
        )
        cls.citizen = User.objects.create_user(
            username="inv_citizen",
            password="Citizen!Pass1",
            email="inv_citizen@test.local",
        )
        cls.staff = User.objects.create_user(
            username="inv_staff",
            password="Staff!Pass1",
            email="inv_staff@test.local",
            role=UserRole.STAFF,
            department="Fraud",
            staff_id="STF-001",
        )
        cls.other_staff = User.objects.create_user(
            username="inv_staff2",
            password="Staff!Pass2",
            email="inv_staff2@test.local",
            role=UserRole.STAFF,
            department="Fraud",
            staff_id="STF-002",
        )

    def setUp(self):
        self.client = APIClient()
        self.case = CaseCreationService.file_complaint(
            self.citizen,
            {
                "title": "Online shopping fraud",
                "description": "Paid for a phone on a marketplace website and never received it.",
                "crime_type": CrimeType.FRAUD,
                "latitude": 22.5726,
                "longitude": 88.3639,
                "address": "Park Street, Kolkata, West Bengal",
            },
        )
        self.case = CaseAssignmentService.assign_staff(self.admin, self.case.pk, self.staff.pk)
        self.url = f"/api/cases/{self.case.pk}/investigations/"

    def _payload(self, **overrides) -> dict:
        payload = {
            "title": "Initial call with victim",
            "notes": "Collected the seller's phone number and payment receipt.",
            "investigation_type": InvestigationType.INITIAL_ASSESSMENT,
            "hours_spent": 1.5,
            "witnesses": [{"name": "Ravi Kumar", "contact": "+919800000000"}],
        }
        payload.update(overrides)
        return payload

    def test_report_with_status_update_records_transition(self):
        self.client.force_authenticate(self.staff)
        response = self.client.post(
            self.url,
            self._payload(status_update=CaseStatus.UNDER_INVESTIGATION),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["case_number"], self.case.case_number)
        self.assertEqual(response.data["witnesses"][0]["name"], "Ravi Kumar")

        self.case.refresh_from_db()
        self.assertEqual(self.case.status, CaseStatus.UNDER_INVESTIGATION)
        latest = self.case.status_history.order_by("-timestamp", "-id").first()
        self.assertEqual(latest.status, CaseStatus.UNDER_INVESTIGATION)
        self.assertEqual(latest.note, "Investigation update: Initial call with victim")

    def test_report_without_status_update_leaves_history_alone(self):
        before = self.case.status_history.count()

        self.client.force_authenticate(self.staff)
        response = self.client.post(self.url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(self.case.status_history.count(), before)
        self.case.refresh_from_db()
        self.assertEqual(self.case.status, CaseStatus.ASSIGNED)

    def test_same_status_update_is_not_a_transition(self):
        before = self.case.status_history.count()

        self.client.force_authenticate(self.staff)
        self.client.post(self.url, self._payload(status_update=CaseStatus.ASSIGNED), format="json")

        self.assertEqual(self.case.status_history.count(), before)

    def test_illegal_status_update_writes_nothing(self):
        self.client.force_authenticate(self.staff)
        response = self.client.post(
            self.url,
            self._payload(status_update=CaseStatus.COMPLETED),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(Investigation.objects.exists())

    def test_unassigned_staff_is_forbidden(self):
        self.client.force_authenticate(self.other_staff)
        response = self.client.post(self.url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Investigation.objects.exists())

    def test_reporter_is_notified_and_can_read(self):
        self.client.force_authenticate(self.staff)
        investigation_id = self.client.post(self.url, self._payload(), format="json").data["id"]

        self.assertTrue(
            Notification.objects.filter(
                recipient=self.citizen, notification_type="investigation_update"
            ).exists()
        )

        self.client.force_authenticate(self.citizen)
        self.assertEqual(len(self.client.get(self.url).data), 1)
        response = self.client.get(f"/api/investigations/{investigation_id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_validation(self):
        self.client.force_authenticate(self.staff)
        response = self.client.post(
            self.url,
            self._payload(title="Hi", notes="short", witnesses=[{"contact": "x"}]),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        for field in ("title", "notes", "witnesses"):
            self.assertIn(field, response.data)

    def test_author_edits_and_deletes(self):
        self.client.force_authenticate(self.staff)
        investigation_id = self.client.post(self.url, self._payload(), format="json").data["id"]
        detail = f"/api/investigations/{investigation_id}/"

        response = self.client.patch(detail, {"hours_spent": 4}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["hours_spent"], 4.0)

        self.client.force_authenticate(self.other_staff)
        response = self.client.patch(detail, {"hours_spent": 9}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.staff)
        self.assertEqual(self.client.delete(detail).status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Investigation.objects.filter(pk=investigation_id).exists())

    def test_my_investigations(self):
        self.client.force_authenticate(self.staff)
        self.client.post(self.url, self._payload(), format="json")
        self.client.post(self.url, self._payload(title="Follow-up call"), format="json")

        response = self.client.get("/api/investigations/my-investigations/")
        self.assertEqual(response.data["count"], 2)

        self.client.force_authenticate(self.other_staff)
        response = self.client.get("/api/investigations/my-investigations/")
        self.assertEqual(response.data["count"], 0)

    def test_attachment_download(self):
        content = b"%PDF-1.4 statement of the victim"
        self.client.force_authenticate(self.staff)
        response = self.client.post(
            self.url,
            {
                "title": "Victim statement",
                "notes": "Signed statement attached as a PDF.",
                "investigation_type": InvestigationType.WITNESS_INTERVIEW,
                "attachments": [
                    SimpleUploadedFile("statement.pdf", content, content_type="application/pdf"),
                ],
                "attachment_descriptions": ["Signed statement"],
            },
            format="multipart",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        attachment = response.data["attachments"][0]
        self.assertEqual(attachment["description"], "Signed statement")

        download = self.client.get(
            f"/api/investigations/{response.data['id']}/attachments/{attachment['id']}/download/"
        )
        self.assertEqual(download.status_code, status.HTTP_200_OK)
        self.assertEqual(download.content, content)
        self.assertEqual(download["Content-Type"], "application/pdf")
        self.assertEqual(download["Content-Disposition"], 'inline; filename="statement.pdf"')

        InvestigationAttachment.objects.filter(pk=attachment["id"]).update(
            original_name="बयान.pdf"
        )
        download = self.client.get(
            f"/api/investigations/{response.data['id']}/attachments/{attachment['id']}/download/"
        )
        self.assertTrue(download["Content-Disposition"].startswith("inline; filename*=utf-8''"))
        self.assertTrue(download["Content-Disposition"].endswith(".pdf"))
