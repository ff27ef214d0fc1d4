"""
End-to-end flow over HTTP with real JWT logins:

    citizen registers → files a complaint with evidence →
    admin creates a staff member and assigns the case →
    staff logs in with their staff id, files investigation reports that
    move the case to completion → citizen follows along through
    notifications → analytics and public stats reflect the outcome.
"""

from __future__ import annotations

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient

from accounts.models import UserRole
from cases.models import CaseStatus, CrimeType
from investigations.models import InvestigationType

pytestmark = pytest.mark.django_db


def _login(identifier: str, password: str) -> APIClient:
    client = APIClient()
    response = client.post(
        "/api/accounts/auth/login/",
        {"identifier": identifier, "password": password},
        format="json",
    )
    assert response.status_code == 200, response.data
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
    return client


def test_complaint_lifecycle(create_user):
    create_user(username="chief", password="Chief!Pass1", role=UserRole.ADMIN)
    admin = _login("chief", "Chief!Pass1")

    # ── Citizen registers and files a complaint ─────────────────────
    anon = APIClient()
    response = anon.post(
        "/api/accounts/auth/register/",
        {
            "username": "rahul",
            "password": "Rahul!Pass1",
            "password_confirm": "Rahul!Pass1",
            "email": "rahul@example.com",
            "first_name": "Rahul",
            "last_name": "Verma",
        },
        format="json",
    )
    assert response.status_code == 201, response.data
    citizen = _login("rahul@example.com", "Rahul!Pass1")

    receipt = b"receipt-bytes-" * 32
    response = citizen.post(
        "/api/cases/",
        {
            "title": "UPI payment fraud",
            "description": "A caller posing as bank staff convinced me to approve a UPI collect request.",
            "crime_type": CrimeType.CYBERCRIME,
            "priority": "high",
            "latitude": "19.076",
            "longitude": "72.8777",
            "address": "Andheri West, Mumbai, Maharashtra",
            "evidence_files": [SimpleUploadedFile("receipt.txt", receipt, content_type="text/plain")],
        },
        format="multipart",
    )
    assert response.status_code == 201, response.data
    case_id = response.data["id"]
    case_number = response.data["case_number"]
    evidence_id = response.data["evidence_files"][0]["id"]

    # ── Admin creates a staff member and assigns the case ───────────
    response = admin.post(
        "/api/accounts/staff/",
        {
            "username": "inspector",
            "first_name": "Sunita",
            "last_name": "Patil",
            "email": "sunita@police.example",
            "password": "Inspect1",
            "mobile": "+919811122233",
            "department": "Cyber Crimes",
        },
        format="json",
    )
    assert response.status_code == 201, response.data
    staff_pk = response.data["id"]
    staff_id = response.data["staff_id"]

    response = admin.post(f"/api/cases/{case_id}/assign/", {"staff_id": staff_pk}, format="json")
    assert response.status_code == 200, response.data
    assert response.data["status"] == CaseStatus.ASSIGNED

    # ── Staff works the case ────────────────────────────────────────
    staff = _login(staff_id, "Inspect1")
    assert staff.get("/api/cases/").data["count"] == 1

    download = staff.get(f"/api/cases/{case_id}/evidence/{evidence_id}/download/")
    assert download.status_code == 200
    assert download.content == receipt

    steps = [
        (InvestigationType.INITIAL_ASSESSMENT, CaseStatus.UNDER_INVESTIGATION),
        (InvestigationType.EVIDENCE_COLLECTION, CaseStatus.EVIDENCE_COLLECTED),
        (InvestigationType.SUSPECT_INVESTIGATION, CaseStatus.SUSPECT_IDENTIFIED),
        (InvestigationType.FINAL_REPORT, CaseStatus.REPORT_SUBMITTED),
    ]
    for investigation_type, target in steps:
        response = staff.post(
            f"/api/cases/{case_id}/investigations/",
            {
                "title": f"Update: {target}",
                "notes": "Progress recorded after reviewing bank statements.",
                "investigation_type": investigation_type,
                "status_update": target,
                "hours_spent": 2,
            },
            format="json",
        )
        assert response.status_code == 201, response.data

    response = staff.patch(
        f"/api/cases/{case_id}/status/",
        {"status": CaseStatus.COMPLETED, "note": "Funds recovered"},
        format="json",
    )
    assert response.status_code == 200, response.data

    # ── The closed case cannot move again ───────────────────────────
    response = staff.patch(
        f"/api/cases/{case_id}/status/", {"status": CaseStatus.CLOSED}, format="json"
    )
    assert response.status_code == 409

    # ── Citizen sees the full history and notifications ─────────────
    history = citizen.get(f"/api/cases/{case_id}/history/").data
    assert [entry["status"] for entry in history] == [
        CaseStatus.FILED,
        CaseStatus.ASSIGNED,
        CaseStatus.UNDER_INVESTIGATION,
        CaseStatus.EVIDENCE_COLLECTED,
        CaseStatus.SUSPECT_IDENTIFIED,
        CaseStatus.REPORT_SUBMITTED,
        CaseStatus.COMPLETED,
    ]
    assert history[-1]["note"] == "Funds recovered"

    inbox = citizen.get("/api/core/notifications/", {"limit": 50}).data
    types = [n["notification_type"] for n in inbox["results"]]
    assert types[0] == "case_resolved"
    assert "investigation_update" in types
    assert all(n["data"].get("case_number") == case_number for n in inbox["results"])

    # ── Reporting reflects the resolution ───────────────────────────
    stats = admin.get("/api/sla/statistics/").data
    assert stats["total_active"] == 0
    assert stats["compliance_rate"] == 100.0

    performance = admin.get("/api/core/analytics/performance/").data
    assert performance["staff_performance"][0]["staff_id"] == staff_id
    assert performance["staff_performance"][0]["completion_rate"] == 100.0

    public = APIClient().get("/api/public/stats/").data
    assert public["overview"]["resolved_cases"] == 1

    # ── The staff member can now be deactivated ─────────────────────
    assert admin.delete(f"/api/accounts/staff/{staff_pk}/").status_code == 200
    response = APIClient().post(
        "/api/accounts/auth/login/",
        {"identifier": staff_id, "password": "Inspect1"},
        format="json",
    )
    assert response.status_code == 400
