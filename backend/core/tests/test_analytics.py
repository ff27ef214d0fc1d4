"""
Tests for analytics, reports and the role-aware dashboard.

Endpoints under test:
    GET  /api/core/analytics/{dashboard,performance,geographic}/
    POST /api/core/reports/{case-report,statistical-report}/
    GET  /api/core/reports/templates/
    GET  /api/core/dashboard/
    GET  /api/core/constants/
"""

from __future__ import annotations

import datetime

import pytest
from django.utils import timezone

from accounts.models import UserRole
from cases.models import Case, CaseStatus, CrimeType
from cases.services import CaseAssignmentService, CaseWorkflowService

pytestmark = pytest.mark.django_db


@pytest.fixture()
def people(create_user):
    return {
        "admin": create_user(username="an_admin", role=UserRole.ADMIN),
        "supervisor": create_user(username="an_super", role=UserRole.SUPERVISOR),
        "staff": create_user(
            username="an_staff",
            role=UserRole.STAFF,
            first_name="Arjun",
            last_name="Nair",
            department="Cyber Crimes",
            staff_id="STF-001",
        ),
        "citizen": create_user(username="an_citizen", first_name="Priya", last_name="Das"),
    }


@pytest.fixture()
def cases(people, create_case):
    citizen = people["citizen"]
    created = [
        create_case(reporter=citizen, crime_type=CrimeType.CYBERCRIME),
        create_case(reporter=citizen, crime_type=CrimeType.CYBERCRIME, latitude=12.97161),
        create_case(
            reporter=citizen,
            crime_type=CrimeType.FRAUD,
            latitude=28.6139,
            longitude=77.209,
            address="Karol Bagh, New Delhi, Delhi",
        ),
    ]
    completed = CaseAssignmentService.assign_staff(people["admin"], created[0].pk, people["staff"].pk)
    for target in (CaseStatus.UNDER_INVESTIGATION, CaseStatus.REPORT_SUBMITTED, CaseStatus.COMPLETED):
        CaseWorkflowService.record_transition(completed, target, actor=people["staff"])
    return created


class TestAnalyticsDashboard:

    def test_distributions_sum_to_total(self, api_client, people, cases):
        api_client.force_authenticate(people["supervisor"])

        response = api_client.get("/api/core/analytics/dashboard/")

        assert response.status_code == 200
        data = response.data
        total = data["overview"]["total_cases"]
        assert total == 3
        for key in ("status_distribution", "crime_type_distribution", "priority_distribution"):
            assert sum(item["count"] for item in data[key]) == total, key
        assert data["crime_type_distribution"][0] == {
            "value": CrimeType.CYBERCRIME,
            "label": "Cybercrime",
            "count": 2,
        }
        assert sum(item["count"] for item in data["monthly_trend"]) == total
        assert data["resolution_stats"]["resolved_count"] == 1

    def test_resolution_days(self, api_client, people, create_case):
        finished = timezone.now() - datetime.timedelta(days=1)
        for days in (2, 6):
            case = create_case(reporter=people["citizen"])
            Case.objects.filter(pk=case.pk).update(
                status=CaseStatus.COMPLETED,
                created_at=finished - datetime.timedelta(days=days),
                completed_at=finished,
            )
        create_case(reporter=people["citizen"])
        api_client.force_authenticate(people["supervisor"])

        stats = api_client.get("/api/core/analytics/dashboard/").data["resolution_stats"]

        assert stats == {"resolved_count": 2, "avg_days": 4.0, "min_days": 2.0, "max_days": 6.0}

    def test_monthly_trend_groups_by_calendar_month(self, api_client, people, create_case):
        today = timezone.localdate()
        last_month = today.replace(day=1) - datetime.timedelta(days=1)
        older = create_case(reporter=people["citizen"])
        Case.objects.filter(pk=older.pk).update(
            created_at=timezone.make_aware(
                datetime.datetime.combine(last_month, datetime.time(12))
            )
        )
        create_case(reporter=people["citizen"])
        create_case(reporter=people["citizen"])
        api_client.force_authenticate(people["supervisor"])

        trend = api_client.get("/api/core/analytics/dashboard/").data["monthly_trend"]

        assert trend == [
            {"year": last_month.year, "month": last_month.month, "count": 1},
            {"year": today.year, "month": today.month, "count": 2},
        ]

    def test_citizen_is_forbidden(self, api_client, people):
        api_client.force_authenticate(people["citizen"])
        response = api_client.get("/api/core/analytics/dashboard/")
        assert response.status_code == 403
        assert response.data["kind"] == "access_denied"


class TestPerformanceAndGeography:

    def test_staff_performance(self, api_client, people, cases):
        api_client.force_authenticate(people["admin"])

        response = api_client.get("/api/core/analytics/performance/")

        assert response.status_code == 200
        (row,) = response.data["staff_performance"]
        assert row["staff_id"] == "STF-001"
        assert row["staff_name"] == "Arjun Nair"
        assert row["total_cases"] == 1
        assert row["completed_cases"] == 1
        assert row["completion_rate"] == 100.0
        departments = {d["department"] for d in response.data["department_performance"]}
        assert departments == {"Cyber Crimes"}

    def test_invalid_date_range(self, api_client, people):
        api_client.force_authenticate(people["admin"])
        response = api_client.get(
            "/api/core/analytics/performance/",
            {"start_date": "2025-03-10", "end_date": "2025-03-01"},
        )
        assert response.status_code == 400

    def test_staff_cannot_see_performance(self, api_client, people):
        api_client.force_authenticate(people["staff"])
        assert api_client.get("/api/core/analytics/performance/").status_code == 403
        assert api_client.get("/api/core/analytics/geographic/").status_code == 403

    def test_hotspots_and_cities(self, api_client, people, cases):
        api_client.force_authenticate(people["supervisor"])

        response = api_client.get("/api/core/analytics/geographic/")

        assert response.status_code == 200
        top = response.data["hotspots"][0]
        assert (top["latitude"], top["longitude"], top["count"]) == (12.97, 77.59, 2)
        assert top["crime_types"] == [CrimeType.CYBERCRIME]
        cities = {row["city"]: row["count"] for row in response.data["city_stats"]}
        assert cities == {"Bengaluru": 2, "New Delhi": 1}


class TestReports:

    def test_detailed_case_report(self, api_client, people, cases):
        api_client.force_authenticate(people["staff"])

        response = api_client.post(
            "/api/core/reports/case-report/",
            {"case_id": cases[0].pk, "report_type": "detailed"},
            format="json",
        )

        assert response.status_code == 200, response.data
        report = response.data["report"]
        assert report["case_number"] == cases[0].case_number
        assert report["complainant"]["name"] == "Priya Das"
        assert report["assigned_to"]["staff_id"] == "STF-001"
        assert [h["status"] for h in report["status_history"]][-1] == CaseStatus.COMPLETED
        assert "evidence_files" not in report

    def test_anonymous_complainant_is_masked(self, api_client, people, create_case):
        case = create_case(reporter=people["citizen"], is_anonymous=True)
        api_client.force_authenticate(people["admin"])

        response = api_client.post(
            "/api/core/reports/case-report/",
            {"case_id": case.pk, "report_type": "evidence"},
            format="json",
        )

        assert response.data["report"]["complainant"] == {
            "name": "Anonymous",
            "email": "N/A",
            "mobile": "N/A",
        }
        assert response.data["report"]["evidence_files"] == []

    def test_staff_cannot_report_on_unassigned_case(self, api_client, people, cases):
        api_client.force_authenticate(people["staff"])
        response = api_client.post(
            "/api/core/reports/case-report/",
            {"case_id": cases[2].pk, "report_type": "summary"},
            format="json",
        )
        assert response.status_code == 403

    def test_statistical_report(self, api_client, people, cases):
        today = timezone.localdate().isoformat()
        api_client.force_authenticate(people["supervisor"])

        response = api_client.post(
            "/api/core/reports/statistical-report/",
            {"start_date": today, "end_date": today, "report_type": "performance"},
            format="json",
        )

        assert response.status_code == 200, response.data
        assert response.data["basic_stats"]["total_cases"] == 3
        assert response.data["basic_stats"]["resolved_cases"] == 1
        assert len(response.data["staff_performance"]) == 1

    def test_templates(self, api_client, people):
        api_client.force_authenticate(people["admin"])
        response = api_client.get("/api/core/reports/templates/")
        assert response.status_code == 200
        assert {t["id"] for t in response.data} >= {"case-summary", "monthly-overview"}


class TestHomeDashboard:

    def test_citizen_sees_own_complaints(self, api_client, people, cases):
        api_client.force_authenticate(people["citizen"])

        response = api_client.get("/api/core/dashboard/")

        assert response.status_code == 200
        assert response.data["role"] == UserRole.CITIZEN
        assert response.data["total_complaints"] == 3
        assert response.data["unread_notifications"] >= 1

    def test_staff_sees_assigned_cases(self, api_client, people, cases):
        api_client.force_authenticate(people["staff"])

        response = api_client.get("/api/core/dashboard/")

        assert response.data["assigned_cases"] == 1
        assert response.data["completed_cases"] == 1

    def test_admin_sees_organisation_and_sla(self, api_client, people, cases):
        api_client.force_authenticate(people["admin"])

        response = api_client.get("/api/core/dashboard/")

        assert response.data["total_cases"] == 3
        assert response.data["unassigned_cases"] == 2
        assert response.data["sla"]["total_active"] == 2


def test_system_constants(api_client, people):
    api_client.force_authenticate(people["citizen"])

    response = api_client.get("/api/core/constants/")

    assert response.status_code == 200
    assert {"value": "filed", "label": "Filed"} in response.data["case_statuses"]
    assert response.data["status_transitions"]["completed"] == []
    assert response.data["sla_thresholds"]["filed"] == 24
