"""
Core app services — **Service Layer**.

Cross-app aggregation: analytics, reports, the role-aware dashboard,
public statistics, system constants and the notification inbox.
Every query here is read-only except the inbox's read/delete
operations.

╔══════════════════════════════════════════════════════════════════════╗
║  CROSS-APP IMPORTS                                                 ║
║                                                                    ║
║  core is imported by every other app (models, domain helpers), so  ║
║  it never imports their models at module level.  Resolve them      ║
║  inside the method:                                                ║
║                                                                    ║
║      Case = apps.get_model("cases", "Case")                        ║
║      from cases.models import CaseStatus                           ║
╚══════════════════════════════════════════════════════════════════════╝
"""

from __future__ import annotations

import datetime
import logging
from collections import Counter, defaultdict
from typing import TYPE_CHECKING, Any

from django.apps import apps
from django.db.models import Count, Q, QuerySet
from django.db.models.functions import ExtractMonth, ExtractYear
from django.utils import timezone

from core import constants
from core.domain.access import Capability, require_capability, scope_cases
from core.domain.notifications import NotificationStore, get_notification_store

if TYPE_CHECKING:
    from accounts.models import User

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════════
#  Shared aggregation helpers
# ════════════════════════════════════════════════════════════════════

def _case_model():
    return apps.get_model("cases", "Case")


def _resolved_statuses() -> frozenset[str]:
    from cases.workflow import RESOLVED_STATUSES

    return RESOLVED_STATUSES


def _terminal_statuses() -> frozenset[str]:
    from cases.workflow import TERMINAL_STATUSES

    return TERMINAL_STATUSES


def _choices_to_list(choices_class: type) -> list[dict[str, str]]:
    """``TextChoices`` → ``[{"value": ..., "label": ...}]``."""
    return [
        {"value": str(value), "label": str(label)}
        for value, label in choices_class.choices
    ]


def _distribution(
    case_qs: QuerySet,
    field: str,
    choices_class: type,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """Group ``case_qs`` by ``field``; largest groups first."""
    labels = dict(choices_class.choices)
    rows = (
        case_qs.order_by()
        .values(field)
        .annotate(count=Count("id"))
        .order_by("-count", field)
    )
    if limit is not None:
        rows = rows[:limit]
    return [
        {
            "value": row[field],
            "label": labels.get(row[field], row[field]),
            "count": row["count"],
        }
        for row in rows
    ]


def _monthly_counts(case_qs: QuerySet, *, newest_first: bool = False) -> list[dict[str, int]]:
    """Case counts per calendar (year, month) of ``created_at``."""
    rows = (
        case_qs.order_by()
        .annotate(year=ExtractYear("created_at"), month=ExtractMonth("created_at"))
        .values("year", "month")
        .annotate(count=Count("id"))
    )
    ordering = ("-year", "-month") if newest_first else ("year", "month")
    return [
        {"year": row["year"], "month": row["month"], "count": row["count"]}
        for row in rows.order_by(*ordering)
    ]


def _months_ago_start(months: int) -> datetime.datetime:
    """Aware start of the calendar month ``months - 1`` months before this one."""
    today = timezone.localdate()
    year, month = today.year, today.month - (months - 1)
    while month <= 0:
        month += 12
        year -= 1
    return timezone.make_aware(datetime.datetime(year, month, 1))


def _resolution_days(case_qs: QuerySet) -> list[float]:
    """Days from creation to completion for every resolved case in ``case_qs``."""
    pairs = case_qs.filter(
        status__in=_resolved_statuses(),
        completed_at__isnull=False,
    ).values_list("created_at", "completed_at")
    return [(completed - created).total_seconds() / 86400 for created, completed in pairs]


def _resolution_stats(case_qs: QuerySet) -> dict[str, Any]:
    days = _resolution_days(case_qs)
    if not days:
        return {"resolved_count": 0, "avg_days": 0.0, "min_days": 0.0, "max_days": 0.0}
    return {
        "resolved_count": len(days),
        "avg_days": round(sum(days) / len(days), 2),
        "min_days": round(min(days), 2),
        "max_days": round(max(days), 2),
    }


def _completion_rate(completed: int, total: int) -> float:
    return round(completed / total * 100, 2) if total else 0.0


def _date_range(
    start: datetime.date | None,
    end: datetime.date | None,
    *,
    default_days: int,
) -> tuple[datetime.datetime, datetime.datetime]:
    """
    Whole-day aware ``[start, end)`` bounds; ``end`` is inclusive as a date.

    Missing bounds default to the ``default_days`` ending today.
    """
    end = end or timezone.localdate()
    start = start or end - datetime.timedelta(days=default_days)
    return (
        timezone.make_aware(datetime.datetime.combine(start, datetime.time.min)),
        timezone.make_aware(
            datetime.datetime.combine(end + datetime.timedelta(days=1), datetime.time.min)
        ),
    )


def _basic_counts(case_qs: QuerySet) -> dict[str, int]:
    from cases.models import CaseStatus

    return case_qs.aggregate(
        total_cases=Count("id"),
        resolved_cases=Count("id", filter=Q(status__in=_resolved_statuses())),
        pending_cases=Count("id", filter=Q(status=CaseStatus.FILED)),
        in_progress_cases=Count("id", filter=Q(status=CaseStatus.UNDER_INVESTIGATION)),
    )


def _staff_performance(case_qs: QuerySet) -> list[dict[str, Any]]:
    """Per-assignee totals, completion rate and average resolution days."""
    User = apps.get_model("accounts", "User")
    resolved = _resolved_statuses()

    rows = (
        case_qs.filter(assigned_staff__isnull=False)
        .order_by()
        .values("assigned_staff")
        .annotate(
            total_cases=Count("id"),
            completed_cases=Count("id", filter=Q(status__in=resolved)),
        )
    )
    staff = User.objects.in_bulk([row["assigned_staff"] for row in rows])

    durations: dict[int, list[float]] = defaultdict(list)
    for staff_pk, created, completed in case_qs.filter(
        assigned_staff__isnull=False,
        status__in=resolved,
        completed_at__isnull=False,
    ).values_list("assigned_staff", "created_at", "completed_at"):
        durations[staff_pk].append((completed - created).total_seconds() / 86400)

    results = []
    for row in rows:
        member = staff.get(row["assigned_staff"])
        if member is None:
            continue
        days = durations.get(member.pk, [])
        results.append({
            "staff_pk": member.pk,
            "staff_name": member.display_name,
            "staff_id": member.staff_id,
            "department": member.department,
            "total_cases": row["total_cases"],
            "completed_cases": row["completed_cases"],
            "completion_rate": _completion_rate(row["completed_cases"], row["total_cases"]),
            "avg_resolution_days": round(sum(days) / len(days), 2) if days else 0.0,
        })
    results.sort(key=lambda item: (-item["completion_rate"], -item["total_cases"]))
    return results


def _department_performance(case_qs: QuerySet) -> list[dict[str, Any]]:
    rows = (
        case_qs.filter(assigned_staff__isnull=False)
        .order_by()
        .values("assigned_staff__department")
        .annotate(
            total_cases=Count("id"),
            completed_cases=Count("id", filter=Q(status__in=_resolved_statuses())),
        )
    )
    results = [
        {
            "department": row["assigned_staff__department"] or "Unassigned",
            "total_cases": row["total_cases"],
            "completed_cases": row["completed_cases"],
            "completion_rate": _completion_rate(row["completed_cases"], row["total_cases"]),
        }
        for row in rows
    ]
    results.sort(key=lambda item: (-item["completion_rate"], -item["total_cases"]))
    return results


def _recent_cases(case_qs: QuerySet, limit: int = constants.RECENT_CASES_LIMIT) -> list[dict[str, Any]]:
    return [
        {
            "id": case.pk,
            "case_number": case.case_number,
            "title": case.title,
            "status": case.status,
            "priority": case.priority,
            "is_overdue": case.is_overdue,
            "created_at": case.created_at,
        }
        for case in case_qs.order_by("-created_at", "-id")[:limit]
    ]


# ════════════════════════════════════════════════════════════════════
#  Analytics
# ════════════════════════════════════════════════════════════════════

class CaseAnalyticsService:
    """Organisation-wide case analytics (admin, supervisor, staff)."""

    @staticmethod
    def dashboard(requesting_user: User) -> dict[str, Any]:
        """
        Return the analytics dashboard payload.

        Sections: ``overview`` (total / this month / this year),
        ``status_distribution``, ``crime_type_distribution`` (top 10),
        ``priority_distribution``, ``monthly_trend`` (last 12 calendar
        months) and ``resolution_stats`` (days, two decimals).
        """
        from cases.models import CaseStatus, CrimeType, Priority

        require_capability(requesting_user, None, Capability.VIEW_REPORTS)
        Case = _case_model()
        cases = Case.objects.all()

        now = timezone.localtime()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        year_start = month_start.replace(month=1)

        return {
            "overview": {
                "total_cases": cases.count(),
                "cases_this_month": cases.filter(created_at__gte=month_start).count(),
                "cases_this_year": cases.filter(created_at__gte=year_start).count(),
            },
            "status_distribution": _distribution(cases, "status", CaseStatus),
            "crime_type_distribution": _distribution(
                cases, "crime_type", CrimeType, limit=constants.TOP_CRIME_TYPES_LIMIT
            ),
            "priority_distribution": _distribution(cases, "priority", Priority),
            "monthly_trend": _monthly_counts(
                cases.filter(created_at__gte=_months_ago_start(constants.TREND_MONTHS))
            ),
            "resolution_stats": _resolution_stats(cases),
        }


class PerformanceAnalyticsService:

    @staticmethod
    def performance(
        requesting_user: User,
        start: datetime.date | None = None,
        end: datetime.date | None = None,
    ) -> dict[str, Any]:
        """Staff and department completion rates for cases created in the window."""
        require_capability(requesting_user, None, Capability.VIEW_PERFORMANCE)
        since, until = _date_range(
            start, end, default_days=constants.DEFAULT_PERFORMANCE_WINDOW_DAYS
        )
        cases = _case_model().objects.filter(created_at__gte=since, created_at__lt=until)
        return {
            "period": {"start": since, "end": until},
            "staff_performance": _staff_performance(cases),
            "department_performance": _department_performance(cases),
        }


class GeographicAnalyticsService:

    @staticmethod
    def geographic(requesting_user: User) -> dict[str, Any]:
        """
        Hotspots and per-city counts.

        Hotspots bucket coordinates by rounding to two decimals; the
        city is the second-to-last comma-separated address component.
        """
        require_capability(requesting_user, None, Capability.VIEW_PERFORMANCE)
        rows = _case_model().objects.values_list(
            "latitude", "longitude", "crime_type", "address"
        )

        buckets: Counter = Counter()
        bucket_types: dict[tuple[float, float], set[str]] = defaultdict(set)
        cities: Counter = Counter()
        for latitude, longitude, crime_type, address in rows:
            key = (
                round(latitude, constants.HOTSPOT_PRECISION),
                round(longitude, constants.HOTSPOT_PRECISION),
            )
            buckets[key] += 1
            bucket_types[key].add(crime_type)

            parts = (address or "").split(",")
            if len(parts) >= 2:
                city = parts[-2].strip()
                if city:
                    cities[city] += 1

        return {
            "hotspots": [
                {
                    "latitude": lat,
                    "longitude": lng,
                    "count": count,
                    "crime_types": sorted(bucket_types[(lat, lng)]),
                }
                for (lat, lng), count in buckets.most_common(constants.HOTSPOT_LIMIT)
            ],
            "city_stats": [
                {"city": city, "count": count}
                for city, count in cities.most_common(constants.CITY_STATS_LIMIT)
            ],
        }


# ════════════════════════════════════════════════════════════════════
#  Reports
# ════════════════════════════════════════════════════════════════════

class ReportGenerationService:

    @staticmethod
    def case_report(requesting_user: User, case_id: int, report_type: str) -> dict[str, Any]:
        """
        Build a report for one case.

        ``summary`` covers the case itself; ``detailed`` adds the status
        history and investigations; ``evidence`` additionally lists the
        evidence file inventory (metadata only).
        """
        from cases.services import CaseQueryService

        case = CaseQueryService.get_case(
            requesting_user, case_id, capability=Capability.VIEW_REPORTS
        )
        reporter = case.reporter
        staff = case.assigned_staff

        report: dict[str, Any] = {
            "case_id": case.pk,
            "case_number": case.case_number,
            "title": case.title,
            "description": case.description,
            "status": case.status,
            "priority": case.priority,
            "crime_type": case.crime_type,
            "created_at": case.created_at,
            "updated_at": case.updated_at,
            "completed_at": case.completed_at,
            "location": {
                "latitude": case.latitude,
                "longitude": case.longitude,
                "address": case.address,
            },
            "complainant": {
                "name": reporter.display_name if reporter and not case.is_anonymous else "Anonymous",
                "email": reporter.email if reporter and not case.is_anonymous else "N/A",
                "mobile": (reporter.mobile or "N/A") if reporter and not case.is_anonymous else "N/A",
            },
            "assigned_to": {
                "name": staff.display_name,
                "email": staff.email,
                "staff_id": staff.staff_id,
                "department": staff.department,
            } if staff else None,
        }

        if report_type in ("detailed", "evidence"):
            report["status_history"] = [
                {
                    "status": entry.status,
                    "timestamp": entry.timestamp,
                    "changed_by": entry.changed_by.display_name if entry.changed_by else None,
                    "note": entry.note,
                }
                for entry in case.status_history.select_related("changed_by")
            ]
            report["investigations"] = [
                {
                    "id": inv.pk,
                    "title": inv.title,
                    "investigation_type": inv.investigation_type,
                    "status_update": inv.status_update,
                    "hours_spent": inv.hours_spent,
                    "author": inv.author.display_name,
                    "created_at": inv.created_at,
                }
                for inv in case.investigations.select_related("author").order_by("created_at", "id")
            ]
        if report_type == "evidence":
            report["evidence_files"] = list(
                case.evidence_files.order_by("uploaded_at", "id").values(
                    "id",
                    "original_name",
                    "content_type",
                    "size",
                    "evidence_type",
                    "description",
                    "uploaded_at",
                )
            )

        return {
            "report_type": report_type,
            "report": report,
            "generated_at": timezone.now(),
            "generated_by": requesting_user.display_name,
        }

    @staticmethod
    def statistical_report(
        requesting_user: User,
        start: datetime.date,
        end: datetime.date,
        report_type: str,
    ) -> dict[str, Any]:
        """
        Aggregate statistics for cases created between ``start`` and
        ``end`` (inclusive dates).

        ``overview`` — counts and crime type / priority distributions.
        ``performance`` — overview plus staff performance.
        ``trends`` — monthly counts and monthly average resolution days.
        """
        from cases.models import CrimeType, Priority

        require_capability(requesting_user, None, Capability.VIEW_PERFORMANCE)
        since, until = _date_range(start, end, default_days=0)
        cases = _case_model().objects.filter(created_at__gte=since, created_at__lt=until)

        report: dict[str, Any] = {
            "report_type": report_type,
            "period": {"start": since, "end": until},
            "generated_at": timezone.now(),
            "generated_by": requesting_user.display_name,
        }

        if report_type in ("overview", "performance"):
            report["basic_stats"] = _basic_counts(cases)
            report["crime_type_distribution"] = _distribution(cases, "crime_type", CrimeType)
            report["priority_distribution"] = _distribution(cases, "priority", Priority)

        if report_type == "performance":
            report["staff_performance"] = _staff_performance(cases)

        if report_type == "trends":
            report["monthly_trends"] = _monthly_counts(cases)
            report["resolution_trends"] = ReportGenerationService._resolution_trends(cases)

        return report

    @staticmethod
    def _resolution_trends(case_qs: QuerySet) -> list[dict[str, Any]]:
        months: dict[tuple[int, int], list[float]] = defaultdict(list)
        for created, completed in case_qs.filter(
            status__in=_resolved_statuses(),
            completed_at__isnull=False,
        ).values_list("created_at", "completed_at"):
            local = timezone.localtime(created)
            months[(local.year, local.month)].append(
                (completed - created).total_seconds() / 86400
            )
        return [
            {
                "year": year,
                "month": month,
                "count": len(days),
                "avg_resolution_days": round(sum(days) / len(days), 2),
            }
            for (year, month), days in sorted(months.items())
        ]

    @staticmethod
    def templates(requesting_user: User) -> list[dict[str, Any]]:
        require_capability(requesting_user, None, Capability.VIEW_PERFORMANCE)
        return constants.REPORT_TEMPLATES


# ════════════════════════════════════════════════════════════════════
#  Dashboard Aggregation Service
# ════════════════════════════════════════════════════════════════════

class DashboardAggregationService:
    """
    Role-aware home dashboard for the authenticated user.

    - **citizen** — their own complaints by status, recent complaints.
    - **staff** — assigned case counts, priority breakdown, recent cases.
    - **admin / supervisor** — organisation totals, unassigned count,
      status distribution, recent cases, SLA compliance.

    Usage::

        service = DashboardAggregationService(user=request.user)
        data = service.get_stats()
    """

    def __init__(self, user: User) -> None:
        self.user = user

    def get_stats(self) -> dict[str, Any]:
        from accounts.models import UserRole

        case_qs = scope_cases(_case_model().objects.all(), self.user)
        role = self.user.role
        if self.user.is_superuser or role in (UserRole.ADMIN, UserRole.SUPERVISOR):
            section = self._organisation_stats(case_qs)
        elif role == UserRole.STAFF:
            section = self._staff_stats(case_qs)
        else:
            section = self._citizen_stats(case_qs)

        return {
            "role": role,
            "unread_notifications": get_notification_store().count(self.user, unread_only=True),
            **section,
        }

    # ── Private helpers ─────────────────────────────────────────────

    def _status_counts(self, case_qs: QuerySet) -> dict[str, int]:
        return {
            row["status"]: row["count"]
            for row in case_qs.order_by().values("status").annotate(count=Count("id"))
        }

    def _citizen_stats(self, case_qs: QuerySet) -> dict[str, Any]:
        return {
            "total_complaints": case_qs.count(),
            "by_status": self._status_counts(case_qs),
            "recent_cases": _recent_cases(case_qs),
        }

    def _staff_stats(self, case_qs: QuerySet) -> dict[str, Any]:
        terminal = _terminal_statuses()
        counts = case_qs.aggregate(
            total=Count("id"),
            active=Count("id", filter=~Q(status__in=terminal)),
            completed=Count("id", filter=Q(status__in=_resolved_statuses())),
            overdue=Count("id", filter=Q(is_overdue=True) & ~Q(status__in=terminal)),
        )
        active = case_qs.exclude(status__in=terminal)
        return {
            "assigned_cases": counts["total"],
            "active_cases": counts["active"],
            "completed_cases": counts["completed"],
            "overdue_cases": counts["overdue"],
            "by_priority": {
                row["priority"]: row["count"]
                for row in active.order_by().values("priority").annotate(count=Count("id"))
            },
            "recent_cases": _recent_cases(case_qs),
        }

    def _organisation_stats(self, case_qs: QuerySet) -> dict[str, Any]:
        from accounts.models import AccountStatus, UserRole
        from cases.models import CaseStatus
        from sla.services import SLAComplianceService

        User = apps.get_model("accounts", "User")
        terminal = _terminal_statuses()
        counts = case_qs.aggregate(
            total=Count("id"),
            active=Count("id", filter=~Q(status__in=terminal)),
            resolved=Count("id", filter=Q(status__in=_resolved_statuses())),
            unassigned=Count("id", filter=Q(assigned_staff__isnull=True) & ~Q(status__in=terminal)),
        )
        return {
            "total_cases": counts["total"],
            "active_cases": counts["active"],
            "resolved_cases": counts["resolved"],
            "unassigned_cases": counts["unassigned"],
            "active_staff": User.objects.filter(
                role=UserRole.STAFF, status=AccountStatus.ACTIVE
            ).count(),
            "status_distribution": _distribution(case_qs, "status", CaseStatus),
            "recent_cases": _recent_cases(case_qs),
            "sla": SLAComplianceService.get_statistics(),
        }


# ════════════════════════════════════════════════════════════════════
#  Public information
# ════════════════════════════════════════════════════════════════════

class PublicInformationService:
    """Anonymous-safe statistics and static guidance."""

    @staticmethod
    def stats() -> dict[str, Any]:
        from cases.models import CrimeType

        cases = _case_model().objects.all()
        return {
            "overview": _basic_counts(cases),
            "crime_type_stats": _distribution(
                cases, "crime_type", CrimeType, limit=constants.PUBLIC_TOP_CRIME_TYPES_LIMIT
            ),
            "monthly_stats": _monthly_counts(cases, newest_first=True)[:constants.TREND_MONTHS],
        }

    @staticmethod
    def prevention_tips() -> list[dict[str, Any]]:
        return constants.PREVENTION_TIPS

    @staticmethod
    def emergency_contacts() -> list[dict[str, Any]]:
        return constants.EMERGENCY_CONTACTS


# ════════════════════════════════════════════════════════════════════
#  System Constants Service
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Every choice enumeration a client needs to render forms and labels,
    plus the transition table and SLA thresholds.  Independent of the
    requesting user.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        from accounts.models import AccountStatus, UserRole
        from cases.models import CaseStatus, CrimeType, EvidenceType, Priority
        from cases.workflow import ALLOWED_TRANSITIONS
        from core.models import NotificationType
        from investigations.models import InvestigationType
        from sla.thresholds import SLA_THRESHOLD_HOURS

        return {
            "crime_types": _choices_to_list(CrimeType),
            "case_statuses": _choices_to_list(CaseStatus),
            "priorities": _choices_to_list(Priority),
            "evidence_types": _choices_to_list(EvidenceType),
            "investigation_types": _choices_to_list(InvestigationType),
            "user_roles": _choices_to_list(UserRole),
            "account_statuses": _choices_to_list(AccountStatus),
            "notification_types": _choices_to_list(NotificationType),
            "status_transitions": {
                str(status): sorted(str(s) for s in targets)
                for status, targets in ALLOWED_TRANSITIONS.items()
            },
            "sla_thresholds": {
                str(status): hours for status, hours in SLA_THRESHOLD_HOURS.items()
            },
        }


# ═══════════════════════════════════════════════════════════════════
#  Notification Inbox Service
# ═══════════════════════════════════════════════════════════════════

class NotificationInboxService:
    """
    The authenticated user's view of the notification store.

    The store is injectable; by default the configured one is used.
    """

    def __init__(self, user: User, store: NotificationStore | None = None) -> None:
        self.user = user
        self.store = store or get_notification_store()

    def list_notifications(
        self,
        *,
        unread_only: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        offset = (page - 1) * limit
        return {
            "count": self.store.count(self.user, unread_only=unread_only),
            "unread_count": self.store.count(self.user, unread_only=True),
            "page": page,
            "limit": limit,
            "results": self.store.query(
                self.user,
                unread_only=unread_only,
                limit=limit,
                offset=offset,
            ),
        }

    def counts(self) -> dict[str, int]:
        return {
            "total": self.store.count(self.user),
            "unread": self.store.count(self.user, unread_only=True),
        }

    def mark_as_read(self, notification_id: int):
        return self.store.mark_read(self.user, notification_id)

    def mark_all_as_read(self) -> int:
        updated = self.store.mark_all_read(self.user)
        logger.info("Marked %d notification(s) read for %s", updated, self.user)
        return updated

    def delete(self, notification_id: int) -> None:
        self.store.delete(self.user, notification_id)
