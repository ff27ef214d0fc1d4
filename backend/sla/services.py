"""
SLA app Service Layer.

- ``SLAComplianceService``  — evaluate a case against the threshold
  table, run the periodic compliance sweep, and answer the read-only
  SLA queries (statistics, overdue list, single-case status).

Dwell time is measured from the timestamp of the case's latest status
history entry, so every recorded transition restarts the clock.  The
sweep both raises and clears the ``is_overdue`` flag:

* monitored case, elapsed > threshold  → flagged with ``overdue_by_hours``
* monitored case, elapsed ≤ threshold  → flag cleared
* flagged case outside the monitored set → flag cleared

Each flag write is conditional on the status read at the start of the
evaluation; if a transition landed in between, the transition wins and
the case is picked up again on the next sweep.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Any

from django.db.models import OuterRef, QuerySet, Subquery
from django.utils import timezone

from cases.models import Case, CaseStatusHistory
from cases.workflow import RESOLVED_STATUSES, TERMINAL_STATUSES
from core.domain.access import Capability, require_capability
from core.domain.exceptions import NotFound
from core.domain.notifications import NotificationService

from .thresholds import MONITORED_STATUSES, threshold_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SLAEvaluation:
    status: str
    status_since: datetime.datetime
    hours_elapsed: float
    threshold_hours: int
    is_overdue: bool
    overdue_by_hours: float


@dataclass
class SweepSummary:
    checked: int = 0
    overdue: int = 0
    cleared: int = 0
    errors: int = 0
    newly_overdue: list[str] = field(default_factory=list)
    evaluations: list[tuple[str, SLAEvaluation]] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "checked": self.checked,
            "overdue": self.overdue,
            "cleared": self.cleared,
            "errors": self.errors,
            "newly_overdue": list(self.newly_overdue),
        }


def with_status_since(queryset: QuerySet) -> QuerySet:
    """Annotate each case with ``status_since``, its latest history timestamp."""
    latest = CaseStatusHistory.objects.filter(case=OuterRef("pk")).order_by(
        "-timestamp", "-id"
    )
    return queryset.annotate(status_since=Subquery(latest.values("timestamp")[:1]))


class SLAComplianceService:

    # ────────────────────────────────────────────────────────────────
    # Evaluation
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def status_started_at(case: Case) -> datetime.datetime:
        started_at = getattr(case, "status_since", None)
        if started_at is not None:
            return started_at
        entry = (
            CaseStatusHistory.objects.filter(case=case)
            .order_by("-timestamp", "-id")
            .values_list("timestamp", flat=True)
            .first()
        )
        return entry or case.created_at

    @staticmethod
    def evaluate(case: Case, now: datetime.datetime | None = None) -> SLAEvaluation | None:
        """
        Evaluate one case against the threshold table.

        Parameters
        ----------
        case : Case
            The case; a ``status_since`` annotation (see
            ``with_status_since``) saves one query.
        now : datetime, optional
            Reference time, defaults to ``timezone.now()``.

        Returns
        -------
        SLAEvaluation or None
            ``None`` when the case's status is not monitored.
        """
        threshold = threshold_for(case.status)
        if threshold is None:
            return None

        now = now or timezone.now()
        started_at = SLAComplianceService.status_started_at(case)
        elapsed = (now - started_at).total_seconds() / 3600
        is_overdue = elapsed > threshold
        return SLAEvaluation(
            status=case.status,
            status_since=started_at,
            hours_elapsed=round(elapsed, 2),
            threshold_hours=threshold,
            is_overdue=is_overdue,
            overdue_by_hours=round(max(0.0, elapsed - threshold), 2),
        )

    # ────────────────────────────────────────────────────────────────
    # Sweep
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def run_sweep(
        now: datetime.datetime | None = None,
        *,
        dry_run: bool = False,
        notify: bool = True,
    ) -> SweepSummary:
        """
        Check every monitored case and persist the overdue flags.

        Never raises: failures on a single case are counted and logged,
        and a failure of the sweep itself is logged and reported in
        ``errors``.  The next scheduled run is the recovery path.

        Parameters
        ----------
        now : datetime, optional
            Reference time, defaults to ``timezone.now()``.
        dry_run : bool
            Evaluate only; write nothing and send no notifications.
        notify : bool
            Alert the assigned staff member when a case first turns overdue.

        Returns
        -------
        SweepSummary
        """
        now = now or timezone.now()
        summary = SweepSummary()

        try:
            cases = with_status_since(
                Case.objects.filter(status__in=MONITORED_STATUSES).select_related(
                    "assigned_staff"
                )
            )
            for case in list(cases):
                try:
                    SLAComplianceService._sweep_case(case, now, summary, dry_run, notify)
                except Exception:
                    summary.errors += 1
                    logger.exception("SLA check failed for case %s", case.case_number)

            stale = Case.objects.filter(is_overdue=True).exclude(
                status__in=MONITORED_STATUSES
            )
            if dry_run:
                summary.cleared += stale.count()
            else:
                summary.cleared += stale.update(
                    is_overdue=False,
                    overdue_by_hours=0,
                    last_sla_check=now,
                )
        except Exception:
            summary.errors += 1
            logger.exception("SLA sweep failed")

        logger.info(
            "SLA sweep complete: checked=%d overdue=%d cleared=%d errors=%d",
            summary.checked,
            summary.overdue,
            summary.cleared,
            summary.errors,
        )
        return summary

    @staticmethod
    def _sweep_case(
        case: Case,
        now: datetime.datetime,
        summary: SweepSummary,
        dry_run: bool,
        notify: bool,
    ) -> None:
        evaluation = SLAComplianceService.evaluate(case, now)
        if evaluation is None:
            return
        summary.checked += 1
        summary.evaluations.append((case.case_number, evaluation))

        if not dry_run:
            updated = Case.objects.filter(pk=case.pk, status=evaluation.status).update(
                is_overdue=evaluation.is_overdue,
                overdue_by_hours=evaluation.overdue_by_hours,
                last_sla_check=now,
            )
            if not updated:
                logger.debug("Case %s changed status during the sweep", case.case_number)
                return

        was_overdue = case.is_overdue
        if evaluation.is_overdue:
            summary.overdue += 1
            if not was_overdue:
                summary.newly_overdue.append(case.case_number)
        elif was_overdue:
            summary.cleared += 1

        if dry_run:
            return

        if evaluation.is_overdue and not was_overdue:
            logger.warning(
                "Case %s is overdue by %.2f hour(s) in status %s",
                case.case_number,
                evaluation.overdue_by_hours,
                evaluation.status,
            )
            if notify:
                NotificationService.create(
                    actor=None,
                    recipients=case.assigned_staff,
                    event_type="sla_overdue",
                    payload={
                        "case_number": case.case_number,
                        "status": evaluation.status,
                        "overdue_by_hours": evaluation.overdue_by_hours,
                    },
                    related_object=case,
                )

    # ────────────────────────────────────────────────────────────────
    # Queries
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def get_statistics() -> dict[str, Any]:
        """
        Compliance snapshot over the active (non-terminal) cases.

        ``compliance_rate`` is 100.0 when there are no active cases.
        """
        active = Case.objects.exclude(status__in=TERMINAL_STATUSES)
        total_active = active.count()
        overdue_count = active.filter(is_overdue=True).count()
        on_time_count = total_active - overdue_count
        compliance_rate = (
            round(on_time_count / total_active * 100, 2) if total_active else 100.0
        )

        durations = [
            (completed_at - created_at).total_seconds() / 86400
            for created_at, completed_at in Case.objects.filter(
                status__in=RESOLVED_STATUSES,
                completed_at__isnull=False,
            ).values_list("created_at", "completed_at")
        ]
        avg_resolution_days = round(sum(durations) / len(durations), 2) if durations else 0.0

        return {
            "total_active": total_active,
            "overdue_count": overdue_count,
            "on_time_count": on_time_count,
            "compliance_rate": compliance_rate,
            "avg_resolution_days": avg_resolution_days,
        }

    @staticmethod
    def get_overdue_cases() -> QuerySet:
        return with_status_since(
            Case.objects.filter(is_overdue=True).select_related("reporter", "assigned_staff")
        ).order_by("-overdue_by_hours", "-id")

    @staticmethod
    def get_case_status(requesting_user: Any, case_id: int) -> Case:
        require_capability(requesting_user, None, Capability.VIEW_SLA)
        try:
            case = with_status_since(
                Case.objects.select_related("reporter", "assigned_staff")
            ).get(pk=case_id)
        except (Case.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Case with id {case_id} not found.")
        return case
