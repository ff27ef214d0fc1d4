"""
Cases app Service Layer.

This module is the **single source of truth** for all business logic
in the ``cases`` app.  Views must remain thin: validate input via
serializers, call a service method, and return the result wrapped in
a DRF ``Response``.

Architecture
------------
- ``CaseNumberGenerator``     — ``CASE-YYYYMMDD-NNNN`` allocation.
- ``CaseCreationService``     — complaint filing and anonymous tips.
- ``CaseWorkflowService``     — the status transition recorder.
- ``CaseAssignmentService``   — assign / reassign a staff investigator.
- ``CaseQueryService``        — role-scoped, filtered case querysets.
- ``EvidenceService``         — binary evidence attach / read / edit.

Workflow Overview
-----------------
::

    filed ─→ assigned ─→ under_investigation ─→ evidence_collected
                 ↑  ↺          │        ↘            │
                 │             ↓         suspect_identified
                 └──── (any non-terminal) ──→ report_submitted
                                                     │
                                         completed / closed / rejected

Every legal edge is listed in ``cases.workflow.ALLOWED_TRANSITIONS``.
``record_transition`` is the only code path that changes
``Case.status``; it appends the history entry, clears the SLA flag and
notifies the reporter in one transaction.
"""

from __future__ import annotations

import datetime
import logging
import os
import secrets
from typing import Any, Iterable

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import UploadedFile
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from accounts.models import AccountStatus, UserRole
from core.domain.access import Capability, require_capability, scope_cases
from core.domain.exceptions import Conflict, InvalidTransition, NotFound, PermissionDenied
from core.domain.notifications import NotificationService
from core.domain.transactions import lock_for_update, retry_on_integrity_error

from .models import Case, CaseStatus, CaseStatusHistory, EvidenceFile, EvidenceType, Priority
from .workflow import ALLOWED_TRANSITIONS, RESOLVED_STATUSES, TERMINAL_STATUSES

User = get_user_model()
logger = logging.getLogger(__name__)

CASE_NUMBER_PREFIX = "CASE"


# ═══════════════════════════════════════════════════════════════════
#  Case Number Generator
# ═══════════════════════════════════════════════════════════════════


class CaseNumberGenerator:
    """
    Allocates ``CASE-YYYYMMDD-NNNN`` numbers: the date of creation plus
    a per-day counter starting at ``0001``.
    """

    @staticmethod
    def prefix_for(day: datetime.date) -> str:
        return f"{CASE_NUMBER_PREFIX}-{day:%Y%m%d}-"

    @staticmethod
    def next_number(day: datetime.date | None = None) -> str:
        """
        Return the next free case number for ``day`` (default: today).

        The counter is the numeric suffix of the highest existing number
        with the same date prefix, plus one.
        """
        day = day or timezone.localdate()
        prefix = CaseNumberGenerator.prefix_for(day)
        highest = 0
        for value in Case.objects.filter(case_number__startswith=prefix).values_list(
            "case_number", flat=True
        ):
            suffix = value[len(prefix):]
            # string order breaks past 9999, compare numerically
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{prefix}{highest + 1:04d}"


# ═══════════════════════════════════════════════════════════════════
#  Evidence file helpers
# ═══════════════════════════════════════════════════════════════════


def storage_name(original_name: str) -> str:
    stem, ext = os.path.splitext(os.path.basename(original_name or "file"))
    stamp = int(timezone.now().timestamp() * 1000)
    return f"{stem or 'file'}-{stamp}-{secrets.randbelow(10**9)}{ext}"


def read_upload(upload: UploadedFile) -> bytes:
    upload.seek(0)
    return upload.read()


def build_evidence_file(
    case: Case,
    upload: UploadedFile,
    *,
    uploaded_by: Any = None,
    description: str = "",
    evidence_type: str = EvidenceType.OTHER,
) -> EvidenceFile:
    """Persist one uploaded file as an ``EvidenceFile`` on ``case``."""
    data = read_upload(upload)
    return EvidenceFile.objects.create(
        case=case,
        filename=storage_name(upload.name),
        original_name=upload.name,
        content_type=upload.content_type or "application/octet-stream",
        size=len(data),
        data=data,
        description=description,
        evidence_type=evidence_type,
        uploaded_by=uploaded_by,
    )


# ═══════════════════════════════════════════════════════════════════
#  Case Workflow Service
# ═══════════════════════════════════════════════════════════════════


class CaseWorkflowService:
    """
    The status transition recorder.

    ``record_transition`` validates the move against
    ``ALLOWED_TRANSITIONS``, appends one ``CaseStatusHistory`` row, sets
    the new status, resets the SLA flag and notifies the reporter.
    Callers must hold a row lock on the case (``lock_for_update``)
    inside the same ``transaction.atomic`` block.
    """

    @staticmethod
    def record_transition(
        case: Case,
        target_status: str,
        *,
        actor: Any = None,
        note: str = "",
    ) -> CaseStatusHistory:
        """
        Move ``case`` to ``target_status`` and append the history entry.

        Parameters
        ----------
        case : Case
            Locked case instance.
        target_status : str
            A ``CaseStatus`` value.
        actor : User | None
            Who made the change (``None`` for system changes).
        note : str
            Free-text note stored on the history entry.

        Returns
        -------
        CaseStatusHistory
            The appended entry.

        Raises
        ------
        InvalidTransition
            If ``target_status`` is unknown or not allowed from the
            current status (every move out of a terminal status).
        """
        current = case.status
        if target_status not in CaseStatus.values:
            raise InvalidTransition(
                current=current,
                target=target_status,
                reason="Unknown status.",
            )
        if target_status not in ALLOWED_TRANSITIONS.get(current, frozenset()):
            reason = (
                f"'{current}' is a terminal status."
                if current in TERMINAL_STATUSES
                else None
            )
            raise InvalidTransition(current=current, target=target_status, reason=reason)

        now = timezone.now()
        entry = CaseStatusHistory.objects.create(
            case=case,
            status=target_status,
            timestamp=now,
            changed_by=actor,
            note=note,
        )

        case.status = target_status
        case.is_overdue = False
        case.overdue_by_hours = 0
        update_fields = ["status", "is_overdue", "overdue_by_hours", "updated_at"]
        if target_status in RESOLVED_STATUSES:
            case.completed_at = now
            update_fields.append("completed_at")
        case.save(update_fields=update_fields)

        logger.info(
            "Case %s: %s -> %s by %s",
            case.case_number,
            current,
            target_status,
            actor or "system",
        )

        event = "case_resolved" if target_status == CaseStatus.COMPLETED else "case_update"
        NotificationService.create(
            actor=actor,
            recipients=case.reporter,
            event_type=event,
            payload={
                "case_number": case.case_number,
                "status": target_status,
                "status_label": CaseStatus(target_status).label,
                "previous_status": current,
                "note": note,
            },
            related_object=case,
        )
        return entry

    @staticmethod
    def update_status(
        requesting_user: Any,
        case_id: int,
        target_status: str,
        note: str = "",
    ) -> Case:
        """
        Staff / admin status change for a case.

        Raises
        ------
        NotFound
            Case does not exist.
        PermissionDenied
            Requester is neither the assigned staff member nor an admin.
        InvalidTransition
            Move not allowed from the current status.
        """
        with transaction.atomic():
            case = lock_for_update(Case, case_id, label="Case")
            require_capability(
                requesting_user,
                case,
                Capability.UPDATE_STATUS,
                message="Only the assigned staff member or an administrator can update this case.",
            )
            label = dict(CaseStatus.choices).get(target_status, target_status)
            CaseWorkflowService.record_transition(
                case,
                target_status,
                actor=requesting_user,
                note=note or f"Status updated to {label}",
            )
        return CaseQueryService.get_case_detail(requesting_user, case_id)


# ═══════════════════════════════════════════════════════════════════
#  Case Creation Service
# ═══════════════════════════════════════════════════════════════════


class CaseCreationService:
    """
    The two ways a case comes into existence: a signed-in citizen files
    a complaint, or anyone submits an anonymous tip.  Both write the
    initial ``filed`` history entry in the creating transaction.
    """

    @staticmethod
    def _create_case(fields: dict[str, Any], *, actor: Any, note: str) -> Case:
        def _insert() -> Case:
            return Case.objects.create(
                case_number=CaseNumberGenerator.next_number(),
                status=CaseStatus.FILED,
                **fields,
            )

        case = retry_on_integrity_error(_insert, what="case")
        CaseStatusHistory.objects.create(
            case=case,
            status=CaseStatus.FILED,
            changed_by=actor,
            note=note,
        )
        return case

    @staticmethod
    def file_complaint(
        requesting_user: Any,
        validated_data: dict[str, Any],
        files: Iterable[UploadedFile] = (),
    ) -> Case:
        """
        File a complaint on behalf of ``requesting_user``.

        Parameters
        ----------
        requesting_user : User
            The reporting account; must be active.
        validated_data : dict
            Cleaned data from ``ComplaintCreateSerializer``.
        files : iterable of UploadedFile
            Evidence attachments (count and size already validated).

        Returns
        -------
        Case
            The new case in ``filed`` status with one history entry.
        """
        if not getattr(requesting_user, "is_account_active", False):
            raise PermissionDenied("Your account is not active.")

        data = dict(validated_data)
        data.pop("evidence_files", None)
        with transaction.atomic():
            case = CaseCreationService._create_case(
                {**data, "reporter": requesting_user},
                actor=requesting_user,
                note="Complaint filed",
            )
            for upload in files:
                build_evidence_file(case, upload, uploaded_by=requesting_user)

        logger.info("Complaint %s filed by %s", case.case_number, requesting_user)
        return case

    @staticmethod
    def submit_anonymous_tip(validated_data: dict[str, Any]) -> Case:
        """
        Record an anonymous tip: no reporter, ``is_anonymous`` set,
        medium priority, fixed title.
        """
        fields = {
            "title": "Anonymous Tip",
            "description": validated_data["description"],
            "crime_type": validated_data["crime_type"],
            "latitude": validated_data["latitude"],
            "longitude": validated_data["longitude"],
            "address": validated_data["address"],
            "contact_info": validated_data.get("contact_info", ""),
            "is_anonymous": True,
            "priority": Priority.MEDIUM,
            "reporter": None,
        }
        with transaction.atomic():
            case = CaseCreationService._create_case(
                fields, actor=None, note="Anonymous tip received"
            )
        logger.info("Anonymous tip recorded as %s", case.case_number)
        return case


# ═══════════════════════════════════════════════════════════════════
#  Case Assignment Service
# ═══════════════════════════════════════════════════════════════════


class CaseAssignmentService:
    """Assigns (or reassigns) a staff investigator to a case."""

    @staticmethod
    def assign_staff(requesting_user: Any, case_id: int, staff_id: int) -> Case:
        """
        Assign ``staff_id`` to the case and force its status to
        ``assigned``.

        Parameters
        ----------
        requesting_user : User
            Administrator or supervisor.
        case_id : int
            Case PK.
        staff_id : int
            PK of the staff account to assign.

        Returns
        -------
        Case
            The updated case.

        Raises
        ------
        NotFound
            Case or staff account does not exist.
        PermissionDenied
            Requester may not assign cases.
        Conflict
            Target is not an active staff account, or the case is in a
            terminal status.  Nothing is written.
        """
        with transaction.atomic():
            case = lock_for_update(Case, case_id, label="Case")
            require_capability(
                requesting_user,
                case,
                Capability.ASSIGN,
                message="Only administrators and supervisors can assign cases.",
            )

            # case -> staff lock order; deactivation takes only the staff lock
            staff = lock_for_update(User, staff_id, label="Staff member")
            if staff.role != UserRole.STAFF:
                raise Conflict("Cases can only be assigned to staff accounts.")
            if staff.status != AccountStatus.ACTIVE or not staff.is_active:
                raise Conflict("Cannot assign a case to an inactive staff member.")
            if case.status in TERMINAL_STATUSES:
                raise Conflict(
                    f"Case {case.case_number} is {case.get_status_display()} and cannot be assigned."
                )

            case.assigned_staff = staff
            case.assignment_date = timezone.now()
            case.save(update_fields=["assigned_staff", "assignment_date", "updated_at"])

            CaseWorkflowService.record_transition(
                case,
                CaseStatus.ASSIGNED,
                actor=requesting_user,
                note=f"Assigned to {staff.display_name} ({staff.staff_id})",
            )
            NotificationService.create(
                actor=requesting_user,
                recipients=staff,
                event_type="case_assigned",
                payload={
                    "case_number": case.case_number,
                    "title": case.title,
                    "priority": case.priority,
                },
                related_object=case,
            )

        logger.info("Case %s assigned to %s", case.case_number, staff.staff_id)
        return CaseQueryService.get_case_detail(requesting_user, case_id)


# ═══════════════════════════════════════════════════════════════════
#  Case Query Service
# ═══════════════════════════════════════════════════════════════════


class CaseQueryService:
    """
    Constructs role-scoped, filtered querysets for listing cases and
    resolves single cases behind the ``view`` capability.
    """

    @staticmethod
    def base_queryset() -> QuerySet:
        return Case.objects.select_related("reporter", "assigned_staff")

    @staticmethod
    def get_filtered_queryset(
        requesting_user: Any,
        filters: dict[str, Any],
    ) -> QuerySet:
        """
        Build a role-scoped, filtered queryset of ``Case`` objects.

        Parameters
        ----------
        requesting_user : User
            Citizens see their own cases, staff their assigned cases,
            administrators and supervisors everything.
        filters : dict
            Cleaned data from ``CaseFilterSerializer``.  Supported keys:
            ``status``, ``priority``, ``crime_type``, ``assigned_to``
            (user PK), ``search`` (title / case number).
        """
        qs = scope_cases(CaseQueryService.base_queryset(), requesting_user)

        for field in ("status", "priority", "crime_type"):
            value = filters.get(field)
            if value:
                qs = qs.filter(**{field: value})
        if filters.get("assigned_to"):
            qs = qs.filter(assigned_staff_id=filters["assigned_to"])
        search = (filters.get("search") or "").strip()
        if search:
            qs = qs.filter(Q(title__icontains=search) | Q(case_number__icontains=search))

        return qs.order_by("-created_at", "-id")

    @staticmethod
    def my_complaints(requesting_user: Any, status: str | None = None) -> QuerySet:
        qs = CaseQueryService.base_queryset().filter(reporter=requesting_user)
        if status:
            qs = qs.filter(status=status)
        return qs.order_by("-created_at", "-id")

    @staticmethod
    def get_case(requesting_user: Any, case_id: int, capability: str = Capability.VIEW) -> Case:
        """
        Fetch a case and check ``capability`` on it.

        Raises
        ------
        NotFound
            No such case.
        PermissionDenied
            The capability check denied.
        """
        try:
            case = CaseQueryService.base_queryset().get(pk=case_id)
        except (Case.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Case with id {case_id} not found.")
        require_capability(requesting_user, case, capability)
        return case

    @staticmethod
    def get_case_detail(requesting_user: Any, case_id: int) -> Case:
        try:
            case = (
                CaseQueryService.base_queryset()
                .prefetch_related("status_history__changed_by", "evidence_files")
                .get(pk=case_id)
            )
        except (Case.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Case with id {case_id} not found.")
        require_capability(requesting_user, case, Capability.VIEW)
        return case

    @staticmethod
    def get_history(requesting_user: Any, case_id: int) -> QuerySet:
        case = CaseQueryService.get_case(requesting_user, case_id)
        return case.status_history.select_related("changed_by").order_by("timestamp", "id")


# ═══════════════════════════════════════════════════════════════════
#  Evidence Service
# ═══════════════════════════════════════════════════════════════════


class EvidenceService:
    """
    Binary evidence on a case.  Uploading is open to the reporter, the
    assigned staff member and administrators; so is editing metadata
    and deleting.
    """

    @staticmethod
    def add_evidence(
        requesting_user: Any,
        case_id: int,
        files: Iterable[UploadedFile],
        *,
        description: str = "",
        evidence_type: str = EvidenceType.OTHER,
    ) -> list[EvidenceFile]:
        """
        Attach uploaded files to the case and notify the other party.

        Raises
        ------
        NotFound / PermissionDenied
            As for ``CaseQueryService.get_case``.
        """
        with transaction.atomic():
            case = lock_for_update(Case, case_id, label="Case")
            require_capability(requesting_user, case, Capability.ADD_EVIDENCE)
            created = [
                build_evidence_file(
                    case,
                    upload,
                    uploaded_by=requesting_user,
                    description=description,
                    evidence_type=evidence_type,
                )
                for upload in files
            ]
            case.save(update_fields=["updated_at"])

            NotificationService.create(
                actor=requesting_user,
                recipients=[case.reporter, case.assigned_staff],
                event_type="evidence_added",
                payload={"case_number": case.case_number, "count": len(created)},
                related_object=case,
            )

        logger.info(
            "%d evidence file(s) added to %s by %s",
            len(created),
            case.case_number,
            requesting_user,
        )
        return created

    @staticmethod
    def list_evidence(requesting_user: Any, case_id: int) -> QuerySet:
        case = CaseQueryService.get_case(requesting_user, case_id)
        return case.evidence_files.select_related("uploaded_by").defer("data")

    @staticmethod
    def _get_file(case: Case, evidence_id: int) -> EvidenceFile:
        try:
            return case.evidence_files.get(pk=evidence_id)
        except (EvidenceFile.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Evidence file with id {evidence_id} not found.")

    @staticmethod
    def get_evidence_file(requesting_user: Any, case_id: int, evidence_id: int) -> EvidenceFile:
        """Return the evidence row including its bytes (for download)."""
        case = CaseQueryService.get_case(requesting_user, case_id)
        return EvidenceService._get_file(case, evidence_id)

    @staticmethod
    def update_evidence(
        requesting_user: Any,
        case_id: int,
        evidence_id: int,
        validated_data: dict[str, Any],
    ) -> EvidenceFile:
        case = CaseQueryService.get_case(requesting_user, case_id, Capability.MANAGE_EVIDENCE)
        evidence = EvidenceService._get_file(case, evidence_id)
        for field, value in validated_data.items():
            setattr(evidence, field, value)
        evidence.save(update_fields=list(validated_data.keys()))
        return evidence

    @staticmethod
    def delete_evidence(requesting_user: Any, case_id: int, evidence_id: int) -> None:
        case = CaseQueryService.get_case(requesting_user, case_id, Capability.MANAGE_EVIDENCE)
        evidence = EvidenceService._get_file(case, evidence_id)
        evidence.delete()
        logger.info(
            "Evidence %s removed from %s by %s",
            evidence.filename,
            case.case_number,
            requesting_user,
        )
