"""
Investigations app Service Layer.

- ``InvestigationService``  — file, list, read, edit and delete
  investigation reports, plus attachment retrieval.

Filing a report with a ``status_update`` that differs from the case's
current status records the transition on the case in the same
transaction, with the note ``"Investigation update: <title>"``.  A
report without a status change leaves the case history untouched, so
the SLA dwell clock keeps running.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from django.core.files.uploadedfile import UploadedFile
from django.db import transaction
from django.db.models import QuerySet

from cases.models import Case
from cases.services import CaseQueryService, CaseWorkflowService, read_upload, storage_name
from core.domain.access import Capability, require_capability
from core.domain.exceptions import NotFound
from core.domain.notifications import NotificationService
from core.domain.transactions import lock_for_update

from .models import Investigation, InvestigationAttachment

logger = logging.getLogger(__name__)


class InvestigationService:

    @staticmethod
    def _base_queryset() -> QuerySet:
        return Investigation.objects.select_related(
            "case", "case__reporter", "case__assigned_staff", "author"
        ).prefetch_related("attachments")

    @staticmethod
    def create_investigation(
        requesting_user: Any,
        case_id: int,
        validated_data: dict[str, Any],
        files: Iterable[UploadedFile] = (),
    ) -> Investigation:
        """
        File an investigation report against a case.

        Parameters
        ----------
        requesting_user : User
            Assigned staff member or administrator.
        case_id : int
            Case PK.
        validated_data : dict
            Cleaned data from ``InvestigationCreateSerializer``.
        files : iterable of UploadedFile
            Attachments (count and size already validated).

        Returns
        -------
        Investigation

        Raises
        ------
        NotFound
            Case does not exist.
        PermissionDenied
            Requester may not add investigations to this case.
        InvalidTransition
            ``status_update`` is not reachable from the current status;
            nothing is written.
        """
        data = dict(validated_data)
        data.pop("attachments", None)
        descriptions = data.pop("attachment_descriptions", [])
        status_update = data.get("status_update") or ""

        with transaction.atomic():
            case = lock_for_update(Case, case_id, label="Case")
            require_capability(
                requesting_user,
                case,
                Capability.ADD_INVESTIGATION,
                message="Not authorized to add investigations for this case.",
            )

            investigation = Investigation.objects.create(
                case=case,
                author=requesting_user,
                **data,
            )
            for index, upload in enumerate(files):
                payload = read_upload(upload)
                InvestigationAttachment.objects.create(
                    investigation=investigation,
                    filename=storage_name(upload.name),
                    original_name=upload.name,
                    content_type=upload.content_type or "application/octet-stream",
                    size=len(payload),
                    data=payload,
                    description=descriptions[index] if index < len(descriptions) else "",
                )

            if status_update and status_update != case.status:
                CaseWorkflowService.record_transition(
                    case,
                    status_update,
                    actor=requesting_user,
                    note=f"Investigation update: {investigation.title}",
                )

            NotificationService.create(
                actor=requesting_user,
                recipients=case.reporter,
                event_type="investigation_update",
                payload={
                    "case_number": case.case_number,
                    "investigation_id": investigation.pk,
                    "title": investigation.title,
                },
                related_object=investigation,
            )

        logger.info(
            "Investigation %s filed on %s by %s",
            investigation.pk,
            case.case_number,
            requesting_user,
        )
        return InvestigationService._base_queryset().get(pk=investigation.pk)

    @staticmethod
    def list_for_case(requesting_user: Any, case_id: int) -> QuerySet:
        case = CaseQueryService.get_case(requesting_user, case_id)
        return InvestigationService._base_queryset().filter(case=case)

    @staticmethod
    def my_investigations(requesting_user: Any) -> QuerySet:
        return InvestigationService._base_queryset().filter(author=requesting_user)

    @staticmethod
    def get_investigation(
        requesting_user: Any,
        investigation_id: int,
        capability: str = Capability.VIEW,
    ) -> Investigation:
        try:
            investigation = InvestigationService._base_queryset().get(pk=investigation_id)
        except (Investigation.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Investigation with id {investigation_id} not found.")
        require_capability(requesting_user, investigation, capability)
        return investigation

    @staticmethod
    def update_investigation(
        requesting_user: Any,
        investigation_id: int,
        validated_data: dict[str, Any],
    ) -> Investigation:
        """Edit report fields; only the author or an administrator may."""
        investigation = InvestigationService.get_investigation(
            requesting_user, investigation_id, Capability.EDIT_INVESTIGATION
        )
        for field, value in validated_data.items():
            setattr(investigation, field, value)
        investigation.save(update_fields=[*validated_data.keys(), "updated_at"])
        return investigation

    @staticmethod
    def delete_investigation(requesting_user: Any, investigation_id: int) -> None:
        investigation = InvestigationService.get_investigation(
            requesting_user, investigation_id, Capability.EDIT_INVESTIGATION
        )
        investigation.delete()
        logger.info("Investigation %s deleted by %s", investigation_id, requesting_user)

    @staticmethod
    def get_attachment(
        requesting_user: Any,
        investigation_id: int,
        attachment_id: int,
    ) -> InvestigationAttachment:
        investigation = InvestigationService.get_investigation(requesting_user, investigation_id)
        try:
            return investigation.attachments.get(pk=attachment_id)
        except (InvestigationAttachment.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Attachment with id {attachment_id} not found.")
