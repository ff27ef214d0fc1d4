"""
Cases app models.

Covers the complaint lifecycle: a citizen files a complaint (or an
anonymous tip arrives), an administrator assigns it to a staff
investigator, staff move it through the investigation statuses, and it
ends in one of the terminal statuses.  Every status change is recorded
in the append-only ``CaseStatusHistory``.
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from core.domain.exceptions import DomainError
from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class CrimeType(models.TextChoices):
    THEFT_ROBBERY = "theft_robbery", "Theft/Robbery"
    ASSAULT = "assault", "Assault"
    FRAUD = "fraud", "Fraud"
    CYBERCRIME = "cybercrime", "Cybercrime"
    DOMESTIC_VIOLENCE = "domestic_violence", "Domestic Violence"
    DRUG_RELATED = "drug_related", "Drug Related"
    PROPERTY_CRIME = "property_crime", "Property Crime"
    TRAFFIC_VIOLATION = "traffic_violation", "Traffic Violation"
    MISSING_PERSON = "missing_person", "Missing Person"
    OTHER = "other", "Other"


class CaseStatus(models.TextChoices):
    """
    Ordered lifecycle statuses.  ``completed``, ``closed`` and
    ``rejected`` are terminal; legal moves are listed in
    ``cases.workflow.ALLOWED_TRANSITIONS``.
    """

    FILED = "filed", "Filed"
    ASSIGNED = "assigned", "Assigned"
    UNDER_INVESTIGATION = "under_investigation", "Under Investigation"
    EVIDENCE_COLLECTED = "evidence_collected", "Evidence Collected"
    SUSPECT_IDENTIFIED = "suspect_identified", "Suspect Identified"
    REPORT_SUBMITTED = "report_submitted", "Report Submitted"
    COMPLETED = "completed", "Completed"
    CLOSED = "closed", "Closed"
    REJECTED = "rejected", "Rejected"


class Priority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    CRITICAL = "critical", "Critical"


class EvidenceType(models.TextChoices):
    PHOTO = "photo", "Photo"
    VIDEO = "video", "Video"
    DOCUMENT = "document", "Document"
    AUDIO = "audio", "Audio"
    OTHER = "other", "Other"


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class Case(TimeStampedModel):
    """
    A filed complaint.

    * ``case_number`` (``CASE-YYYYMMDD-NNNN``) is generated once at
      creation and never changes.
    * ``reporter`` is null for anonymous tips.
    * ``is_overdue`` / ``overdue_by_hours`` / ``last_sla_check`` are
      owned by the SLA sweep; a status transition clears the flag.
    """

    case_number = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        verbose_name="Case Number",
    )
    title = models.CharField(
        max_length=200,
        verbose_name="Title",
    )
    description = models.TextField(
        max_length=2000,
        verbose_name="Description",
    )
    crime_type = models.CharField(
        max_length=32,
        choices=CrimeType.choices,
        db_index=True,
        verbose_name="Crime Type",
    )
    status = models.CharField(
        max_length=32,
        choices=CaseStatus.choices,
        default=CaseStatus.FILED,
        db_index=True,
        verbose_name="Current Status",
    )
    priority = models.CharField(
        max_length=16,
        choices=Priority.choices,
        default=Priority.MEDIUM,
        db_index=True,
        verbose_name="Priority",
    )

    # ── Location ────────────────────────────────────────────────────
    latitude = models.FloatField(
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
        verbose_name="Latitude",
    )
    longitude = models.FloatField(
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
        verbose_name="Longitude",
    )
    address = models.CharField(
        max_length=500,
        verbose_name="Address",
    )

    is_anonymous = models.BooleanField(
        default=False,
        verbose_name="Anonymous",
    )
    tags = models.JSONField(
        default=list,
        blank=True,
        verbose_name="Tags",
    )
    contact_info = models.CharField(
        max_length=200,
        blank=True,
        default="",
        verbose_name="Contact Info",
        help_text="Optional contact details supplied with an anonymous tip.",
    )

    # ── People ──────────────────────────────────────────────────────
    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reported_cases",
        verbose_name="Reporter",
    )
    assigned_staff = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="assigned_cases",
        verbose_name="Assigned Staff",
    )
    assignment_date = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Assignment Date",
    )
    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Completed At",
    )

    # ── SLA tracking ────────────────────────────────────────────────
    is_overdue = models.BooleanField(
        default=False,
        db_index=True,
        verbose_name="Overdue",
    )
    overdue_by_hours = models.FloatField(
        default=0,
        verbose_name="Overdue By (hours)",
    )
    last_sla_check = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Last SLA Check",
    )

    class Meta:
        verbose_name = "Case"
        verbose_name_plural = "Cases"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status", "priority"], name="cases_case_status_3b1a2c_idx"),
            models.Index(fields=["latitude", "longitude"], name="cases_case_latitud_8d4e0f_idx"),
        ]

    def __str__(self):
        return f"{self.case_number} — {self.title}"

    @property
    def is_open(self) -> bool:
        from .workflow import TERMINAL_STATUSES

        return self.status not in TERMINAL_STATUSES


class CaseStatusHistory(models.Model):
    """
    Append-only audit trail of case statuses.

    The first row is written in the same transaction that creates the
    case.  Rows are never updated or deleted.
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="status_history",
        verbose_name="Case",
    )
    status = models.CharField(
        max_length=32,
        choices=CaseStatus.choices,
        verbose_name="Status",
    )
    timestamp = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        verbose_name="Timestamp",
    )
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="case_status_changes",
        verbose_name="Changed By",
    )
    note = models.TextField(
        blank=True,
        default="",
        verbose_name="Note",
    )

    class Meta:
        verbose_name = "Case Status History Entry"
        verbose_name_plural = "Case Status History"
        ordering = ["timestamp", "id"]

    def __str__(self):
        return f"{self.case_id}: {self.status} @ {self.timestamp:%Y-%m-%d %H:%M}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise DomainError("Status history entries are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise DomainError("Status history entries cannot be deleted.")


class EvidenceFile(models.Model):
    """
    Binary evidence attached to a case.  The bytes are stored inline in
    ``data``; ``filename`` is a unique generated storage name.
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="evidence_files",
        verbose_name="Case",
    )
    filename = models.CharField(
        max_length=255,
        unique=True,
        verbose_name="Stored Filename",
    )
    original_name = models.CharField(
        max_length=255,
        verbose_name="Original Filename",
    )
    content_type = models.CharField(
        max_length=100,
        default="application/octet-stream",
        verbose_name="Media Type",
    )
    size = models.PositiveBigIntegerField(
        verbose_name="Size (bytes)",
    )
    data = models.BinaryField(
        verbose_name="File Data",
    )
    description = models.CharField(
        max_length=500,
        blank=True,
        default="",
        verbose_name="Description",
    )
    evidence_type = models.CharField(
        max_length=16,
        choices=EvidenceType.choices,
        default=EvidenceType.OTHER,
        verbose_name="Evidence Type",
    )
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="uploaded_evidence",
        verbose_name="Uploaded By",
    )
    uploaded_at = models.DateTimeField(
        default=timezone.now,
        verbose_name="Uploaded At",
    )

    class Meta:
        verbose_name = "Evidence File"
        verbose_name_plural = "Evidence Files"
        ordering = ["uploaded_at", "id"]

    def __str__(self):
        return f"{self.original_name} on {self.case_id}"
