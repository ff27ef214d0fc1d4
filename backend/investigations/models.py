"""
Investigations app models.

An ``Investigation`` is a field report filed by a staff member against a
case.  It references the case by its case number and may carry a
``status_update`` that moves the case along the workflow when the report
is filed.  Structured sub-records (map markers, next actions, witnesses,
suspects) are stored as JSON lists.
"""

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from cases.models import CaseStatus
from core.models import TimeStampedModel


class InvestigationType(models.TextChoices):
    INITIAL_ASSESSMENT = "initial_assessment", "Initial Assessment"
    EVIDENCE_COLLECTION = "evidence_collection", "Evidence Collection"
    WITNESS_INTERVIEW = "witness_interview", "Witness Interview"
    SCENE_INVESTIGATION = "scene_investigation", "Scene Investigation"
    SUSPECT_INVESTIGATION = "suspect_investigation", "Suspect Investigation"
    FOLLOW_UP = "follow_up", "Follow-up"
    FINAL_REPORT = "final_report", "Final Report"


class Investigation(TimeStampedModel):
    case = models.ForeignKey(
        "cases.Case",
        to_field="case_number",
        db_column="case_number",
        on_delete=models.CASCADE,
        related_name="investigations",
        verbose_name="Case",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="investigations",
        verbose_name="Author",
    )
    title = models.CharField(max_length=200, verbose_name="Title")
    notes = models.TextField(max_length=2000, verbose_name="Notes")
    investigation_type = models.CharField(
        max_length=32,
        choices=InvestigationType.choices,
        db_index=True,
        verbose_name="Investigation Type",
    )
    status_update = models.CharField(
        max_length=32,
        choices=CaseStatus.choices,
        blank=True,
        default="",
        verbose_name="Status Update",
        help_text="Case status requested when this report was filed.",
    )
    hours_spent = models.FloatField(
        default=0,
        validators=[MinValueValidator(0)],
        verbose_name="Hours Spent",
    )

    # ── Structured sub-records ───────────────────────────────────────
    map_markers = models.JSONField(default=list, blank=True, verbose_name="Map Markers")
    next_actions = models.JSONField(default=list, blank=True, verbose_name="Next Actions")
    witnesses = models.JSONField(default=list, blank=True, verbose_name="Witnesses")
    suspects = models.JSONField(default=list, blank=True, verbose_name="Suspects")

    class Meta:
        verbose_name = "Investigation"
        verbose_name_plural = "Investigations"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.title} ({self.case_id})"


class InvestigationAttachment(models.Model):
    """Binary attachment on an investigation report."""

    investigation = models.ForeignKey(
        Investigation,
        on_delete=models.CASCADE,
        related_name="attachments",
        verbose_name="Investigation",
    )
    filename = models.CharField(max_length=255, unique=True, verbose_name="Stored Filename")
    original_name = models.CharField(max_length=255, verbose_name="Original Filename")
    content_type = models.CharField(
        max_length=100,
        default="application/octet-stream",
        verbose_name="Media Type",
    )
    size = models.PositiveBigIntegerField(verbose_name="Size (bytes)")
    data = models.BinaryField(verbose_name="File Data")
    description = models.CharField(
        max_length=500,
        blank=True,
        default="",
        verbose_name="Description",
    )
    uploaded_at = models.DateTimeField(default=timezone.now, verbose_name="Uploaded At")

    class Meta:
        verbose_name = "Investigation Attachment"
        verbose_name_plural = "Investigation Attachments"
        ordering = ["uploaded_at", "id"]

    def __str__(self):
        return self.original_name
