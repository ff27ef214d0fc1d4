"""
Core app models.

Provides abstract base models and the persisted notification store
shared by every other app.
"""

from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models


class TimeStampedModel(models.Model):
    """
    Abstract base model that provides self-updating ``created_at`` and
    ``updated_at`` timestamp fields for every concrete child model.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
    )

    class Meta:
        abstract = True


class NotificationType(models.TextChoices):
    CASE_UPDATE = "case_update", "Case Update"
    CASE_ASSIGNED = "case_assigned", "Case Assigned"
    CASE_RESOLVED = "case_resolved", "Case Resolved"
    EVIDENCE_ADDED = "evidence_added", "Evidence Added"
    INVESTIGATION_UPDATE = "investigation_update", "Investigation Update"
    SYSTEM_ALERT = "system_alert", "System Alert"


class Notification(TimeStampedModel):
    """
    System notification sent to a user regarding case status changes,
    assignments, new evidence, investigation updates, etc.

    Uses a GenericForeignKey so any model instance can be the *source* of a
    notification (e.g. a new Investigation notifies the case reporter).
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        verbose_name="Recipient",
    )
    notification_type = models.CharField(
        max_length=32,
        choices=NotificationType.choices,
        default=NotificationType.SYSTEM_ALERT,
        verbose_name="Type",
    )
    title = models.CharField(max_length=255, verbose_name="Title")
    message = models.TextField(verbose_name="Message")
    data = models.JSONField(
        default=dict,
        blank=True,
        verbose_name="Payload",
        help_text="Event context (case number, status, actor, ...).",
    )
    is_read = models.BooleanField(default=False, verbose_name="Read")
    read_at = models.DateTimeField(null=True, blank=True, verbose_name="Read At")

    # Generic relation to the object that triggered the notification
    content_type = models.ForeignKey(
        ContentType,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        verbose_name="Related Content Type",
    )
    object_id = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        verbose_name="Related Object ID",
    )
    content_object = GenericForeignKey("content_type", "object_id")

    class Meta:
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="core_notifi_recipie_2f1c0d_idx"),
        ]

    def __str__(self):
        return f"[{self.recipient}] {self.title}"
