"""
core.domain.notifications — Notification store and creation helper.

Notifications are kept behind a small store interface so they survive
restarts and are shared by every worker process.  The active store is
resolved from ``settings.NOTIFICATION_STORE`` and can be injected
explicitly (tests, alternative backends)::

    from core.domain.notifications import NotificationService

    NotificationService.create(
        actor=request.user,
        recipients=case.reporter,
        event_type="case_update",
        payload={"case_number": case.case_number, "status": case.status},
        related_object=case,
    )

Store operations
----------------
``append``         persist one notification for one recipient.
``query``          newest-first page of a recipient's notifications.
``count``          total / unread count for a recipient.
``mark_read``      flag one notification as read.
``mark_all_read``  flag every unread notification of a recipient.
``delete``         remove one notification.
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.conf import settings
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.utils import timezone
from django.utils.module_loading import import_string

from core.domain.exceptions import NotFound

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import Notification

logger = logging.getLogger(__name__)

# ── Event-type → (notification type, title, message template) ───────
# Message templates are formatted with the payload dict.
_EVENT_TEMPLATES: dict[str, tuple[str, str, str]] = {
    "case_update":          ("case_update",          "Case Status Updated",    "Case {case_number} is now {status_label}."),
    "case_assigned":        ("case_assigned",        "Case Assigned",          "Case {case_number} has been assigned to you."),
    "case_resolved":        ("case_resolved",        "Case Resolved",          "Case {case_number} has been completed."),
    "evidence_added":       ("evidence_added",       "New Evidence Added",     "{count} evidence file(s) were added to case {case_number}."),
    "investigation_update": ("investigation_update", "Investigation Update",   "A new investigation log was recorded for case {case_number}."),
    "sla_overdue":          ("system_alert",         "Case Overdue",           "Case {case_number} has exceeded its SLA by {overdue_by_hours} hour(s)."),
}


class NotificationStore(abc.ABC):
    """Persistence interface for user notifications."""

    @abc.abstractmethod
    def append(
        self,
        *,
        recipient: User,
        notification_type: str,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
        related_object: models.Model | None = None,
    ) -> Notification:
        ...

    @abc.abstractmethod
    def query(
        self,
        recipient: User,
        *,
        unread_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Notification]:
        ...

    @abc.abstractmethod
    def count(self, recipient: User, *, unread_only: bool = False) -> int:
        ...

    @abc.abstractmethod
    def mark_read(self, recipient: User, notification_id: int) -> Notification:
        ...

    @abc.abstractmethod
    def mark_all_read(self, recipient: User) -> int:
        ...

    @abc.abstractmethod
    def delete(self, recipient: User, notification_id: int) -> None:
        ...


class DatabaseNotificationStore(NotificationStore):
    """Store backed by the ``core.Notification`` table."""

    def _model(self):
        from core.models import Notification  # lazy import
        return Notification

    def _get(self, recipient: User, notification_id: int) -> Notification:
        Notification = self._model()
        try:
            return Notification.objects.get(pk=notification_id, recipient=recipient)
        except (Notification.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Notification with id {notification_id} not found.")

    def append(
        self,
        *,
        recipient: User,
        notification_type: str,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
        related_object: models.Model | None = None,
    ) -> Notification:
        content_type = None
        object_id = None
        if related_object is not None:
            content_type = ContentType.objects.get_for_model(related_object)
            object_id = related_object.pk

        return self._model().objects.create(
            recipient=recipient,
            notification_type=notification_type,
            title=title,
            message=message,
            data=data or {},
            content_type=content_type,
            object_id=object_id,
        )

    def query(
        self,
        recipient: User,
        *,
        unread_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Notification]:
        qs = self._model().objects.filter(recipient=recipient)
        if unread_only:
            qs = qs.filter(is_read=False)
        return list(qs.order_by("-created_at", "-id")[offset:offset + limit])

    def count(self, recipient: User, *, unread_only: bool = False) -> int:
        qs = self._model().objects.filter(recipient=recipient)
        if unread_only:
            qs = qs.filter(is_read=False)
        return qs.count()

    def mark_read(self, recipient: User, notification_id: int) -> Notification:
        notification = self._get(recipient, notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = timezone.now()
            notification.save(update_fields=["is_read", "read_at", "updated_at"])
        return notification

    def mark_all_read(self, recipient: User) -> int:
        return self._model().objects.filter(recipient=recipient, is_read=False).update(
            is_read=True,
            read_at=timezone.now(),
            updated_at=timezone.now(),
        )

    def delete(self, recipient: User, notification_id: int) -> None:
        self._get(recipient, notification_id).delete()


def get_notification_store() -> NotificationStore:
    """Instantiate the store configured by ``settings.NOTIFICATION_STORE``."""
    store_path = getattr(
        settings,
        "NOTIFICATION_STORE",
        "core.domain.notifications.DatabaseNotificationStore",
    )
    return import_string(store_path)()


class _PayloadDict(dict):
    def __missing__(self, key: str) -> str:
        return "?"


class NotificationService:
    """
    Stateless helper for creating notifications through a store.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def create(
        cls,
        *,
        actor: User | None,
        recipients: User | Iterable[User | None] | None,
        event_type: str,
        payload: dict[str, Any] | None = None,
        related_object: models.Model | None = None,
        store: NotificationStore | None = None,
    ) -> list[Notification]:
        """
        Create one notification per distinct recipient.

        Args:
            actor:          The user who performed the action; never
                            notified about their own action.
            recipients:     A single ``User`` or iterable; ``None``
                            entries (anonymous reporter, unassigned
                            case) are skipped.
            event_type:     Key into ``_EVENT_TEMPLATES``.  Unknown types
                            fall back to a ``system_alert``.
            payload:        Context dict, persisted and used to format
                            the message template.
            related_object: Optional model instance linked via
                            ``GenericForeignKey``.
            store:          Explicit store; defaults to the configured one.

        Returns:
            List of created ``Notification`` instances.
        """
        if recipients is None:
            recipients = []
        elif isinstance(recipients, models.Model):
            recipients = [recipients]

        actor_pk = getattr(actor, "pk", None)
        unique: dict[int, User] = {}
        for recipient in recipients:
            if recipient is None or recipient.pk == actor_pk:
                continue
            unique.setdefault(recipient.pk, recipient)

        if not unique:
            logger.debug(
                "No recipients for event_type=%s by actor=%s",
                event_type,
                actor,
            )
            return []

        payload = dict(payload or {})
        notification_type, title, template = _EVENT_TEMPLATES.get(
            event_type,
            ("system_alert", event_type.replace("_", " ").title(), f"Event: {event_type}"),
        )
        message = template.format_map(_PayloadDict(payload))

        store = store or get_notification_store()
        notifications = [
            store.append(
                recipient=recipient,
                notification_type=notification_type,
                title=title,
                message=message,
                data=payload,
                related_object=related_object,
            )
            for recipient in unique.values()
        ]

        logger.info(
            "Created %d notification(s) [%s] by actor=%s",
            len(notifications),
            event_type,
            actor,
        )
        return notifications
