"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service method, and return the
result wrapped in a DRF ``Response``.

Architecture
------------
- ``UserRegistrationService``  — citizen self-registration.
- ``AuthenticationService``    — JWT issuance for an authenticated user.
- ``CurrentUserService``       — "Me" endpoint helpers.
- ``UserManagementService``    — admin listing of citizens.
- ``StaffManagementService``   — staff CRUD and soft deactivation.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from django.apps import apps
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, QuerySet
from rest_framework_simplejwt.tokens import RefreshToken

from core.domain.access import Capability, require_capability
from core.domain.exceptions import Conflict, DomainError, NotFound
from core.domain.transactions import lock_for_update, retry_on_integrity_error

from .models import AccountStatus, UserRole

User = get_user_model()
logger = logging.getLogger(__name__)

STAFF_ID_PREFIX = "STF-"
_STAFF_ID_RE = re.compile(r"^STF-(\d+)$")


def _terminal_statuses() -> frozenset[str]:
    from cases.workflow import TERMINAL_STATUSES

    return TERMINAL_STATUSES


# ═══════════════════════════════════════════════════════════════════
#  Registration Service
# ═══════════════════════════════════════════════════════════════════


class UserRegistrationService:
    """Creates citizen accounts."""

    @staticmethod
    def register_user(validated_data: dict[str, Any]) -> User:
        """
        Create a new citizen account.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``RegisterRequestSerializer``.

        Returns
        -------
        User
            The newly created user with ``role=citizen``.

        Raises
        ------
        core.domain.exceptions.Conflict
            If the username or email is already taken.
        """
        validated_data = dict(validated_data)
        validated_data.pop("password_confirm", None)
        password = validated_data.pop("password")

        conflicts = []
        if User.objects.filter(username=validated_data.get("username")).exists():
            conflicts.append("username")
        if User.objects.filter(email__iexact=validated_data.get("email")).exists():
            conflicts.append("email")
        if conflicts:
            raise Conflict(
                f"The following field(s) already exist: {', '.join(conflicts)}."
            )

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    password=password,
                    role=UserRole.CITIZEN,
                    **validated_data,
                )
        except IntegrityError:
            raise Conflict(
                "A user with one of the provided unique fields already exists."
            )

        logger.info("Registered citizen account %s", user.username)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Authentication Service
# ═══════════════════════════════════════════════════════════════════


class AuthenticationService:
    """JWT issuance helpers."""

    @staticmethod
    def generate_tokens(user: User) -> dict[str, str]:
        """
        Issue a JWT access/refresh token pair for the given user.

        Returns
        -------
        dict
            ``{"access": "<token>", "refresh": "<token>"}``.
        """
        refresh = RefreshToken.for_user(user)
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }


# ═══════════════════════════════════════════════════════════════════
#  Current User Service
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:
    """Profile read / update for the authenticated user."""

    @staticmethod
    def get_profile(user: User) -> User:
        return user

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        """
        Apply the allowed self-service fields and save.

        Raises
        ------
        Conflict
            If the new email collides with another account.
        """
        for field, value in validated_data.items():
            setattr(user, field, value)
        try:
            user.save(update_fields=list(validated_data.keys()))
        except IntegrityError:
            raise Conflict("This email is already in use by another account.")
        return user

    @staticmethod
    def change_password(user: User, current_password: str, new_password: str) -> None:
        """
        Replace the user's password after verifying the current one.

        Raises
        ------
        DomainError
            If ``current_password`` does not match.
        """
        if not user.check_password(current_password):
            raise DomainError("Current password is incorrect.")
        user.set_password(new_password)
        user.save(update_fields=["password"])
        logger.info("Password changed for %s", user.username)


# ═══════════════════════════════════════════════════════════════════
#  User Management Service
# ═══════════════════════════════════════════════════════════════════


class UserManagementService:
    """Administrative read operations on citizen accounts."""

    @staticmethod
    def list_citizens(requesting_user: User) -> QuerySet:
        """
        Return citizens, newest first, annotated with ``complaint_count``.

        Raises
        ------
        PermissionDenied
            Unless the requester may manage users.
        """
        require_capability(requesting_user, None, Capability.MANAGE_USERS)
        return (
            User.objects.filter(role=UserRole.CITIZEN)
            .annotate(complaint_count=Count("reported_cases"))
            .order_by("-date_joined")
        )


# ═══════════════════════════════════════════════════════════════════
#  Staff Management Service
# ═══════════════════════════════════════════════════════════════════


class StaffManagementService:
    """
    Staff account lifecycle: listing with workload counters, creation
    with a generated staff id, updates, and soft deactivation.

    Deactivation is blocked while the staff member still owns any case
    in a non-terminal status; those cases must be reassigned first.
    """

    @staticmethod
    def _staff_queryset() -> QuerySet:
        terminal = _terminal_statuses()
        return User.objects.filter(role=UserRole.STAFF).annotate(
            total_case_count=Count("assigned_cases", distinct=True),
            active_case_count=Count(
                "assigned_cases",
                filter=~Q(assigned_cases__status__in=terminal),
                distinct=True,
            ),
        )

    @staticmethod
    def next_staff_id() -> str:
        """
        Return the next ``STF-NNN`` identifier (highest existing + 1,
        zero-padded to three digits).
        """
        highest = 0
        for value in User.objects.filter(staff_id__startswith=STAFF_ID_PREFIX).values_list(
            "staff_id", flat=True
        ):
            match = _STAFF_ID_RE.match(value or "")
            if match:
                highest = max(highest, int(match.group(1)))
        return f"{STAFF_ID_PREFIX}{highest + 1:03d}"

    @staticmethod
    def list_staff(
        requesting_user: User,
        *,
        status: str | None = None,
        department: str | None = None,
    ) -> QuerySet:
        """
        List staff members newest first with ``active_case_count`` and
        ``total_case_count`` annotations.
        """
        require_capability(requesting_user, None, Capability.MANAGE_STAFF)
        qs = StaffManagementService._staff_queryset()
        if status:
            qs = qs.filter(status=status)
        if department:
            qs = qs.filter(department__icontains=department)
        return qs.order_by("-date_joined")

    @staticmethod
    def get_staff(staff_pk: int) -> User:
        try:
            return StaffManagementService._staff_queryset().get(pk=staff_pk)
        except (User.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Staff member with id {staff_pk} not found.")

    @staticmethod
    def add_staff(requesting_user: User, validated_data: dict[str, Any]) -> User:
        """
        Create an active staff account with a freshly generated staff id.

        Raises
        ------
        PermissionDenied
            Unless the requester may manage staff.
        Conflict
            If the username or email is already registered.
        """
        require_capability(requesting_user, None, Capability.MANAGE_STAFF)

        data = dict(validated_data)
        password = data.pop("password")
        if User.objects.filter(email__iexact=data["email"]).exists():
            raise Conflict("Email already registered.")
        if User.objects.filter(username=data["username"]).exists():
            raise Conflict("Username already registered.")

        def _create() -> User:
            return User.objects.create_user(
                password=password,
                role=UserRole.STAFF,
                status=AccountStatus.ACTIVE,
                staff_id=StaffManagementService.next_staff_id(),
                **data,
            )

        with transaction.atomic():
            staff = retry_on_integrity_error(_create, what="staff account")

        logger.info(
            "Staff member %s (%s) created by %s",
            staff.username,
            staff.staff_id,
            requesting_user,
        )
        return StaffManagementService.get_staff(staff.pk)

    @staticmethod
    def update_staff(
        requesting_user: User,
        staff_pk: int,
        validated_data: dict[str, Any],
    ) -> User:
        """
        Update profile fields of a staff member.

        Setting ``status`` to anything other than ``active`` goes
        through the same active-case guard as ``deactivate_staff``.
        """
        require_capability(requesting_user, None, Capability.MANAGE_STAFF)

        with transaction.atomic():
            staff = lock_for_update(User, staff_pk, label="Staff member")
            if staff.role != UserRole.STAFF:
                raise NotFound(f"Staff member with id {staff_pk} not found.")

            new_status = validated_data.get("status")
            if new_status and new_status != AccountStatus.ACTIVE:
                StaffManagementService._ensure_no_active_cases(staff)

            email = validated_data.get("email")
            if email and User.objects.exclude(pk=staff.pk).filter(email__iexact=email).exists():
                raise Conflict("Email already registered.")

            for field, value in validated_data.items():
                setattr(staff, field, value)
            staff.save(update_fields=list(validated_data.keys()))

        return StaffManagementService.get_staff(staff_pk)

    @staticmethod
    def _ensure_no_active_cases(staff: User) -> None:
        Case = apps.get_model("cases", "Case")
        active_cases = (
            Case.objects.filter(assigned_staff=staff)
            .exclude(status__in=_terminal_statuses())
            .count()
        )
        if active_cases > 0:
            raise Conflict(
                f"Cannot deactivate staff member with {active_cases} active "
                f"case(s). Please reassign cases first."
            )

    @staticmethod
    def deactivate_staff(requesting_user: User, staff_pk: int) -> User:
        """
        Soft-delete a staff member by setting ``status=inactive``.

        Parameters
        ----------
        requesting_user : User
            Must hold ``Capability.MANAGE_STAFF``.
        staff_pk : int
            PK of the staff account.

        Returns
        -------
        User
            The deactivated staff member.

        Raises
        ------
        NotFound
            If no staff account has that id.
        Conflict
            If the staff member still has any non-terminal case; the
            stored status is left unchanged.
        """
        require_capability(requesting_user, None, Capability.MANAGE_STAFF)

        with transaction.atomic():
            staff = lock_for_update(User, staff_pk, label="Staff member")
            if staff.role != UserRole.STAFF:
                raise NotFound(f"Staff member with id {staff_pk} not found.")
            StaffManagementService._ensure_no_active_cases(staff)
            staff.status = AccountStatus.INACTIVE
            staff.save(update_fields=["status"])

        logger.info("Staff member %s deactivated by %s", staff.staff_id, requesting_user)
        return staff
