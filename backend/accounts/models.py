"""
Accounts app models.

Defines a custom User model extending Django's ``AbstractUser`` with the
fixed role set used by the capability check (citizen, staff, admin,
supervisor), an account status, and the staff-only fields (department,
generated staff id).
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class UserRole(models.TextChoices):
    CITIZEN = "citizen", "Citizen"
    STAFF = "staff", "Staff"
    ADMIN = "admin", "Administrator"
    SUPERVISOR = "supervisor", "Supervisor"


class AccountStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
    SUSPENDED = "suspended", "Suspended"


class User(AbstractUser):
    """
    Custom user model for the Crimewatch system.

    Citizens self-register; staff accounts are created by an
    administrator and receive a generated ``staff_id`` (``STF-NNN``).
    Login is supported via username, email, or staff id together with
    the password.

    ``status`` is the business-level activation flag: deactivating a
    staff member sets it to ``inactive`` (soft delete) and blocks login
    and assignment.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    role = models.CharField(
        max_length=16,
        choices=UserRole.choices,
        default=UserRole.CITIZEN,
        db_index=True,
        verbose_name="Role",
    )
    status = models.CharField(
        max_length=16,
        choices=AccountStatus.choices,
        default=AccountStatus.ACTIVE,
        db_index=True,
        verbose_name="Account Status",
    )
    mobile = models.CharField(
        max_length=17,
        blank=True,
        default="",
        verbose_name="Mobile Number",
    )
    address = models.JSONField(
        default=dict,
        blank=True,
        verbose_name="Address",
        help_text="Object with street, city, state and pincode keys.",
    )

    # ── Staff-only fields ────────────────────────────────────────────
    department = models.CharField(
        max_length=100,
        blank=True,
        default="",
        verbose_name="Department",
    )
    staff_id = models.CharField(
        max_length=16,
        unique=True,
        null=True,
        blank=True,
        verbose_name="Staff ID",
    )

    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        ordering = ["-date_joined"]

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    # ── Helper predicates for role checks ────────────────────────────

    def has_role(self, *roles: str) -> bool:
        """Check if the user's role is one of the given names."""
        return self.role in roles

    @property
    def is_account_active(self) -> bool:
        return self.is_active and self.status == AccountStatus.ACTIVE

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.username
