"""
Accounts app serializers.

Contains all Request and Response serializers for the accounts API.
Serializers handle field definitions, read/write constraints, and
basic validation.  **No business logic** lives here; domain
rules are delegated to ``services.py``.
"""

from __future__ import annotations

import re
from typing import Any

from django.contrib.auth import authenticate, get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import AccountStatus

User = get_user_model()

MOBILE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")


class AddressSerializer(serializers.Serializer):
    """Postal address stored as a JSON object on the user."""

    street = serializers.CharField(required=False, allow_blank=True, max_length=200)
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    state = serializers.CharField(required=False, allow_blank=True, max_length=100)
    pincode = serializers.CharField(required=False, allow_blank=True, max_length=20)


def _validate_mobile(value: str) -> str:
    if value and not MOBILE_PATTERN.match(value):
        raise serializers.ValidationError("Valid mobile number required.")
    return value


# ═══════════════════════════════════════════════════════════════════
#  Authentication Serializers
# ═══════════════════════════════════════════════════════════════════


class RegisterRequestSerializer(serializers.ModelSerializer):
    """
    Validates citizen self-registration data.

    Required fields: username, password, password_confirm, email,
    first_name, last_name.  The response after a successful
    registration is rendered by ``UserDetailSerializer``.
    """

    password = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
        help_text="Minimum 8 characters.",
    )
    password_confirm = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
        help_text="Must match 'password'.",
    )
    address = AddressSerializer(required=False)

    class Meta:
        model = User
        fields = [
            "username",
            "password",
            "password_confirm",
            "email",
            "first_name",
            "last_name",
            "mobile",
            "address",
        ]
        extra_kwargs = {
            "email": {"required": True},
            "first_name": {"required": True},
            "last_name": {"required": True},
        }

    def validate_mobile(self, value: str) -> str:
        return _validate_mobile(value)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs["password"] != attrs["password_confirm"]:
            raise serializers.ValidationError(
                {"password_confirm": "Passwords do not match."}
            )
        attrs.pop("password_confirm")
        return attrs


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Custom SimpleJWT serializer that:

    1. Accepts ``identifier`` + ``password`` instead of
       ``username`` + ``password``.
    2. Resolves the user via the ``MultiFieldAuthBackend``.
    3. Injects ``role`` and ``staff_id`` claims into the token payload.
    """

    username_field = "identifier"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields.pop(self.username_field, None)
        self.fields["identifier"] = serializers.CharField(
            help_text="Username, email, or staff id.",
        )

    @classmethod
    def get_token(cls, user) -> Any:
        token = super().get_token(user)
        token["role"] = user.role
        token["staff_id"] = user.staff_id
        return token

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        user = authenticate(
            request=self.context.get("request"),
            identifier=attrs.get("identifier"),
            password=attrs.get("password"),
        )

        if user is None:
            raise serializers.ValidationError(
                {"detail": "Invalid credentials."},
                code="authentication",
            )

        refresh = self.get_token(user)
        self.user = user
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }


# ═══════════════════════════════════════════════════════════════════
#  User Serializers
# ═══════════════════════════════════════════════════════════════════


class UserDetailSerializer(serializers.ModelSerializer):
    """
    Full user representation (me, registration and login responses).
    """

    role_display = serializers.CharField(source="get_role_display", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "mobile",
            "address",
            "role",
            "role_display",
            "status",
            "status_display",
            "department",
            "staff_id",
            "date_joined",
        ]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user reference nested inside case / investigation payloads."""

    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "username", "name", "email", "staff_id", "department"]
        read_only_fields = fields


class CitizenListSerializer(serializers.ModelSerializer):
    """Citizen row in the admin user list, with their complaint count."""

    complaint_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "mobile",
            "status",
            "date_joined",
            "complaint_count",
        ]
        read_only_fields = fields


class MeUpdateSerializer(serializers.ModelSerializer):
    """
    Allows the authenticated user to update limited profile fields.
    Role, status, department and staff id cannot be self-modified.
    """

    address = AddressSerializer(required=False)

    class Meta:
        model = User
        fields = ["email", "first_name", "last_name", "mobile", "address"]

    def validate_email(self, value: str) -> str:
        if (
            self.instance
            and User.objects.exclude(pk=self.instance.pk)
            .filter(email__iexact=value)
            .exists()
        ):
            raise serializers.ValidationError(
                "This email is already in use by another account."
            )
        return value

    def validate_mobile(self, value: str) -> str:
        return _validate_mobile(value)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
    )
    new_password = serializers.CharField(
        write_only=True,
        min_length=6,
        style={"input_type": "password"},
        help_text="Minimum 6 characters.",
    )


# ═══════════════════════════════════════════════════════════════════
#  Staff Serializers
# ═══════════════════════════════════════════════════════════════════


class StaffFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=AccountStatus.choices,
        required=False,
        help_text="Filter by account status.",
    )
    department = serializers.CharField(
        required=False,
        help_text="Case-insensitive partial match on department.",
    )


class StaffCreateSerializer(serializers.Serializer):
    """Admin request to create a staff account."""

    username = serializers.CharField(max_length=150)
    first_name = serializers.CharField(min_length=1, max_length=150)
    last_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        min_length=6,
        style={"input_type": "password"},
    )
    mobile = serializers.CharField(max_length=17)
    department = serializers.CharField(max_length=100)
    address = AddressSerializer(required=False)

    def validate_mobile(self, value: str) -> str:
        if not value:
            raise serializers.ValidationError("Valid mobile number required.")
        return _validate_mobile(value)

    def validate_department(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Department is required.")
        return value


class StaffUpdateSerializer(serializers.Serializer):
    """
    Admin partial update of a staff account.  Role and password are
    deliberately absent.
    """

    first_name = serializers.CharField(required=False, min_length=1, max_length=150)
    last_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    email = serializers.EmailField(required=False)
    mobile = serializers.CharField(required=False, max_length=17)
    department = serializers.CharField(required=False, max_length=100)
    status = serializers.ChoiceField(choices=AccountStatus.choices, required=False)
    address = AddressSerializer(required=False)

    def validate_mobile(self, value: str) -> str:
        return _validate_mobile(value)

    def validate_department(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Department cannot be empty.")
        return value


class StaffListSerializer(serializers.ModelSerializer):
    """Staff row with workload counters."""

    name = serializers.CharField(source="display_name", read_only=True)
    case_stats = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "name",
            "email",
            "mobile",
            "department",
            "staff_id",
            "status",
            "date_joined",
            "case_stats",
        ]
        read_only_fields = fields

    def get_case_stats(self, obj) -> dict:
        return {
            "active": getattr(obj, "active_case_count", 0),
            "total": getattr(obj, "total_case_count", 0),
        }
