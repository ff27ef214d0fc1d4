"""
Cases app serializers.

Request serializers validate and bound every input (enumerations,
coordinates, lengths, upload counts and sizes).  Response serializers
shape ``Case``, ``CaseStatusHistory`` and ``EvidenceFile`` rows.
Evidence bytes are never serialised; they are streamed by the download
endpoint.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer

from .models import Case, CaseStatus, CaseStatusHistory, CrimeType, EvidenceFile, EvidenceType, Priority


def _validate_uploads(files: list, limit: int) -> list:
    if len(files) > limit:
        raise serializers.ValidationError(f"At most {limit} files may be uploaded at once.")
    max_size = settings.MAX_UPLOAD_SIZE_BYTES
    for upload in files:
        if upload.size > max_size:
            raise serializers.ValidationError(
                f"'{upload.name}' exceeds the maximum size of {max_size} bytes."
            )
    return files


class _LocationFieldsMixin(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    address = serializers.CharField(max_length=500)

    def validate_address(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Address is required.")
        return value


# ═══════════════════════════════════════════════════════════════════
#  Request Serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintCreateSerializer(_LocationFieldsMixin):
    """
    Complaint filing (JSON or multipart).  Up to ``MAX_COMPLAINT_FILES``
    evidence files may be sent under ``evidence_files``.
    """

    title = serializers.CharField(min_length=5, max_length=200)
    description = serializers.CharField(min_length=20, max_length=2000)
    crime_type = serializers.ChoiceField(choices=CrimeType.choices)
    priority = serializers.ChoiceField(choices=Priority.choices, default=Priority.MEDIUM)
    is_anonymous = serializers.BooleanField(default=False)
    tags = serializers.ListField(
        child=serializers.CharField(max_length=50),
        required=False,
        default=list,
    )
    evidence_files = serializers.ListField(
        child=serializers.FileField(),
        required=False,
        default=list,
    )

    def validate_evidence_files(self, value: list) -> list:
        return _validate_uploads(value, settings.MAX_COMPLAINT_FILES)


class AnonymousTipSerializer(_LocationFieldsMixin):
    """Public tip submission; no account required."""

    description = serializers.CharField(min_length=20, max_length=1000)
    crime_type = serializers.ChoiceField(choices=CrimeType.choices)
    contact_info = serializers.CharField(
        max_length=200,
        required=False,
        allow_blank=True,
        default="",
    )


class CaseFilterSerializer(serializers.Serializer):
    """
    Query-parameter filters for the case list.

    ``crimeType`` and ``assignedTo`` are accepted as aliases of
    ``crime_type`` and ``assigned_to``; the snake_case name wins when
    both are sent.
    """

    status = serializers.ChoiceField(choices=CaseStatus.choices, required=False)
    priority = serializers.ChoiceField(choices=Priority.choices, required=False)
    crime_type = serializers.ChoiceField(choices=CrimeType.choices, required=False)
    crimeType = serializers.ChoiceField(
        choices=CrimeType.choices, required=False, write_only=True
    )
    assigned_to = serializers.IntegerField(required=False, min_value=1)
    assignedTo = serializers.IntegerField(required=False, min_value=1, write_only=True)
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100)

    _ALIASES = {"crimeType": "crime_type", "assignedTo": "assigned_to"}

    def validate(self, attrs):
        for alias, name in self._ALIASES.items():
            value = attrs.pop(alias, None)
            if value is not None:
                attrs.setdefault(name, value)
        return attrs


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CaseStatus.choices)
    note = serializers.CharField(
        max_length=500,
        required=False,
        allow_blank=True,
        default="",
    )


class AssignStaffSerializer(serializers.Serializer):
    staff_id = serializers.IntegerField(
        min_value=1,
        help_text="PK of the staff account to assign.",
    )


class EvidenceUploadSerializer(serializers.Serializer):
    files = serializers.ListField(
        child=serializers.FileField(),
        allow_empty=False,
    )
    description = serializers.CharField(
        max_length=500,
        required=False,
        allow_blank=True,
        default="",
    )
    evidence_type = serializers.ChoiceField(
        choices=EvidenceType.choices,
        default=EvidenceType.OTHER,
    )

    def validate_files(self, value: list) -> list:
        return _validate_uploads(value, settings.MAX_EVIDENCE_FILES)


class EvidenceUpdateSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    evidence_type = serializers.ChoiceField(choices=EvidenceType.choices, required=False)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if not attrs:
            raise serializers.ValidationError("Provide description and/or evidence_type.")
        return attrs


# ═══════════════════════════════════════════════════════════════════
#  Response Serializers
# ═══════════════════════════════════════════════════════════════════


class StatusHistorySerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    changed_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = CaseStatusHistory
        fields = ["id", "status", "status_display", "timestamp", "changed_by", "note"]
        read_only_fields = fields


class EvidenceFileSerializer(serializers.ModelSerializer):
    """Evidence metadata.  ``data`` is intentionally excluded."""

    uploaded_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = EvidenceFile
        fields = [
            "id",
            "filename",
            "original_name",
            "content_type",
            "size",
            "description",
            "evidence_type",
            "uploaded_by",
            "uploaded_at",
        ]
        read_only_fields = fields


class CaseListSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    priority_display = serializers.CharField(source="get_priority_display", read_only=True)
    crime_type_display = serializers.CharField(source="get_crime_type_display", read_only=True)
    assigned_staff = UserSummarySerializer(read_only=True)

    class Meta:
        model = Case
        fields = [
            "id",
            "case_number",
            "title",
            "crime_type",
            "crime_type_display",
            "status",
            "status_display",
            "priority",
            "priority_display",
            "address",
            "assigned_staff",
            "assignment_date",
            "is_overdue",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CaseDetailSerializer(CaseListSerializer):
    """
    Full case payload.  The reporter is hidden for anonymous complaints
    unless the viewer is the reporter.
    """

    reporter = serializers.SerializerMethodField()
    status_history = StatusHistorySerializer(many=True, read_only=True)
    evidence_files = EvidenceFileSerializer(many=True, read_only=True)

    class Meta(CaseListSerializer.Meta):
        fields = CaseListSerializer.Meta.fields + [
            "description",
            "latitude",
            "longitude",
            "is_anonymous",
            "tags",
            "contact_info",
            "reporter",
            "completed_at",
            "overdue_by_hours",
            "last_sla_check",
            "status_history",
            "evidence_files",
        ]
        read_only_fields = fields

    def get_reporter(self, obj: Case) -> dict | None:
        if obj.reporter is None:
            return None
        request = self.context.get("request")
        viewer = getattr(request, "user", None)
        if obj.is_anonymous and getattr(viewer, "pk", None) != obj.reporter_id:
            return None
        return UserSummarySerializer(obj.reporter).data
