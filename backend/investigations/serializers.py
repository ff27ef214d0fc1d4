"""
Investigations app serializers.

The structured sub-records are accepted either as JSON arrays (JSON
body) or as JSON-encoded strings (multipart form), validated item by
item, and stored as plain JSON lists.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from cases.models import CaseStatus

from .models import Investigation, InvestigationAttachment, InvestigationType


# ── Sub-record schemas ──────────────────────────────────────────────


class MapMarkerSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    label = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    marker_type = serializers.ChoiceField(
        choices=["crime-scene", "evidence", "witness", "suspect", "other"],
        default="other",
    )


class NextActionSerializer(serializers.Serializer):
    action = serializers.CharField(max_length=500)
    deadline = serializers.DateField(required=False, allow_null=True, default=None)
    priority = serializers.ChoiceField(choices=["Low", "Medium", "High"], default="Medium")


class WitnessSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    contact = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    statement = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")
    interviewed = serializers.BooleanField(default=False)


class SuspectSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")
    status = serializers.ChoiceField(
        choices=["Identified", "Located", "Questioned", "Cleared", "Charged"],
        default="Identified",
    )


def _validate_records(value: Any, item_serializer: type[serializers.Serializer]) -> list[dict]:
    if value in (None, ""):
        return []
    if not isinstance(value, list):
        raise serializers.ValidationError("Expected a list.")
    ser = item_serializer(data=value, many=True)
    ser.is_valid(raise_exception=True)
    return [dict(item) for item in ser.data]


class _RecordsMixin(serializers.Serializer):
    map_markers = serializers.JSONField(required=False)
    next_actions = serializers.JSONField(required=False)
    witnesses = serializers.JSONField(required=False)
    suspects = serializers.JSONField(required=False)

    def validate_map_markers(self, value):
        return _validate_records(value, MapMarkerSerializer)

    def validate_next_actions(self, value):
        return _validate_records(value, NextActionSerializer)

    def validate_witnesses(self, value):
        return _validate_records(value, WitnessSerializer)

    def validate_suspects(self, value):
        return _validate_records(value, SuspectSerializer)


# ═══════════════════════════════════════════════════════════════════
#  Request Serializers
# ═══════════════════════════════════════════════════════════════════


class InvestigationCreateSerializer(_RecordsMixin):
    title = serializers.CharField(min_length=5, max_length=200)
    notes = serializers.CharField(min_length=10, max_length=2000)
    investigation_type = serializers.ChoiceField(choices=InvestigationType.choices)
    status_update = serializers.ChoiceField(
        choices=CaseStatus.choices,
        required=False,
        allow_blank=True,
        default="",
    )
    hours_spent = serializers.FloatField(min_value=0, default=0)
    attachments = serializers.ListField(
        child=serializers.FileField(),
        required=False,
        default=list,
    )
    attachment_descriptions = serializers.ListField(
        child=serializers.CharField(max_length=500, allow_blank=True),
        required=False,
        default=list,
    )

    def validate_attachments(self, value: list) -> list:
        limit = settings.MAX_INVESTIGATION_FILES
        if len(value) > limit:
            raise serializers.ValidationError(f"At most {limit} attachments are allowed.")
        for upload in value:
            if upload.size > settings.MAX_UPLOAD_SIZE_BYTES:
                raise serializers.ValidationError(f"'{upload.name}' is too large.")
        return value


class InvestigationUpdateSerializer(_RecordsMixin):
    title = serializers.CharField(min_length=5, max_length=200, required=False)
    notes = serializers.CharField(min_length=10, max_length=2000, required=False)
    investigation_type = serializers.ChoiceField(choices=InvestigationType.choices, required=False)
    hours_spent = serializers.FloatField(min_value=0, required=False)


# ═══════════════════════════════════════════════════════════════════
#  Response Serializers
# ═══════════════════════════════════════════════════════════════════


class InvestigationAttachmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvestigationAttachment
        fields = [
            "id",
            "filename",
            "original_name",
            "content_type",
            "size",
            "description",
            "uploaded_at",
        ]
        read_only_fields = fields


class InvestigationSerializer(serializers.ModelSerializer):
    case_number = serializers.CharField(source="case_id", read_only=True)
    author = UserSummarySerializer(read_only=True)
    investigation_type_display = serializers.CharField(
        source="get_investigation_type_display", read_only=True
    )
    attachments = InvestigationAttachmentSerializer(many=True, read_only=True)

    class Meta:
        model = Investigation
        fields = [
            "id",
            "case_number",
            "author",
            "title",
            "notes",
            "investigation_type",
            "investigation_type_display",
            "status_update",
            "hours_spent",
            "map_markers",
            "next_actions",
            "witnesses",
            "suspects",
            "attachments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
