"""SLA app serializers (responses only)."""

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from cases.models import Case

from .services import SLAComplianceService


class SLAEvaluationSerializer(serializers.Serializer):
    status = serializers.CharField()
    status_since = serializers.DateTimeField()
    hours_elapsed = serializers.FloatField()
    threshold_hours = serializers.IntegerField()
    is_overdue = serializers.BooleanField()
    overdue_by_hours = serializers.FloatField()


class SLAStatisticsSerializer(serializers.Serializer):
    total_active = serializers.IntegerField()
    overdue_count = serializers.IntegerField()
    on_time_count = serializers.IntegerField()
    compliance_rate = serializers.FloatField()
    avg_resolution_days = serializers.FloatField()


class SweepSummarySerializer(serializers.Serializer):
    checked = serializers.IntegerField()
    overdue = serializers.IntegerField()
    cleared = serializers.IntegerField()
    errors = serializers.IntegerField()
    newly_overdue = serializers.ListField(child=serializers.CharField())


class OverdueCaseSerializer(serializers.ModelSerializer):
    """A flagged case with its live evaluation."""

    status_display = serializers.CharField(source="get_status_display", read_only=True)
    reporter = UserSummarySerializer(read_only=True)
    assigned_staff = UserSummarySerializer(read_only=True)
    sla = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            "id",
            "case_number",
            "title",
            "status",
            "status_display",
            "priority",
            "reporter",
            "assigned_staff",
            "is_overdue",
            "overdue_by_hours",
            "last_sla_check",
            "sla",
        ]
        read_only_fields = fields

    def get_sla(self, obj):
        evaluation = SLAComplianceService.evaluate(obj)
        if evaluation is None:
            return None
        return SLAEvaluationSerializer(evaluation).data
