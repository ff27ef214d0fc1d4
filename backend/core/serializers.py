"""
Core app serializers.

Request serializers validate query/body parameters for the analytics,
report and notification endpoints.  Response serializers describe the
aggregation payloads produced by ``core.services``; they operate on
plain dicts, not model instances.
"""

from rest_framework import serializers

from .models import Notification


# ═══════════════════════════════════════════════════════════════════
#  Request Serializers
# ═══════════════════════════════════════════════════════════════════


class DateRangeQuerySerializer(serializers.Serializer):
    """Optional ``start_date`` / ``end_date`` (inclusive, ISO dates)."""

    start_date = serializers.DateField(required=False, allow_null=True, default=None)
    end_date = serializers.DateField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError(
                {"end_date": "End date must not be before start date."}
            )
        return attrs


class CaseReportRequestSerializer(serializers.Serializer):
    case_id = serializers.IntegerField(min_value=1)
    report_type = serializers.ChoiceField(choices=["summary", "detailed", "evidence"])


class StatisticalReportRequestSerializer(DateRangeQuerySerializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    report_type = serializers.ChoiceField(choices=["overview", "performance", "trends"])


class NotificationListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=20)
    unread = serializers.BooleanField(default=False)


# ═══════════════════════════════════════════════════════════════════
#  Analytics Response Serializers
# ═══════════════════════════════════════════════════════════════════


class DistributionItemSerializer(serializers.Serializer):
    value = serializers.CharField()
    label = serializers.CharField()
    count = serializers.IntegerField()


class MonthlyCountSerializer(serializers.Serializer):
    year = serializers.IntegerField()
    month = serializers.IntegerField()
    count = serializers.IntegerField()


class ResolutionStatsSerializer(serializers.Serializer):
    resolved_count = serializers.IntegerField()
    avg_days = serializers.FloatField()
    min_days = serializers.FloatField()
    max_days = serializers.FloatField()


class AnalyticsOverviewSerializer(serializers.Serializer):
    total_cases = serializers.IntegerField()
    cases_this_month = serializers.IntegerField()
    cases_this_year = serializers.IntegerField()


class AnalyticsDashboardSerializer(serializers.Serializer):
    overview = AnalyticsOverviewSerializer()
    status_distribution = DistributionItemSerializer(many=True)
    crime_type_distribution = DistributionItemSerializer(many=True)
    priority_distribution = DistributionItemSerializer(many=True)
    monthly_trend = MonthlyCountSerializer(many=True)
    resolution_stats = ResolutionStatsSerializer()


class PeriodSerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()


class StaffPerformanceSerializer(serializers.Serializer):
    staff_pk = serializers.IntegerField()
    staff_name = serializers.CharField()
    staff_id = serializers.CharField(allow_null=True)
    department = serializers.CharField(allow_blank=True)
    total_cases = serializers.IntegerField()
    completed_cases = serializers.IntegerField()
    completion_rate = serializers.FloatField()
    avg_resolution_days = serializers.FloatField()


class DepartmentPerformanceSerializer(serializers.Serializer):
    department = serializers.CharField()
    total_cases = serializers.IntegerField()
    completed_cases = serializers.IntegerField()
    completion_rate = serializers.FloatField()


class PerformanceSerializer(serializers.Serializer):
    period = PeriodSerializer()
    staff_performance = StaffPerformanceSerializer(many=True)
    department_performance = DepartmentPerformanceSerializer(many=True)


class HotspotSerializer(serializers.Serializer):
    latitude = serializers.FloatField()
    longitude = serializers.FloatField()
    count = serializers.IntegerField()
    crime_types = serializers.ListField(child=serializers.CharField())


class CityStatSerializer(serializers.Serializer):
    city = serializers.CharField()
    count = serializers.IntegerField()


class GeographicSerializer(serializers.Serializer):
    hotspots = HotspotSerializer(many=True)
    city_stats = CityStatSerializer(many=True)


class ReportTemplateSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField()
    type = serializers.CharField()
    report_type = serializers.CharField()
    parameters = serializers.ListField(child=serializers.CharField())


# ═══════════════════════════════════════════════════════════════════
#  Public Response Serializers
# ═══════════════════════════════════════════════════════════════════


class BasicCountsSerializer(serializers.Serializer):
    total_cases = serializers.IntegerField()
    resolved_cases = serializers.IntegerField()
    pending_cases = serializers.IntegerField()
    in_progress_cases = serializers.IntegerField()


class PublicStatsSerializer(serializers.Serializer):
    overview = BasicCountsSerializer()
    crime_type_stats = DistributionItemSerializer(many=True)
    monthly_stats = MonthlyCountSerializer(many=True)


class PreventionTipCategorySerializer(serializers.Serializer):
    category = serializers.CharField()
    tips = serializers.ListField(child=serializers.CharField())


class EmergencyContactSerializer(serializers.Serializer):
    name = serializers.CharField()
    number = serializers.CharField()
    description = serializers.CharField()


class TipReceiptSerializer(serializers.Serializer):
    message = serializers.CharField()
    tip_id = serializers.IntegerField()
    case_number = serializers.CharField()


# ═══════════════════════════════════════════════════════════════════
#  System Constants
# ═══════════════════════════════════════════════════════════════════


class ChoiceItemSerializer(serializers.Serializer):
    """A single ``{value, label}`` pair from a choices enum."""

    value = serializers.CharField()
    label = serializers.CharField()


class SystemConstantsSerializer(serializers.Serializer):
    crime_types = ChoiceItemSerializer(many=True)
    case_statuses = ChoiceItemSerializer(many=True)
    priorities = ChoiceItemSerializer(many=True)
    evidence_types = ChoiceItemSerializer(many=True)
    investigation_types = ChoiceItemSerializer(many=True)
    user_roles = ChoiceItemSerializer(many=True)
    account_statuses = ChoiceItemSerializer(many=True)
    notification_types = ChoiceItemSerializer(many=True)
    status_transitions = serializers.DictField(
        child=serializers.ListField(child=serializers.CharField()),
        help_text="Status → statuses that may follow it.",
    )
    sla_thresholds = serializers.DictField(
        child=serializers.IntegerField(),
        help_text="Monitored status → maximum dwell time in hours.",
    )


# ═══════════════════════════════════════════════════════════════════
#  Notifications
# ═══════════════════════════════════════════════════════════════════


class NotificationSerializer(serializers.ModelSerializer):
    """Read-only view of one stored notification."""

    content_type = serializers.StringRelatedField(read_only=True)

    class Meta:
        model = Notification
        fields = [
            "id",
            "notification_type",
            "title",
            "message",
            "data",
            "is_read",
            "read_at",
            "content_type",
            "object_id",
            "created_at",
        ]
        read_only_fields = fields


class NotificationPageSerializer(serializers.Serializer):
    count = serializers.IntegerField()
    unread_count = serializers.IntegerField()
    page = serializers.IntegerField()
    limit = serializers.IntegerField()
    results = NotificationSerializer(many=True)


class NotificationCountSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    unread = serializers.IntegerField()
