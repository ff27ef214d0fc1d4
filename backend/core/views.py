"""
Core app views — **Thin Views**.

Each view delegates to a service in ``core.services`` and only:

1. Validates query/body parameters with a serializer.
2. Calls the service with the authenticated user.
3. Serialises the result into a ``Response``.

Capability checks happen inside the services.
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from cases.serializers import AnonymousTipSerializer
from cases.services import CaseCreationService

from .serializers import (
    AnalyticsDashboardSerializer,
    CaseReportRequestSerializer,
    DateRangeQuerySerializer,
    EmergencyContactSerializer,
    GeographicSerializer,
    NotificationCountSerializer,
    NotificationListQuerySerializer,
    NotificationPageSerializer,
    NotificationSerializer,
    PerformanceSerializer,
    PreventionTipCategorySerializer,
    PublicStatsSerializer,
    ReportTemplateSerializer,
    StatisticalReportRequestSerializer,
    SystemConstantsSerializer,
    TipReceiptSerializer,
)
from .services import (
    CaseAnalyticsService,
    DashboardAggregationService,
    GeographicAnalyticsService,
    NotificationInboxService,
    PerformanceAnalyticsService,
    PublicInformationService,
    ReportGenerationService,
    SystemConstantsService,
)

_DATE_PARAMS = [
    OpenApiParameter(name="start_date", type=str, required=False, description="ISO date, inclusive."),
    OpenApiParameter(name="end_date", type=str, required=False, description="ISO date, inclusive."),
]


# ═══════════════════════════════════════════════════════════════════
#  Dashboard & constants
# ═══════════════════════════════════════════════════════════════════


class DashboardStatsView(APIView):
    """
    **GET /api/core/dashboard/**

    Role-aware home dashboard.  Citizens see their own complaints, staff
    their assigned cases, administrators and supervisors the whole
    organisation plus SLA compliance.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Dashboard statistics",
        responses={200: OpenApiResponse(description="Role-dependent dashboard payload.")},
        tags=["Dashboard"],
    )
    def get(self, request: Request) -> Response:
        service = DashboardAggregationService(user=request.user)
        return Response(service.get_stats(), status=status.HTTP_200_OK)


class SystemConstantsView(APIView):
    """**GET /api/core/constants/** — enumerations for client dropdowns."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="System constants",
        responses={200: SystemConstantsSerializer},
        tags=["System"],
    )
    def get(self, request: Request) -> Response:
        data = SystemConstantsService.get_constants()
        return Response(SystemConstantsSerializer(data).data)


# ═══════════════════════════════════════════════════════════════════
#  Analytics
# ═══════════════════════════════════════════════════════════════════


class AnalyticsViewSet(viewsets.ViewSet):
    """
    ``/api/core/analytics/``

    - ``dashboard/``   — administrators, supervisors and staff.
    - ``performance/`` — administrators and supervisors.
    - ``geographic/``  — administrators and supervisors.
    """

    permission_classes = [IsAuthenticated]

    @action(detail=False, methods=["get"], url_path="dashboard")
    @extend_schema(
        summary="Case analytics dashboard",
        responses={200: AnalyticsDashboardSerializer},
        tags=["Analytics"],
    )
    def dashboard(self, request: Request) -> Response:
        data = CaseAnalyticsService.dashboard(request.user)
        return Response(AnalyticsDashboardSerializer(data).data)

    @action(detail=False, methods=["get"], url_path="performance")
    @extend_schema(
        summary="Staff and department performance",
        description="Defaults to the last 30 days.",
        parameters=_DATE_PARAMS,
        responses={200: PerformanceSerializer},
        tags=["Analytics"],
    )
    def performance(self, request: Request) -> Response:
        params = DateRangeQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = PerformanceAnalyticsService.performance(
            request.user,
            params.validated_data["start_date"],
            params.validated_data["end_date"],
        )
        return Response(PerformanceSerializer(data).data)

    @action(detail=False, methods=["get"], url_path="geographic")
    @extend_schema(
        summary="Geographic hotspots",
        responses={200: GeographicSerializer},
        tags=["Analytics"],
    )
    def geographic(self, request: Request) -> Response:
        data = GeographicAnalyticsService.geographic(request.user)
        return Response(GeographicSerializer(data).data)


# ═══════════════════════════════════════════════════════════════════
#  Reports
# ═══════════════════════════════════════════════════════════════════


class ReportViewSet(viewsets.ViewSet):
    """``/api/core/reports/``"""

    permission_classes = [IsAuthenticated]

    @action(detail=False, methods=["post"], url_path="case-report")
    @extend_schema(
        summary="Generate a case report",
        request=CaseReportRequestSerializer,
        responses={
            200: OpenApiResponse(description="Case report."),
            403: OpenApiResponse(description="Not allowed to report on this case."),
            404: OpenApiResponse(description="Case not found."),
        },
        tags=["Reports"],
    )
    def case_report(self, request: Request) -> Response:
        serializer = CaseReportRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportGenerationService.case_report(
            request.user,
            serializer.validated_data["case_id"],
            serializer.validated_data["report_type"],
        )
        return Response(report)

    @action(detail=False, methods=["post"], url_path="statistical-report")
    @extend_schema(
        summary="Generate a statistical report",
        request=StatisticalReportRequestSerializer,
        responses={200: OpenApiResponse(description="Statistical report.")},
        tags=["Reports"],
    )
    def statistical_report(self, request: Request) -> Response:
        serializer = StatisticalReportRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        report = ReportGenerationService.statistical_report(
            request.user,
            data["start_date"],
            data["end_date"],
            data["report_type"],
        )
        return Response(report)

    @action(detail=False, methods=["get"], url_path="templates")
    @extend_schema(
        summary="Available report templates",
        responses={200: ReportTemplateSerializer(many=True)},
        tags=["Reports"],
    )
    def templates(self, request: Request) -> Response:
        templates = ReportGenerationService.templates(request.user)
        return Response(ReportTemplateSerializer(templates, many=True).data)


# ═══════════════════════════════════════════════════════════════════
#  Notifications
# ═══════════════════════════════════════════════════════════════════


class NotificationViewSet(viewsets.ViewSet):
    """
    ``/api/core/notifications/`` — the caller's own notifications.

    - ``GET    /``               — newest first (``page``, ``limit``, ``unread``).
    - ``GET    /count/``         — total and unread counts.
    - ``POST   /{id}/read/``     — mark one read.
    - ``POST   /read-all/``      — mark all read.
    - ``DELETE /{id}/``          — delete one.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List notifications",
        parameters=[
            OpenApiParameter(name="page", type=int, required=False),
            OpenApiParameter(name="limit", type=int, required=False),
            OpenApiParameter(name="unread", type=bool, required=False),
        ],
        responses={200: NotificationPageSerializer},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        params = NotificationListQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        page = NotificationInboxService(request.user).list_notifications(
            unread_only=params.validated_data["unread"],
            page=params.validated_data["page"],
            limit=params.validated_data["limit"],
        )
        return Response(NotificationPageSerializer(page).data)

    @extend_schema(
        summary="Delete a notification",
        responses={
            204: OpenApiResponse(description="Deleted."),
            404: OpenApiResponse(description="Not found."),
        },
        tags=["Notifications"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        NotificationInboxService(request.user).delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="count")
    @extend_schema(
        summary="Notification counts",
        responses={200: NotificationCountSerializer},
        tags=["Notifications"],
    )
    def count(self, request: Request) -> Response:
        counts = NotificationInboxService(request.user).counts()
        return Response(NotificationCountSerializer(counts).data)

    @action(detail=True, methods=["post"], url_path="read")
    @extend_schema(
        summary="Mark notification as read",
        request=None,
        responses={
            200: NotificationSerializer,
            404: OpenApiResponse(description="Not found."),
        },
        tags=["Notifications"],
    )
    def read(self, request: Request, pk: str = None) -> Response:
        notification = NotificationInboxService(request.user).mark_as_read(pk)
        return Response(NotificationSerializer(notification).data)

    @action(detail=False, methods=["post"], url_path="read-all")
    @extend_schema(
        summary="Mark all notifications as read",
        request=None,
        responses={200: OpenApiResponse(description="``{\"updated\": n}``")},
        tags=["Notifications"],
    )
    def read_all(self, request: Request) -> Response:
        updated = NotificationInboxService(request.user).mark_all_as_read()
        return Response({"updated": updated})


# ═══════════════════════════════════════════════════════════════════
#  Public (no authentication)
# ═══════════════════════════════════════════════════════════════════


class PublicStatsView(APIView):
    """**GET /api/public/stats/**"""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Public crime statistics",
        responses={200: PublicStatsSerializer},
        tags=["Public"],
    )
    def get(self, request: Request) -> Response:
        return Response(PublicStatsSerializer(PublicInformationService.stats()).data)


class AnonymousTipView(APIView):
    """**POST /api/public/tips/** — anonymous tip, recorded as a case."""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Submit an anonymous tip",
        request=AnonymousTipSerializer,
        responses={201: TipReceiptSerializer},
        tags=["Public"],
    )
    def post(self, request: Request) -> Response:
        serializer = AnonymousTipSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseCreationService.submit_anonymous_tip(serializer.validated_data)
        receipt = {
            "message": "Anonymous tip submitted successfully",
            "tip_id": case.pk,
            "case_number": case.case_number,
        }
        return Response(TipReceiptSerializer(receipt).data, status=status.HTTP_201_CREATED)


class PreventionTipsView(APIView):
    """**GET /api/public/prevention-tips/**"""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Crime prevention tips",
        responses={200: PreventionTipCategorySerializer(many=True)},
        tags=["Public"],
    )
    def get(self, request: Request) -> Response:
        tips = PublicInformationService.prevention_tips()
        return Response(PreventionTipCategorySerializer(tips, many=True).data)


class EmergencyContactsView(APIView):
    """**GET /api/public/emergency-contacts/**"""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Emergency contacts",
        responses={200: EmergencyContactSerializer(many=True)},
        tags=["Public"],
    )
    def get(self, request: Request) -> Response:
        contacts = PublicInformationService.emergency_contacts()
        return Response(EmergencyContactSerializer(contacts, many=True).data)
