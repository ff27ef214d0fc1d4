"""
SLA app ViewSets.

- ``SLAViewSet`` — ``/api/sla/``: overdue list, compliance statistics,
  one case's live SLA status, and an on-demand sweep.

Reading requires the ``view_sla`` capability (administrators and
supervisors); triggering a sweep requires ``run_sla`` (administrators).
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.domain.access import Capability, require_capability
from core.pagination import paginate

from .serializers import (
    OverdueCaseSerializer,
    SLAStatisticsSerializer,
    SweepSummarySerializer,
)
from .services import SLAComplianceService


class SLAViewSet(viewsets.ViewSet):

    permission_classes = [IsAuthenticated]

    @action(detail=False, methods=["get"], url_path="overdue")
    @extend_schema(
        summary="Overdue cases",
        description="Cases currently flagged overdue, worst first.",
        responses={200: OverdueCaseSerializer(many=True)},
        tags=["SLA"],
    )
    def overdue(self, request: Request) -> Response:
        require_capability(request.user, None, Capability.VIEW_SLA)
        qs = SLAComplianceService.get_overdue_cases()
        return paginate(request, qs, OverdueCaseSerializer, view=self)

    @action(detail=False, methods=["get"], url_path="statistics")
    @extend_schema(
        summary="SLA compliance statistics",
        responses={200: SLAStatisticsSerializer},
        tags=["SLA"],
    )
    def statistics(self, request: Request) -> Response:
        require_capability(request.user, None, Capability.VIEW_SLA)
        stats = SLAComplianceService.get_statistics()
        return Response(SLAStatisticsSerializer(stats).data)

    @action(detail=False, methods=["get"], url_path=r"cases/(?P<case_pk>[^/.]+)")
    @extend_schema(
        summary="SLA status of one case",
        responses={
            200: OpenApiResponse(description="Stored flag and live evaluation."),
            404: OpenApiResponse(description="Case not found."),
        },
        tags=["SLA"],
    )
    def case_status(self, request: Request, case_pk: str = None) -> Response:
        case = SLAComplianceService.get_case_status(request.user, case_pk)
        return Response(OverdueCaseSerializer(case).data)

    @action(detail=False, methods=["post"], url_path="sweep")
    @extend_schema(
        summary="Run an SLA sweep now",
        request=None,
        responses={200: SweepSummarySerializer},
        tags=["SLA"],
    )
    def sweep(self, request: Request) -> Response:
        require_capability(request.user, None, Capability.RUN_SLA)
        summary = SLAComplianceService.run_sweep()
        return Response(SweepSummarySerializer(summary.as_dict()).data)
