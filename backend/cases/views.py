"""
Cases app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

ViewSets
--------
- ``CaseViewSet`` — complaint filing, listing, status updates,
  assignment, status history and evidence sub-resources.
"""

from __future__ import annotations

import logging

from django.http import HttpResponse
from django.utils.http import content_disposition_header
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.pagination import paginate

from .serializers import (
    AssignStaffSerializer,
    CaseDetailSerializer,
    CaseFilterSerializer,
    CaseListSerializer,
    ComplaintCreateSerializer,
    EvidenceFileSerializer,
    EvidenceUpdateSerializer,
    EvidenceUploadSerializer,
    StatusHistorySerializer,
    StatusUpdateSerializer,
)
from .services import (
    CaseAssignmentService,
    CaseCreationService,
    CaseQueryService,
    CaseWorkflowService,
    EvidenceService,
)

logger = logging.getLogger(__name__)

_EVIDENCE_PK = r"evidence/(?P<evidence_pk>[^/.]+)"


class CaseViewSet(viewsets.ViewSet):
    """
    Central ViewSet for the cases app.

    Uses ``viewsets.ViewSet`` (not ``ModelViewSet``) so every action is
    explicitly defined.  The base permission is ``IsAuthenticated``;
    role and ownership checks happen in the service layer through the
    capability check.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    # ── Standard actions ─────────────────────────────────────────────

    @extend_schema(
        summary="List cases",
        description=(
            "Cases visible to the caller: citizens see their own, staff see "
            "cases assigned to them, administrators and supervisors see all."
        ),
        parameters=[
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, description="Filter by case status."),
            OpenApiParameter(name="priority", type=str, location=OpenApiParameter.QUERY, description="Filter by priority."),
            OpenApiParameter(name="crime_type", type=str, location=OpenApiParameter.QUERY, description="Filter by crime type (alias: crimeType)."),
            OpenApiParameter(name="assigned_to", type=int, location=OpenApiParameter.QUERY, description="Filter by assigned staff PK (alias: assignedTo)."),
            OpenApiParameter(name="search", type=str, location=OpenApiParameter.QUERY, description="Match on title or case number."),
            OpenApiParameter(name="page", type=int, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="limit", type=int, location=OpenApiParameter.QUERY, description="1-100."),
        ],
        responses={200: OpenApiResponse(response=CaseListSerializer(many=True), description="Paginated cases.")},
        tags=["Cases"],
    )
    def list(self, request: Request) -> Response:
        filter_serializer = CaseFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        qs = CaseQueryService.get_filtered_queryset(
            request.user, filter_serializer.validated_data
        )
        return paginate(request, qs, CaseListSerializer, view=self)

    @extend_schema(
        summary="File a complaint",
        description="Create a case in 'filed' status.  Accepts up to 5 evidence files (multipart).",
        request=ComplaintCreateSerializer,
        responses={
            201: OpenApiResponse(response=CaseDetailSerializer, description="Complaint filed."),
            400: OpenApiResponse(description="Validation error."),
        },
        tags=["Cases"],
    )
    def create(self, request: Request) -> Response:
        serializer = ComplaintCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        files = serializer.validated_data.get("evidence_files", [])
        case = CaseCreationService.file_complaint(
            request.user, serializer.validated_data, files
        )
        case = CaseQueryService.get_case_detail(request.user, case.pk)
        out = CaseDetailSerializer(case, context={"request": request})
        return Response(out.data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve case details",
        responses={
            200: OpenApiResponse(response=CaseDetailSerializer, description="Full case detail."),
            403: OpenApiResponse(description="Not allowed to view this case."),
            404: OpenApiResponse(description="Case not found."),
        },
        tags=["Cases"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        case = CaseQueryService.get_case_detail(request.user, pk)
        serializer = CaseDetailSerializer(case, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="my-complaints")
    @extend_schema(
        summary="My complaints",
        parameters=[
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="page", type=int, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="limit", type=int, location=OpenApiParameter.QUERY),
        ],
        responses={200: CaseListSerializer(many=True)},
        tags=["Cases"],
    )
    def my_complaints(self, request: Request) -> Response:
        filter_serializer = CaseFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        qs = CaseQueryService.my_complaints(
            request.user, filter_serializer.validated_data.get("status")
        )
        return paginate(request, qs, CaseListSerializer, view=self)

    # ── Workflow @actions ─────────────────────────────────────────────

    @action(detail=True, methods=["patch"], url_path="status")
    @extend_schema(
        summary="Update case status",
        description="Assigned staff or administrators move the case along the transition table.",
        request=StatusUpdateSerializer,
        responses={
            200: OpenApiResponse(response=CaseDetailSerializer, description="Status updated."),
            403: OpenApiResponse(description="Not the assigned staff member."),
            409: OpenApiResponse(description="Transition not allowed."),
        },
        tags=["Cases – Workflow"],
    )
    def update_status(self, request: Request, pk: int = None) -> Response:
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseWorkflowService.update_status(
            request.user,
            pk,
            serializer.validated_data["status"],
            serializer.validated_data["note"],
        )
        return Response(CaseDetailSerializer(case, context={"request": request}).data)

    @action(detail=True, methods=["post"], url_path="assign")
    @extend_schema(
        summary="Assign staff",
        description="Assign or reassign an active staff member; the case moves to 'assigned'.",
        request=AssignStaffSerializer,
        responses={
            200: OpenApiResponse(response=CaseDetailSerializer, description="Case assigned."),
            404: OpenApiResponse(description="Case or staff member not found."),
            409: OpenApiResponse(description="Inactive / non-staff account or terminal case."),
        },
        tags=["Cases – Workflow"],
    )
    def assign(self, request: Request, pk: int = None) -> Response:
        serializer = AssignStaffSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseAssignmentService.assign_staff(
            request.user, pk, serializer.validated_data["staff_id"]
        )
        return Response(CaseDetailSerializer(case, context={"request": request}).data)

    @action(detail=True, methods=["get"], url_path="history")
    @extend_schema(
        summary="Status history",
        responses={200: StatusHistorySerializer(many=True)},
        tags=["Cases – Workflow"],
    )
    def history(self, request: Request, pk: int = None) -> Response:
        entries = CaseQueryService.get_history(request.user, pk)
        return Response(StatusHistorySerializer(entries, many=True).data)

    # ── Evidence sub-resource ────────────────────────────────────────

    @action(detail=True, methods=["get", "post"], url_path="evidence")
    @extend_schema(
        summary="List or upload evidence",
        request=EvidenceUploadSerializer,
        responses={
            200: EvidenceFileSerializer(many=True),
            201: EvidenceFileSerializer(many=True),
        },
        tags=["Cases – Evidence"],
    )
    def evidence(self, request: Request, pk: int = None) -> Response:
        if request.method == "GET":
            files = EvidenceService.list_evidence(request.user, pk)
            return Response(EvidenceFileSerializer(files, many=True).data)

        serializer = EvidenceUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        created = EvidenceService.add_evidence(
            request.user,
            pk,
            data["files"],
            description=data["description"],
            evidence_type=data["evidence_type"],
        )
        return Response(
            EvidenceFileSerializer(created, many=True).data,
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["get"], url_path=_EVIDENCE_PK + "/download")
    @extend_schema(
        summary="Download evidence",
        description="Raw bytes with the stored media type and length.",
        responses={200: OpenApiResponse(description="File bytes.")},
        tags=["Cases – Evidence"],
    )
    def download_evidence(self, request: Request, pk: int = None, evidence_pk: int = None) -> HttpResponse:
        evidence = EvidenceService.get_evidence_file(request.user, pk, evidence_pk)
        payload = bytes(evidence.data)
        response = HttpResponse(payload, content_type=evidence.content_type)
        response["Content-Length"] = str(len(payload))
        response["Content-Disposition"] = content_disposition_header(
            as_attachment=False, filename=evidence.original_name
        )
        return response

    @action(detail=True, methods=["patch", "delete"], url_path=_EVIDENCE_PK)
    @extend_schema(
        summary="Edit or delete evidence",
        request=EvidenceUpdateSerializer,
        responses={
            200: EvidenceFileSerializer,
            204: OpenApiResponse(description="Deleted."),
        },
        tags=["Cases – Evidence"],
    )
    def evidence_detail(self, request: Request, pk: int = None, evidence_pk: int = None) -> Response:
        if request.method == "DELETE":
            EvidenceService.delete_evidence(request.user, pk, evidence_pk)
            return Response(status=status.HTTP_204_NO_CONTENT)

        serializer = EvidenceUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        evidence = EvidenceService.update_evidence(
            request.user, pk, evidence_pk, serializer.validated_data
        )
        return Response(EvidenceFileSerializer(evidence).data)
