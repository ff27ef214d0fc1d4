"""
Investigations app ViewSets.

- ``CaseInvestigationViewSet`` — nested under ``/cases/{case_pk}/``:
  list and file reports for one case.
- ``InvestigationViewSet``     — ``/investigations/``: read, edit,
  delete a report, the author's own reports, attachment download.
"""

from __future__ import annotations

from django.http import HttpResponse
from django.utils.http import content_disposition_header
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.pagination import paginate

from .serializers import (
    InvestigationCreateSerializer,
    InvestigationSerializer,
    InvestigationUpdateSerializer,
)
from .services import InvestigationService


class CaseInvestigationViewSet(viewsets.ViewSet):
    """``/api/cases/{case_pk}/investigations/``"""

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(
        summary="List investigations for a case",
        responses={200: InvestigationSerializer(many=True)},
        tags=["Investigations"],
    )
    def list(self, request: Request, case_pk: str = None) -> Response:
        qs = InvestigationService.list_for_case(request.user, case_pk)
        return Response(InvestigationSerializer(qs, many=True).data)

    @extend_schema(
        summary="File an investigation report",
        description=(
            "Assigned staff or administrators.  A ``status_update`` different "
            "from the case's current status moves the case along the workflow."
        ),
        request=InvestigationCreateSerializer,
        responses={
            201: InvestigationSerializer,
            403: OpenApiResponse(description="Not assigned to this case."),
            409: OpenApiResponse(description="Status update not allowed."),
        },
        tags=["Investigations"],
    )
    def create(self, request: Request, case_pk: str = None) -> Response:
        serializer = InvestigationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        investigation = InvestigationService.create_investigation(
            request.user,
            case_pk,
            serializer.validated_data,
            serializer.validated_data.get("attachments", []),
        )
        return Response(
            InvestigationSerializer(investigation).data,
            status=status.HTTP_201_CREATED,
        )


class InvestigationViewSet(viewsets.ViewSet):
    """``/api/investigations/``"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Retrieve an investigation",
        responses={200: InvestigationSerializer},
        tags=["Investigations"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        investigation = InvestigationService.get_investigation(request.user, pk)
        return Response(InvestigationSerializer(investigation).data)

    @extend_schema(
        summary="Edit an investigation",
        request=InvestigationUpdateSerializer,
        responses={200: InvestigationSerializer},
        tags=["Investigations"],
    )
    def partial_update(self, request: Request, pk: str = None) -> Response:
        serializer = InvestigationUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        investigation = InvestigationService.update_investigation(
            request.user, pk, serializer.validated_data
        )
        return Response(InvestigationSerializer(investigation).data)

    @extend_schema(
        summary="Delete an investigation",
        responses={204: OpenApiResponse(description="Deleted.")},
        tags=["Investigations"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        InvestigationService.delete_investigation(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="my-investigations")
    @extend_schema(
        summary="My investigation reports",
        responses={200: InvestigationSerializer(many=True)},
        tags=["Investigations"],
    )
    def my_investigations(self, request: Request) -> Response:
        qs = InvestigationService.my_investigations(request.user)
        return paginate(request, qs, InvestigationSerializer, view=self)

    @action(
        detail=True,
        methods=["get"],
        url_path=r"attachments/(?P<attachment_pk>[^/.]+)/download",
    )
    @extend_schema(
        summary="Download an attachment",
        responses={200: OpenApiResponse(description="File bytes.")},
        tags=["Investigations"],
    )
    def download_attachment(self, request: Request, pk: str = None, attachment_pk: str = None) -> HttpResponse:
        attachment = InvestigationService.get_attachment(request.user, pk, attachment_pk)
        payload = bytes(attachment.data)
        response = HttpResponse(payload, content_type=attachment.content_type)
        response["Content-Length"] = str(len(payload))
        response["Content-Disposition"] = content_disposition_header(
            as_attachment=False, filename=attachment.original_name
        )
        return response
