"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.  **No business logic** resides here.

View Map
--------
- ``RegisterView``   — POST /auth/register/
- ``LoginView``      — POST /auth/login/
- ``MeView``         — GET / PATCH /me/
- ``ChangePasswordView`` — POST /me/change-password/
- ``UserViewSet``    — GET /users/  (citizen list, admin only)
- ``StaffViewSet``   — /staff/  (list, create, partial update,
                       deactivate, me)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from core.pagination import paginate

from .serializers import (
    ChangePasswordSerializer,
    CitizenListSerializer,
    CustomTokenObtainPairSerializer,
    MeUpdateSerializer,
    RegisterRequestSerializer,
    StaffCreateSerializer,
    StaffFilterSerializer,
    StaffListSerializer,
    StaffUpdateSerializer,
    UserDetailSerializer,
)
from .services import (
    AuthenticationService,
    CurrentUserService,
    StaffManagementService,
    UserManagementService,
    UserRegistrationService,
)


# ═══════════════════════════════════════════════════════════════════
#  Authentication Views
# ═══════════════════════════════════════════════════════════════════


class RegisterView(generics.CreateAPIView):
    """
    POST /api/accounts/auth/register/

    Public endpoint.  Creates a citizen account and returns it together
    with a fresh token pair so the client is logged in straight away.
    """

    permission_classes = [AllowAny]
    serializer_class = RegisterRequestSerializer

    @extend_schema(
        summary="Register a citizen",
        request=RegisterRequestSerializer,
        responses={
            201: OpenApiResponse(description="User created; tokens issued."),
            400: OpenApiResponse(description="Validation error."),
            409: OpenApiResponse(description="Username or email already exists."),
        },
        tags=["Auth"],
    )
    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserRegistrationService.register_user(serializer.validated_data)
        payload = AuthenticationService.generate_tokens(user)
        payload["user"] = UserDetailSerializer(user).data
        return Response(payload, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST /api/accounts/auth/login/

    Public endpoint.  Authenticates via username, email or staff id
    plus password and returns ``{"access", "refresh", "user"}``.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Log in",
        request=CustomTokenObtainPairSerializer,
        responses={
            200: OpenApiResponse(description="Token pair and user profile."),
            400: OpenApiResponse(description="Invalid credentials."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = CustomTokenObtainPairSerializer(
            data=request.data,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)

        payload = serializer.validated_data  # contains 'access' and 'refresh'
        payload["user"] = UserDetailSerializer(serializer.user).data

        return Response(payload, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") View
# ═══════════════════════════════════════════════════════════════════


class MeView(APIView):
    """
    GET   /api/accounts/me/  → current user profile.
    PATCH /api/accounts/me/  → update own contact fields.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Current user profile",
        responses={200: UserDetailSerializer},
        tags=["Auth"],
    )
    def get(self, request: Request) -> Response:
        user = CurrentUserService.get_profile(request.user)
        return Response(UserDetailSerializer(user).data)

    @extend_schema(
        summary="Update own profile",
        request=MeUpdateSerializer,
        responses={200: UserDetailSerializer},
        tags=["Auth"],
    )
    def patch(self, request: Request) -> Response:
        serializer = MeUpdateSerializer(
            instance=request.user, data=request.data, partial=True
        )
        serializer.is_valid(raise_exception=True)
        user = CurrentUserService.update_profile(
            request.user, serializer.validated_data
        )
        return Response(UserDetailSerializer(user).data)


class ChangePasswordView(APIView):
    """POST /api/accounts/me/change-password/"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Change own password",
        request=ChangePasswordSerializer,
        responses={
            200: OpenApiResponse(description="Password changed."),
            400: OpenApiResponse(description="Validation error or wrong current password."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CurrentUserService.change_password(
            request.user,
            serializer.validated_data["current_password"],
            serializer.validated_data["new_password"],
        )
        return Response({"message": "Password changed successfully."})


# ═══════════════════════════════════════════════════════════════════
#  User Management ViewSet
# ═══════════════════════════════════════════════════════════════════


class UserViewSet(viewsets.ViewSet):
    """
    /api/accounts/users/

    Administrator listing of citizen accounts with complaint counts.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List citizens",
        parameters=[
            OpenApiParameter("page", int, description="Page number."),
            OpenApiParameter("limit", int, description="Page size (max 100)."),
        ],
        responses={
            200: CitizenListSerializer(many=True),
            403: OpenApiResponse(description="Administrators only."),
        },
        tags=["Users"],
    )
    def list(self, request: Request) -> Response:
        qs = UserManagementService.list_citizens(request.user)
        return paginate(request, qs, CitizenListSerializer, view=self)


# ═══════════════════════════════════════════════════════════════════
#  Staff Management ViewSet
# ═══════════════════════════════════════════════════════════════════


class StaffViewSet(viewsets.ViewSet):
    """
    /api/accounts/staff/

    Staff account management.  Every action except ``me`` requires the
    ``manage_staff`` capability (administrators).
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List staff members",
        parameters=[
            OpenApiParameter("status", str, description="Account status filter."),
            OpenApiParameter("department", str, description="Partial department match."),
            OpenApiParameter("page", int),
            OpenApiParameter("limit", int),
        ],
        responses={200: StaffListSerializer(many=True)},
        tags=["Staff"],
    )
    def list(self, request: Request) -> Response:
        filters = StaffFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        qs = StaffManagementService.list_staff(request.user, **filters.validated_data)
        return paginate(request, qs, StaffListSerializer, view=self)

    @extend_schema(
        summary="Create a staff member",
        request=StaffCreateSerializer,
        responses={
            201: StaffListSerializer,
            403: OpenApiResponse(description="Administrators only."),
            409: OpenApiResponse(description="Email or username already registered."),
        },
        tags=["Staff"],
    )
    def create(self, request: Request) -> Response:
        serializer = StaffCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        staff = StaffManagementService.add_staff(request.user, serializer.validated_data)
        return Response(StaffListSerializer(staff).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Update a staff member",
        request=StaffUpdateSerializer,
        responses={200: StaffListSerializer},
        tags=["Staff"],
    )
    def partial_update(self, request: Request, pk: str = None) -> Response:
        serializer = StaffUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        staff = StaffManagementService.update_staff(
            request.user, pk, serializer.validated_data
        )
        return Response(StaffListSerializer(staff).data)

    @extend_schema(
        summary="Deactivate a staff member",
        description=(
            "Soft delete: sets the account status to inactive.  Refused with "
            "409 while the staff member has any non-terminal case."
        ),
        responses={
            200: UserDetailSerializer,
            409: OpenApiResponse(description="Staff member still has active cases."),
        },
        tags=["Staff"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        staff = StaffManagementService.deactivate_staff(request.user, pk)
        return Response(UserDetailSerializer(staff).data)

    @action(detail=False, methods=["get"], url_path="me")
    @extend_schema(
        summary="Own staff profile",
        responses={200: StaffListSerializer},
        tags=["Staff"],
    )
    def me(self, request: Request) -> Response:
        staff = StaffManagementService.get_staff(request.user.pk)
        return Response(StaffListSerializer(staff).data)
