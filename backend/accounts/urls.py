"""
Accounts app URL configuration.

Included in the project-level ``urls.py`` as::

    path('api/accounts/', include('accounts.urls')),

Endpoint Map
------------
Authentication
    POST   /auth/register/              → RegisterView
    POST   /auth/login/                 → LoginView
    POST   /auth/token/refresh/         → TokenRefreshView (SimpleJWT)

Current User Profile ("Me")
    GET    /me/                         → MeView  (retrieve)
    PATCH  /me/                         → MeView  (partial update)
    POST   /me/change-password/         → ChangePasswordView

Citizens (administrator)
    GET    /users/                      → UserViewSet.list

Staff (administrator)
    GET    /staff/                      → StaffViewSet.list
    POST   /staff/                      → StaffViewSet.create
    PATCH  /staff/{id}/                 → StaffViewSet.partial_update
    DELETE /staff/{id}/                 → StaffViewSet.destroy (deactivate)
    GET    /staff/me/                   → StaffViewSet.me
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    ChangePasswordView,
    LoginView,
    MeView,
    RegisterView,
    StaffViewSet,
    UserViewSet,
)

app_name = "accounts"

router = DefaultRouter()
router.register(r"users", UserViewSet, basename="user")
router.register(r"staff", StaffViewSet, basename="staff")

urlpatterns = [
    # ── Authentication ───────────────────────────────────────────────
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path(
        "auth/token/refresh/",
        TokenRefreshView.as_view(),
        name="token-refresh",
    ),

    # ── Current User (Me) ───────────────────────────────────────────
    path("me/", MeView.as_view(), name="me"),
    path("me/change-password/", ChangePasswordView.as_view(), name="change-password"),

    # ── Router-registered viewsets (users/, staff/) ──────────────────
    path("", include(router.urls)),
]
