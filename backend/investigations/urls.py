"""
Investigations app URL configuration.

Route Hierarchy
---------------
  ── Nested under a case ─────────────────────────────────────────
  GET    /api/cases/{case_pk}/investigations/      → list reports
  POST   /api/cases/{case_pk}/investigations/      → file a report

  ── Top-level ───────────────────────────────────────────────────
  GET    /api/investigations/my-investigations/
  GET    /api/investigations/{id}/
  PATCH  /api/investigations/{id}/
  DELETE /api/investigations/{id}/
  GET    /api/investigations/{id}/attachments/{attachment_pk}/download/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_nested.routers import NestedDefaultRouter

from cases.urls import router as cases_router

from .views import CaseInvestigationViewSet, InvestigationViewSet

# ── Primary Router ──────────────────────────────────────────────────
router = DefaultRouter()
router.register(
    prefix=r"investigations",
    viewset=InvestigationViewSet,
    basename="investigation",
)

# ── Nested Router (under /cases/{case_pk}/) ─────────────────────────
cases_nested_router = NestedDefaultRouter(
    parent_router=cases_router,
    parent_prefix=r"cases",
    lookup="case",
)
cases_nested_router.register(
    prefix=r"investigations",
    viewset=CaseInvestigationViewSet,
    basename="case-investigation",
)

urlpatterns = [
    path("", include(router.urls)),
    path("", include(cases_nested_router.urls)),
]
