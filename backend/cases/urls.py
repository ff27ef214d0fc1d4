"""
Cases app URL configuration.

All routes are registered under the ``/api/cases/`` prefix.

Route Hierarchy
---------------
  GET  /api/cases/                        → list (role-scoped, filtered)
  POST /api/cases/                        → file a complaint
  GET  /api/cases/{id}/                   → retrieve
  GET  /api/cases/my-complaints/          → reporter's own complaints

  ── Workflow @actions ───────────────────────────────────────────
  PATCH /api/cases/{id}/status/           → status update
  POST  /api/cases/{id}/assign/           → assign / reassign staff
  GET   /api/cases/{id}/history/          → status history

  ── Evidence @actions ───────────────────────────────────────────
  GET    /api/cases/{id}/evidence/
  POST   /api/cases/{id}/evidence/
  GET    /api/cases/{id}/evidence/{evidence_pk}/download/
  PATCH  /api/cases/{id}/evidence/{evidence_pk}/
  DELETE /api/cases/{id}/evidence/{evidence_pk}/
"""

from rest_framework.routers import DefaultRouter

from .views import CaseViewSet

router = DefaultRouter()
router.register(
    prefix=r"cases",
    viewset=CaseViewSet,
    basename="case",
)

urlpatterns = router.urls
