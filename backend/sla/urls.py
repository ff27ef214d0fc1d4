"""
SLA app URL configuration.

  GET  /api/sla/overdue/
  GET  /api/sla/statistics/
  GET  /api/sla/cases/{case_pk}/
  POST /api/sla/sweep/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import SLAViewSet

router = DefaultRouter()
router.register(prefix=r"", viewset=SLAViewSet, basename="sla")

urlpatterns = [
    path("", include(router.urls)),
]
