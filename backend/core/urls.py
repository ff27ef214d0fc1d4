"""
Core app URL configuration.

URL prefix (registered in ``crimewatch/urls.py``)::

    path('api/core/', include('core.urls'))

Endpoint summary
----------------
GET    /api/core/dashboard/                         — role-aware dashboard.
GET    /api/core/constants/                         — choice enumerations.
GET    /api/core/analytics/dashboard/               — case analytics.
GET    /api/core/analytics/performance/             — staff / department performance.
GET    /api/core/analytics/geographic/              — hotspots and city stats.
POST   /api/core/reports/case-report/               — one-case report.
POST   /api/core/reports/statistical-report/        — period report.
GET    /api/core/reports/templates/                 — report templates.
GET    /api/core/notifications/                     — caller's notifications.
GET    /api/core/notifications/count/               — total / unread.
POST   /api/core/notifications/read-all/            — mark all read.
POST   /api/core/notifications/{id}/read/           — mark one read.
DELETE /api/core/notifications/{id}/                — delete one.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = "core"

router = DefaultRouter()
router.register(prefix=r"analytics", viewset=views.AnalyticsViewSet, basename="analytics")
router.register(prefix=r"reports", viewset=views.ReportViewSet, basename="report")
router.register(prefix=r"notifications", viewset=views.NotificationViewSet, basename="notification")

urlpatterns = [
    path("dashboard/", views.DashboardStatsView.as_view(), name="dashboard-stats"),
    path("constants/", views.SystemConstantsView.as_view(), name="system-constants"),
    path("", include(router.urls)),
]
