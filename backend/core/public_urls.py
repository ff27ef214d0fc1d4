"""
Public (unauthenticated) routes, mounted at ``/api/public/``.

GET  stats/               — aggregate crime statistics.
POST tips/                — anonymous tip submission.
GET  prevention-tips/     — static safety guidance.
GET  emergency-contacts/  — static contact list.
"""

from django.urls import path

from . import views

app_name = "public"

urlpatterns = [
    path("stats/", views.PublicStatsView.as_view(), name="stats"),
    path("tips/", views.AnonymousTipView.as_view(), name="tips"),
    path("prevention-tips/", views.PreventionTipsView.as_view(), name="prevention-tips"),
    path("emergency-contacts/", views.EmergencyContactsView.as_view(), name="emergency-contacts"),
]
