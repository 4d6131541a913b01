# users/urls_admin.py - mounted at /api/admin/

from django.urls import path

from .views import AdminStatsView, OrganizerDetailView, OrganizerListCreateView

urlpatterns = [
    path("organizers/", OrganizerListCreateView.as_view(), name="admin-organizers"),
    path("organizers/<int:user_id>/", OrganizerDetailView.as_view(), name="admin-organizer-detail"),
    path("stats/", AdminStatsView.as_view(), name="admin-stats"),
]
