# users/urls.py

from django.urls import path

from .views import (
    ChangePasswordView,
    FollowOrganizerView,
    OrganizerBrowseView,
    OrganizerPublicDetailView,
    ProfileView,
    TrendingEventsView,
)

urlpatterns = [
    path("profile/", ProfileView.as_view(), name="user-profile"),
    path("change-password/", ChangePasswordView.as_view(), name="user-change-password"),
    path("organizers/", OrganizerBrowseView.as_view(), name="organizer-list"),
    path("organizers/<int:user_id>/", OrganizerPublicDetailView.as_view(), name="organizer-detail"),
    path("follow/<int:user_id>/", FollowOrganizerView.as_view(), name="organizer-follow"),
    path("trending-events/", TrendingEventsView.as_view(), name="trending-events"),
]
