from django.urls import path
from .views import (
    EventListCreateView,
    EventDetailView,
    PublishEventView,
    MyRegistrationsView,
    RegisterEventView,
    PurchaseView,
    CancelRegistrationView,
    EventParticipantsView,
    ScanTicketView,
    TicketDetailView,
    TicketQRImageView,
    CreateTeamView,
    JoinTeamView,
    MyTeamView,
    RetryTeamTicketsView,
    EventFeedbackView,
    EventAnalyticsView,
)

urlpatterns = [
    path("", EventListCreateView.as_view(), name="event-list"),
    path("my-registrations/", MyRegistrationsView.as_view(), name="my-registrations"),

    # Events
    path("<int:event_id>/", EventDetailView.as_view(), name="event-detail"),
    path("<int:event_id>/publish/", PublishEventView.as_view(), name="event-publish"),
    path("<int:event_id>/register/", RegisterEventView.as_view(), name="event-register"),
    path("<int:event_id>/purchase/", PurchaseView.as_view(), name="event-purchase"),
    path("<int:event_id>/cancel/", CancelRegistrationView.as_view(), name="event-cancel"),
    path("<int:event_id>/participants/", EventParticipantsView.as_view(), name="event-participants"),
    path("<int:event_id>/analytics/", EventAnalyticsView.as_view(), name="event-analytics"),
    path("<int:event_id>/feedback/", EventFeedbackView.as_view(), name="event-feedback"),

    # Tickets
    path("tickets/scan/", ScanTicketView.as_view(), name="ticket-scan"),
    path("tickets/<int:ticket_id>/", TicketDetailView.as_view(), name="ticket-detail"),
    path("tickets/<int:ticket_id>/qr/", TicketQRImageView.as_view(), name="ticket-qr"),

    # Teams
    path("teams/create/", CreateTeamView.as_view(), name="team-create"),
    path("teams/join/", JoinTeamView.as_view(), name="team-join"),
    path("teams/my-team/<int:event_id>/", MyTeamView.as_view(), name="team-mine"),
    path("teams/<int:team_id>/retry-tickets/", RetryTeamTicketsView.as_view(), name="team-retry-tickets"),
]
