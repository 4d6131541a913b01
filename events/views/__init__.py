from .events import (
    EventListCreateView,
    EventDetailView,
    PublishEventView,
    MyRegistrationsView,
)
from .registrations import (
    RegisterEventView,
    PurchaseView,
    CancelRegistrationView,
    EventParticipantsView,
)
from .scan import ScanTicketView, TicketDetailView, TicketQRImageView
from .teams import CreateTeamView, JoinTeamView, MyTeamView, RetryTeamTicketsView
from .feedback import EventFeedbackView
from .analytics import EventAnalyticsView
