from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from events import services
from events.permissions import IsOrganizer
from .generics import AUTHENTICATION_CLASSES


class EventAnalyticsView(APIView):
    """
    GET /api/events/<event_id>/analytics/
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsOrganizer]

    def get(self, request, event_id):
        event = services.get_owned_event(request.user, event_id)
        return Response(services.analytics(event))
