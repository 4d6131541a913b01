from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import PermissionDenied
from rest_framework.throttling import ScopedRateThrottle
from django.http import HttpResponse

from events import issuance
from events.emails import render_ticket_qr
from events.exceptions import NotFound
from events.models import Ticket
from events.permissions import IsOrganizer
from events.serializers import ScanInputSerializer, TicketSerializer
from .generics import AUTHENTICATION_CLASSES, client_ip, validated


class ScanTicketView(APIView):
    """
    POST /api/events/tickets/scan/   {"ticket_id": "<id read from the QR>"}
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsOrganizer]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "ticket-scan"

    def post(self, request):
        data = validated(ScanInputSerializer, request.data)
        ticket = issuance.scan(data["ticket_id"].strip(), request.user, ip_address=client_ip(request))
        user = ticket.user
        return Response({
            "action": "check_in",
            "message": "Check-in successful",
            "ticket": {
                "id": ticket.id,
                "user": {"id": user.id, "name": user.name, "email": user.email},
                "team": ticket.team.name if ticket.team_id else None,
                "checked_in": ticket.checked_in,
                "check_in_time": ticket.check_in_time,
            },
        })


def _ticket_for_viewer(user, ticket_id, owner_only=False):
    try:
        ticket = Ticket.objects.select_related("event", "user", "team").get(pk=ticket_id)
    except Ticket.DoesNotExist:
        raise NotFound("Ticket not found", code="ticket_not_found")

    is_owner = ticket.user_id == user.id
    is_organizer = ticket.event.organizer_id == user.id or getattr(user, "is_platform_admin", False)
    if is_owner or (is_organizer and not owner_only):
        return ticket
    raise PermissionDenied("Access denied")


class TicketDetailView(APIView):
    """
    GET /api/events/tickets/<ticket_id>/   owner or the event's organizer
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated]

    def get(self, request, ticket_id):
        ticket = _ticket_for_viewer(request.user, ticket_id)
        return Response({"ticket": TicketSerializer(ticket).data})


class TicketQRImageView(APIView):
    """
    GET /api/events/tickets/<ticket_id>/qr/   PNG, owner only
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "ticket-qr"

    def get(self, request, ticket_id):
        ticket = _ticket_for_viewer(request.user, ticket_id, owner_only=True)

        response = HttpResponse(render_ticket_qr(ticket), content_type="image/png")
        response["Cache-Control"] = "no-store"
        return response
