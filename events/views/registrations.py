from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from events import issuance, services
from events.permissions import IsOrganizer, IsParticipant
from events.serializers import AnswersInputSerializer, ParticipantSerializer, TicketSerializer
from .generics import AUTHENTICATION_CLASSES, validated


class RegisterEventView(APIView):
    """
    POST /api/events/<event_id>/register/   {"answers": [{"label", "value"}]}
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsParticipant]

    def post(self, request, event_id):
        data = validated(AnswersInputSerializer, request.data)
        ticket = issuance.register(request.user, event_id, data.get("answers"))
        return Response(
            {
                "message": "Successfully registered for event",
                "ticket_id": ticket.id,
                "status": ticket.status,
                "ticket": TicketSerializer(ticket).data,
            },
            status=status.HTTP_201_CREATED,
        )


class PurchaseView(APIView):
    """
    POST /api/events/<event_id>/purchase/   merch only
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsParticipant]

    def post(self, request, event_id):
        data = validated(AnswersInputSerializer, request.data)
        ticket = issuance.purchase(request.user, event_id, data.get("answers"))
        return Response(
            {
                "message": "Purchase confirmed",
                "ticket_id": ticket.id,
                "status": ticket.status,
                "ticket": TicketSerializer(ticket).data,
            },
            status=status.HTTP_201_CREATED,
        )


class CancelRegistrationView(APIView):
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsParticipant]

    def post(self, request, event_id):
        ticket = issuance.cancel(request.user, event_id)
        return Response({"message": "Registration cancelled successfully", "ticket_id": ticket.id})


class EventParticipantsView(APIView):
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsOrganizer]

    def get(self, request, event_id):
        event = services.get_owned_event(request.user, event_id)
        data = ParticipantSerializer(services.participants(event), many=True).data
        return Response({
            "participants": data,
            "count": len(data),
            "event_name": event.name,
            "max_participants": event.max_participants,
        })
