from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status
from django.db.models import Q
from django.utils import timezone

from events import services
from events.models import Event, Ticket
from events.permissions import IsOrganizer, IsOrganizerOrReadOnly, IsParticipant
from events.serializers import EventSerializer, EventWriteSerializer, TicketSerializer
from events.state_machine import get_allowed_transitions, publish_event
from .generics import AUTHENTICATION_CLASSES, validated


class EventListCreateView(APIView):
    """
    GET  /api/events/   organizers: their own; participants: published; admins: all
    POST /api/events/   organizer creates a draft
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsOrganizerOrReadOnly]

    def get(self, request):
        qs = services.visible_events(request.user)

        event_type = request.query_params.get("type")
        if event_type in dict(Event.TYPE_CHOICES):
            qs = qs.filter(event_type=event_type)

        status_param = request.query_params.get("status")
        if status_param in dict(Event.STATUS_CHOICES):
            qs = qs.filter(status=status_param)

        when = request.query_params.get("when")
        now = timezone.now()
        if when == "upcoming":
            qs = qs.filter(start_date__gte=now)
        elif when == "past":
            qs = qs.filter(end_date__lt=now)

        search = request.query_params.get("search")
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(description__icontains=search))

        data = EventSerializer(qs, many=True).data
        return Response({"events": data, "count": len(data)})

    def post(self, request):
        data = validated(EventWriteSerializer, request.data)
        data.pop("status", None)
        event = services.create_event(request.user, data)
        return Response(EventSerializer(event).data, status=status.HTTP_201_CREATED)


class EventDetailView(APIView):
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsOrganizerOrReadOnly]

    def get(self, request, event_id):
        event = services.get_visible_event(request.user, event_id)
        payload = EventSerializer(event).data
        payload.update(services.event_counts(event))
        if event.organizer_id == request.user.id:
            payload["allowed_transitions"] = get_allowed_transitions(event)
        return Response(payload)

    def put(self, request, event_id):
        return self._update(request, event_id)

    def patch(self, request, event_id):
        return self._update(request, event_id)

    def _update(self, request, event_id):
        event = services.get_owned_event(request.user, event_id)
        data = validated(EventWriteSerializer, request.data)
        event = services.update_event(event, request.user, data)
        return Response({"message": "Event updated successfully", "event": EventSerializer(event).data})

    def delete(self, request, event_id):
        event = services.get_owned_event(request.user, event_id)
        deleted = services.delete_event(event, request.user)
        return Response({
            "message": "Event and associated registrations deleted successfully",
            "deleted_event": deleted,
        })


class PublishEventView(APIView):
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsOrganizer]

    def post(self, request, event_id):
        event = services.get_owned_event(request.user, event_id)
        event = publish_event(event, actor=request.user)
        return Response({"message": "Event published successfully", "event": EventSerializer(event).data})

    patch = post


class MyRegistrationsView(APIView):
    """
    GET /api/events/my-registrations/
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsParticipant]

    def get(self, request):
        tickets = (
            Ticket.objects.filter(user=request.user)
            .select_related("event", "team", "user")
            .order_by("-registered_at")
        )
        data = TicketSerializer(tickets, many=True).data
        return Response({"tickets": data, "count": len(data)})
