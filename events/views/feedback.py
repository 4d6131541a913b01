from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import PermissionDenied
from rest_framework import status

from events import services
from events.serializers import FeedbackInputSerializer, FeedbackSerializer
from .generics import AUTHENTICATION_CLASSES, validated


class EventFeedbackView(APIView):
    """
    POST /api/events/<event_id>/feedback/   attendee submits (anonymous)
    GET  /api/events/<event_id>/feedback/   organizer sees aggregate + comments
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        if not getattr(request.user, "is_participant", False):
            raise PermissionDenied("Only participants can submit feedback")
        data = validated(FeedbackInputSerializer, request.data)
        services.submit_feedback(request.user, event_id, data["rating"], data.get("comment", ""))
        return Response({"message": "Feedback submitted successfully"}, status=status.HTTP_201_CREATED)

    def get(self, request, event_id):
        event = services.get_owned_event(request.user, event_id)
        stats = services.feedback_stats(event)
        stats["feedbacks"] = FeedbackSerializer(stats["feedbacks"], many=True).data
        return Response(stats)
