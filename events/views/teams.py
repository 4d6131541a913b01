# events/views/teams.py - Team Formation API Views

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from events import teams
from events.permissions import IsParticipant
from events.serializers import (
    PendingTicketSerializer,
    TeamCreateSerializer,
    TeamJoinSerializer,
    TeamSerializer,
    TicketSerializer,
)
from .generics import AUTHENTICATION_CLASSES, validated


def team_result_payload(result, message):
    return {
        "message": message,
        "team": TeamSerializer(result.team).data,
        "team_code": result.team.code,
        "ticket": TicketSerializer(result.ticket).data if result.ticket else None,
        "pending": PendingTicketSerializer(result.pending, many=True).data,
    }


class CreateTeamView(APIView):
    """
    POST /api/events/teams/create/   {"event_id", "name", "answers"}
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsParticipant]

    def post(self, request):
        data = validated(TeamCreateSerializer, request.data)
        result = teams.create_team(request.user, data["event_id"], data["name"], data.get("answers"))
        return Response(
            team_result_payload(result, "Team created successfully"),
            status=status.HTTP_201_CREATED,
        )


class JoinTeamView(APIView):
    """
    POST /api/events/teams/join/   {"event_id", "code", "answers"}

    If this join completes the team, every member is ticketed; members that
    could not be are listed under "pending".
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsParticipant]

    def post(self, request):
        data = validated(TeamJoinSerializer, request.data)
        result = teams.join_team(request.user, data["event_id"], data["code"], data.get("answers"))
        return Response(team_result_payload(result, "Joined team successfully"))


class MyTeamView(APIView):
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsParticipant]

    def get(self, request, event_id):
        team = teams.get_my_team(request.user, event_id)
        return Response({"team": TeamSerializer(team).data})


class RetryTeamTicketsView(APIView):
    """
    POST /api/events/teams/<team_id>/retry-tickets/   leader only
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated]

    def post(self, request, team_id):
        result = teams.retry_pending_tickets(request.user, team_id)
        return Response({
            "team": TeamSerializer(result.team).data,
            "issued": TicketSerializer(result.issued, many=True).data,
            "pending": PendingTicketSerializer(result.pending, many=True).data,
        })
