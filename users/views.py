# users/views.py - Account self-service, organizer directory, platform admin

from django.db.models import Count
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from events import services
from events.exceptions import NotFound, ValidationFailed
from events.models import Event
from events.permissions import IsParticipant, IsPlatformAdmin
from events.serializers import EventSerializer
from events.views.generics import AUTHENTICATION_CLASSES, validated
from . import identity
from .models import User
from .serializers import (
    AdminProfileSerializer,
    ChangePasswordSerializer,
    OrganizerCreateSerializer,
    OrganizerProfileSerializer,
    OrganizerSerializer,
    ParticipantProfileSerializer,
    ProfileSerializer,
)


class OrganizerListCreateView(APIView):
    """
    GET  /api/admin/organizers/
    POST /api/admin/organizers/   {"name", "email", ...}  -> generated password, shown once
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    def get(self, request):
        organizers = User.objects.filter(role=User.ROLE_ORGANIZER).order_by("-date_joined")
        data = OrganizerSerializer(organizers, many=True).data
        return Response({"organizers": data, "count": len(data)})

    def post(self, request):
        data = validated(OrganizerCreateSerializer, request.data)
        organizer, password = identity.create_organizer(**data)
        return Response(
            {
                "message": "Organizer created successfully",
                "organizer": OrganizerSerializer(organizer).data,
                "password": password,
            },
            status=status.HTTP_201_CREATED,
        )


class OrganizerDetailView(APIView):
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    def delete(self, request, user_id):
        try:
            user = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            raise NotFound("Organizer not found", code="organizer_not_found")

        if user.role != User.ROLE_ORGANIZER:
            raise ValidationFailed("This endpoint can only delete organizer accounts", code="not_organizer")

        deleted = {"id": user.id, "name": user.name, "email": user.email}
        user.delete()
        return Response({"message": "Organizer deleted successfully", "deleted_organizer": deleted})


class AdminStatsView(APIView):
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsPlatformAdmin]

    def get(self, request):
        by_role = dict(User.objects.values_list("role").annotate(n=Count("id")))
        return Response({
            "stats": {
                "total_users": sum(by_role.values()),
                "participants": by_role.get(User.ROLE_PARTICIPANT, 0),
                "organizers": by_role.get(User.ROLE_ORGANIZER, 0),
                "admins": by_role.get(User.ROLE_ADMIN, 0),
            }
        })


def get_organizer(user_id) -> User:
    try:
        return User.objects.get(pk=user_id, role=User.ROLE_ORGANIZER)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFound("Organizer not found", code="organizer_not_found")


# ─────────────────────────────────────────────────────────────
# Self-service
# ─────────────────────────────────────────────────────────────

PROFILE_SERIALIZERS = {
    User.ROLE_PARTICIPANT: ParticipantProfileSerializer,
    User.ROLE_ORGANIZER: OrganizerProfileSerializer,
    User.ROLE_ADMIN: AdminProfileSerializer,
}


class ProfileView(APIView):
    """
    GET /api/users/profile/
    PUT /api/users/profile/   fields depend on the caller's role
    """
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(ProfileSerializer(request.user).data)

    def put(self, request):
        serializer_class = PROFILE_SERIALIZERS.get(request.user.role, AdminProfileSerializer)
        data = validated(serializer_class, request.data, partial=True)
        user = serializer_class().update(request.user, data)
        return Response({"message": "Profile updated successfully", "user": ProfileSerializer(user).data})


class ChangePasswordView(APIView):
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated]

    def post(self, request):
        data = validated(ChangePasswordSerializer, request.data)
        identity.change_password(request.user, data["current_password"], data["new_password"])
        return Response({"message": "Password changed successfully"})


# ─────────────────────────────────────────────────────────────
# Organizer directory
# ─────────────────────────────────────────────────────────────

class OrganizerBrowseView(APIView):
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsParticipant | IsPlatformAdmin]

    def get(self, request):
        organizers = User.objects.filter(role=User.ROLE_ORGANIZER).order_by("name", "id")
        following = set(request.user.followed_organizers.values_list("id", flat=True))
        data = OrganizerSerializer(organizers, many=True).data
        for row in data:
            row["is_following"] = row["id"] in following
        return Response({"organizers": data, "count": len(data)})


class OrganizerPublicDetailView(APIView):
    """Organizer card plus their Published events, soonest first."""
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated]

    def get(self, request, user_id):
        organizer = get_organizer(user_id)
        events = (
            Event.objects.select_related("organizer")
            .filter(organizer=organizer, status=Event.STATUS_PUBLISHED)
            .order_by("start_date", "id")
        )
        return Response({
            "organizer": OrganizerSerializer(organizer).data,
            "events": EventSerializer(events, many=True).data,
            "followers": organizer.followers.count(),
        })


class FollowOrganizerView(APIView):
    """POST /api/users/follow/<id>/ toggles the follow."""
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated, IsParticipant]

    def post(self, request, user_id):
        organizer = get_organizer(user_id)
        follows = request.user.followed_organizers

        if follows.filter(pk=organizer.pk).exists():
            follows.remove(organizer)
            is_following = False
        else:
            follows.add(organizer)
            is_following = True

        return Response({
            "message": "Followed successfully" if is_following else "Unfollowed successfully",
            "is_following": is_following,
        })


class TrendingEventsView(APIView):
    authentication_classes = AUTHENTICATION_CLASSES
    permission_classes = [IsAuthenticated]

    def get(self, request):
        data = []
        for event, recent in services.trending_events():
            row = EventSerializer(event).data
            row["recent_registrations"] = recent
            data.append(row)
        return Response({"events": data, "count": len(data)})
