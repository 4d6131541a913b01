from rest_framework import serializers

from users.serializers import UserSummarySerializer
from .models import Event, Feedback, ScanLog, Team, TeamMembership, Ticket


# -----------------------------------------
# EVENTS
# -----------------------------------------
class EventSerializer(serializers.ModelSerializer):
    organizer = UserSummarySerializer(read_only=True)

    class Meta:
        model = Event
        fields = [
            "id",
            "name",
            "description",
            "event_type",
            "tags",
            "eligibility",
            "start_date",
            "end_date",
            "registration_deadline",
            "form_fields",
            "max_participants",
            "price",
            "stock",
            "is_team_event",
            "min_team_size",
            "max_team_size",
            "max_teams",
            "confirmed_count",
            "team_count",
            "status",
            "organizer",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class FormFieldInputSerializer(serializers.Serializer):
    field_name = serializers.CharField(required=False, allow_blank=True, max_length=100)
    field_type = serializers.CharField(max_length=20)
    label = serializers.CharField(max_length=255)
    placeholder = serializers.CharField(required=False, allow_blank=True, max_length=255)
    required = serializers.BooleanField(required=False, default=False)
    options = serializers.ListField(child=serializers.CharField(max_length=255), required=False)


class EventWriteSerializer(serializers.Serializer):
    """
    Shape/type validation only. Business rules (dates, editing locks,
    capacity bounds) live in events.services.
    """
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    event_type = serializers.ChoiceField(choices=Event.TYPE_CHOICES, required=False)
    tags = serializers.JSONField(required=False)
    eligibility = serializers.ChoiceField(choices=Event.ELIGIBILITY_CHOICES, required=False)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    registration_deadline = serializers.DateTimeField(required=False)
    form_fields = FormFieldInputSerializer(many=True, required=False)
    max_participants = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, min_value=0)
    stock = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    # Relative stock change; the only way to touch stock once published
    restock = serializers.IntegerField(required=False)
    is_team_event = serializers.BooleanField(required=False)
    min_team_size = serializers.IntegerField(required=False, min_value=1)
    max_team_size = serializers.IntegerField(required=False, min_value=1)
    max_teams = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    status = serializers.ChoiceField(choices=Event.STATUS_CHOICES, required=False)


# -----------------------------------------
# TICKETS
# -----------------------------------------
class AnswerSerializer(serializers.Serializer):
    label = serializers.CharField(max_length=255)
    value = serializers.JSONField(allow_null=True, required=False)


class AnswersInputSerializer(serializers.Serializer):
    answers = AnswerSerializer(many=True, required=False, default=list)


class EventBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Event
        fields = ["id", "name", "event_type", "start_date", "end_date", "status", "price"]


class TeamBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Team
        fields = ["id", "name", "code", "status"]


class TicketSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    event = EventBriefSerializer(read_only=True)
    team = TeamBriefSerializer(read_only=True)

    class Meta:
        model = Ticket
        fields = [
            "id",
            "user",
            "event",
            "team",
            "answers",
            "status",
            "checked_in",
            "check_in_time",
            "feedback_given",
            "registered_at",
            "cancelled_at",
        ]
        read_only_fields = fields


class ParticipantSerializer(serializers.ModelSerializer):
    ticket_id = serializers.IntegerField(source="id", read_only=True)
    user = UserSummarySerializer(read_only=True)
    team_name = serializers.CharField(source="team.name", read_only=True, default=None)

    class Meta:
        model = Ticket
        fields = [
            "ticket_id",
            "user",
            "team_name",
            "answers",
            "status",
            "checked_in",
            "registered_at",
        ]


class ScanInputSerializer(serializers.Serializer):
    ticket_id = serializers.CharField(max_length=64)


class ScanLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ScanLog
        fields = ["id", "event", "ticket", "ticket_ref", "action", "created_at"]


# -----------------------------------------
# TEAMS
# -----------------------------------------
class TeamMemberSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = TeamMembership
        fields = ["user", "role", "joined_at"]


class TeamSerializer(serializers.ModelSerializer):
    leader = UserSummarySerializer(read_only=True)
    members = TeamMemberSerializer(source="memberships", many=True, read_only=True)
    event_id = serializers.IntegerField(read_only=True)
    max_team_size = serializers.IntegerField(source="event.max_team_size", read_only=True)
    min_team_size = serializers.IntegerField(source="event.min_team_size", read_only=True)

    class Meta:
        model = Team
        fields = [
            "id",
            "name",
            "code",
            "event_id",
            "leader",
            "members",
            "member_count",
            "min_team_size",
            "max_team_size",
            "status",
            "created_at",
            "completed_at",
        ]
        read_only_fields = fields


class TeamCreateSerializer(serializers.Serializer):
    event_id = serializers.IntegerField()
    name = serializers.CharField(max_length=100)
    answers = AnswerSerializer(many=True, required=False, default=list)


class TeamJoinSerializer(serializers.Serializer):
    event_id = serializers.IntegerField()
    code = serializers.CharField(max_length=16)
    answers = AnswerSerializer(many=True, required=False, default=list)


class PendingTicketSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    code = serializers.CharField()
    message = serializers.CharField()


# -----------------------------------------
# FEEDBACK
# -----------------------------------------
class FeedbackInputSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, max_length=2000)


class FeedbackSerializer(serializers.ModelSerializer):
    class Meta:
        model = Feedback
        fields = ["id", "rating", "comment", "created_at"]
