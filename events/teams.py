# events/teams.py
"""
Team coordinator.

Teams fill up one conditional increment at a time. The join that moves a team
from forming to complete is decided by a single conditional UPDATE on the team
row, so exactly one request ever sees "this join completed the team" and that
request alone fans out tickets to every member.

Fan-out is not atomic as a group. Each member goes through issuance on its own
(idempotently), and whoever could not be ticketed is reported back as pending.
The leader can re-run the fan-out for them later.
"""
import logging
import secrets
import string
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from . import ledger
from .exceptions import (
    AllocationError,
    AlreadyInTeam,
    AlreadyRegistered,
    NotFound,
    StateConflict,
    TeamCodeExhausted,
    ValidationFailed,
)
from .form_fields import check_required_answers
from .issuance import (
    check_eligibility,
    check_open_for_registration,
    enqueue_after_commit,
    get_event,
    has_confirmed_ticket,
    issue,
)
from .models import Team, TeamMembership, Ticket
from .sanitizers import sanitize_title

logger = logging.getLogger("felicity.events")

TEAM_CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class TeamResult:
    team: Team
    ticket: Optional[Ticket] = None
    # [{"user_id": ..., "code": ..., "message": ...}] for members still without a ticket
    pending: List[dict] = field(default_factory=list)
    issued: List[Ticket] = field(default_factory=list)


def _code_length() -> int:
    return getattr(settings, "TEAM_CODE_LENGTH", 6)


def _max_attempts() -> int:
    return getattr(settings, "TEAM_CODE_MAX_ATTEMPTS", 20)


def generate_team_code(rng=None, length: Optional[int] = None) -> str:
    rng = rng or secrets.SystemRandom()
    length = length or _code_length()
    return "".join(rng.choice(TEAM_CODE_ALPHABET) for _ in range(length))


def allocate_team_code(rng=None, max_attempts: Optional[int] = None) -> str:
    """
    A code no existing team uses right now.

    The unique index on Team.code is still the final arbiter; see create_team.
    """
    max_attempts = max_attempts or _max_attempts()
    for _ in range(max_attempts):
        code = generate_team_code(rng)
        if not Team.objects.filter(code=code).exists():
            return code
    logger.error(f"Team code allocation gave up after {max_attempts} attempts")
    raise TeamCodeExhausted()


def _check_not_enrolled(user, event):
    if TeamMembership.objects.filter(user=user, event=event).exists():
        raise AlreadyInTeam("You are already in a team for this event")
    if has_confirmed_ticket(user, event):
        raise AlreadyRegistered("You already have a ticket for this event")


def _check_team_event(event):
    if not event.is_team_event:
        raise ValidationFailed("This is not a team event", code="not_team_event")


def _issue_member(team, membership):
    """
    Returns (ticket, pending_entry). Exactly one of the two is None.
    """
    try:
        ticket = issue(membership.user, team.event, team=team, answers=membership.answers)
        return ticket, None
    except AlreadyRegistered:
        # Already ticketed counts as done
        ticket = Ticket.objects.filter(
            user_id=membership.user_id, event_id=team.event_id, status=Ticket.STATUS_CONFIRMED
        ).first()
        return ticket, None
    except AllocationError as e:
        logger.warning(
            f"Team ticket pending: team={team.id}, user={membership.user_id}, code={e.code}"
        )
        return None, {"user_id": membership.user_id, "code": e.code, "message": e.message}


def issue_team_tickets(team, memberships=None):
    """
    Fan out one ticket per member. Returns (tickets, pending).

    tickets maps user_id -> Ticket for every member who holds one afterwards.
    """
    if memberships is None:
        memberships = team.memberships.select_related("user").order_by("joined_at", "id")

    tickets = {}
    pending = []
    for membership in memberships:
        ticket, failure = _issue_member(team, membership)
        if ticket is not None:
            tickets[membership.user_id] = ticket
        if failure is not None:
            pending.append(failure)

    logger.info(
        f"Team fan-out: team={team.id}, ticketed={len(tickets)}, pending={len(pending)}"
    )
    return tickets, pending


def create_team(leader, event_id, name, answers=None) -> TeamResult:
    name = sanitize_title(name)[:100]
    if not name:
        raise ValidationFailed("Team name is required", code="invalid_payload")

    event = get_event(event_id)
    _check_team_event(event)
    check_open_for_registration(event)
    check_eligibility(leader, event)
    _check_not_enrolled(leader, event)
    cleaned = check_required_answers(event.form_fields, answers)

    born_complete = event.min_team_size <= 1
    team = None

    for _ in range(_max_attempts()):
        code = allocate_team_code()
        try:
            with transaction.atomic():
                ledger.reserve_team_slot(event)
                team = Team.objects.create(
                    event=event,
                    name=name,
                    code=code,
                    leader=leader,
                    status=Team.STATUS_COMPLETE if born_complete else Team.STATUS_FORMING,
                    completed_at=timezone.now() if born_complete else None,
                    member_count=1,
                )
                membership = TeamMembership.objects.create(
                    team=team,
                    user=leader,
                    event=event,
                    role=TeamMembership.ROLE_LEADER,
                    answers=cleaned,
                )
            break
        except IntegrityError:
            if TeamMembership.objects.filter(user=leader, event=event).exists():
                raise AlreadyInTeam("You are already in a team for this event")
            # Someone took the code between allocation and insert; draw again
            logger.info(f"Team code collision on insert, retrying: event={event.id}")
            team = None

    if team is None:
        raise TeamCodeExhausted()

    logger.info(
        f"Team created: team={team.id}, code={team.code}, event={event.id}, "
        f"leader={leader.id}, status={team.status}"
    )

    from .tasks import send_team_created_email_task
    enqueue_after_commit(send_team_created_email_task, team.id)

    result = TeamResult(team=team)
    if born_complete:
        ticket, failure = _issue_member(team, membership)
        result.ticket = ticket
        if failure is not None:
            result.pending.append(failure)
    return result


def join_team(user, event_id, code, answers=None) -> TeamResult:
    code = (code or "").strip().upper()
    if not code:
        raise ValidationFailed("Team code is required", code="invalid_payload")

    event = get_event(event_id)
    _check_team_event(event)

    team = Team.objects.filter(event=event, code=code).first()
    if team is None:
        raise NotFound("Invalid team code for this event", code="invalid_team_code")

    check_open_for_registration(event)
    check_eligibility(user, event)
    _check_not_enrolled(user, event)
    cleaned = check_required_answers(event.form_fields, answers)

    try:
        with transaction.atomic():
            ledger.add_team_member(team, event.max_team_size)
            TeamMembership.objects.create(
                team=team,
                user=user,
                event=event,
                role=TeamMembership.ROLE_MEMBER,
                answers=cleaned,
            )
            # The one update that may flip forming -> complete
            completed_now = Team.objects.filter(
                pk=team.pk,
                status=Team.STATUS_FORMING,
                member_count__gte=event.min_team_size,
            ).update(status=Team.STATUS_COMPLETE, completed_at=timezone.now()) == 1
    except IntegrityError:
        raise AlreadyInTeam("You are already in a team for this event")

    team.refresh_from_db()

    logger.info(
        f"Team joined: team={team.id}, user={user.id}, members={team.member_count}, "
        f"status={team.status}, completed_now={completed_now}"
    )

    from .tasks import send_team_joined_email_task, send_team_complete_email_task
    enqueue_after_commit(send_team_joined_email_task, team.id, user.id)

    result = TeamResult(team=team)
    if completed_now:
        enqueue_after_commit(send_team_complete_email_task, team.id)
        tickets, pending = issue_team_tickets(team)
        result.ticket = tickets.get(user.id)
        result.issued = list(tickets.values())
        result.pending = pending
    elif team.is_complete:
        membership = TeamMembership.objects.select_related("user").get(team=team, user=user)
        ticket, failure = _issue_member(team, membership)
        result.ticket = ticket
        if failure is not None:
            result.pending.append(failure)

    return result


def get_team(team_id) -> Team:
    try:
        return Team.objects.select_related("event", "leader").get(pk=team_id)
    except (Team.DoesNotExist, ValueError, TypeError):
        raise NotFound("Team not found", code="team_not_found")


def unticketed_memberships(team):
    """Members without a Confirmed ticket tagged with this team (never ticketed, or cancelled)."""
    ticketed = Ticket.objects.filter(team=team, status=Ticket.STATUS_CONFIRMED).values("user_id")
    return (
        team.memberships.select_related("user")
        .exclude(user_id__in=ticketed)
        .order_by("joined_at", "id")
    )


def retry_pending_tickets(user, team_id) -> TeamResult:
    team = get_team(team_id)

    if team.leader_id != user.id and not getattr(user, "is_platform_admin", False):
        raise PermissionDenied("Only the team leader can retry ticket issuance")

    if not team.is_complete:
        raise StateConflict("Team is still forming", code="team_forming")

    tickets, pending = issue_team_tickets(team, unticketed_memberships(team))
    return TeamResult(team=team, pending=pending, issued=list(tickets.values()))


def get_my_team(user, event_id) -> Team:
    membership = (
        TeamMembership.objects.select_related("team", "team__event", "team__leader")
        .filter(user=user, event_id=event_id)
        .first()
    )
    if membership is None:
        raise NotFound("No team found", code="team_not_found")
    return membership.team
