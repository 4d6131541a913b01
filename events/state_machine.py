# events/state_machine.py
"""
Lifecycle state machines for events, teams and tickets.

Event lifecycle:
    draft → published → ongoing → completed
                     ├→ closed → published / ongoing
                     └→ cancelled (also reachable from ongoing and closed)

completed and cancelled are terminal. Platform admins may override the table.
Any other transition not in EVENT_TRANSITIONS is rejected.
"""
from typing import Tuple
import logging

from django.db import transaction
from django.utils import timezone

from .exceptions import StateConflict
from .models import Event, Team, Ticket

logger = logging.getLogger('felicity.events')


# Valid state transitions: from_status -> list of allowed to_statuses
EVENT_TRANSITIONS = {
    Event.STATUS_DRAFT: [Event.STATUS_PUBLISHED],
    Event.STATUS_PUBLISHED: [Event.STATUS_ONGOING, Event.STATUS_CLOSED, Event.STATUS_CANCELLED],
    Event.STATUS_ONGOING: [Event.STATUS_COMPLETED, Event.STATUS_CANCELLED],
    Event.STATUS_CLOSED: [Event.STATUS_PUBLISHED, Event.STATUS_ONGOING, Event.STATUS_CANCELLED],
    Event.STATUS_COMPLETED: [],
    Event.STATUS_CANCELLED: [],
}

TEAM_TRANSITIONS = {
    Team.STATUS_FORMING: [Team.STATUS_COMPLETE],
    Team.STATUS_COMPLETE: [],
}

TICKET_TRANSITIONS = {
    Ticket.STATUS_CONFIRMED: [Ticket.STATUS_CANCELLED],
    Ticket.STATUS_CANCELLED: [],
}


def is_admin(actor) -> bool:
    return bool(actor) and bool(getattr(actor, "is_platform_admin", False))


def can_transition(event: Event, new_status: str, actor=None) -> Tuple[bool, str]:
    """
    Check if an event can transition to a new status.

    Returns (can_transition: bool, reason: str)
    """
    current_status = event.status

    if new_status not in dict(Event.STATUS_CHOICES):
        return False, f"Invalid status: {new_status}"

    if new_status == current_status:
        return True, "Same status"

    if is_admin(actor):
        return True, "Admin override"

    allowed = EVENT_TRANSITIONS.get(current_status, [])

    if new_status not in allowed:
        return False, f"Cannot transition from '{current_status}' to '{new_status}'"

    return True, ""


def transition_event(event: Event, new_status: str, actor=None, save: bool = True) -> Event:
    """
    Move an event to a new status or raise StateConflict.

    The write is conditional on the status we read, so two organizers racing
    on the same event cannot both win a transition out of the same state.
    """
    can, reason = can_transition(event, new_status, actor)

    if not can:
        logger.warning(
            f"Invalid state transition attempted: event={event.id}, "
            f"from={event.status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}. "
            f"Reason: {reason}"
        )
        raise StateConflict(reason, code="invalid_transition")

    old_status = event.status
    if old_status == new_status:
        return event

    if save:
        updated = Event.objects.filter(pk=event.pk, status=old_status).update(
            status=new_status, updated_at=timezone.now()
        )
        if updated != 1:
            raise StateConflict("Event status changed concurrently, reload and retry", code="invalid_transition")

    event.status = new_status

    logger.info(
        f"Event state transition: event={event.id}, "
        f"from={old_status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}"
    )

    return event


@transaction.atomic
def publish_event(event: Event, actor=None) -> Event:
    """Only a draft can be published, admins included."""
    if event.status != Event.STATUS_DRAFT:
        raise StateConflict(
            f"Only draft events can be published (current status: '{event.status}')",
            code="invalid_transition",
        )
    return transition_event(event, Event.STATUS_PUBLISHED, actor=actor)


def get_allowed_transitions(event: Event) -> list:
    return EVENT_TRANSITIONS.get(event.status, [])


def is_terminal_status(status: str) -> bool:
    return status not in EVENT_TRANSITIONS or len(EVENT_TRANSITIONS[status]) == 0


def can_transition_team(team: Team, new_status: str) -> bool:
    return new_status in TEAM_TRANSITIONS.get(team.status, [])


def can_transition_ticket(ticket: Ticket, new_status: str) -> bool:
    return new_status in TICKET_TRANSITIONS.get(ticket.status, [])


def validate_action_for_status(event: Event, action: str) -> Tuple[bool, str]:
    """
    Validate if an action is allowed given the event's current status.

    Actions and their requirements:
    - 'register': Event must be PUBLISHED
    - 'edit': Event must not be CANCELLED
    - 'scan': Event must not be DRAFT or CANCELLED
    - 'feedback': Event must be COMPLETED
    """
    status = event.status

    if action == 'register':
        if status != Event.STATUS_PUBLISHED:
            return False, "Event is not open for registration"
        return True, ""

    elif action == 'edit':
        if status == Event.STATUS_CANCELLED:
            return False, "Cancelled events cannot be edited"
        return True, ""

    elif action == 'scan':
        if status in (Event.STATUS_DRAFT, Event.STATUS_CANCELLED):
            return False, f"Tickets cannot be scanned for a {status} event"
        return True, ""

    elif action == 'feedback':
        if status != Event.STATUS_COMPLETED:
            return False, "Feedback can only be submitted for completed events"
        return True, ""

    return False, f"Unknown action: {action}"
