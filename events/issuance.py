# events/issuance.py
"""
Ticket issuance: the single path that turns a user into a confirmed ticket
holder, plus its inverses (cancel) and the door check-in (scan).

issue() checks run cheapest-first and the store has the last word:
the seat/stock reservations are conditional UPDATEs and the ticket insert is
guarded by the one_confirmed_ticket_per_user_per_event partial unique index.
A failed issuance rolls back inside its own atomic block and leaves nothing.
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from . import ledger
from .exceptions import AlreadyRegistered, NotFound, StateConflict, ValidationFailed
from .form_fields import check_required_answers
from .models import Event, ScanLog, Ticket
from .state_machine import validate_action_for_status

logger = logging.getLogger("felicity.events")


def enqueue_after_commit(task, *args):
    """
    Queue a notification task once the surrounding transaction commits.

    Delivery is fire-and-forget: a broker outage is logged, never raised.
    """
    def _send():
        try:
            task.delay(*args)
        except Exception as e:
            logger.warning(f"Could not enqueue {getattr(task, 'name', task)}{args}: {e}")

    transaction.on_commit(_send)


def get_event(event_id) -> Event:
    try:
        return Event.objects.get(pk=event_id)
    except (Event.DoesNotExist, ValueError, TypeError):
        raise NotFound("Event not found", code="event_not_found")


def has_confirmed_ticket(user, event) -> bool:
    return Ticket.objects.filter(user=user, event=event, status=Ticket.STATUS_CONFIRMED).exists()


def check_open_for_registration(event: Event, now=None):
    ok, reason = validate_action_for_status(event, "register")
    if not ok:
        raise StateConflict(reason, code="event_not_open")

    now = now or timezone.now()
    if event.registration_deadline and now >= event.registration_deadline:
        raise ValidationFailed("Registration deadline has passed", code="registration_closed")


def check_eligibility(user, event: Event):
    if event.is_iiit_only and not getattr(user, "is_iiit", False):
        raise ValidationFailed("This event is open to IIIT participants only", code="not_eligible")


def issue(user, event: Event, team=None, answers=None) -> Ticket:
    """
    Admit one user into one event and return the Confirmed ticket.

    Raises StateConflict / ValidationFailed / AlreadyRegistered /
    CapacityExceeded. Safe to call concurrently for the same (user, event):
    exactly one call wins.
    """
    check_open_for_registration(event)
    check_eligibility(user, event)

    if has_confirmed_ticket(user, event):
        raise AlreadyRegistered("You have already registered for this event")

    cleaned = check_required_answers(event.form_fields, answers)

    try:
        with transaction.atomic():
            ledger.reserve_seat(event)
            reservation = ledger.reserve_stock(event) if event.is_merch else None
            ticket = Ticket.objects.create(
                user=user,
                event=event,
                team=team,
                answers=cleaned,
                status=Ticket.STATUS_CONFIRMED,
                holds_stock=bool(reservation and reservation.holds_unit),
            )
    except IntegrityError:
        # Lost the race on the partial unique index; the reservations rolled back with it
        logger.info(f"Duplicate issuance rejected: user={user.id}, event={event.id}")
        raise AlreadyRegistered("You have already registered for this event")

    logger.info(
        f"Ticket issued: ticket={ticket.id}, user={user.id}, event={event.id}, "
        f"team={team.id if team else None}, stock_held={ticket.holds_stock}"
    )

    from .tasks import send_ticket_email_task
    enqueue_after_commit(send_ticket_email_task, ticket.id)

    return ticket


def register(user, event_id, answers=None) -> Ticket:
    """Individual registration for a normal or merch event."""
    event = get_event(event_id)
    if event.is_team_event:
        raise ValidationFailed(
            "This is a team event. Create or join a team to register.",
            code="team_event",
        )
    return issue(user, event, answers=answers)


def purchase(user, event_id, answers=None) -> Ticket:
    event = get_event(event_id)
    if not event.is_merch:
        raise ValidationFailed("This event is not a merchandise item", code="not_merch")
    if event.is_team_event:
        raise ValidationFailed("Merchandise cannot be bought through a team", code="team_event")
    return issue(user, event, answers=answers)


def cancel(user, event_id) -> Ticket:
    """
    Cancel the user's Confirmed ticket for an event.

    The row is kept (status=cancelled); the seat and any stock unit it held go
    back to the event in the same transaction.
    """
    event = get_event(event_id)

    ticket = Ticket.objects.filter(user=user, event=event, status=Ticket.STATUS_CONFIRMED).first()
    if ticket is None:
        raise NotFound("You are not registered for this event", code="registration_not_found")

    now = timezone.now()
    with transaction.atomic():
        updated = Ticket.objects.filter(pk=ticket.pk, status=Ticket.STATUS_CONFIRMED).update(
            status=Ticket.STATUS_CANCELLED,
            cancelled_at=now,
        )
        if updated != 1:
            # Someone else cancelled it between our read and write
            raise NotFound("You are not registered for this event", code="registration_not_found")

        ledger.release_seat(event)
        if ticket.holds_stock:
            ledger.release_stock(ledger.StockReservation(event_id=event.pk, holds_unit=True))

    ticket.status = Ticket.STATUS_CANCELLED
    ticket.cancelled_at = now

    logger.info(f"Ticket cancelled: ticket={ticket.id}, user={user.id}, event={event.id}")

    from .tasks import send_cancellation_email_task
    enqueue_after_commit(send_cancellation_email_task, ticket.id)

    return ticket


def _log_scan(action, ticket_ref, scanned_by, ip_address=None, ticket=None, event=None):
    ScanLog.objects.create(
        event=event,
        ticket=ticket,
        scanned_by=scanned_by,
        ticket_ref=str(ticket_ref)[:64],
        ip_address=ip_address,
        action=action,
    )


def scan(ticket_id, organizer, ip_address=None) -> Ticket:
    """
    Door check-in for a ticket of the organizer's own event.

    Every attempt, successful or not, leaves a ScanLog row.
    """
    try:
        ticket = Ticket.objects.select_related("event", "user", "team").get(pk=ticket_id)
    except (Ticket.DoesNotExist, ValueError, TypeError):
        _log_scan(ScanLog.ACTION_INVALID_TICKET, ticket_id, organizer, ip_address)
        logger.warning(f"Scan of unknown ticket ref={ticket_id!r} by user={organizer.id}")
        raise NotFound("Ticket not found", code="ticket_not_found")

    event = ticket.event

    if event.organizer_id != organizer.id and not getattr(organizer, "is_platform_admin", False):
        _log_scan(ScanLog.ACTION_UNAUTHORIZED, ticket_id, organizer, ip_address, ticket, event)
        logger.warning(f"Foreign scan rejected: ticket={ticket.id}, event={event.id}, user={organizer.id}")
        raise PermissionDenied("You can only scan tickets for your own events")

    ok, reason = validate_action_for_status(event, "scan")
    if not ok:
        _log_scan(ScanLog.ACTION_EVENT_INACTIVE, ticket_id, organizer, ip_address, ticket, event)
        raise StateConflict(reason, code="event_not_open")

    if not ticket.is_confirmed:
        _log_scan(ScanLog.ACTION_NOT_CONFIRMED, ticket_id, organizer, ip_address, ticket, event)
        raise StateConflict(f"This ticket is {ticket.status}", code="ticket_not_confirmed")

    now = timezone.now()
    updated = Ticket.objects.filter(
        pk=ticket.pk, status=Ticket.STATUS_CONFIRMED, checked_in=False
    ).update(checked_in=True, check_in_time=now)

    if updated != 1:
        _log_scan(ScanLog.ACTION_ALREADY_USED, ticket_id, organizer, ip_address, ticket, event)
        raise StateConflict("This ticket has already been used", code="already_checked_in")

    ticket.checked_in = True
    ticket.check_in_time = now
    _log_scan(ScanLog.ACTION_CHECK_IN, ticket_id, organizer, ip_address, ticket, event)

    logger.info(f"Check-in: ticket={ticket.id}, event={event.id}, by={organizer.id}")
    return ticket
