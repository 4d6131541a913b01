# events/services.py
"""
Event management: creation, status-dependent editing, visibility, and the
organizer-facing reports (participants, analytics, feedback).
"""
import logging
from datetime import timedelta
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count
from django.db.models.functions import TruncDate
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from . import ledger
from .exceptions import NotFound, StateConflict, ValidationFailed
from .form_fields import normalize_form_fields
from .models import Event, Feedback, Team, Ticket
from .sanitizers import (
    sanitize_description,
    sanitize_tags,
    sanitize_title,
    validate_capacity,
    validate_price,
    validate_team_size,
)
from .state_machine import is_admin, transition_event, validate_action_for_status

logger = logging.getLogger("felicity.events")

EDITABLE_FIELDS = (
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
)

# Fields an organizer may still change once the event is published
PUBLISHED_EDITABLE_FIELDS = (
    "description",
    "start_date",
    "end_date",
    "registration_deadline",
    "max_participants",
    "max_teams",
)

REQUIRED_ON_CREATE = ("name", "description", "start_date", "end_date", "registration_deadline")


def _clean_fields(data: dict) -> dict:
    """Sanitize whatever subset of editable fields is present."""
    cleaned = {}
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key == "name":
            value = sanitize_title(value)
        elif key == "description":
            value = sanitize_description(value)
        elif key == "tags":
            value = sanitize_tags(value)
        elif key == "form_fields":
            value = normalize_form_fields(value)
        elif key in ("max_participants", "stock", "max_teams"):
            value = validate_capacity(value, field=key)
        elif key == "price":
            value = validate_price(value)
        elif key in ("min_team_size", "max_team_size"):
            value = validate_team_size(value, field=key)
        cleaned[key] = value
    return cleaned


def _validate_event_shape(event: Event):
    """Cross-field rules, checked on the merged (current + incoming) state."""
    if not event.name:
        raise ValidationFailed("Event name is required", code="invalid_payload")
    if event.start_date >= event.end_date:
        raise ValidationFailed("End date must be after start date", code="invalid_payload")
    if event.registration_deadline > event.start_date:
        raise ValidationFailed("Registration deadline cannot be after start date", code="invalid_payload")
    if event.min_team_size > event.max_team_size:
        raise ValidationFailed("min_team_size cannot exceed max_team_size", code="invalid_payload")
    if event.is_team_event and event.is_merch:
        raise ValidationFailed("Merchandise events cannot be team events", code="invalid_payload")
    if event.max_participants is not None and event.max_participants < event.confirmed_count:
        raise ValidationFailed(
            f"max_participants cannot be lower than the {event.confirmed_count} confirmed registrations",
            code="invalid_payload",
        )
    if event.max_teams is not None and event.max_teams < event.team_count:
        raise ValidationFailed(
            f"max_teams cannot be lower than the {event.team_count} teams already formed",
            code="invalid_payload",
        )


def create_event(organizer, data: dict) -> Event:
    if not (getattr(organizer, "is_organizer", False) or is_admin(organizer)):
        raise PermissionDenied("Only organizers can create events")

    missing = [key for key in REQUIRED_ON_CREATE if not data.get(key)]
    if missing:
        raise ValidationFailed(f"Please provide {', '.join(missing)}", code="invalid_payload")

    fields = _clean_fields(data)
    event = Event(organizer=organizer, status=Event.STATUS_DRAFT, **fields)
    _validate_event_shape(event)
    event.save()

    logger.info(f"Event created: event={event.id}, organizer={organizer.id}, type={event.event_type}")
    return event


def _changed(event: Event, key: str, value) -> bool:
    current = getattr(event, key)
    if isinstance(current, Decimal) and value is not None:
        return current != Decimal(str(value))
    return current != value


def update_event(event: Event, actor, data: dict) -> Event:
    """
    Apply an organizer edit under the status-dependent editing rules.

    draft: everything; published: PUBLISHED_EDITABLE_FIELDS; later states and
    cancelled: status only (through the state machine). Form fields lock as
    soon as the event has any ticket. Absolute stock is a draft-only field;
    after that stock moves only by `restock` deltas against the stored level.
    """
    new_status = data.get("status")
    restock = data.get("restock") or 0
    fields = _clean_fields(data)
    changes = {key: value for key, value in fields.items() if _changed(event, key, value)}

    if restock:
        if not event.is_merch:
            raise ValidationFailed("Only merchandise events carry stock", code="not_merch")
        ok, reason = validate_action_for_status(event, "edit")
        if not ok:
            raise StateConflict(reason, code="locked_field")

    if changes:
        ok, reason = validate_action_for_status(event, "edit")
        if not ok:
            raise StateConflict(reason, code="locked_field")

        if event.status == Event.STATUS_PUBLISHED:
            allowed = PUBLISHED_EDITABLE_FIELDS
        elif event.status == Event.STATUS_DRAFT:
            allowed = EDITABLE_FIELDS
        else:
            allowed = ()

        locked = sorted(key for key in changes if key not in allowed)
        if locked:
            raise StateConflict(
                f"Event is {event.status}; these fields can no longer be changed: {', '.join(locked)}",
                code="locked_field",
            )

        if "form_fields" in changes and Ticket.objects.filter(event=event).exists():
            raise StateConflict(
                "Form fields are locked after the first registration is received",
                code="locked_field",
            )

    with transaction.atomic():
        if changes:
            # Counters are ledger-owned; read them fresh for the bound checks
            fresh = ledger.current_counters(event)
            if not fresh:
                raise NotFound("Event not found", code="event_not_found")
            event.confirmed_count = fresh["confirmed_count"]
            event.team_count = fresh["team_count"]

            for key, value in changes.items():
                setattr(event, key, value)
            _validate_event_shape(event)

            try:
                with transaction.atomic():
                    event.save(update_fields=list(changes) + ["updated_at"])
            except IntegrityError:
                # A registration landed between our read and the save
                raise ValidationFailed(
                    "Capacity cannot be lowered below current registrations",
                    code="invalid_payload",
                )

        if restock:
            event.stock = ledger.restock(event, restock)

        if new_status and new_status != event.status:
            transition_event(event, new_status, actor=actor)

    logger.info(
        f"Event updated: event={event.id}, actor={actor.id}, fields={sorted(changes)}, restock={restock}, status={event.status}"
    )
    return event


def delete_event(event: Event, actor):
    event_id, name = event.id, event.name
    event.delete()
    logger.info(f"Event deleted: event={event_id}, actor={actor.id}")
    return {"id": event_id, "name": name}


def visible_events(user):
    qs = Event.objects.select_related("organizer").order_by("-created_at")
    if is_admin(user):
        return qs
    if getattr(user, "is_organizer", False):
        return qs.filter(organizer=user)
    return qs.filter(status=Event.STATUS_PUBLISHED)


def get_visible_event(user, event_id) -> Event:
    try:
        event = Event.objects.select_related("organizer").get(pk=event_id)
    except Event.DoesNotExist:
        raise NotFound("Event not found", code="event_not_found")

    if is_admin(user):
        return event
    if getattr(user, "is_organizer", False):
        if event.organizer_id != user.id:
            raise PermissionDenied("You can only view your own events")
        return event
    if event.status != Event.STATUS_PUBLISHED:
        raise PermissionDenied("This event is not published yet")
    return event


def get_owned_event(user, event_id) -> Event:
    """The event, if the user organizes it (or is a platform admin)."""
    try:
        event = Event.objects.select_related("organizer").get(pk=event_id)
    except Event.DoesNotExist:
        raise NotFound("Event not found", code="event_not_found")

    if event.organizer_id != user.id and not is_admin(user):
        raise PermissionDenied("You can only manage your own events")
    return event


def event_counts(event: Event) -> dict:
    return {
        "participants_count": event.tickets.filter(status=Ticket.STATUS_CONFIRMED).count(),
        "teams_count": event.teams.count() if event.is_team_event else 0,
    }


def participants(event: Event):
    return (
        Ticket.objects.filter(event=event)
        .select_related("user", "team")
        .order_by("-registered_at")
    )


def trending_events(now=None, limit: int = 5, window: timedelta = timedelta(hours=24)):
    """
    Published events ranked by Confirmed tickets issued inside the window.
    Returns [(event, recent_count), ...], busiest first.
    """
    since = (now or timezone.now()) - window
    ranked = list(
        Ticket.objects.filter(
            status=Ticket.STATUS_CONFIRMED,
            registered_at__gte=since,
            event__status=Event.STATUS_PUBLISHED,
        )
        .values("event_id")
        .annotate(recent=Count("id"))
        .order_by("-recent", "event_id")[:limit]
    )
    events = Event.objects.select_related("organizer").in_bulk([row["event_id"] for row in ranked])
    return [(events[row["event_id"]], row["recent"]) for row in ranked]

def analytics(event: Event, days: int = 7) -> dict:
    tickets = Ticket.objects.filter(event=event)
    confirmed = tickets.filter(status=Ticket.STATUS_CONFIRMED).count()
    attended = tickets.filter(status=Ticket.STATUS_CONFIRMED, checked_in=True).count()

    team_stats = None
    if event.is_team_event:
        team_stats = {
            "total_teams": Team.objects.filter(event=event).count(),
            "completed_teams": Team.objects.filter(event=event, status=Team.STATUS_COMPLETE).count(),
        }

    today = timezone.now().date()
    start = today - timedelta(days=days - 1)
    per_day = dict(
        tickets.filter(registered_at__date__gte=start)
        .annotate(day=TruncDate("registered_at"))
        .values("day")
        .annotate(count=Count("id"))
        .values_list("day", "count")
    )
    trend = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        trend.append({"date": day.isoformat(), "count": per_day.get(day, 0)})

    return {
        "overview": {
            "total_registrations": confirmed,
            "total_revenue": str((event.price or Decimal("0")) * confirmed),
            "total_attendance": attended,
            "capacity": event.max_participants,
            "remaining_stock": event.stock if event.is_merch else None,
            "attendance_rate": round(attended / confirmed * 100, 1) if confirmed else 0,
        },
        "team_stats": team_stats,
        "registration_trend": trend,
        "event_name": event.name,
        "status": event.status,
    }


def submit_feedback(user, event_id, rating, comment="") -> Feedback:
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        raise ValidationFailed("Rating must be between 1 and 5", code="invalid_payload")
    if rating < 1 or rating > 5:
        raise ValidationFailed("Rating must be between 1 and 5", code="invalid_payload")

    try:
        event = Event.objects.get(pk=event_id)
    except Event.DoesNotExist:
        raise NotFound("Event not found", code="event_not_found")

    ok, reason = validate_action_for_status(event, "feedback")
    if not ok:
        raise StateConflict(reason, code="event_not_completed")

    ticket = Ticket.objects.filter(
        user=user, event=event, status=Ticket.STATUS_CONFIRMED, checked_in=True
    ).first()
    if ticket is None:
        raise PermissionDenied("You must attend (check-in) the event to leave feedback")

    with transaction.atomic():
        claimed = Ticket.objects.filter(pk=ticket.pk, feedback_given=False).update(feedback_given=True)
        if claimed != 1:
            raise StateConflict("Feedback already submitted for this event", code="feedback_given")
        feedback = Feedback.objects.create(
            event=event,
            rating=rating,
            comment=sanitize_title(comment) if comment else "",
        )

    logger.info(f"Feedback submitted: event={event.id}, rating={rating}")
    return feedback


def feedback_stats(event: Event) -> dict:
    feedbacks = Feedback.objects.filter(event=event)
    total = feedbacks.count()
    average = feedbacks.aggregate(avg=Avg("rating"))["avg"]

    distribution = {str(i): 0 for i in range(1, 6)}
    for row in feedbacks.values("rating").annotate(count=Count("id")):
        distribution[str(row["rating"])] = row["count"]

    return {
        "total": total,
        "average": round(average, 1) if average is not None else 0,
        "distribution": distribution,
        "feedbacks": feedbacks,
    }
