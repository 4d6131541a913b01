# events/ledger.py
"""
Capacity ledger.

Every bounded resource (event seats, merch stock, team slots, team members)
is a counter column, and every reservation is a single conditional UPDATE:
the WHERE clause states the bound, and the row count tells us whether we got
the unit. There is no read-then-write anywhere in here.

Callers run these inside the same transaction.atomic() block as the write the
reservation admits, so a later failure rolls the reservation back with it.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.db.models import F, Q

from .exceptions import CapacityExceeded, ValidationFailed
from .models import Event, Team

logger = logging.getLogger("felicity.events")


@dataclass(frozen=True)
class StockReservation:
    event_id: int
    # False when the event has unlimited stock; nothing to give back then
    holds_unit: bool


def reserve_seat(event: Event) -> None:
    updated = (
        Event.objects.filter(pk=event.pk)
        .filter(Q(max_participants__isnull=True) | Q(confirmed_count__lt=F("max_participants")))
        .update(confirmed_count=F("confirmed_count") + 1)
    )
    if updated != 1:
        logger.warning(f"Seat reservation refused: event={event.pk} is full")
        raise CapacityExceeded("Event is full", code="event_full")


def release_seat(event: Event) -> None:
    Event.objects.filter(pk=event.pk, confirmed_count__gt=0).update(
        confirmed_count=F("confirmed_count") - 1
    )


def reserve_stock(event: Event) -> StockReservation:
    updated = Event.objects.filter(pk=event.pk, stock__gt=0).update(stock=F("stock") - 1)
    if updated == 1:
        return StockReservation(event_id=event.pk, holds_unit=True)

    # stock IS NULL means unlimited; a stale instance must not decide this
    if Event.objects.filter(pk=event.pk, stock__isnull=True).exists():
        return StockReservation(event_id=event.pk, holds_unit=False)

    logger.warning(f"Stock reservation refused: event={event.pk} is out of stock")
    raise CapacityExceeded("Item is out of stock", code="out_of_stock")


def release_stock(reservation: Optional[StockReservation]) -> None:
    if reservation is None or not reservation.holds_unit:
        return
    Event.objects.filter(pk=reservation.event_id, stock__isnull=False).update(stock=F("stock") + 1)


def restock(event: Event, delta: int) -> int:
    """
    Move merch stock by delta against whatever the store holds now and return
    the new level. Units sold in the meantime stay sold.
    """
    updated = (
        Event.objects.filter(pk=event.pk, stock__isnull=False, stock__gte=-delta)
        .update(stock=F("stock") + delta)
    )
    if updated != 1:
        if Event.objects.filter(pk=event.pk, stock__isnull=True).exists():
            raise ValidationFailed("Unlimited stock cannot be restocked", code="invalid_payload")
        raise ValidationFailed("Cannot remove more units than are left in stock", code="invalid_payload")

    stock = Event.objects.filter(pk=event.pk).values_list("stock", flat=True).get()
    logger.info(f"Restock: event={event.pk}, delta={delta:+d}, stock={stock}")
    return stock


def reserve_team_slot(event: Event) -> None:
    updated = (
        Event.objects.filter(pk=event.pk)
        .filter(Q(max_teams__isnull=True) | Q(team_count__lt=F("max_teams")))
        .update(team_count=F("team_count") + 1)
    )
    if updated != 1:
        logger.warning(f"Team slot refused: event={event.pk} reached its team limit")
        raise CapacityExceeded("Maximum number of teams reached for this event", code="team_limit_reached")


def add_team_member(team: Team, max_size: int) -> None:
    updated = Team.objects.filter(pk=team.pk, member_count__lt=max_size).update(
        member_count=F("member_count") + 1
    )
    if updated != 1:
        logger.warning(f"Team member refused: team={team.pk} is full (max={max_size})")
        raise CapacityExceeded("Team is full", code="team_full")


def current_counters(event: Event) -> dict:
    """Fresh counter values straight from the store."""
    return (
        Event.objects.filter(pk=event.pk)
        .values("confirmed_count", "team_count", "stock", "max_participants", "max_teams")
        .first()
        or {}
    )
