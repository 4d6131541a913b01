from datetime import timedelta
from unittest import mock

from django.test import TestCase
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from events import issuance
from events.exceptions import (
    AlreadyRegistered,
    CapacityExceeded,
    NotFound,
    StateConflict,
    ValidationFailed,
)
from events.models import Event, ScanLog, Ticket
from .utils import make_event, make_team_event, make_user


class RegisterTests(TestCase):
    def setUp(self):
        self.organizer = make_user(role="organizer")
        self.alice = make_user()
        self.bob = make_user()

    def test_register_creates_confirmed_ticket_and_counts_seat(self):
        event = make_event(self.organizer, max_participants=10)

        ticket = issuance.register(self.alice, event.id, [])

        self.assertEqual(ticket.status, Ticket.STATUS_CONFIRMED)
        self.assertIsNone(ticket.team)
        event.refresh_from_db()
        self.assertEqual(event.confirmed_count, 1)

    def test_capacity_is_never_exceeded(self):
        event = make_event(self.organizer, max_participants=1)
        issuance.register(self.alice, event.id)

        with self.assertRaises(CapacityExceeded) as ctx:
            issuance.register(self.bob, event.id)
        self.assertEqual(ctx.exception.code, "event_full")

        self.assertEqual(Ticket.objects.filter(event=event, status=Ticket.STATUS_CONFIRMED).count(), 1)

    def test_second_registration_is_already_registered(self):
        event = make_event(self.organizer)
        issuance.register(self.alice, event.id)

        with self.assertRaises(AlreadyRegistered):
            issuance.register(self.alice, event.id)

    def test_duplicate_admission_is_caught_by_the_store(self):
        """
        Simulate two requests that both passed the fast-path check: the
        partial unique index turns the loser into AlreadyRegistered and its
        seat reservation rolls back.
        """
        event = make_event(self.organizer, max_participants=5)

        with mock.patch("events.issuance.has_confirmed_ticket", return_value=False):
            issuance.issue(self.alice, event)
            with self.assertRaises(AlreadyRegistered):
                issuance.issue(self.alice, event)

        event.refresh_from_db()
        self.assertEqual(event.confirmed_count, 1)
        self.assertEqual(Ticket.objects.filter(user=self.alice, event=event).count(), 1)

    def test_deadline_enforced_regardless_of_capacity(self):
        event = make_event(
            self.organizer,
            max_participants=100,
            registration_deadline=timezone.now() - timedelta(hours=1),
        )

        with self.assertRaises(ValidationFailed) as ctx:
            issuance.register(self.alice, event.id)
        self.assertEqual(ctx.exception.code, "registration_closed")
        self.assertFalse(Ticket.objects.filter(event=event).exists())

    def test_registration_closes_at_the_deadline_instant(self):
        event = make_event(self.organizer)

        with self.assertRaises(ValidationFailed) as ctx:
            issuance.check_open_for_registration(event, now=event.registration_deadline)
        self.assertEqual(ctx.exception.code, "registration_closed")

        issuance.check_open_for_registration(
            event, now=event.registration_deadline - timedelta(seconds=1)
        )

    def test_unpublished_event_rejected(self):
        event = make_event(self.organizer, status=Event.STATUS_DRAFT)

        with self.assertRaises(StateConflict) as ctx:
            issuance.register(self.alice, event.id)
        self.assertEqual(ctx.exception.code, "event_not_open")

    def test_iiit_only_event_rejects_guests(self):
        event = make_event(self.organizer, eligibility=Event.ELIGIBILITY_IIIT)
        student = make_user(email="s@students.iiit.ac.in", is_iiit=True)

        with self.assertRaises(ValidationFailed) as ctx:
            issuance.register(self.alice, event.id)
        self.assertEqual(ctx.exception.code, "not_eligible")

        self.assertTrue(issuance.register(student, event.id).is_confirmed)

    def test_required_answers(self):
        event = make_event(
            self.organizer,
            form_fields=[
                {"field_name": "roll", "field_type": "text", "label": "Roll number", "required": True},
                {"field_name": "tshirt", "field_type": "text", "label": "T-shirt", "required": False},
            ],
        )

        with self.assertRaises(ValidationFailed) as ctx:
            issuance.register(self.alice, event.id, [{"label": "Roll number", "value": "  "}])
        self.assertEqual(ctx.exception.code, "missing_answer")

        ticket = issuance.register(self.alice, event.id, [{"label": "Roll number", "value": "2021101"}])
        self.assertEqual(ticket.answers, [{"label": "Roll number", "value": "2021101"}])

    def test_team_event_cannot_be_registered_individually(self):
        event = make_team_event(self.organizer)

        with self.assertRaises(ValidationFailed) as ctx:
            issuance.register(self.alice, event.id)
        self.assertEqual(ctx.exception.code, "team_event")

    def test_unknown_event(self):
        with self.assertRaises(NotFound) as ctx:
            issuance.register(self.alice, 999999)
        self.assertEqual(ctx.exception.code, "event_not_found")


class PurchaseAndCancelTests(TestCase):
    def setUp(self):
        self.organizer = make_user(role="organizer")
        self.buyers = [make_user() for _ in range(3)]

    def test_stock_never_negative(self):
        merch = make_event(self.organizer, event_type=Event.TYPE_MERCH, stock=2)

        issuance.purchase(self.buyers[0], merch.id)
        issuance.purchase(self.buyers[1], merch.id)
        with self.assertRaises(CapacityExceeded) as ctx:
            issuance.purchase(self.buyers[2], merch.id)
        self.assertEqual(ctx.exception.code, "out_of_stock")

        merch.refresh_from_db()
        self.assertEqual(merch.stock, 0)
        # out_of_stock rolled back the seat taken in the same block
        self.assertEqual(merch.confirmed_count, 2)

    def test_purchase_requires_merch(self):
        event = make_event(self.organizer)
        with self.assertRaises(ValidationFailed) as ctx:
            issuance.purchase(self.buyers[0], event.id)
        self.assertEqual(ctx.exception.code, "not_merch")

    def test_cancellation_round_trip(self):
        merch = make_event(self.organizer, event_type=Event.TYPE_MERCH, stock=5, max_participants=5)
        buyer = self.buyers[0]

        first = issuance.purchase(buyer, merch.id)
        merch.refresh_from_db()
        self.assertEqual((merch.stock, merch.confirmed_count), (4, 1))

        cancelled = issuance.cancel(buyer, merch.id)
        self.assertEqual(cancelled.id, first.id)
        merch.refresh_from_db()
        self.assertEqual((merch.stock, merch.confirmed_count), (5, 0))

        # Row kept for history
        first.refresh_from_db()
        self.assertEqual(first.status, Ticket.STATUS_CANCELLED)
        self.assertIsNotNone(first.cancelled_at)

        again = issuance.purchase(buyer, merch.id)
        self.assertNotEqual(again.id, first.id)
        merch.refresh_from_db()
        self.assertEqual((merch.stock, merch.confirmed_count), (4, 1))

    def test_stock_formula_holds(self):
        merch = make_event(self.organizer, event_type=Event.TYPE_MERCH, stock=3)
        for buyer in self.buyers:
            issuance.purchase(buyer, merch.id)
        issuance.cancel(self.buyers[1], merch.id)

        merch.refresh_from_db()
        confirmed = Ticket.objects.filter(event=merch, status=Ticket.STATUS_CONFIRMED).count()
        self.assertEqual(merch.stock, 3 - confirmed)

    def test_cancel_without_ticket(self):
        event = make_event(self.organizer)
        with self.assertRaises(NotFound) as ctx:
            issuance.cancel(self.buyers[0], event.id)
        self.assertEqual(ctx.exception.code, "registration_not_found")

    def test_cancel_twice_is_not_found(self):
        event = make_event(self.organizer)
        issuance.register(self.buyers[0], event.id)
        issuance.cancel(self.buyers[0], event.id)

        with self.assertRaises(NotFound):
            issuance.cancel(self.buyers[0], event.id)
        event.refresh_from_db()
        self.assertEqual(event.confirmed_count, 0)


class ScanTests(TestCase):
    def setUp(self):
        self.organizer = make_user(role="organizer")
        self.other_organizer = make_user(role="organizer")
        self.attendee = make_user()
        self.event = make_event(self.organizer)
        self.ticket = issuance.register(self.attendee, self.event.id)

    def test_check_in_once(self):
        scanned = issuance.scan(self.ticket.id, self.organizer, ip_address="10.0.0.1")
        self.assertTrue(scanned.checked_in)
        self.assertIsNotNone(scanned.check_in_time)

        with self.assertRaises(StateConflict) as ctx:
            issuance.scan(self.ticket.id, self.organizer)
        self.assertEqual(ctx.exception.code, "already_checked_in")

        actions = list(ScanLog.objects.order_by("id").values_list("action", flat=True))
        self.assertEqual(actions, [ScanLog.ACTION_CHECK_IN, ScanLog.ACTION_ALREADY_USED])

    def test_foreign_event_rejected(self):
        with self.assertRaises(PermissionDenied):
            issuance.scan(self.ticket.id, self.other_organizer)

        self.ticket.refresh_from_db()
        self.assertFalse(self.ticket.checked_in)
        self.assertTrue(ScanLog.objects.filter(action=ScanLog.ACTION_UNAUTHORIZED).exists())

    def test_cancelled_ticket_rejected(self):
        issuance.cancel(self.attendee, self.event.id)

        with self.assertRaises(StateConflict) as ctx:
            issuance.scan(self.ticket.id, self.organizer)
        self.assertEqual(ctx.exception.code, "ticket_not_confirmed")

    def test_unknown_ticket(self):
        with self.assertRaises(NotFound):
            issuance.scan("not-a-ticket", self.organizer)
        log = ScanLog.objects.get()
        self.assertEqual(log.action, ScanLog.ACTION_INVALID_TICKET)
        self.assertEqual(log.ticket_ref, "not-a-ticket")

    def test_cancelled_event_cannot_be_scanned(self):
        Event.objects.filter(pk=self.event.pk).update(status=Event.STATUS_CANCELLED)

        with self.assertRaises(StateConflict) as ctx:
            issuance.scan(self.ticket.id, self.organizer)
        self.assertEqual(ctx.exception.code, "event_not_open")
        self.assertEqual(ScanLog.objects.get().action, ScanLog.ACTION_EVENT_INACTIVE)
