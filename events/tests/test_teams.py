import random
from unittest import mock

from django.test import TestCase, override_settings
from rest_framework.exceptions import PermissionDenied

from events import issuance, teams
from events.exceptions import (
    AlreadyInTeam,
    AlreadyRegistered,
    CapacityExceeded,
    NotFound,
    TeamCodeExhausted,
    ValidationFailed,
)
from events.models import Event, Team, TeamMembership, Ticket
from .utils import make_event, make_team_event, make_user


class SequenceRng:
    """Deterministic stand-in for random.Random: choice() walks a string."""

    def __init__(self, chars):
        self._chars = iter(chars)

    def choice(self, seq):
        return next(self._chars)


class TeamCodeTests(TestCase):
    def setUp(self):
        self.organizer = make_user(role="organizer")
        self.leader = make_user()
        self.event = make_team_event(self.organizer)

    def test_generate_is_six_uppercase_alphanumerics(self):
        code = teams.generate_team_code(random.Random(7))
        self.assertEqual(len(code), 6)
        self.assertTrue(all(c in teams.TEAM_CODE_ALPHABET for c in code))
        self.assertEqual(code, teams.generate_team_code(random.Random(7)))

    def test_allocate_skips_taken_codes(self):
        Team.objects.create(event=self.event, name="Taken", code="AAAAAA", leader=self.leader)

        code = teams.allocate_team_code(SequenceRng("AAAAAA" + "BBBBBB"))
        self.assertEqual(code, "BBBBBB")

    def test_allocate_is_bounded(self):
        Team.objects.create(event=self.event, name="Taken", code="AAAAAA", leader=self.leader)

        with self.assertRaises(TeamCodeExhausted):
            teams.allocate_team_code(SequenceRng("A" * 18), max_attempts=3)

    def test_create_retries_when_code_taken_on_insert(self):
        other_leader = make_user()
        Team.objects.create(event=self.event, name="Taken", code="TAKEN1", leader=other_leader)

        with mock.patch("events.teams.allocate_team_code", side_effect=["TAKEN1", "FRESH1"]):
            result = teams.create_team(self.leader, self.event.id, "Rockets")

        self.assertEqual(result.team.code, "FRESH1")
        self.event.refresh_from_db()
        # The failed attempt's slot reservation rolled back
        self.assertEqual(self.event.team_count, 1)

    @override_settings(TEAM_CODE_MAX_ATTEMPTS=2)
    def test_create_gives_up_after_bounded_insert_collisions(self):
        other_leader = make_user()
        Team.objects.create(event=self.event, name="Taken", code="TAKEN1", leader=other_leader)

        with mock.patch("events.teams.allocate_team_code", return_value="TAKEN1"):
            with self.assertRaises(TeamCodeExhausted):
                teams.create_team(self.leader, self.event.id, "Rockets")

        self.assertFalse(TeamMembership.objects.filter(user=self.leader).exists())


class TeamFormationTests(TestCase):
    def setUp(self):
        self.organizer = make_user(role="organizer")
        self.leader = make_user()
        self.second = make_user()
        self.third = make_user()
        self.event = make_team_event(self.organizer, min_size=2, max_size=4)

    def test_create_team_starts_forming_without_tickets(self):
        result = teams.create_team(self.leader, self.event.id, "Rockets")

        self.assertEqual(result.team.status, Team.STATUS_FORMING)
        self.assertIsNone(result.ticket)
        self.assertEqual(result.team.member_count, 1)
        self.assertTrue(
            TeamMembership.objects.filter(
                team=result.team, user=self.leader, role=TeamMembership.ROLE_LEADER
            ).exists()
        )
        self.assertFalse(Ticket.objects.filter(event=self.event).exists())

    def test_completing_join_tickets_every_member(self):
        team = teams.create_team(self.leader, self.event.id, "Rockets").team

        result = teams.join_team(self.second, self.event.id, team.code)

        self.assertEqual(result.team.status, Team.STATUS_COMPLETE)
        self.assertIsNotNone(result.team.completed_at)
        self.assertEqual(result.pending, [])
        tickets = Ticket.objects.filter(event=self.event, status=Ticket.STATUS_CONFIRMED)
        self.assertEqual(set(tickets.values_list("user_id", flat=True)), {self.leader.id, self.second.id})
        self.assertTrue(all(t.team_id == team.id for t in tickets))
        self.assertEqual(result.ticket.user_id, self.second.id)

    def test_late_join_tickets_only_the_joiner(self):
        team = teams.create_team(self.leader, self.event.id, "Rockets").team
        teams.join_team(self.second, self.event.id, team.code)
        before = dict(Ticket.objects.filter(event=self.event).values_list("user_id", "id"))

        result = teams.join_team(self.third, self.event.id, team.code.lower())

        self.assertEqual(result.ticket.user_id, self.third.id)
        self.assertEqual(result.ticket.team_id, team.id)
        after = dict(Ticket.objects.filter(event=self.event).values_list("user_id", "id"))
        self.assertEqual(len(after), 3)
        self.assertEqual(after[self.leader.id], before[self.leader.id])
        self.assertEqual(after[self.second.id], before[self.second.id])

    def test_team_of_one_is_born_complete(self):
        solo_event = make_team_event(self.organizer, min_size=1, max_size=3)

        result = teams.create_team(self.leader, solo_event.id, "Solo")

        self.assertEqual(result.team.status, Team.STATUS_COMPLETE)
        self.assertIsNotNone(result.ticket)
        self.assertEqual(result.ticket.team_id, result.team.id)

    def test_team_full(self):
        event = make_team_event(self.organizer, min_size=2, max_size=2)
        team = teams.create_team(self.leader, event.id, "Pair").team
        teams.join_team(self.second, event.id, team.code)

        with self.assertRaises(CapacityExceeded) as ctx:
            teams.join_team(self.third, event.id, team.code)
        self.assertEqual(ctx.exception.code, "team_full")

    def test_max_teams(self):
        event = make_team_event(self.organizer, max_teams=1)
        teams.create_team(self.leader, event.id, "First")

        with self.assertRaises(CapacityExceeded) as ctx:
            teams.create_team(self.second, event.id, "Second")
        self.assertEqual(ctx.exception.code, "team_limit_reached")

    def test_one_team_per_user_per_event(self):
        team = teams.create_team(self.leader, self.event.id, "Rockets").team
        other = teams.create_team(self.second, self.event.id, "Comets").team

        with self.assertRaises(AlreadyInTeam):
            teams.join_team(self.leader, self.event.id, other.code)
        with self.assertRaises(AlreadyInTeam):
            teams.create_team(self.leader, self.event.id, "Again")
        with self.assertRaises(AlreadyInTeam):
            teams.join_team(self.leader, self.event.id, team.code)

    def test_ticketed_user_cannot_join(self):
        team = teams.create_team(self.leader, self.event.id, "Rockets").team
        teams.join_team(self.second, self.event.id, team.code)
        other = teams.create_team(self.third, self.event.id, "Comets").team

        # second already holds a ticket through Rockets; membership check fires first
        with self.assertRaises(AlreadyInTeam):
            teams.join_team(self.second, self.event.id, other.code)

    def test_individual_ticket_blocks_team(self):
        Ticket.objects.create(user=self.third, event=self.event)

        with self.assertRaises(AlreadyRegistered):
            teams.create_team(self.third, self.event.id, "Late")

    def test_unknown_code(self):
        with self.assertRaises(NotFound) as ctx:
            teams.join_team(self.second, self.event.id, "ZZZZZZ")
        self.assertEqual(ctx.exception.code, "invalid_team_code")

    def test_code_from_another_event_is_unknown(self):
        other_event = make_team_event(self.organizer)
        team = teams.create_team(self.leader, other_event.id, "Elsewhere").team

        with self.assertRaises(NotFound):
            teams.join_team(self.second, self.event.id, team.code)

    def test_not_a_team_event(self):
        plain = make_event(self.organizer)
        with self.assertRaises(ValidationFailed) as ctx:
            teams.create_team(self.leader, plain.id, "Nope")
        self.assertEqual(ctx.exception.code, "not_team_event")

    def test_answers_stored_per_member_and_copied_to_tickets(self):
        event = make_team_event(
            self.organizer,
            form_fields=[{"field_name": "github", "field_type": "text", "label": "GitHub", "required": True}],
        )
        with self.assertRaises(ValidationFailed):
            teams.create_team(self.leader, event.id, "Rockets", answers=[])

        team = teams.create_team(
            self.leader, event.id, "Rockets", answers=[{"label": "GitHub", "value": "lead"}]
        ).team
        teams.join_team(self.second, event.id, team.code, answers=[{"label": "GitHub", "value": "second"}])

        leader_ticket = Ticket.objects.get(event=event, user=self.leader)
        self.assertEqual(leader_ticket.answers, [{"label": "GitHub", "value": "lead"}])

    def test_get_my_team(self):
        team = teams.create_team(self.leader, self.event.id, "Rockets").team
        teams.join_team(self.second, self.event.id, team.code)

        self.assertEqual(teams.get_my_team(self.second, self.event.id).id, team.id)
        with self.assertRaises(NotFound):
            teams.get_my_team(self.third, self.event.id)


class PartialFanOutTests(TestCase):
    def setUp(self):
        self.organizer = make_user(role="organizer")
        self.leader = make_user()
        self.member = make_user()
        # Room for one ticket only, team needs two
        self.event = make_team_event(self.organizer, min_size=2, max_size=2, max_participants=1)

    def test_unticketed_members_are_reported_and_retryable(self):
        team = teams.create_team(self.leader, self.event.id, "Rockets").team

        result = teams.join_team(self.member, self.event.id, team.code)

        self.assertEqual(result.team.status, Team.STATUS_COMPLETE)
        self.assertIsNone(result.ticket)
        self.assertEqual(
            result.pending,
            [{"user_id": self.member.id, "code": "event_full", "message": "Event is full"}],
        )
        self.assertTrue(Ticket.objects.filter(user=self.leader, team=team).exists())

        Event.objects.filter(pk=self.event.pk).update(max_participants=2)
        retry = teams.retry_pending_tickets(self.leader, team.id)

        self.assertEqual(retry.pending, [])
        self.assertEqual([t.user_id for t in retry.issued], [self.member.id])
        self.assertEqual(Ticket.objects.filter(team=team, status=Ticket.STATUS_CONFIRMED).count(), 2)

        # Nothing left to retry
        again = teams.retry_pending_tickets(self.leader, team.id)
        self.assertEqual((again.issued, again.pending), ([], []))

    def test_cancelled_member_is_reticketed_by_retry(self):
        Event.objects.filter(pk=self.event.pk).update(max_participants=2)
        team = teams.create_team(self.leader, self.event.id, "Rockets").team
        teams.join_team(self.member, self.event.id, team.code)

        issuance.cancel(self.member, self.event.id)

        retry = teams.retry_pending_tickets(self.leader, team.id)

        self.assertEqual(retry.pending, [])
        self.assertEqual([t.user_id for t in retry.issued], [self.member.id])
        self.assertTrue(
            Ticket.objects.filter(user=self.member, team=team, status=Ticket.STATUS_CONFIRMED).exists()
        )
        self.assertEqual(Ticket.objects.filter(user=self.member, team=team).count(), 2)
        self.event.refresh_from_db()
        self.assertEqual(self.event.confirmed_count, 2)

    def test_only_leader_may_retry(self):
        team = teams.create_team(self.leader, self.event.id, "Rockets").team
        teams.join_team(self.member, self.event.id, team.code)

        with self.assertRaises(PermissionDenied):
            teams.retry_pending_tickets(self.member, team.id)
