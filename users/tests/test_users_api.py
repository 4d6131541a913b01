from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from events import issuance
from events.models import Event, Ticket
from events.tests.utils import make_event, make_user
from users import identity


class ProfileApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.participant = make_user()
        self.organizer = make_user(role="organizer")

    def auth(self, user):
        self.client.force_authenticate(user=user)

    def test_profile_requires_login(self):
        resp = self.client.get("/api/users/profile/")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_participant_profile_update(self):
        self.auth(self.participant)
        resp = self.client.put(
            "/api/users/profile/",
            {
                "first_name": "Asha",
                "last_name": "Rao",
                "college": "IIIT Hyderabad",
                "interests": [" Music ", "<b>Coding</b>"],
                "category": "Cultural",
            },
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        user = resp.json()["user"]
        self.assertEqual(user["name"], "Asha Rao")
        self.assertEqual(user["college"], "IIIT Hyderabad")
        self.assertEqual(user["interests"], ["Music", "Coding"])
        # Organizer-only fields are not writable by participants
        self.assertIsNone(user["category"])

        resp = self.client.get("/api/users/profile/")
        self.assertEqual(resp.json()["name"], "Asha Rao")
        self.assertEqual(resp.json()["followed_organizers"], [])

    def test_organizer_profile_update(self):
        self.auth(self.organizer)
        resp = self.client.put(
            "/api/users/profile/",
            {"name": "Music Club", "category": "Cultural", "contact_email": "club@example.com", "college": "X"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        user = resp.json()["user"]
        self.assertEqual((user["name"], user["category"]), ("Music Club", "Cultural"))
        self.assertEqual(user["contact_email"], "club@example.com")
        self.assertIsNone(user["college"])

        resp = self.client.put("/api/users/profile/", {"name": "   "}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.json()["code"], "invalid_payload")


class ChangePasswordApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = identity.register_account("Asha", "asha@example.com", "first-pw")
        self.sibling = identity.register_account("Asha Two", "asha@example.com", "second-pw")
        self.client.force_authenticate(user=self.user)

    def test_change_password(self):
        resp = self.client.post(
            "/api/users/change-password/",
            {"current_password": "first-pw", "new_password": "third-pw"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(identity.resolve("asha@example.com", "third-pw"), self.user)

    def test_wrong_current_password(self):
        resp = self.client.post(
            "/api/users/change-password/",
            {"current_password": "nope-nope", "new_password": "third-pw"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.json()["code"], "invalid_password")

    def test_sibling_password_rejected(self):
        resp = self.client.post(
            "/api/users/change-password/",
            {"current_password": "first-pw", "new_password": "second-pw"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["code"], "credential_in_use")
        # Both identities still resolve to themselves
        self.assertEqual(identity.resolve("asha@example.com", "first-pw"), self.user)
        self.assertEqual(identity.resolve("asha@example.com", "second-pw"), self.sibling)


class OrganizerDirectoryApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.participant = make_user()
        self.organizer = make_user(role="organizer", name="Music Club")
        self.other_organizer = make_user(role="organizer", name="Art Club")

    def auth(self, user):
        self.client.force_authenticate(user=user)

    def test_browse_and_follow_toggle(self):
        self.auth(self.participant)

        resp = self.client.post(f"/api/users/follow/{self.organizer.id}/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.json()["is_following"])

        resp = self.client.get("/api/users/organizers/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        body = resp.json()
        self.assertEqual(body["count"], 2)
        following = {row["id"]: row["is_following"] for row in body["organizers"]}
        self.assertEqual(following, {self.organizer.id: True, self.other_organizer.id: False})

        resp = self.client.get("/api/users/profile/")
        self.assertEqual([o["id"] for o in resp.json()["followed_organizers"]], [self.organizer.id])

        resp = self.client.post(f"/api/users/follow/{self.organizer.id}/")
        self.assertFalse(resp.json()["is_following"])
        self.assertFalse(self.participant.followed_organizers.exists())

    def test_follow_requires_an_organizer_target(self):
        self.auth(self.participant)
        resp = self.client.post(f"/api/users/follow/{make_user().id}/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.json()["code"], "organizer_not_found")

    def test_organizers_cannot_browse_or_follow(self):
        self.auth(self.organizer)
        resp = self.client.get("/api/users/organizers/")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        resp = self.client.post(f"/api/users/follow/{self.other_organizer.id}/")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_organizer_detail_lists_published_events(self):
        now = timezone.now()
        later = make_event(self.organizer, name="Later", start_date=now + timedelta(days=9),
                           end_date=now + timedelta(days=10))
        sooner = make_event(self.organizer, name="Sooner")
        make_event(self.organizer, name="Hidden", status=Event.STATUS_DRAFT)
        make_event(self.other_organizer, name="Elsewhere")
        self.participant.followed_organizers.add(self.organizer)

        self.auth(self.participant)
        resp = self.client.get(f"/api/users/organizers/{self.organizer.id}/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        body = resp.json()
        self.assertEqual(body["organizer"]["name"], "Music Club")
        self.assertEqual([e["id"] for e in body["events"]], [sooner.id, later.id])
        self.assertEqual(body["followers"], 1)

        resp = self.client.get(f"/api/users/organizers/{self.participant.id}/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)


class TrendingEventsApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.organizer = make_user(role="organizer")
        self.viewer = make_user()

    def _register(self, event, n):
        return [issuance.register(make_user(), event.id) for _ in range(n)]

    def test_ranks_confirmed_tickets_from_the_last_day(self):
        busy = make_event(self.organizer, name="Busy")
        steady = make_event(self.organizer, name="Steady")
        quiet = make_event(self.organizer, name="Quiet")

        self._register(busy, 3)
        old = self._register(steady, 4)
        Ticket.objects.filter(pk__in=[t.pk for t in old]).update(
            registered_at=timezone.now() - timedelta(days=2)
        )
        self._register(steady, 1)
        cancelled = self._register(quiet, 2)
        for ticket in cancelled:
            issuance.cancel(ticket.user, quiet.id)

        draft = make_event(self.organizer, name="Draft", status=Event.STATUS_DRAFT)
        Ticket.objects.create(user=make_user(), event=draft)

        self.client.force_authenticate(user=self.viewer)
        resp = self.client.get("/api/users/trending-events/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        rows = resp.json()["events"]
        self.assertEqual(
            [(row["id"], row["recent_registrations"]) for row in rows],
            [(busy.id, 3), (steady.id, 1)],
        )

    def test_top_five_only(self):
        events = [make_event(self.organizer, name=f"Event {i}") for i in range(6)]
        for i, event in enumerate(events):
            self._register(event, i + 1)

        self.client.force_authenticate(user=self.viewer)
        resp = self.client.get("/api/users/trending-events/")
        body = resp.json()
        self.assertEqual(body["count"], 5)
        self.assertEqual([row["id"] for row in body["events"]], [e.id for e in reversed(events[1:])])
