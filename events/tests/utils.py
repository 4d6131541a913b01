from datetime import timedelta
from itertools import count

from django.contrib.auth import get_user_model
from django.utils import timezone

from events.models import Event

User = get_user_model()

_seq = count(1)


def make_user(email=None, role="participant", is_iiit=False, password="pass1234", name=None):
    n = next(_seq)
    email = email or f"user{n}@example.com"
    return User.objects.create_user(
        username=f"user-{n}",
        email=email,
        password=password,
        name=name or f"User {n}",
        role=role,
        is_iiit=is_iiit,
    )


def make_event(organizer, **overrides):
    now = timezone.now()
    fields = {
        "name": "Hackathon",
        "description": "Build things",
        "start_date": now + timedelta(days=7),
        "end_date": now + timedelta(days=8),
        "registration_deadline": now + timedelta(days=6),
        "status": Event.STATUS_PUBLISHED,
    }
    fields.update(overrides)
    return Event.objects.create(organizer=organizer, **fields)


def make_team_event(organizer, min_size=2, max_size=4, **overrides):
    return make_event(
        organizer,
        is_team_event=True,
        min_team_size=min_size,
        max_team_size=max_size,
        **overrides,
    )
