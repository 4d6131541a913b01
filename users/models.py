# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q


class User(AbstractUser):
    ROLE_PARTICIPANT = "participant"
    ROLE_ORGANIZER = "organizer"
    ROLE_ADMIN = "admin"

    ROLE_CHOICES = (
        (ROLE_PARTICIPANT, 'Participant'),
        (ROLE_ORGANIZER, 'Organizer'),
        (ROLE_ADMIN, 'Admin'),
    )

    # Guests may share an email across accounts, so email is NOT unique here.
    # The (email, password) pair is the identity; see users.identity.
    email = models.EmailField(blank=False)
    name = models.CharField(max_length=150)

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_PARTICIPANT
    )
    is_iiit = models.BooleanField(default=False, help_text="Validated IIIT account (unique email)")

    contact_number = models.CharField(max_length=20, blank=True, null=True)
    college = models.CharField(max_length=255, blank=True, null=True)
    interests = models.JSONField(default=list, blank=True)

    # Organizer profile
    category = models.CharField(max_length=100, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    contact_email = models.EmailField(blank=True, null=True)

    # Participant -> organizer follows
    followed_organizers = models.ManyToManyField(
        "self",
        symmetrical=False,
        related_name="followers",
        blank=True,
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["email"],
                condition=Q(is_iiit=True),
                name="unique_iiit_email",
            ),
        ]
        indexes = [
            models.Index(fields=["email"], name="user_email_idx"),
            models.Index(fields=["role"], name="user_role_idx"),
        ]

    @property
    def is_participant(self):
        return self.role == self.ROLE_PARTICIPANT

    @property
    def is_organizer(self):
        return self.role == self.ROLE_ORGANIZER

    @property
    def is_platform_admin(self):
        return self.is_superuser or self.role == self.ROLE_ADMIN

    def __str__(self):
        return f"{self.name or self.username} <{self.email}>"
