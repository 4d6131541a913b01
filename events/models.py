# events/models.py
from django.db import models
from django.conf import settings
from django.db.models import Q


class Event(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_PUBLISHED = "published"
    STATUS_ONGOING = "ongoing"
    STATUS_COMPLETED = "completed"
    STATUS_CLOSED = "closed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PUBLISHED, "Published"),
        (STATUS_ONGOING, "Ongoing"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CLOSED, "Closed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    TYPE_NORMAL = "normal"
    TYPE_MERCH = "merch"

    TYPE_CHOICES = [
        (TYPE_NORMAL, "Normal"),
        (TYPE_MERCH, "Merch"),
    ]

    ELIGIBILITY_IIIT = "iiit"
    ELIGIBILITY_ALL = "all"

    ELIGIBILITY_CHOICES = [
        (ELIGIBILITY_IIIT, "IIIT only"),
        (ELIGIBILITY_ALL, "All"),
    ]

    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='organized_events'
    )
    name = models.CharField(max_length=255)
    description = models.TextField()
    event_type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_NORMAL)
    tags = models.JSONField(default=list, blank=True)
    eligibility = models.CharField(max_length=16, choices=ELIGIBILITY_CHOICES, default=ELIGIBILITY_ALL)

    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    registration_deadline = models.DateTimeField()

    # Organizer-defined registration form: list of field definitions
    # ({field_name, field_type, label, placeholder, required, options}).
    form_fields = models.JSONField(default=list, blank=True)

    # Capacity (null = unlimited)
    max_participants = models.PositiveIntegerField(blank=True, null=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    stock = models.PositiveIntegerField(blank=True, null=True)

    # Teams
    is_team_event = models.BooleanField(default=False)
    min_team_size = models.PositiveIntegerField(default=1)
    max_team_size = models.PositiveIntegerField(default=1)
    max_teams = models.PositiveIntegerField(blank=True, null=True)

    # Ledger counters; only events.ledger writes these
    confirmed_count = models.PositiveIntegerField(default=0)
    team_count = models.PositiveIntegerField(default=0)

    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=STATUS_DRAFT,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(max_participants__isnull=True) | Q(confirmed_count__lte=models.F("max_participants")),
                name="event_confirmed_within_capacity",
            ),
            models.CheckConstraint(
                condition=Q(max_teams__isnull=True) | Q(team_count__lte=models.F("max_teams")),
                name="event_teams_within_limit",
            ),
        ]
        indexes = [
            models.Index(fields=['organizer', 'start_date'], name='event_org_start_idx'),
            models.Index(fields=['start_date'], name='event_start_idx'),
            models.Index(fields=['status'], name='event_status_idx'),
            models.Index(fields=['event_type'], name='event_type_idx'),
        ]

    def __str__(self):
        return self.name

    @property
    def is_merch(self):
        return self.event_type == self.TYPE_MERCH

    @property
    def is_iiit_only(self):
        return self.eligibility == self.ELIGIBILITY_IIIT


class Team(models.Model):
    STATUS_FORMING = "forming"
    STATUS_COMPLETE = "complete"

    STATUS_CHOICES = [
        (STATUS_FORMING, "Forming"),
        (STATUS_COMPLETE, "Complete"),
    ]

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='teams')
    name = models.CharField(max_length=100)
    # Unique across all teams, not just per event
    code = models.CharField(max_length=6, unique=True)
    leader = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='led_teams',
    )
    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through='TeamMembership',
        related_name='teams',
    )
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_FORMING)
    # Ledger counter; kept equal to the number of memberships
    member_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        indexes = [
            models.Index(fields=['event', 'created_at'], name='team_event_created_idx'),
            models.Index(fields=['leader'], name='team_leader_idx'),
        ]

    def __str__(self):
        return f"{self.name} [{self.code}] ({self.event.name})"

    @property
    def is_complete(self):
        return self.status == self.STATUS_COMPLETE


class TeamMembership(models.Model):
    ROLE_LEADER = "leader"
    ROLE_MEMBER = "member"

    ROLE_CHOICES = [
        (ROLE_LEADER, "Team Leader"),
        (ROLE_MEMBER, "Member"),
    ]

    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='memberships')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='team_memberships',
    )
    # Denormalized from team.event so "one team per user per event" is a DB constraint
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='team_memberships')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_MEMBER)
    # Registration-form answers given when joining; used for the member's ticket
    answers = models.JSONField(default=list, blank=True)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'event'], name='one_team_per_user_per_event'),
        ]
        indexes = [
            models.Index(fields=['team', 'joined_at'], name='membership_team_joined_idx'),
        ]

    def __str__(self):
        return f"{self.user} in {self.team.name}"


class Ticket(models.Model):
    STATUS_CONFIRMED = "confirmed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='tickets')
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='tickets')
    team = models.ForeignKey(
        Team,
        on_delete=models.SET_NULL,
        related_name='tickets',
        null=True,
        blank=True,
    )
    # [{"label": ..., "value": ...}, ...]
    answers = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_CONFIRMED)

    checked_in = models.BooleanField(default=False)
    check_in_time = models.DateTimeField(blank=True, null=True)
    feedback_given = models.BooleanField(default=False)

    # Reservation token: this ticket holds one unit of event stock
    holds_stock = models.BooleanField(default=False)

    registered_at = models.DateTimeField(auto_now_add=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        constraints = [
            # The admission key. Cancelled rows stay for history.
            models.UniqueConstraint(
                fields=['user', 'event'],
                condition=Q(status="confirmed"),
                name='one_confirmed_ticket_per_user_per_event',
            ),
        ]
        indexes = [
            models.Index(fields=['event', 'registered_at'], name='ticket_event_registered_idx'),
            models.Index(fields=['user', 'event'], name='ticket_user_event_idx'),
            models.Index(fields=['status'], name='ticket_status_idx'),
        ]

    def __str__(self):
        return f"Ticket #{self.pk} {self.user} @ {self.event} ({self.status})"

    @property
    def is_confirmed(self):
        return self.status == self.STATUS_CONFIRMED


class Feedback(models.Model):
    """
    Anonymous feedback for a completed event.
    No user link; Ticket.feedback_given stops repeat submissions.
    """
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="feedbacks")
    rating = models.PositiveSmallIntegerField()
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event", "created_at"], name="feedback_event_created_idx"),
        ]

    def __str__(self):
        return f"{self.event.name} ({self.rating})"


class ScanLog(models.Model):
    """
    Audit log for ticket scans.
    Stores who scanned, which ticket/event (if known), IP address,
    action type, and timestamp.
    """
    ACTION_CHECK_IN = "check_in"
    ACTION_INVALID_TICKET = "invalid_ticket"
    ACTION_UNAUTHORIZED = "unauthorized"
    ACTION_NOT_CONFIRMED = "not_confirmed"
    ACTION_ALREADY_USED = "already_used"
    ACTION_EVENT_INACTIVE = "event_inactive"

    ACTION_CHOICES = [
        (ACTION_CHECK_IN, "Check-in"),
        (ACTION_INVALID_TICKET, "Invalid ticket"),
        (ACTION_UNAUTHORIZED, "Unauthorized"),
        (ACTION_NOT_CONFIRMED, "Not confirmed"),
        (ACTION_ALREADY_USED, "Already used"),
        (ACTION_EVENT_INACTIVE, "Event not active"),
    ]

    event = models.ForeignKey(
        Event,
        on_delete=models.CASCADE,
        related_name="scan_logs",
        null=True,
        blank=True,
    )
    ticket = models.ForeignKey(
        Ticket,
        on_delete=models.SET_NULL,
        related_name="scan_logs",
        null=True,
        blank=True,
    )
    scanned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="scan_logs",
        null=True,
        blank=True,
    )
    ticket_ref = models.CharField(max_length=64)
    ip_address = models.CharField(max_length=64, null=True, blank=True)
    action = models.CharField(max_length=32, choices=ACTION_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["event", "created_at"], name="scanlog_event_created_idx"),
            models.Index(fields=["action", "created_at"], name="scanlog_action_created_idx"),
        ]

    def __str__(self):
        return f"{self.scanned_by} - {self.ticket_ref} - {self.action}"
