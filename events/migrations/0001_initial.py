import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField()),
                (
                    "event_type",
                    models.CharField(choices=[("normal", "Normal"), ("merch", "Merch")], default="normal", max_length=16),
                ),
                ("tags", models.JSONField(blank=True, default=list)),
                (
                    "eligibility",
                    models.CharField(choices=[("iiit", "IIIT only"), ("all", "All")], default="all", max_length=16),
                ),
                ("start_date", models.DateTimeField()),
                ("end_date", models.DateTimeField()),
                ("registration_deadline", models.DateTimeField()),
                ("form_fields", models.JSONField(blank=True, default=list)),
                ("max_participants", models.PositiveIntegerField(blank=True, null=True)),
                ("price", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("stock", models.PositiveIntegerField(blank=True, null=True)),
                ("is_team_event", models.BooleanField(default=False)),
                ("min_team_size", models.PositiveIntegerField(default=1)),
                ("max_team_size", models.PositiveIntegerField(default=1)),
                ("max_teams", models.PositiveIntegerField(blank=True, null=True)),
                ("confirmed_count", models.PositiveIntegerField(default=0)),
                ("team_count", models.PositiveIntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("published", "Published"),
                            ("ongoing", "Ongoing"),
                            ("completed", "Completed"),
                            ("closed", "Closed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "organizer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="organized_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["organizer", "start_date"], name="event_org_start_idx"),
                    models.Index(fields=["start_date"], name="event_start_idx"),
                    models.Index(fields=["status"], name="event_status_idx"),
                    models.Index(fields=["event_type"], name="event_type_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("max_participants__isnull", True),
                            ("confirmed_count__lte", models.F("max_participants")),
                            _connector="OR",
                        ),
                        name="event_confirmed_within_capacity",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("max_teams__isnull", True),
                            ("team_count__lte", models.F("max_teams")),
                            _connector="OR",
                        ),
                        name="event_teams_within_limit",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Team",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("code", models.CharField(max_length=6, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("forming", "Forming"), ("complete", "Complete")],
                        default="forming",
                        max_length=16,
                    ),
                ),
                ("member_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="teams",
                        to="events.event",
                    ),
                ),
                (
                    "leader",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="led_teams",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["event", "created_at"], name="team_event_created_idx"),
                    models.Index(fields=["leader"], name="team_leader_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TeamMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "role",
                    models.CharField(
                        choices=[("leader", "Team Leader"), ("member", "Member")],
                        default="member",
                        max_length=20,
                    ),
                ),
                ("answers", models.JSONField(blank=True, default=list)),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="team_memberships",
                        to="events.event",
                    ),
                ),
                (
                    "team",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="events.team",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="team_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["team", "joined_at"], name="membership_team_joined_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "event"), name="one_team_per_user_per_event"),
                ],
            },
        ),
        migrations.AddField(
            model_name="team",
            name="members",
            field=models.ManyToManyField(
                related_name="teams",
                through="events.TeamMembership",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        migrations.CreateModel(
            name="Ticket",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("answers", models.JSONField(blank=True, default=list)),
                (
                    "status",
                    models.CharField(
                        choices=[("confirmed", "Confirmed"), ("cancelled", "Cancelled")],
                        default="confirmed",
                        max_length=16,
                    ),
                ),
                ("checked_in", models.BooleanField(default=False)),
                ("check_in_time", models.DateTimeField(blank=True, null=True)),
                ("feedback_given", models.BooleanField(default=False)),
                ("holds_stock", models.BooleanField(default=False)),
                ("registered_at", models.DateTimeField(auto_now_add=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tickets",
                        to="events.event",
                    ),
                ),
                (
                    "team",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="tickets",
                        to="events.team",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tickets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["event", "registered_at"], name="ticket_event_registered_idx"),
                    models.Index(fields=["user", "event"], name="ticket_user_event_idx"),
                    models.Index(fields=["status"], name="ticket_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "confirmed")),
                        fields=("user", "event"),
                        name="one_confirmed_ticket_per_user_per_event",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Feedback",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rating", models.PositiveSmallIntegerField()),
                ("comment", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="feedbacks",
                        to="events.event",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["event", "created_at"], name="feedback_event_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ScanLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("ticket_ref", models.CharField(max_length=64)),
                ("ip_address", models.CharField(blank=True, max_length=64, null=True)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("check_in", "Check-in"),
                            ("invalid_ticket", "Invalid ticket"),
                            ("unauthorized", "Unauthorized"),
                            ("not_confirmed", "Not confirmed"),
                            ("already_used", "Already used"),
                            ("event_inactive", "Event not active"),
                        ],
                        max_length=32,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="scan_logs",
                        to="events.event",
                    ),
                ),
                (
                    "scanned_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="scan_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "ticket",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="scan_logs",
                        to="events.ticket",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["event", "created_at"], name="scanlog_event_created_idx"),
                    models.Index(fields=["action", "created_at"], name="scanlog_action_created_idx"),
                ],
            },
        ),
    ]
