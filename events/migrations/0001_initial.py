from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


REGISTRATION_STATUS_CHOICES = [
    ("registered", "Registered"),
    ("attended", "Attended"),
    ("no_show", "No Show"),
    ("cancelled", "Cancelled"),
    ("withdrawn", "Withdrawn"),
]

PAYMENT_STATUS_CHOICES = [
    ("not_required", "Not Required"),
    ("pending", "Pending"),
    ("paid", "Paid"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("core", "0001_initial"),
        ("halls", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("workshop", "Workshop"),
                            ("seminar", "Seminar"),
                            ("competition", "Competition"),
                            ("hackathon", "Hackathon"),
                            ("conference", "Conference"),
                            ("cultural", "Cultural"),
                            ("sports", "Sports"),
                            ("other", "Other"),
                        ],
                        default="workshop",
                        max_length=32,
                    ),
                ),
                ("accepts_ideas", models.BooleanField(default=False)),
                ("idea_submission_deadline", models.DateTimeField(blank=True, null=True)),
                ("start_date_time", models.DateTimeField(blank=True, null=True)),
                ("end_date_time", models.DateTimeField(blank=True, null=True)),
                ("registration_deadline", models.DateTimeField(blank=True, null=True)),
                (
                    "max_participants",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Empty means unlimited",
                        null=True,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("registration_fee", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("is_team_event", models.BooleanField(default=False)),
                ("min_team_members", models.PositiveIntegerField(blank=True, null=True)),
                ("max_team_members", models.PositiveIntegerField(blank=True, null=True)),
                ("poster_url", models.CharField(blank=True, max_length=1024, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("pending_approval", "Pending Approval"),
                            ("published", "Published"),
                            ("rejected", "Rejected"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="draft",
                        max_length=32,
                    ),
                ),
                (
                    "approval_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("rejection_reason", models.TextField(blank=True, null=True)),
                ("approved_by_name", models.CharField(blank=True, max_length=255, null=True)),
                ("approval_date", models.DateTimeField(blank=True, null=True)),
                ("submitted_for_approval_date", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="moderated_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "club",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="events",
                        to="core.club",
                    ),
                ),
                (
                    "hall",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="events",
                        to="halls.hall",
                    ),
                ),
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
                    models.Index(fields=["status", "start_date_time"], name="event_status_start_idx"),
                    models.Index(fields=["hall", "status"], name="event_hall_status_idx"),
                    models.Index(fields=["club", "status"], name="event_club_status_idx"),
                    models.Index(fields=["accepts_ideas", "status"], name="event_topic_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Idea",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField()),
                ("expected_outcome", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("submitted", "Submitted"),
                            ("under_review", "Under Review"),
                            ("approved", "Approved"),
                            ("implementing", "Implementing"),
                            ("completed", "Completed"),
                            ("rejected", "Rejected"),
                        ],
                        default="submitted",
                        max_length=32,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ideas",
                        to="events.event",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ideas",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["event", "created_at"], name="idea_event_created_idx"),
                    models.Index(fields=["event", "student"], name="idea_event_student_idx"),
                ],
            },
        ),
        migrations.AddField(
            model_name="event",
            name="source_idea",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="promoted_events",
                to="events.idea",
            ),
        ),
        migrations.CreateModel(
            name="EventRegistration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("roll_number", models.CharField(blank=True, max_length=32)),
                ("notes", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(choices=REGISTRATION_STATUS_CHOICES, default="registered", max_length=16),
                ),
                (
                    "payment_status",
                    models.CharField(choices=PAYMENT_STATUS_CHOICES, default="not_required", max_length=16),
                ),
                ("registered_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to="events.event",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="event_registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "unique_together": {("event", "user")},
                "indexes": [
                    models.Index(fields=["event", "status"], name="reg_event_status_idx"),
                    models.Index(fields=["event", "registered_at"], name="reg_event_registered_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TeamRegistration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("team_name", models.CharField(max_length=100)),
                ("notes", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(choices=REGISTRATION_STATUS_CHOICES, default="registered", max_length=16),
                ),
                (
                    "payment_status",
                    models.CharField(choices=PAYMENT_STATUS_CHOICES, default="not_required", max_length=16),
                ),
                ("registered_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="team_registrations",
                        to="events.event",
                    ),
                ),
                (
                    "leader",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="led_team_registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["event", "status"], name="team_event_status_idx"),
                    models.Index(fields=["event", "leader"], name="team_event_leader_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TeamMember",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveSmallIntegerField()),
                ("name", models.CharField(max_length=150)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("roll_number", models.CharField(max_length=32)),
                ("roll_number_key", models.CharField(db_index=True, max_length=32)),
                (
                    "team",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="events.teamregistration",
                    ),
                ),
            ],
            options={
                "ordering": ["team", "position"],
                "unique_together": {("team", "position"), ("team", "roll_number_key")},
            },
        ),
    ]
