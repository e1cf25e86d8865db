# events/models.py
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator


class Event(models.Model):
    """
    One record, two modes.

    Topic mode (``accepts_ideas=True``): a club posts a theme and collects
    student ideas; no schedule, hall or capacity yet.
    Event mode: a concrete, schedulable event that goes through approval.
    The switch from topic to event is a one-way promotion.
    """
    STATUS_DRAFT = "draft"
    STATUS_PENDING_APPROVAL = "pending_approval"
    STATUS_PUBLISHED = "published"
    STATUS_REJECTED = "rejected"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PENDING_APPROVAL, "Pending Approval"),
        (STATUS_PUBLISHED, "Published"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # Statuses that hold a hall slot
    BOOKING_STATUSES = (STATUS_PUBLISHED, STATUS_PENDING_APPROVAL)
    # Statuses that may be physically removed
    REMOVABLE_STATUSES = (STATUS_DRAFT, STATUS_REJECTED)

    APPROVAL_PENDING = "pending"
    APPROVAL_APPROVED = "approved"
    APPROVAL_REJECTED = "rejected"

    APPROVAL_CHOICES = [
        (APPROVAL_PENDING, "Pending"),
        (APPROVAL_APPROVED, "Approved"),
        (APPROVAL_REJECTED, "Rejected"),
    ]

    TYPE_WORKSHOP = "workshop"
    TYPE_SEMINAR = "seminar"
    TYPE_COMPETITION = "competition"
    TYPE_HACKATHON = "hackathon"
    TYPE_CONFERENCE = "conference"
    TYPE_CULTURAL = "cultural"
    TYPE_SPORTS = "sports"
    TYPE_OTHER = "other"

    TYPE_CHOICES = [
        (TYPE_WORKSHOP, "Workshop"),
        (TYPE_SEMINAR, "Seminar"),
        (TYPE_COMPETITION, "Competition"),
        (TYPE_HACKATHON, "Hackathon"),
        (TYPE_CONFERENCE, "Conference"),
        (TYPE_CULTURAL, "Cultural"),
        (TYPE_SPORTS, "Sports"),
        (TYPE_OTHER, "Other"),
    ]

    club = models.ForeignKey(
        "core.Club",
        on_delete=models.CASCADE,
        related_name="events",
    )
    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="organized_events",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    event_type = models.CharField(max_length=32, choices=TYPE_CHOICES, default=TYPE_WORKSHOP)

    # Topic mode
    accepts_ideas = models.BooleanField(default=False)
    idea_submission_deadline = models.DateTimeField(blank=True, null=True)

    # Event mode (all null while accepts_ideas=True)
    start_date_time = models.DateTimeField(blank=True, null=True)
    end_date_time = models.DateTimeField(blank=True, null=True)
    registration_deadline = models.DateTimeField(blank=True, null=True)
    hall = models.ForeignKey(
        "halls.Hall",
        on_delete=models.PROTECT,
        related_name="events",
        null=True,
        blank=True,
    )
    max_participants = models.PositiveIntegerField(
        blank=True, null=True, validators=[MinValueValidator(1)], help_text="Empty means unlimited"
    )
    registration_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    is_team_event = models.BooleanField(default=False)
    min_team_members = models.PositiveIntegerField(blank=True, null=True)
    max_team_members = models.PositiveIntegerField(blank=True, null=True)

    # Opaque URL from the media service
    poster_url = models.CharField(max_length=1024, blank=True, null=True)

    # Approval workflow
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    approval_status = models.CharField(max_length=16, choices=APPROVAL_CHOICES, default=APPROVAL_PENDING)
    rejection_reason = models.TextField(blank=True, null=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="moderated_events",
        null=True,
        blank=True,
    )
    approved_by_name = models.CharField(max_length=255, blank=True, null=True)
    approval_date = models.DateTimeField(blank=True, null=True)
    submitted_for_approval_date = models.DateTimeField(blank=True, null=True)

    source_idea = models.ForeignKey(
        "events.Idea",
        on_delete=models.SET_NULL,
        related_name="promoted_events",
        null=True,
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["status", "start_date_time"], name="event_status_start_idx"),
            models.Index(fields=["hall", "status"], name="event_hall_status_idx"),
            models.Index(fields=["club", "status"], name="event_club_status_idx"),
            models.Index(fields=["accepts_ideas", "status"], name="event_topic_idx"),
        ]

    def __str__(self):
        return self.title

    @property
    def is_topic(self) -> bool:
        return self.accepts_ideas

    @property
    def registration_closes_at(self):
        return self.registration_deadline or self.start_date_time

    @property
    def holds_booking(self) -> bool:
        return self.hall_id is not None and self.status in self.BOOKING_STATUSES


class Idea(models.Model):
    STATUS_SUBMITTED = "submitted"
    STATUS_UNDER_REVIEW = "under_review"
    STATUS_APPROVED = "approved"
    STATUS_IMPLEMENTING = "implementing"
    STATUS_COMPLETED = "completed"
    STATUS_REJECTED = "rejected"

    STATUS_CHOICES = [
        (STATUS_SUBMITTED, "Submitted"),
        (STATUS_UNDER_REVIEW, "Under Review"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_IMPLEMENTING, "Implementing"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_REJECTED, "Rejected"),
    ]

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="ideas")
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="ideas",
    )
    title = models.CharField(max_length=255)
    description = models.TextField()
    expected_outcome = models.TextField(blank=True)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_SUBMITTED)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event", "created_at"], name="idea_event_created_idx"),
            models.Index(fields=["event", "student"], name="idea_event_student_idx"),
        ]

    def __str__(self):
        return f"{self.title} ({self.event.title})"


class RegistrationStatus:
    """Shared by individual and team registrations."""
    REGISTERED = "registered"
    ATTENDED = "attended"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"
    WITHDRAWN = "withdrawn"

    CHOICES = [
        (REGISTERED, "Registered"),
        (ATTENDED, "Attended"),
        (NO_SHOW, "No Show"),
        (CANCELLED, "Cancelled"),
        (WITHDRAWN, "Withdrawn"),
    ]

    # These consume a seat
    ACCEPTED = (REGISTERED, ATTENDED, NO_SHOW)
    INACTIVE = (CANCELLED, WITHDRAWN)


class PaymentStatus:
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    PAID = "paid"

    CHOICES = [
        (NOT_REQUIRED, "Not Required"),
        (PENDING, "Pending"),
        (PAID, "Paid"),
    ]


class EventRegistration(models.Model):
    STATUS_REGISTERED = RegistrationStatus.REGISTERED
    STATUS_ATTENDED = RegistrationStatus.ATTENDED
    STATUS_NO_SHOW = RegistrationStatus.NO_SHOW
    STATUS_CANCELLED = RegistrationStatus.CANCELLED
    STATUS_WITHDRAWN = RegistrationStatus.WITHDRAWN
    STATUS_CHOICES = RegistrationStatus.CHOICES

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="event_registrations",
    )
    roll_number = models.CharField(max_length=32, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_REGISTERED)
    payment_status = models.CharField(
        max_length=16, choices=PaymentStatus.CHOICES, default=PaymentStatus.NOT_REQUIRED
    )

    registered_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("event", "user")
        indexes = [
            models.Index(fields=["event", "status"], name="reg_event_status_idx"),
            models.Index(fields=["event", "registered_at"], name="reg_event_registered_idx"),
        ]

    def __str__(self):
        return f"{self.user} -> {self.event} ({self.status})"

    @property
    def is_accepted(self) -> bool:
        return self.status in RegistrationStatus.ACCEPTED


class TeamRegistration(models.Model):
    STATUS_CHOICES = RegistrationStatus.CHOICES

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="team_registrations")
    team_name = models.CharField(max_length=100)
    leader = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="led_team_registrations",
    )
    notes = models.TextField(blank=True)
    status = models.CharField(
        max_length=16, choices=STATUS_CHOICES, default=RegistrationStatus.REGISTERED
    )
    payment_status = models.CharField(
        max_length=16, choices=PaymentStatus.CHOICES, default=PaymentStatus.NOT_REQUIRED
    )

    registered_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["event", "status"], name="team_event_status_idx"),
            models.Index(fields=["event", "leader"], name="team_event_leader_idx"),
        ]

    def __str__(self):
        return f"{self.team_name} ({self.event.title})"

    @property
    def team_size(self) -> int:
        return self.members.count()

    @property
    def is_accepted(self) -> bool:
        return self.status in RegistrationStatus.ACCEPTED


class TeamMember(models.Model):
    """
    One roster line of a team registration, in the order submitted.
    Position 0 is the leader.
    """
    team = models.ForeignKey(TeamRegistration, on_delete=models.CASCADE, related_name="members")
    position = models.PositiveSmallIntegerField()
    name = models.CharField(max_length=150)
    email = models.EmailField(blank=True)
    roll_number = models.CharField(max_length=32)
    # trimmed + casefolded, used for duplicate detection
    roll_number_key = models.CharField(max_length=32, db_index=True)

    class Meta:
        ordering = ["team", "position"]
        unique_together = [("team", "position"), ("team", "roll_number_key")]

    def __str__(self):
        return f"{self.name} [{self.roll_number}] in {self.team.team_name}"
