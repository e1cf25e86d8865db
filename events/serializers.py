from rest_framework import serializers

from .ledger import current_participants, seats_remaining
from .models import Event, EventRegistration, Idea
from .proposals import is_topic_active
from .state_machine import get_allowed_transitions

# Accepted for every datetime input besides ISO-8601
DATETIME_INPUT_FORMATS = ["iso-8601", "%d/%m/%Y %H:%M", "%d/%m/%Y"]


# -----------------------------------------
# EVENT / TOPIC
# -----------------------------------------
class EventSerializer(serializers.ModelSerializer):
    club_name = serializers.CharField(source="club.name", read_only=True)
    organizer_name = serializers.CharField(source="organizer.username", read_only=True)
    hall_name = serializers.CharField(source="hall.name", read_only=True, default=None)
    hall_id = serializers.IntegerField(read_only=True)

    current_participants = serializers.SerializerMethodField()
    seats_remaining = serializers.SerializerMethodField()
    allowed_transitions = serializers.SerializerMethodField()
    is_accepting_ideas = serializers.SerializerMethodField()

    class Meta:
        model = Event
        fields = [
            "id",
            "club",
            "club_name",
            "organizer",
            "organizer_name",
            "title",
            "description",
            "event_type",
            "accepts_ideas",
            "idea_submission_deadline",
            "is_accepting_ideas",
            "start_date_time",
            "end_date_time",
            "registration_deadline",
            "hall_id",
            "hall_name",
            "max_participants",
            "registration_fee",
            "is_team_event",
            "min_team_members",
            "max_team_members",
            "poster_url",
            "status",
            "approval_status",
            "rejection_reason",
            "approved_by_name",
            "approval_date",
            "submitted_for_approval_date",
            "source_idea",
            "current_participants",
            "seats_remaining",
            "allowed_transitions",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_current_participants(self, obj):
        if obj.accepts_ideas:
            return 0
        return current_participants(obj)

    def get_seats_remaining(self, obj):
        if obj.accepts_ideas:
            return None
        return seats_remaining(obj)

    def get_allowed_transitions(self, obj):
        return get_allowed_transitions(obj)

    def get_is_accepting_ideas(self, obj):
        if not obj.accepts_ideas or obj.status != Event.STATUS_DRAFT:
            return False
        return is_topic_active(obj.idea_submission_deadline)


class EventFieldsSerializer(serializers.Serializer):
    """Event-mode fields shared by create, promote and resubmit."""
    title = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    event_type = serializers.ChoiceField(choices=Event.TYPE_CHOICES, required=False)
    start_date_time = serializers.DateTimeField(required=False, input_formats=DATETIME_INPUT_FORMATS)
    end_date_time = serializers.DateTimeField(required=False, input_formats=DATETIME_INPUT_FORMATS)
    registration_deadline = serializers.DateTimeField(
        required=False, allow_null=True, input_formats=DATETIME_INPUT_FORMATS
    )
    hall_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    max_participants = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    registration_fee = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, min_value=0)
    is_team_event = serializers.BooleanField(required=False)
    min_team_members = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    max_team_members = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    poster_url = serializers.CharField(max_length=1024, required=False, allow_blank=True, allow_null=True)


class EventCreateSerializer(EventFieldsSerializer):
    """
    POST /api/events/

    ``accepts_ideas=true`` creates a topic; only title, description,
    event_type, idea_submission_deadline and poster_url apply then.
    """
    club_id = serializers.IntegerField(min_value=1)
    title = serializers.CharField(max_length=255)
    accepts_ideas = serializers.BooleanField(default=False)
    idea_submission_deadline = serializers.DateTimeField(
        required=False, allow_null=True, input_formats=DATETIME_INPUT_FORMATS
    )


class PromoteSerializer(EventFieldsSerializer):
    idea_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class SubmitForApprovalSerializer(serializers.Serializer):
    hall_id = serializers.IntegerField(required=False, min_value=1)
    start_date_time = serializers.DateTimeField(required=False, input_formats=DATETIME_INPUT_FORMATS)
    end_date_time = serializers.DateTimeField(required=False, input_formats=DATETIME_INPUT_FORMATS)
    max_participants = serializers.IntegerField(required=False, min_value=1)


class RejectSerializer(serializers.Serializer):
    # Blank reasons are rejected by the state machine with a field-level error
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


# -----------------------------------------
# IDEAS
# -----------------------------------------
class IdeaSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source="student.username", read_only=True)

    class Meta:
        model = Idea
        fields = [
            "id",
            "event",
            "student",
            "student_name",
            "title",
            "description",
            "expected_outcome",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class IdeaCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField()
    expected_outcome = serializers.CharField(required=False, allow_blank=True, default="")


class IdeaStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Idea.STATUS_CHOICES)


# -----------------------------------------
# INDIVIDUAL REGISTRATION
# -----------------------------------------
class EventRegistrationSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    event_title = serializers.CharField(source="event.title", read_only=True)

    class Meta:
        model = EventRegistration
        fields = [
            "id",
            "event",
            "event_title",
            "user",
            "username",
            "roll_number",
            "notes",
            "status",
            "payment_status",
            "registered_at",
            "updated_at",
        ]
        read_only_fields = fields


class RegisterIndividualSerializer(serializers.Serializer):
    event_id = serializers.IntegerField(min_value=1)
    roll_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AttendanceSerializer(serializers.Serializer):
    present = serializers.BooleanField()
