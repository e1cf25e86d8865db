# events/state_machine.py
"""
Event lifecycle state machine.

    DRAFT -> PENDING_APPROVAL -> PUBLISHED -> COMPLETED
                  |    ^            |
                  v    |            v
               REJECTED          CANCELLED  (also from PENDING_APPROVAL)

Any transition not in VALID_TRANSITIONS is rejected with InvalidTransition.
Hall commitment is serialised per hall: submit, resubmit and approve take a
row lock on the Hall before re-checking overlap, so two overlapping events
can never both hold the same hall.
"""
from typing import Optional, Tuple
import logging

from django.db import transaction

from core.exceptions import InvalidTransition, NotFound, SchedulingConflict, ValidationError
from halls.models import Hall
from halls.registry import HallRegistry
from notifications.dispatch import emit
from . import activity_verbs as verbs
from .datetime_utils import coerce_datetime, now as current_time, is_event_past
from .models import Event, EventRegistration, Idea, RegistrationStatus, TeamRegistration
from .policies import enforce
from .sanitizers import (
    sanitize_description,
    sanitize_reason,
    sanitize_text,
    sanitize_title,
    validate_capacity,
    validate_price,
)

logger = logging.getLogger('clubs.events')


# Valid state transitions: from_status -> list of allowed to_statuses
VALID_TRANSITIONS = {
    Event.STATUS_DRAFT: [Event.STATUS_PENDING_APPROVAL],
    Event.STATUS_PENDING_APPROVAL: [Event.STATUS_PUBLISHED, Event.STATUS_REJECTED, Event.STATUS_CANCELLED],
    Event.STATUS_REJECTED: [Event.STATUS_PENDING_APPROVAL],
    Event.STATUS_PUBLISHED: [Event.STATUS_COMPLETED, Event.STATUS_CANCELLED],
    Event.STATUS_COMPLETED: [],
    Event.STATUS_CANCELLED: [],
}

# Fields a club admin may set when creating, promoting or resubmitting
EVENT_FIELDS = (
    "title",
    "description",
    "event_type",
    "start_date_time",
    "end_date_time",
    "registration_deadline",
    "hall_id",
    "max_participants",
    "registration_fee",
    "is_team_event",
    "min_team_members",
    "max_team_members",
    "poster_url",
)


def can_transition(event: Event, new_status: str) -> Tuple[bool, str]:
    """
    Check if an event can transition to a new status.

    Returns (can_transition: bool, reason: str)
    """
    if new_status not in dict(Event.STATUS_CHOICES):
        return False, f"Invalid status: {new_status}"

    if new_status not in VALID_TRANSITIONS.get(event.status, []):
        return False, f"Cannot transition from '{event.status}' to '{new_status}'"

    return True, ""


def get_allowed_transitions(event: Event) -> list:
    return list(VALID_TRANSITIONS.get(event.status, []))


def is_terminal_status(status: str) -> bool:
    return not VALID_TRANSITIONS.get(status)


def _require_transition(event: Event, new_status: str, caller=None):
    can, reason = can_transition(event, new_status)
    if not can:
        logger.warning(
            f"Invalid state transition attempted: event={event.id}, "
            f"from={event.status}, to={new_status}, actor={getattr(caller, 'id', 'system')}. "
            f"Reason: {reason}"
        )
        raise InvalidTransition(event.status, new_status)


def _set_status(event: Event, new_status: str, caller=None, update_fields=()):
    old_status = event.status
    event.status = new_status
    event.save(update_fields=["status", "updated_at", *update_fields])
    logger.info(
        f"Event state transition: event={event.id}, "
        f"from={old_status}, to={new_status}, actor={getattr(caller, 'id', 'system')}"
    )


def _lock_event(event_or_id) -> Event:
    pk = getattr(event_or_id, "pk", event_or_id)
    event = Event.objects.select_for_update().filter(pk=pk).first()
    if event is None:
        raise NotFound("Event", pk)
    return event


def _user(caller):
    return caller.user if caller is not None else None


# ─────────────────────────────────────────────────────────────
# Field validation
# ─────────────────────────────────────────────────────────────

def _apply_fields(event: Event, data: dict):
    """Copy whitelisted, sanitized values onto ``event`` (unsaved)."""
    unknown = sorted(set(data) - set(EVENT_FIELDS))
    if unknown:
        raise ValidationError(unknown[0], f"Unknown field '{unknown[0]}'")

    for field, value in data.items():
        if field == "title":
            value = sanitize_title(value)
        elif field == "description":
            value = sanitize_description(value)
        elif field == "event_type":
            if value not in dict(Event.TYPE_CHOICES):
                raise ValidationError("event_type", f"Unknown event type '{value}'")
        elif field == "max_participants":
            value = validate_capacity(value) if value is not None else None
        elif field == "registration_fee":
            value = validate_price(value)
        elif field in ("min_team_members", "max_team_members"):
            value = validate_capacity(value, field=field, max_value=100) if value is not None else None
        elif field == "poster_url":
            value = sanitize_text(value, max_length=1024) or None
        setattr(event, field, value)


def _validate_team_bounds(event: Event):
    if not event.is_team_event:
        return
    if event.min_team_members is None:
        raise ValidationError("min_team_members", "Team events need a minimum team size")
    if event.max_team_members is None:
        raise ValidationError("max_team_members", "Team events need a maximum team size")
    if event.min_team_members > event.max_team_members:
        raise ValidationError(
            "min_team_members",
            "Minimum team size cannot exceed the maximum",
            min_team_members=event.min_team_members,
            max_team_members=event.max_team_members,
        )
    if event.max_participants is not None and event.max_team_members > event.max_participants:
        raise ValidationError(
            "max_team_members",
            "A full team must fit within max participants",
            max_team_members=event.max_team_members,
            max_participants=event.max_participants,
        )


def _validate_schedule(event: Event, now=None):
    """Event-mode invariants that hold at creation and at every submission."""
    now = now or current_time()
    if event.start_date_time is None:
        raise ValidationError("start_date_time", "Start time is required")
    if event.end_date_time is None:
        raise ValidationError("end_date_time", "End time is required")
    if event.start_date_time >= event.end_date_time:
        raise ValidationError("end_date_time", "End time must be after start time")
    if event.start_date_time <= now:
        raise ValidationError("start_date_time", "Start time must be in the future")
    if event.registration_deadline is not None and event.registration_deadline > event.start_date_time:
        raise ValidationError(
            "registration_deadline", "Registration must close no later than the event start"
        )
    _validate_team_bounds(event)


def _validate_topic(event: Event):
    for field in ("start_date_time", "end_date_time", "hall_id", "max_participants"):
        if getattr(event, field) is not None:
            raise ValidationError(field, "Topics collecting ideas cannot be scheduled yet")


def _reserve_hall(event: Event) -> Hall:
    """
    Lock the event's hall and confirm it can host the event. Must run inside
    transaction.atomic().
    """
    if event.hall_id is None:
        raise ValidationError("hall_id", "A hall is required")
    if event.max_participants is None:
        raise ValidationError("max_participants", "Max participants is required")

    hall = Hall.objects.select_for_update().filter(pk=event.hall_id, is_active=True).first()
    if hall is None:
        raise ValidationError("hall_id", "Unknown or inactive hall", hall_id=event.hall_id)

    if hall.seating_capacity < event.max_participants:
        raise ValidationError(
            "hall_id",
            f"{hall.name} seats {hall.seating_capacity}, fewer than {event.max_participants}",
            seating_capacity=hall.seating_capacity,
            max_participants=event.max_participants,
        )

    conflicts = HallRegistry().bookings_for_hall(
        hall.pk, event.start_date_time, event.end_date_time, exclude_event_id=event.pk
    )
    if conflicts:
        conflicting_ids = [booking.event_id for booking in conflicts]
        logger.warning(
            f"Scheduling conflict: event={event.id}, hall={hall.pk}, conflicts={conflicting_ids}"
        )
        raise SchedulingConflict(
            f"{hall.name} is already booked for an overlapping time",
            hall_id=hall.pk,
            conflicting_event_ids=conflicting_ids,
        )
    return hall


def _moderators():
    from django.contrib.auth import get_user_model
    from core.identity import ROLE_SUPER_ADMIN

    User = get_user_model()
    return list(
        User.objects.filter(is_active=True, role=ROLE_SUPER_ADMIN)
        | User.objects.filter(is_active=True, is_superuser=True)
    )


# ─────────────────────────────────────────────────────────────
# Creation & promotion
# ─────────────────────────────────────────────────────────────

def create_topic(caller, club, title, description="", event_type=Event.TYPE_OTHER,
                 idea_submission_deadline=None, poster_url=None) -> Event:
    """A DRAFT event in idea-collection mode."""
    enforce("can_create_in_club", caller, club)

    topic = Event(club=club, organizer=caller.user, accepts_ideas=True)
    _apply_fields(topic, {
        "title": title,
        "description": description,
        "event_type": event_type,
        "poster_url": poster_url,
    })
    deadline = coerce_datetime(idea_submission_deadline)
    if deadline is None and str(idea_submission_deadline or "").strip():
        raise ValidationError(
            "idea_submission_deadline",
            "Use an ISO-8601 or DD/MM/YYYY date",
            value=str(idea_submission_deadline),
        )
    topic.idea_submission_deadline = deadline
    _validate_topic(topic)

    with transaction.atomic():
        topic.save()
        emit(verbs.TOPIC_CREATED, topic, caller.user)

    logger.info(f"Topic created: event={topic.id}, club={club.id}, actor={caller.id}")
    return topic


def create_event(caller, club, **fields) -> Event:
    """A DRAFT event in event mode. The hall may be chosen now or at submission."""
    enforce("can_create_in_club", caller, club)

    event = Event(club=club, organizer=caller.user, accepts_ideas=False)
    _apply_fields(event, fields)
    if not event.title:
        raise ValidationError("title", "This field may not be blank.")
    _validate_schedule(event)

    with transaction.atomic():
        event.save()
        emit(verbs.EVENT_CREATED, event, caller.user)

    logger.info(f"Event created: event={event.id}, club={club.id}, actor={caller.id}")
    return event


def promote_topic(topic, caller, idea: Optional[Idea] = None, **fields) -> Event:
    """
    One-way switch from topic mode to event mode. The chosen idea, if any,
    becomes APPROVED and is recorded as the event's source.
    """
    with transaction.atomic():
        topic = _lock_event(topic)
        enforce("can_manage_event", caller, topic)

        if not topic.accepts_ideas:
            raise ValidationError("accepts_ideas", "Event is already in event mode")
        if topic.status not in Event.REMOVABLE_STATUSES:
            raise InvalidTransition(topic.status, "promote")

        if idea is not None:
            if idea.event_id != topic.pk:
                raise ValidationError("idea_id", "Idea does not belong to this topic")
            if idea.status == Idea.STATUS_REJECTED:
                raise ValidationError("idea_id", "A rejected idea cannot be promoted")

        topic.accepts_ideas = False
        _apply_fields(topic, fields)
        _validate_schedule(topic)
        if topic.status == Event.STATUS_REJECTED:
            topic.status = Event.STATUS_DRAFT

        if idea is not None:
            topic.source_idea = idea
            if idea.status in (Idea.STATUS_SUBMITTED, Idea.STATUS_UNDER_REVIEW):
                idea.status = Idea.STATUS_APPROVED
                idea.save(update_fields=["status", "updated_at"])

        topic.save()
        emit(
            verbs.TOPIC_PROMOTED,
            topic,
            caller.user,
            recipients=[idea.student] if idea is not None else (),
            idea_id=getattr(idea, "pk", None),
        )

    logger.info(
        f"Topic promoted: event={topic.id}, idea={getattr(idea, 'pk', None)}, actor={caller.id}"
    )
    return topic


def remove_event(event, caller):
    """
    Physically delete a topic or event that was never published.
    """
    with transaction.atomic():
        event = _lock_event(event)
        enforce("can_manage_event", caller, event)

        if event.status not in Event.REMOVABLE_STATUSES:
            logger.warning(f"Refused to remove event={event.id} in status={event.status}")
            raise InvalidTransition(event.status, "removed")

        event_id = event.pk
        emit(verbs.EVENT_REMOVED, event, caller.user, title=event.title, status=event.status)
        event.delete()

    logger.info(f"Event removed: event={event_id}, actor={caller.id}")


# ─────────────────────────────────────────────────────────────
# Approval workflow
# ─────────────────────────────────────────────────────────────

def _enter_review(event: Event, caller, verb: str) -> Event:
    _validate_schedule(event)
    hall = _reserve_hall(event)

    event.approval_status = Event.APPROVAL_PENDING
    event.submitted_for_approval_date = current_time()
    event.save()
    logger.info(
        f"Event state transition: event={event.id}, to={Event.STATUS_PENDING_APPROVAL}, "
        f"hall={hall.pk}, actor={caller.id}"
    )

    emit(verb, event, caller.user, recipients=_moderators(), hall_id=hall.pk)
    return event


def submit_for_approval(event, caller, hall_id=None, start_date_time=None,
                        end_date_time=None, max_participants=None) -> Event:
    """
    DRAFT -> PENDING_APPROVAL. Values passed in override the stored ones.
    """
    with transaction.atomic():
        event = _lock_event(event)
        enforce("can_manage_event", caller, event)

        if event.accepts_ideas:
            raise ValidationError("accepts_ideas", "Promote the topic to an event before submitting it")
        _require_transition(event, Event.STATUS_PENDING_APPROVAL, caller)

        overrides = {
            "hall_id": hall_id,
            "start_date_time": start_date_time,
            "end_date_time": end_date_time,
            "max_participants": max_participants,
        }
        _apply_fields(event, {k: v for k, v in overrides.items() if v is not None})

        event.status = Event.STATUS_PENDING_APPROVAL
        return _enter_review(event, caller, verbs.EVENT_SUBMITTED_FOR_APPROVAL)


def resubmit(event, caller, **new_data) -> Event:
    """
    REJECTED -> PENDING_APPROVAL with the same checks as a first submission.
    The previous rejection reason stays visible until the next decision.
    """
    with transaction.atomic():
        event = _lock_event(event)
        enforce("can_manage_event", caller, event)
        _require_transition(event, Event.STATUS_PENDING_APPROVAL, caller)

        _apply_fields(event, new_data)
        event.status = Event.STATUS_PENDING_APPROVAL
        return _enter_review(event, caller, verbs.EVENT_RESUBMITTED)


def approve(event, caller) -> Event:
    """
    PENDING_APPROVAL -> PUBLISHED. Re-checks the hall under its row lock,
    so an overlapping booking committed since submission is caught here.
    """
    enforce("can_moderate", caller)
    with transaction.atomic():
        event = _lock_event(event)
        _require_transition(event, Event.STATUS_PUBLISHED, caller)
        _reserve_hall(event)

        event.approval_status = Event.APPROVAL_APPROVED
        event.approved_by = caller.user
        event.approved_by_name = caller.name
        event.approval_date = current_time()
        event.rejection_reason = None
        _set_status(event, Event.STATUS_PUBLISHED, caller, update_fields=[
            "approval_status", "approved_by", "approved_by_name", "approval_date", "rejection_reason",
        ])

        emit(verbs.EVENT_APPROVED, event, caller.user, recipients=[event.organizer])
        emit(verbs.EVENT_PUBLISHED, event, caller.user, hall_id=event.hall_id)
    return event


def reject(event, caller, reason) -> Event:
    """PENDING_APPROVAL -> REJECTED with a non-blank reason."""
    enforce("can_moderate", caller)
    reason = sanitize_reason(reason)
    with transaction.atomic():
        event = _lock_event(event)
        _require_transition(event, Event.STATUS_REJECTED, caller)

        event.approval_status = Event.APPROVAL_REJECTED
        event.rejection_reason = reason
        event.approved_by = caller.user
        event.approved_by_name = caller.name
        event.approval_date = current_time()
        _set_status(event, Event.STATUS_REJECTED, caller, update_fields=[
            "approval_status", "rejection_reason", "approved_by", "approved_by_name", "approval_date",
        ])

        emit(verbs.EVENT_REJECTED, event, caller.user, recipients=[event.organizer], reason=reason)
    return event


# ─────────────────────────────────────────────────────────────
# Completion & cancellation
# ─────────────────────────────────────────────────────────────

def complete(event, caller=None, now=None) -> Event:
    """PUBLISHED -> COMPLETED, only once the event has ended."""
    now = now or current_time()
    with transaction.atomic():
        event = _lock_event(event)
        if caller is not None:
            enforce("can_manage_event", caller, event)
        _require_transition(event, Event.STATUS_COMPLETED, caller)
        if not is_event_past(event, now):
            raise ValidationError("end_date_time", "Event has not ended yet", end_date_time=str(event.end_date_time))

        _set_status(event, Event.STATUS_COMPLETED, caller)
        emit(verbs.EVENT_COMPLETED, event, _user(caller))
    return event


def complete_if_ended(event: Event, now=None) -> bool:
    """
    Lazy completion on read. Returns True when ``event`` was moved to
    COMPLETED by this call.
    """
    now = now or current_time()
    if event.status != Event.STATUS_PUBLISHED or not is_event_past(event, now):
        return False

    updated = Event.objects.filter(
        pk=event.pk, status=Event.STATUS_PUBLISHED, end_date_time__lt=now
    ).update(status=Event.STATUS_COMPLETED, updated_at=now)
    event.status = Event.STATUS_COMPLETED
    if updated:
        logger.info(f"Event state transition: event={event.id}, from=published, to=completed, actor=system")
        emit(verbs.EVENT_COMPLETED, event, None, lazy=True)
    return bool(updated)


def complete_ended_events(queryset=None, now=None) -> int:
    """Apply lazy completion to every ended PUBLISHED event in ``queryset``."""
    now = now or current_time()
    qs = Event.objects.all() if queryset is None else queryset
    completed = 0
    for event in qs.filter(status=Event.STATUS_PUBLISHED, end_date_time__lt=now).select_related("club"):
        completed += complete_if_ended(event, now)
    return completed


def cancel(event, caller, reason="") -> Event:
    """
    PUBLISHED/PENDING_APPROVAL -> CANCELLED. Irreversible.

    Every accepted registration and team registration is cancelled with it.
    The hall slot frees itself since bookings only count live statuses.
    """
    with transaction.atomic():
        event = _lock_event(event)
        enforce("can_manage_event", caller, event)
        _require_transition(event, Event.STATUS_CANCELLED, caller)

        registrations = EventRegistration.objects.filter(
            event=event, status__in=RegistrationStatus.ACCEPTED
        )
        teams = TeamRegistration.objects.filter(
            event=event, status__in=RegistrationStatus.ACCEPTED
        )
        recipients = [reg.user for reg in registrations.select_related("user")]
        recipients += [team.leader for team in teams.select_related("leader")]
        recipients.append(event.organizer)

        cancelled_regs = registrations.update(status=RegistrationStatus.CANCELLED, updated_at=current_time())
        cancelled_teams = teams.update(status=RegistrationStatus.CANCELLED, updated_at=current_time())

        _set_status(event, Event.STATUS_CANCELLED, caller)
        emit(
            verbs.EVENT_CANCELED,
            event,
            caller.user,
            recipients=recipients,
            reason=sanitize_text(reason, max_length=2000),
            cancelled_registrations=cancelled_regs,
            cancelled_teams=cancelled_teams,
        )

    logger.info(
        f"Event cancelled: event={event.id}, registrations={cancelled_regs}, "
        f"teams={cancelled_teams}, actor={caller.id}"
    )
    return event
