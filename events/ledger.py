# events/ledger.py
"""
Registration ledger: individual and team sign-ups against published events,
plus attendance.

Every mutation that can consume a seat locks the Event row first and
recounts participants from source rows inside that lock, so two requests
racing for the last seat cannot both win. Counts are never cached.
"""
from typing import List, Optional
import logging

from django.db import transaction
from django.db.models import Q

from core.exceptions import (
    DuplicateRegistration,
    DuplicateRollNumber,
    EventFull,
    EventNotOpen,
    InvalidTeamSize,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ValidationError,
    WrongEventMode,
)
from core.identity import ROLE_STUDENT
from notifications.dispatch import emit
from . import activity_verbs as verbs
from .datetime_utils import is_registration_open, now as current_time
from .models import (
    Event,
    EventRegistration,
    PaymentStatus,
    RegistrationStatus,
    TeamMember,
    TeamRegistration,
)
from .policies import EventPolicy, enforce
from .sanitizers import clean_roll_number, roll_number_key, sanitize_text, validate_email_optional

logger = logging.getLogger('clubs.registrations')

ATTENDANCE_STATUSES = (Event.STATUS_PUBLISHED, Event.STATUS_COMPLETED)


# ─────────────────────────────────────────────────────────────
# Derived counts
# ─────────────────────────────────────────────────────────────

def current_participants(event) -> int:
    """
    Seats in use: accepted individual registrations plus the members of
    accepted teams. Always recomputed from the source rows.
    """
    individuals = EventRegistration.objects.filter(
        event=event, status__in=RegistrationStatus.ACCEPTED
    ).count()
    team_members = TeamMember.objects.filter(
        team__event=event, team__status__in=RegistrationStatus.ACCEPTED
    ).count()
    return individuals + team_members


def seats_remaining(event) -> Optional[int]:
    """None when the event has no participant limit."""
    if event.max_participants is None:
        return None
    return max(0, event.max_participants - current_participants(event))


def _payment_status(event) -> str:
    return PaymentStatus.NOT_REQUIRED if not event.registration_fee else PaymentStatus.PENDING


# ─────────────────────────────────────────────────────────────
# Guards
# ─────────────────────────────────────────────────────────────

def _lock_event(event_id) -> Event:
    event = Event.objects.select_for_update().filter(pk=event_id).first()
    if event is None:
        raise NotFound("Event", event_id)
    return event


def _require_open(event, now=None):
    if not is_registration_open(event, now or current_time()):
        closes_at = event.registration_closes_at
        raise EventNotOpen(
            "Event is not open for registration",
            status=event.status,
            closes_at=closes_at.isoformat() if closes_at else None,
        )


def _require_seats(event, requested: int):
    if event.max_participants is None:
        return
    current = current_participants(event)
    if current + requested > event.max_participants:
        logger.info(
            f"Event full: event={event.id}, current={current}, requested={requested}, "
            f"max={event.max_participants}"
        )
        raise EventFull(
            "Event is full",
            max_participants=event.max_participants,
            current=current,
            requested=requested,
        )


# ─────────────────────────────────────────────────────────────
# Individual registration
# ─────────────────────────────────────────────────────────────

def register_individual(event_id, caller, roll_number="", notes="", now=None) -> EventRegistration:
    enforce("can_register", caller)
    roll_number = sanitize_text(roll_number, max_length=32)
    notes = sanitize_text(notes, max_length=2000)

    with transaction.atomic():
        event = _lock_event(event_id)

        if event.is_team_event:
            raise WrongEventMode(
                "This is a team event; register a team instead",
                is_team_event=True,
            )
        _require_open(event, now)

        existing = EventRegistration.objects.filter(event=event, user=caller.user).first()
        if existing is not None and existing.is_accepted:
            raise DuplicateRegistration(
                "You are already registered for this event",
                event_id=event.pk,
                user_id=caller.id,
                registration_id=existing.pk,
            )

        _require_seats(event, 1)

        if existing is not None:
            # Re-registration after withdrawing or cancellation
            existing.status = RegistrationStatus.REGISTERED
            existing.roll_number = roll_number
            existing.notes = notes
            existing.payment_status = _payment_status(event)
            existing.save()
            registration = existing
        else:
            registration = EventRegistration.objects.create(
                event=event,
                user=caller.user,
                roll_number=roll_number,
                notes=notes,
                status=RegistrationStatus.REGISTERED,
                payment_status=_payment_status(event),
            )

        emit(
            verbs.REGISTRATION_CREATED,
            event,
            caller.user,
            recipients=[caller.user],
            target=registration,
        )

    logger.info(f"Registered: event={event.id}, user={caller.id}, registration={registration.id}")
    return registration


def withdraw_registration(registration_id, caller) -> EventRegistration:
    """A student withdraws their own registration, freeing the seat."""
    with transaction.atomic():
        registration = (
            EventRegistration.objects.select_for_update()
            .select_related("event")
            .filter(pk=registration_id)
            .first()
        )
        if registration is None:
            raise NotFound("EventRegistration", registration_id)
        if registration.user_id != caller.id:
            raise PermissionDenied("You can only withdraw your own registration", required_role=ROLE_STUDENT)
        if registration.status != RegistrationStatus.REGISTERED:
            raise InvalidTransition(registration.status, RegistrationStatus.WITHDRAWN)

        registration.status = RegistrationStatus.WITHDRAWN
        registration.save(update_fields=["status", "updated_at"])
        emit(verbs.REGISTRATION_WITHDRAWN, registration.event, caller.user, target=registration)

    logger.info(f"Registration withdrawn: registration={registration.id}, user={caller.id}")
    return registration


# ─────────────────────────────────────────────────────────────
# Team registration
# ─────────────────────────────────────────────────────────────

def _clean_members(members) -> List[dict]:
    if not isinstance(members, (list, tuple)) or not members:
        raise ValidationError("members", "At least one team member is required")

    cleaned = []
    for index, member in enumerate(members):
        prefix = f"members[{index}]"
        if not isinstance(member, dict):
            raise ValidationError(prefix, "Each member needs a name and a roll number")
        name = sanitize_text(member.get("name"), max_length=150)
        if not name:
            raise ValidationError(f"{prefix}.name", "Member name is required")
        roll_number = clean_roll_number(member.get("roll_number"), field=f"{prefix}.roll_number")
        cleaned.append({
            "name": name,
            "email": validate_email_optional(member.get("email"), field=f"{prefix}.email"),
            "roll_number": roll_number,
            "roll_number_key": roll_number_key(roll_number),
        })
    return cleaned


def _require_team_size(event, size: int):
    if size < event.min_team_members:
        raise InvalidTeamSize(
            f"Team size must be at least {event.min_team_members} members",
            bound="min",
            limit=event.min_team_members,
            size=size,
        )
    if size > event.max_team_members:
        raise InvalidTeamSize(
            f"Team size cannot exceed {event.max_team_members} members",
            bound="max",
            limit=event.max_team_members,
            size=size,
        )


def _require_unique_rolls(event, members: List[dict]):
    seen = {}
    for member in members:
        key = member["roll_number_key"]
        if key in seen:
            raise DuplicateRollNumber(
                f"Roll number {member['roll_number']} appears twice in the team",
                roll_number=member["roll_number"],
                scope="team",
            )
        seen[key] = member

    taken = (
        TeamMember.objects.filter(
            team__event=event,
            team__status__in=RegistrationStatus.ACCEPTED,
            roll_number_key__in=list(seen),
        )
        .select_related("team")
        .order_by("team_id", "position")
        .first()
    )
    if taken is not None:
        raise DuplicateRollNumber(
            f"Roll number {taken.roll_number} is already registered in another team",
            roll_number=taken.roll_number,
            scope="event",
            team_id=taken.team_id,
        )


def register_team(event_id, caller, team_name, members, notes="", now=None) -> TeamRegistration:
    """
    The caller is the team leader. ``members`` is the ordered roster of
    {name, email, roll_number} dicts, leader included.
    """
    enforce("can_register", caller)
    team_name = sanitize_text(team_name, max_length=100)
    if not team_name:
        raise ValidationError("team_name", "Team name is required")
    roster = _clean_members(members)
    notes = sanitize_text(notes, max_length=2000)

    with transaction.atomic():
        event = _lock_event(event_id)

        if not event.is_team_event:
            raise WrongEventMode(
                "This is an individual event; register individually instead",
                is_team_event=False,
            )
        _require_open(event, now)
        _require_team_size(event, len(roster))

        active_team = TeamRegistration.objects.filter(
            event=event, leader=caller.user, status__in=RegistrationStatus.ACCEPTED
        ).first()
        if active_team is not None:
            raise DuplicateRegistration(
                "You have already registered a team for this event",
                event_id=event.pk,
                user_id=caller.id,
                registration_id=active_team.pk,
            )

        _require_unique_rolls(event, roster)
        _require_seats(event, len(roster))

        team = TeamRegistration.objects.create(
            event=event,
            team_name=team_name,
            leader=caller.user,
            notes=notes,
            status=RegistrationStatus.REGISTERED,
            payment_status=_payment_status(event),
        )
        TeamMember.objects.bulk_create([
            TeamMember(team=team, position=position, **member)
            for position, member in enumerate(roster)
        ])

        emit(
            verbs.TEAM_REGISTERED,
            event,
            caller.user,
            recipients=[caller.user],
            target=team,
            team_name=team.team_name,
            size=len(roster),
        )

    logger.info(
        f"Team registered: event={event.id}, team={team.id}, leader={caller.id}, size={len(roster)}"
    )
    return team


def cancel_team_registration(team_id, caller) -> TeamRegistration:
    """Only the team leader may cancel."""
    with transaction.atomic():
        team = (
            TeamRegistration.objects.select_for_update()
            .select_related("event")
            .filter(pk=team_id)
            .first()
        )
        if team is None:
            raise NotFound("TeamRegistration", team_id)
        if team.leader_id != caller.id:
            raise PermissionDenied("Only the team leader can cancel the registration", required_role=ROLE_STUDENT)
        if team.status != RegistrationStatus.REGISTERED:
            raise InvalidTransition(team.status, RegistrationStatus.CANCELLED)

        team.status = RegistrationStatus.CANCELLED
        team.save(update_fields=["status", "updated_at"])
        emit(verbs.TEAM_CANCELED, team.event, caller.user, target=team)

    logger.info(f"Team registration cancelled: team={team.id}, leader={caller.id}")
    return team


# ─────────────────────────────────────────────────────────────
# Attendance
# ─────────────────────────────────────────────────────────────

def _mark(record, event, caller, present: bool):
    enforce("can_mark_attendance", caller, event)

    if event.status not in ATTENDANCE_STATUSES:
        raise EventNotOpen(
            "Attendance can only be recorded for published or completed events",
            status=event.status,
        )

    target = RegistrationStatus.ATTENDED if present else RegistrationStatus.NO_SHOW
    if record.status == target:
        return record
    if not record.is_accepted:
        raise InvalidTransition(record.status, target)

    previous = record.status
    record.status = target
    record.save(update_fields=["status", "updated_at"])
    emit(verbs.ATTENDANCE_MARKED, event, caller.user, target=record, status=target, previous=previous)
    logger.info(
        f"Attendance marked: {record.__class__.__name__}={record.pk}, "
        f"from={previous}, to={target}, actor={caller.id}"
    )
    return record


def set_attendance(registration_id, caller, present: bool) -> EventRegistration:
    """ATTENDED when present, NO_SHOW otherwise. Idempotent."""
    with transaction.atomic():
        registration = (
            EventRegistration.objects.select_for_update()
            .select_related("event")
            .filter(pk=registration_id)
            .first()
        )
        if registration is None:
            raise NotFound("EventRegistration", registration_id)
        return _mark(registration, registration.event, caller, present)


def set_team_attendance(team_registration_id, caller, present: bool) -> TeamRegistration:
    with transaction.atomic():
        team = (
            TeamRegistration.objects.select_for_update()
            .select_related("event")
            .filter(pk=team_registration_id)
            .first()
        )
        if team is None:
            raise NotFound("TeamRegistration", team_registration_id)
        return _mark(team, team.event, caller, present)


# ─────────────────────────────────────────────────────────────
# Reads
# ─────────────────────────────────────────────────────────────

def registrations_for(event, caller):
    """Managers see every registration; students see only their own."""
    qs = EventRegistration.objects.filter(event=event).select_related("user").order_by("registered_at", "id")
    allowed, _ = EventPolicy.can_view_registrations(caller, event)
    return qs if allowed else qs.filter(user=caller.user)


def teams_for(event, caller):
    qs = (
        TeamRegistration.objects.filter(event=event)
        .select_related("leader")
        .prefetch_related("members")
        .order_by("registered_at", "id")
    )
    allowed, _ = EventPolicy.can_view_registrations(caller, event)
    if allowed:
        return qs
    own = Q(leader=caller.user)
    if caller.user.roll_number:
        own |= Q(members__roll_number_key=roll_number_key(caller.user.roll_number))
    return qs.filter(own).distinct()

def registrations_of(caller):
    """The caller's own individual registrations across every event, newest first."""
    return (
        EventRegistration.objects.filter(user=caller.user)
        .select_related("event", "user")
        .order_by("-registered_at", "-id")
    )


def teams_of(caller):
    """Teams the caller leads or appears in by roll number, across every event."""
    own = Q(leader=caller.user)
    if caller.user.roll_number:
        own |= Q(members__roll_number_key=roll_number_key(caller.user.roll_number))
    return (
        TeamRegistration.objects.filter(own)
        .distinct()
        .select_related("event", "leader")
        .prefetch_related("members")
        .order_by("-registered_at", "-id")
    )
