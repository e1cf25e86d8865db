# events/proposals.py
"""
Topics and ideas.

A topic stays open for ideas until one day after its stated deadline. The
grace rule is evaluated on every read; nothing sweeps topics in the
background. A deadline that cannot be parsed keeps the topic visible.
"""
from datetime import datetime, timedelta
from typing import List, Optional
import logging

from django.conf import settings
from django.db import transaction

from core.exceptions import InvalidTransition, NotFound, ValidationError
from notifications.dispatch import emit
from . import activity_verbs as verbs
from .datetime_utils import coerce_datetime, now as current_time
from .models import Event, Idea
from .policies import enforce
from .sanitizers import sanitize_description, sanitize_title

logger = logging.getLogger('clubs.events')


# Idea review workflow: from_status -> allowed to_statuses
IDEA_TRANSITIONS = {
    Idea.STATUS_SUBMITTED: [Idea.STATUS_UNDER_REVIEW, Idea.STATUS_APPROVED, Idea.STATUS_REJECTED],
    Idea.STATUS_UNDER_REVIEW: [Idea.STATUS_APPROVED, Idea.STATUS_REJECTED],
    Idea.STATUS_APPROVED: [Idea.STATUS_IMPLEMENTING, Idea.STATUS_REJECTED],
    Idea.STATUS_IMPLEMENTING: [Idea.STATUS_COMPLETED],
    Idea.STATUS_COMPLETED: [],
    Idea.STATUS_REJECTED: [],
}


def grace_period() -> timedelta:
    return timedelta(days=settings.CLUBS_IDEA_GRACE_PERIOD_DAYS)


def is_topic_active(deadline, now: Optional[datetime] = None) -> bool:
    """
    True when there is no deadline, or ``now <= deadline + grace``.

    ``deadline`` may be None, a date, a datetime, or text in ISO-8601 or
    DD/MM/YYYY form. Unparseable text counts as active.
    """
    if deadline is None or (isinstance(deadline, str) and not deadline.strip()):
        return True

    parsed = coerce_datetime(deadline)
    if parsed is None:
        logger.warning(f"Unparseable idea deadline {deadline!r}; treating topic as active")
        return True

    now = coerce_datetime(now) if now is not None else current_time()
    return now <= parsed + grace_period()


def open_topics_queryset():
    """Topic-mode events that could still collect ideas."""
    return Event.objects.filter(accepts_ideas=True, status=Event.STATUS_DRAFT)


def active_topics(queryset=None, now: Optional[datetime] = None) -> List[Event]:
    qs = open_topics_queryset() if queryset is None else queryset.filter(accepts_ideas=True)
    now = now or current_time()
    return [
        topic
        for topic in qs.select_related("club").order_by("-created_at")
        if is_topic_active(topic.idea_submission_deadline, now)
    ]


def submit_idea(topic, caller, title, description, expected_outcome="", now=None) -> Idea:
    """
    A student proposes an idea for an open topic.
    """
    enforce("can_submit_idea", caller)

    title = sanitize_title(title)
    description = sanitize_description(description)
    if not description:
        raise ValidationError("description", "This field may not be blank.")
    expected_outcome = sanitize_description(expected_outcome)

    with transaction.atomic():
        # Serialises a student's concurrent submissions against the cap
        topic_id = getattr(topic, "pk", topic)
        topic = Event.objects.select_for_update().filter(pk=topic_id).first()
        if topic is None:
            raise NotFound("Event", topic_id)

        if not topic.accepts_ideas or topic.status != Event.STATUS_DRAFT:
            raise ValidationError("event_id", "This event is not collecting ideas")
        if not is_topic_active(topic.idea_submission_deadline, now):
            raise ValidationError(
                "event_id",
                "The idea submission deadline has passed",
                deadline=str(topic.idea_submission_deadline),
            )

        limit = settings.CLUBS_MAX_IDEAS_PER_STUDENT
        existing = Idea.objects.filter(event=topic, student=caller.user).count()
        if existing >= limit:
            raise ValidationError(
                "event_id",
                f"You can submit at most {limit} ideas for this topic",
                limit=limit,
                submitted=existing,
            )

        idea = Idea.objects.create(
            event=topic,
            student=caller.user,
            title=title,
            description=description,
            expected_outcome=expected_outcome,
        )
        emit(verbs.IDEA_SUBMITTED, topic, caller.user, recipients=[topic.organizer], target=idea)

    logger.info(f"Idea submitted: idea={idea.id}, topic={topic.id}, student={caller.id}")
    return idea


def set_idea_status(idea, caller, status) -> Idea:
    enforce("can_review_idea", caller, idea)

    if status not in dict(Idea.STATUS_CHOICES):
        raise ValidationError("status", f"Unknown idea status '{status}'")
    if status == idea.status:
        return idea
    if status not in IDEA_TRANSITIONS.get(idea.status, []):
        logger.warning(
            f"Invalid idea transition: idea={idea.id}, from={idea.status}, to={status}, actor={caller.id}"
        )
        raise InvalidTransition(idea.status, status)

    old_status = idea.status
    with transaction.atomic():
        idea.status = status
        idea.save(update_fields=["status", "updated_at"])
        emit(
            verbs.IDEA_STATUS_CHANGED,
            idea.event,
            caller.user,
            recipients=[idea.student],
            target=idea,
            status=idea.get_status_display(),
            previous=old_status,
        )

    logger.info(f"Idea status changed: idea={idea.id}, from={old_status}, to={status}, actor={caller.id}")
    return idea
