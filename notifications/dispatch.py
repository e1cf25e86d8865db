# notifications/dispatch.py
"""
Notification/audit sink.

Lifecycle services call ``emit`` after a state change. The fact is written
to the audit ledger inside the caller's transaction, and user notifications
are handed to celery once that transaction commits. Everything here is
fire-and-forget: a failure is logged and never undoes the business change.
"""
import logging

from django.db import DatabaseError, transaction

from core.services import ActivityService
from events import activity_verbs as verbs
from .models import Notification

logger = logging.getLogger('clubs.notifications')


# verb -> (notification type, title, body); formatted with the event title
# and the emitted metadata
MESSAGES = {
    verbs.TOPIC_PROMOTED: (
        Notification.TYPE_IDEA,
        "Your idea was picked",
        "Your idea for \"{title}\" is being turned into an event.",
    ),
    verbs.IDEA_SUBMITTED: (
        Notification.TYPE_IDEA,
        "New idea submitted",
        "A new idea was submitted to \"{title}\".",
    ),
    verbs.IDEA_STATUS_CHANGED: (
        Notification.TYPE_IDEA,
        "Idea status updated",
        "Your idea for \"{title}\" is now {status}.",
    ),
    verbs.EVENT_SUBMITTED_FOR_APPROVAL: (
        Notification.TYPE_EVENT,
        "Event awaiting approval",
        "\"{title}\" was submitted for approval.",
    ),
    verbs.EVENT_RESUBMITTED: (
        Notification.TYPE_EVENT,
        "Event resubmitted",
        "\"{title}\" was resubmitted for approval.",
    ),
    verbs.EVENT_APPROVED: (
        Notification.TYPE_EVENT,
        "Event approved",
        "\"{title}\" was approved and is now published.",
    ),
    verbs.EVENT_REJECTED: (
        Notification.TYPE_EVENT,
        "Event rejected",
        "\"{title}\" was rejected: {reason}",
    ),
    verbs.EVENT_CANCELED: (
        Notification.TYPE_EVENT,
        "Event cancelled",
        "\"{title}\" has been cancelled.",
    ),
    verbs.REGISTRATION_CREATED: (
        Notification.TYPE_REGISTRATION,
        "Registration confirmed",
        "You are registered for \"{title}\".",
    ),
    verbs.TEAM_REGISTERED: (
        Notification.TYPE_REGISTRATION,
        "Team registered",
        "Team {team_name} is registered for \"{title}\".",
    ),
}


class _SafeDict(dict):
    def __missing__(self, key):
        return ""


def render(verb, event, metadata):
    notif_type, title, body = MESSAGES.get(
        verb, (Notification.TYPE_SYSTEM, verb, "Update on \"{title}\".")
    )
    values = _SafeDict(metadata)
    values["title"] = event.title
    return notif_type, title, body.format_map(values)


def _schedule_delivery(verb, event_id, recipient_ids, notif_type, title, body):
    from .tasks import deliver_notifications

    try:
        deliver_notifications.delay(verb, event_id, recipient_ids, notif_type, title, body)
    except Exception as exc:
        # Broker down or similar; the audit row already exists
        logger.warning(f"Notification delivery not scheduled: verb={verb}, event={event_id}: {exc}")


def emit(verb, event, actor, recipients=(), target=None, **metadata):
    """
    Record ``verb`` against ``target`` (default: the event) and notify
    ``recipients`` once the surrounding transaction commits.

    ``actor`` may be None for system actions.
    """
    if not verbs.is_valid_verb(verb):
        logger.warning(f"Unregistered activity verb: {verb}")
    target = target if target is not None else event

    try:
        with transaction.atomic():
            ActivityService.log_activity(
                actor=actor,
                verb=verb,
                target=target,
                club=event.club,
                metadata={"event_id": event.pk, **metadata},
            )
    except DatabaseError as exc:
        logger.warning(f"Audit write failed: verb={verb}, event={event.pk}: {exc}")

    recipient_ids = sorted({user.pk for user in recipients if user is not None})
    if not recipient_ids:
        return

    notif_type, title, body = render(verb, event, metadata)
    event_id = event.pk
    transaction.on_commit(
        lambda: _schedule_delivery(verb, event_id, recipient_ids, notif_type, title, body)
    )
    logger.debug(f"Notification queued: verb={verb}, event={event_id}, recipients={recipient_ids}")
