# notifications/tasks.py
import logging

from celery import shared_task
from django.contrib.auth import get_user_model

from .models import Notification

logger = logging.getLogger('clubs.notifications')


@shared_task
def deliver_notifications(verb: str, event_id: int, recipient_ids, notif_type: str, title: str, body: str):
    """
    Persist one Notification per recipient for the external delivery service.
    """
    from events.models import Event

    event = Event.objects.filter(pk=event_id).first()
    users = get_user_model().objects.filter(pk__in=recipient_ids, is_active=True)

    created = Notification.objects.bulk_create([
        Notification(
            user=user,
            type=notif_type,
            verb=verb,
            title=title,
            body=body,
            event=event,
        )
        for user in users
    ])
    logger.info(f"Delivered {len(created)} notification(s): verb={verb}, event={event_id}")
    return len(created)
