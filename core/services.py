import logging

from django.contrib.contenttypes.models import ContentType

from .models import DomainActivity

logger = logging.getLogger('clubs.audit')


class ActivityService:
    @staticmethod
    def log_activity(actor, verb, target, club=None, metadata=None):
        """
        Append an immutable audit row for a business action.
        """
        if metadata is None:
            metadata = {}

        activity = DomainActivity.objects.create(
            actor=actor,
            verb=verb,
            content_type=ContentType.objects.get_for_model(target),
            object_id=target.pk,
            club=club,
            metadata=metadata,
        )
        logger.debug(f"Activity logged: {verb} on {target.__class__.__name__}:{target.pk} by {getattr(actor, 'pk', 'system')}")
        return activity

    @staticmethod
    def history_for(target):
        """All activities recorded against ``target``, oldest first."""
        return DomainActivity.objects.filter(
            content_type=ContentType.objects.get_for_model(target),
            object_id=target.pk,
        ).order_by("timestamp", "id")
