from core.exceptions import NotFound, ValidationError
from core.api import caller_for
from events.models import Event, Idea
from events.policies import EventPolicy

# Statuses anyone signed in may look at
PUBLIC_STATUSES = (Event.STATUS_PUBLISHED, Event.STATUS_COMPLETED, Event.STATUS_CANCELLED)


def get_event(event_id) -> Event:
    event = Event.objects.select_related("club", "organizer", "hall").filter(pk=event_id).first()
    if event is None:
        raise NotFound("Event", event_id)
    return event


def get_visible_event(request, event_id) -> Event:
    """
    Published history and open topics are visible to everyone; drafts,
    pending and rejected events only to those who manage them.
    """
    event = get_event(event_id)
    if event.status in PUBLIC_STATUSES:
        return event
    if event.accepts_ideas and event.status == Event.STATUS_DRAFT:
        return event

    caller = caller_for(request)
    allowed, _ = EventPolicy.can_manage_event(caller, event)
    if not allowed:
        # Do not reveal unpublished events
        raise NotFound("Event", event_id)
    return event


def get_idea(idea_id) -> Idea:
    idea = Idea.objects.select_related("event", "event__club", "student").filter(pk=idea_id).first()
    if idea is None:
        raise NotFound("Idea", idea_id)
    return idea


def paginate(request, qs, default_limit=50, max_limit=100):
    """
    limit/offset slicing. Returns (page, total_count, limit, offset).
    """
    limit = request.query_params.get("limit")
    offset = request.query_params.get("offset")

    try:
        limit_val = int(limit) if limit is not None else default_limit
        offset_val = int(offset) if offset is not None else 0
    except ValueError:
        raise ValidationError("limit", "Invalid pagination params")

    limit_val = max(1, min(limit_val, max_limit))
    offset_val = max(0, offset_val)

    total_count = qs.count()
    return qs[offset_val: offset_val + limit_val], total_count, limit_val, offset_val


def flag(request, name) -> bool:
    value = request.query_params.get(name)
    return bool(value) and value.lower() in ("1", "true", "yes")
