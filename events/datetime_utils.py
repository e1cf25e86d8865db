# events/datetime_utils.py
"""
Centralized datetime handling.

All "now" lookups and textual date parsing go through here so the grace
period, registration windows and lazy completion agree on the same clock.
"""
from datetime import date, datetime, time
from typing import Optional, Union
import logging

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

logger = logging.getLogger('clubs.events')

# Textual forms accepted besides ISO-8601
DAY_FIRST_FORMATS = ("%d/%m/%Y", "%d/%m/%Y %H:%M")


def now() -> datetime:
    """
    Current datetime. Naive local time while USE_TZ=False.
    """
    return timezone.now()


def _normalize(value: datetime) -> datetime:
    """Match the project's tz mode so comparisons never mix aware and naive."""
    if timezone.is_aware(value) and not timezone.is_aware(now()):
        return timezone.make_naive(value)
    if not timezone.is_aware(value) and timezone.is_aware(now()):
        return timezone.make_aware(value)
    return value


def coerce_datetime(value: Union[None, str, date, datetime]) -> Optional[datetime]:
    """
    Turn a deadline-ish value into a datetime.

    Accepts datetimes, dates (midnight), ISO-8601 text and DD/MM/YYYY text.
    Returns None when the input is empty or cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _normalize(value)
    if isinstance(value, date):
        return _normalize(datetime.combine(value, time.min))

    text = str(value).strip()
    if not text:
        return None

    try:
        parsed = parse_datetime(text)
    except ValueError:
        parsed = None
    if parsed is not None:
        return _normalize(parsed)

    try:
        parsed_date = parse_date(text)
    except ValueError:
        parsed_date = None
    if parsed_date is not None:
        return _normalize(datetime.combine(parsed_date, time.min))

    for fmt in DAY_FIRST_FORMATS:
        try:
            return _normalize(datetime.strptime(text, fmt))
        except ValueError:
            continue

    return None


def is_event_past(event, current: Optional[datetime] = None) -> bool:
    """Check if event has ended."""
    if not event.end_date_time:
        return False
    return event.end_date_time < (current or now())


def is_registration_open(event, current: Optional[datetime] = None) -> bool:
    """
    Registration is open while the event is PUBLISHED and before its
    registration deadline (or its start, when no deadline is set).
    """
    from .models import Event

    if event.status != Event.STATUS_PUBLISHED:
        return False

    closes_at = event.registration_closes_at
    if closes_at is None:
        return False

    return (current or now()) < closes_at
