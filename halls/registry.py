# halls/registry.py
"""
Hall Registry read API.

Halls are plain rows; bookings are not stored separately but derived from
events that hold a hall in PUBLISHED or PENDING_APPROVAL status. Cancelling
or rejecting an event therefore frees its slot without any extra write.

Every read runs under a caller-supplied timeout. A database timeout or
connection failure surfaces as ``Unavailable`` so callers never mistake an
outage for "no bookings".
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, List, NamedTuple, Optional
import logging

from django.conf import settings
from django.db import connection, transaction
from django.db.utils import OperationalError

from core.exceptions import Unavailable
from .models import Hall

logger = logging.getLogger('clubs.halls')


class Interval(NamedTuple):
    start: datetime
    end: datetime
    event_id: int
    status: str


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open [start, end) overlap test."""
    return a_start < b_end and b_start < a_end


class HallRegistry:
    def __init__(self, timeout_ms: Optional[int] = None):
        if timeout_ms is None:
            timeout_ms = settings.CLUBS_HALL_REGISTRY_TIMEOUT_MS
        self.timeout_ms = timeout_ms

    def _set_timeout(self, value: str) -> Optional[str]:
        """Set a transaction-local statement_timeout, returning the old one."""
        if connection.vendor != "postgresql":
            return None
        with connection.cursor() as cursor:
            cursor.execute("SELECT current_setting('statement_timeout')")
            previous = cursor.fetchone()[0]
            cursor.execute("SELECT set_config('statement_timeout', %s, true)", [value])
        return previous

    @contextmanager
    def _bounded(self, operation: str):
        try:
            with transaction.atomic():
                previous = self._set_timeout(str(int(self.timeout_ms)))
                yield
                # A released savepoint keeps SET LOCAL values; put the
                # caller's timeout back for the rest of its transaction
                if previous is not None:
                    self._set_timeout(previous)
        except OperationalError as exc:
            logger.warning(f"Hall registry {operation} failed: {exc}")
            raise Unavailable(
                "Hall registry is temporarily unavailable, please retry.",
                collaborator="hall_registry",
                operation=operation,
            ) from exc

    def list_halls(self, min_capacity: Optional[int] = None) -> List[Hall]:
        qs = Hall.objects.filter(is_active=True)
        if min_capacity is not None:
            qs = qs.filter(seating_capacity__gte=min_capacity)
        with self._bounded("list_halls"):
            return list(qs.order_by("seating_capacity", "id"))

    def get_hall(self, hall_id) -> Optional[Hall]:
        with self._bounded("get_hall"):
            return Hall.objects.filter(pk=hall_id, is_active=True).first()

    def bookings_in_window(
        self,
        start: datetime,
        end: datetime,
        exclude_event_id: Optional[int] = None,
        hall_id: Optional[int] = None,
    ) -> Dict[int, List[Interval]]:
        """
        Bookings overlapping [start, end), grouped by hall id.
        """
        # Lazy import to avoid circular dependency (events -> halls)
        from events.models import Event

        qs = Event.objects.filter(
            hall__isnull=False,
            status__in=Event.BOOKING_STATUSES,
            start_date_time__lt=end,
            end_date_time__gt=start,
        )
        if hall_id is not None:
            qs = qs.filter(hall_id=hall_id)
        if exclude_event_id is not None:
            qs = qs.exclude(pk=exclude_event_id)

        grouped: Dict[int, List[Interval]] = {}
        with self._bounded("bookings"):
            rows = list(
                qs.order_by("start_date_time", "id").values_list(
                    "hall_id", "start_date_time", "end_date_time", "id", "status"
                )
            )
        for hall_pk, b_start, b_end, event_id, status in rows:
            grouped.setdefault(hall_pk, []).append(Interval(b_start, b_end, event_id, status))
        return grouped

    def bookings_for_hall(
        self,
        hall_id: int,
        start: datetime,
        end: datetime,
        exclude_event_id: Optional[int] = None,
    ) -> List[Interval]:
        return self.bookings_in_window(
            start, end, exclude_event_id=exclude_event_id, hall_id=hall_id
        ).get(hall_id, [])
