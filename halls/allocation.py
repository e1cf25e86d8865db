# halls/allocation.py
"""
Best-fit hall allocation.

Given a head count and a time window, pick the smallest free hall that seats
everyone. The resolver is a pure read: it never books anything. Commitment
happens only when a super admin approves the event, which re-checks the slot
under a hall lock.
"""
from datetime import datetime
from typing import List, NamedTuple, Optional
import logging

from django.conf import settings

from core.exceptions import ValidationError
from .models import Hall
from .registry import HallRegistry

logger = logging.getLogger('clubs.halls')

FIT_OPTIMAL = "optimal fit"
FIT_OVERSIZED = "oversized"

REASON_NO_CAPACITY = "NO_CAPACITY"
REASON_ALL_BOOKED = "ALL_BOOKED"


class NoHallAvailable(NamedTuple):
    """Structured "no suggestion" outcome. Returned, never raised."""
    reason: str
    desired_capacity: int
    capacity_matches: int
    booked_count: int

    @property
    def message(self) -> str:
        if self.reason == REASON_ALL_BOOKED:
            noun = "hall meets" if self.capacity_matches == 1 else "halls meet"
            return f"{self.capacity_matches} {noun} capacity but all are booked"
        return f"no hall meets capacity {self.desired_capacity}"

    def as_dict(self) -> dict:
        return {
            "reason": self.reason,
            "message": self.message,
            "desired_capacity": self.desired_capacity,
            "capacity_matches": self.capacity_matches,
            "booked_count": self.booked_count,
        }


class AllocationResult(NamedTuple):
    desired_capacity: int
    start: datetime
    end: datetime
    suggestion: Optional[Hall]
    candidates: List[Hall]
    excess: Optional[int]
    fit: Optional[str]
    no_hall: Optional[NoHallAvailable]

    @property
    def found(self) -> bool:
        return self.suggestion is not None


def classify_fit(seating_capacity: int, desired_capacity: int):
    """
    Returns (excess, label). Informational only, used for UI messaging.
    """
    excess = seating_capacity - desired_capacity
    threshold = settings.CLUBS_OPTIMAL_FIT_EXCESS
    return excess, (FIT_OPTIMAL if excess <= threshold else FIT_OVERSIZED)


def _validate_request(desired_capacity, start, end) -> int:
    try:
        capacity = int(desired_capacity)
    except (TypeError, ValueError):
        raise ValidationError("capacity", "Capacity must be a whole number")
    if capacity <= 0:
        raise ValidationError("capacity", "Capacity must be greater than zero")
    if start is None:
        raise ValidationError("start_date_time", "Start time is required")
    if end is None:
        raise ValidationError("end_date_time", "End time is required")
    if start >= end:
        raise ValidationError("end_date_time", "End time must be after start time")
    return capacity


def resolve(
    desired_capacity,
    start: datetime,
    end: datetime,
    exclude_event_id: Optional[int] = None,
    registry: Optional[HallRegistry] = None,
) -> AllocationResult:
    """
    Suggest the best-fit hall for ``desired_capacity`` seats over [start, end).

    Candidates are halls seating at least the requested number that have no
    PUBLISHED or PENDING_APPROVAL event overlapping the window, sorted by
    capacity then id. ``exclude_event_id`` ignores one event's own booking,
    used when an event is rescheduled.
    """
    capacity = _validate_request(desired_capacity, start, end)
    registry = registry or HallRegistry()

    big_enough = registry.list_halls(min_capacity=capacity)
    booked = registry.bookings_in_window(start, end, exclude_event_id=exclude_event_id)

    candidates = [hall for hall in big_enough if hall.pk not in booked]
    candidates.sort(key=lambda hall: (hall.seating_capacity, hall.pk))

    if not candidates:
        reason = REASON_ALL_BOOKED if big_enough else REASON_NO_CAPACITY
        no_hall = NoHallAvailable(
            reason=reason,
            desired_capacity=capacity,
            capacity_matches=len(big_enough),
            booked_count=len(big_enough) - len(candidates),
        )
        logger.info(f"No hall for {capacity} seats {start}..{end}: {no_hall.message}")
        return AllocationResult(capacity, start, end, None, [], None, None, no_hall)

    best = candidates[0]
    excess, fit = classify_fit(best.seating_capacity, capacity)
    logger.debug(f"Suggested hall {best.pk} for {capacity} seats ({fit}, excess={excess})")
    return AllocationResult(capacity, start, end, best, candidates, excess, fit, None)
