from datetime import timedelta
from unittest import mock

from django.db.utils import OperationalError
from django.test import TestCase, override_settings
from django.utils import timezone

from core.exceptions import Unavailable, ValidationError
from events.models import Event
from halls import allocation
from halls.models import Hall
from halls.registry import HallRegistry, overlaps
from core.models import Club
from users.models import User


class HallAllocationTestCase(TestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="pass", role="club_admin")
        self.club = Club.objects.create(name="Quiz Club", slug="quiz", admin_user=self.admin)
        self.hall_a = Hall.objects.create(name="A", location="North", seating_capacity=50)
        self.hall_b = Hall.objects.create(name="B", location="South", seating_capacity=200)

        self.start = timezone.now() + timedelta(days=3)
        self.end = self.start + timedelta(hours=2)

    def book(self, hall, start, end, status=Event.STATUS_PUBLISHED):
        return Event.objects.create(
            club=self.club,
            organizer=self.admin,
            title=f"Booking {hall.name}",
            start_date_time=start,
            end_date_time=end,
            hall=hall,
            max_participants=10,
            status=status,
        )

    def test_smallest_free_hall_is_suggested(self):
        result = allocation.resolve(40, self.start, self.end)

        self.assertTrue(result.found)
        self.assertEqual(result.suggestion, self.hall_a)
        self.assertEqual(result.excess, 10)
        self.assertEqual(result.fit, allocation.FIT_OPTIMAL)
        self.assertEqual([h.pk for h in result.candidates], [self.hall_a.pk, self.hall_b.pk])

    def test_overlapping_booking_moves_suggestion_to_next_hall(self):
        self.book(self.hall_a, self.start + timedelta(minutes=30), self.end + timedelta(hours=1))

        result = allocation.resolve(40, self.start, self.end)

        self.assertEqual(result.suggestion, self.hall_b)
        self.assertEqual(result.excess, 160)
        self.assertEqual(result.fit, allocation.FIT_OVERSIZED)

    def test_pending_events_hold_the_slot(self):
        self.book(self.hall_a, self.start, self.end, status=Event.STATUS_PENDING_APPROVAL)

        result = allocation.resolve(40, self.start, self.end)

        self.assertEqual(result.suggestion, self.hall_b)

    def test_cancelled_and_rejected_events_free_the_slot(self):
        self.book(self.hall_a, self.start, self.end, status=Event.STATUS_CANCELLED)
        self.book(self.hall_a, self.start, self.end, status=Event.STATUS_REJECTED)

        result = allocation.resolve(40, self.start, self.end)

        self.assertEqual(result.suggestion, self.hall_a)

    def test_touching_windows_do_not_conflict(self):
        self.book(self.hall_a, self.end, self.end + timedelta(hours=1))
        self.book(self.hall_a, self.start - timedelta(hours=1), self.start)

        result = allocation.resolve(40, self.start, self.end)

        self.assertEqual(result.suggestion, self.hall_a)

    def test_exclude_event_ignores_its_own_booking(self):
        own = self.book(self.hall_a, self.start, self.end, status=Event.STATUS_PENDING_APPROVAL)

        result = allocation.resolve(40, self.start, self.end, exclude_event_id=own.pk)

        self.assertEqual(result.suggestion, self.hall_a)

    def test_no_hall_large_enough(self):
        result = allocation.resolve(500, self.start, self.end)

        self.assertFalse(result.found)
        self.assertEqual(result.no_hall.reason, allocation.REASON_NO_CAPACITY)
        self.assertEqual(result.no_hall.capacity_matches, 0)
        self.assertEqual(result.no_hall.message, "no hall meets capacity 500")

    def test_all_large_halls_booked(self):
        self.book(self.hall_b, self.start, self.end)

        result = allocation.resolve(150, self.start, self.end)

        self.assertFalse(result.found)
        self.assertEqual(result.no_hall.reason, allocation.REASON_ALL_BOOKED)
        self.assertEqual(result.no_hall.capacity_matches, 1)
        self.assertEqual(result.no_hall.booked_count, 1)
        self.assertEqual(result.no_hall.message, "1 hall meets capacity but all are booked")

    def test_inactive_halls_are_never_suggested(self):
        self.hall_a.is_active = False
        self.hall_a.save()

        result = allocation.resolve(40, self.start, self.end)

        self.assertEqual(result.suggestion, self.hall_b)

    def test_equal_capacity_prefers_lower_id(self):
        twin = Hall.objects.create(name="A2", location="North", seating_capacity=50)

        result = allocation.resolve(40, self.start, self.end)

        self.assertEqual(result.suggestion, self.hall_a)
        self.assertLess(self.hall_a.pk, twin.pk)

    @override_settings(CLUBS_OPTIMAL_FIT_EXCESS=5)
    def test_fit_threshold_is_configurable(self):
        result = allocation.resolve(40, self.start, self.end)

        self.assertEqual(result.fit, allocation.FIT_OVERSIZED)

    def test_invalid_requests(self):
        with self.assertRaises(ValidationError) as ctx:
            allocation.resolve(0, self.start, self.end)
        self.assertEqual(ctx.exception.field, "capacity")

        with self.assertRaises(ValidationError) as ctx:
            allocation.resolve(10, self.end, self.start)
        self.assertEqual(ctx.exception.field, "end_date_time")

    def test_registry_failure_is_unavailable_not_empty(self):
        broken = mock.Mock()
        broken.filter.return_value = broken
        broken.order_by.side_effect = OperationalError("canceling statement due to statement timeout")

        with mock.patch.object(Hall.objects, "filter", return_value=broken):
            with self.assertRaises(Unavailable) as ctx:
                allocation.resolve(40, self.start, self.end)

        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(ctx.exception.detail["collaborator"], "hall_registry")

    def test_statement_timeout_restored_after_read(self):
        cursor = mock.MagicMock()
        cursor.fetchone.return_value = ("0",)
        fake = mock.MagicMock(vendor="postgresql")
        fake.cursor.return_value.__enter__.return_value = cursor

        with mock.patch("halls.registry.connection", fake):
            halls = HallRegistry(timeout_ms=1500).list_halls()

        self.assertEqual([h.name for h in halls], ["A", "B"])
        set_calls = [c for c in cursor.execute.call_args_list if "set_config" in c.args[0]]
        self.assertEqual([c.args[1] for c in set_calls], [["1500"], ["0"]])


class OverlapTestCase(TestCase):
    def test_half_open_intervals(self):
        t = timezone.now()
        h = timedelta(hours=1)
        self.assertTrue(overlaps(t, t + 2 * h, t + h, t + 3 * h))
        self.assertFalse(overlaps(t, t + h, t + h, t + 2 * h))
        self.assertTrue(overlaps(t, t + 3 * h, t + h, t + 2 * h))

    def test_bookings_for_hall_lists_overlaps_only(self):
        admin = User.objects.create_user(username="a", password="pass", role="club_admin")
        club = Club.objects.create(name="Art", slug="art", admin_user=admin)
        hall = Hall.objects.create(name="Main", location="Centre", seating_capacity=100)
        start = timezone.now() + timedelta(days=1)
        inside = Event.objects.create(
            club=club, organizer=admin, title="Inside", hall=hall, max_participants=10,
            start_date_time=start, end_date_time=start + timedelta(hours=1),
            status=Event.STATUS_PUBLISHED,
        )
        Event.objects.create(
            club=club, organizer=admin, title="Later", hall=hall, max_participants=10,
            start_date_time=start + timedelta(hours=5), end_date_time=start + timedelta(hours=6),
            status=Event.STATUS_PUBLISHED,
        )

        bookings = HallRegistry().bookings_for_hall(hall.pk, start, start + timedelta(hours=2))

        self.assertEqual([b.event_id for b in bookings], [inside.pk])
        self.assertEqual(bookings[0].status, Event.STATUS_PUBLISHED)
