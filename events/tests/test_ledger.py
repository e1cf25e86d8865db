import threading
from datetime import timedelta

from django.db import connection
from django.test import TestCase, TransactionTestCase

from core.exceptions import (
    DuplicateRegistration,
    DuplicateRollNumber,
    EventFull,
    EventNotOpen,
    InvalidTeamSize,
    InvalidTransition,
    PermissionDenied,
    ValidationError,
    WrongEventMode,
)
from events import ledger
from events.models import Event, EventRegistration, PaymentStatus, RegistrationStatus, TeamRegistration
from users.models import User
from .base import ClubFixtureMixin


class IndividualRegistrationTestCase(ClubFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.event = self.make_event(status=Event.STATUS_PUBLISHED, hall=self.hall_a, max_participants=2)

    def test_register_counts_seat(self):
        registration = ledger.register_individual(self.event.pk, self.caller(self.student), roll_number="21CS001")

        self.assertEqual(registration.status, RegistrationStatus.REGISTERED)
        self.assertEqual(registration.payment_status, PaymentStatus.NOT_REQUIRED)
        self.assertEqual(ledger.current_participants(self.event), 1)
        self.assertEqual(ledger.seats_remaining(self.event), 1)

    def test_paid_event_starts_pending(self):
        self.event.registration_fee = "150.00"
        self.event.save()

        registration = ledger.register_individual(self.event.pk, self.caller(self.student))

        self.assertEqual(registration.payment_status, PaymentStatus.PENDING)

    def test_duplicate_registration(self):
        caller = self.caller(self.student)
        first = ledger.register_individual(self.event.pk, caller)

        with self.assertRaises(DuplicateRegistration) as ctx:
            ledger.register_individual(self.event.pk, caller)
        self.assertEqual(ctx.exception.detail["registration_id"], first.pk)

    def test_event_full(self):
        ledger.register_individual(self.event.pk, self.caller(self.student))
        ledger.register_individual(self.event.pk, self.caller(self.student2))
        third = User.objects.create_user(username="meera", password="pass", role="student")

        with self.assertRaises(EventFull) as ctx:
            ledger.register_individual(self.event.pk, self.caller(third))

        self.assertEqual(ctx.exception.detail["max_participants"], 2)
        self.assertEqual(ctx.exception.detail["current"], 2)
        self.assertEqual(ledger.current_participants(self.event), 2)

    def test_unlimited_event(self):
        self.event.max_participants = None
        self.event.save()

        ledger.register_individual(self.event.pk, self.caller(self.student))

        self.assertIsNone(ledger.seats_remaining(self.event))

    def test_withdraw_frees_seat_and_allows_reregistration(self):
        caller = self.caller(self.student)
        registration = ledger.register_individual(self.event.pk, caller)

        ledger.withdraw_registration(registration.pk, caller)
        self.assertEqual(ledger.current_participants(self.event), 0)

        again = ledger.register_individual(self.event.pk, caller)
        self.assertEqual(again.pk, registration.pk)
        self.assertEqual(again.status, RegistrationStatus.REGISTERED)

    def test_withdraw_someone_elses_registration(self):
        registration = ledger.register_individual(self.event.pk, self.caller(self.student))
        with self.assertRaises(PermissionDenied):
            ledger.withdraw_registration(registration.pk, self.caller(self.student2))

    def test_not_open_when_unpublished(self):
        draft = self.make_event(title="Draft")
        with self.assertRaises(EventNotOpen) as ctx:
            ledger.register_individual(draft.pk, self.caller(self.student))
        self.assertEqual(ctx.exception.detail["status"], Event.STATUS_DRAFT)

    def test_not_open_after_deadline(self):
        self.event.registration_deadline = self.now + timedelta(days=1)
        self.event.save()

        with self.assertRaises(EventNotOpen):
            ledger.register_individual(
                self.event.pk, self.caller(self.student), now=self.now + timedelta(days=2)
            )

    def test_team_event_refuses_individuals(self):
        team_event = self.make_event(
            status=Event.STATUS_PUBLISHED, hall=self.hall_b, title="Hack",
            is_team_event=True, min_team_members=2, max_team_members=4,
        )
        with self.assertRaises(WrongEventMode):
            ledger.register_individual(team_event.pk, self.caller(self.student))

    def test_only_students_register(self):
        with self.assertRaises(PermissionDenied):
            ledger.register_individual(self.event.pk, self.caller(self.club_admin))


class LastSeatTestCase(ClubFixtureMixin, TestCase):
    def test_second_request_for_last_seat_fails(self):
        event = self.make_event(status=Event.STATUS_PUBLISHED, hall=self.hall_a, max_participants=1)

        ledger.register_individual(event.pk, self.caller(self.student))
        with self.assertRaises(EventFull):
            ledger.register_individual(event.pk, self.caller(self.student2))

        self.assertEqual(
            EventRegistration.objects.filter(event=event, status__in=RegistrationStatus.ACCEPTED).count(), 1
        )


class ConcurrentLastSeatTestCase(ClubFixtureMixin, TransactionTestCase):
    def test_concurrent_requests_for_last_seat(self):
        event = self.make_event(status=Event.STATUS_PUBLISHED, hall=self.hall_a, max_participants=1)
        callers = [self.caller(self.student), self.caller(self.student2)]
        outcomes = []
        barrier = threading.Barrier(len(callers))

        def attempt(caller):
            try:
                barrier.wait()
                ledger.register_individual(event.pk, caller)
                outcomes.append("ok")
            except EventFull:
                outcomes.append("full")
            finally:
                connection.close()

        threads = [threading.Thread(target=attempt, args=(caller,)) for caller in callers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sorted(outcomes), ["full", "ok"])
        self.assertEqual(ledger.current_participants(event), 1)


class TeamRegistrationTestCase(ClubFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.event = self.make_event(
            status=Event.STATUS_PUBLISHED, hall=self.hall_a, title="Hackathon",
            max_participants=6, is_team_event=True, min_team_members=2, max_team_members=3,
        )

    def roster(self, *rolls):
        return [{"name": f"Member {roll}", "roll_number": roll} for roll in rolls]

    def test_register_team(self):
        team = ledger.register_team(
            self.event.pk, self.caller(self.student), "Bit Flippers", self.roster("21CS001", "21CS009")
        )

        self.assertEqual(team.leader, self.student)
        self.assertEqual(team.team_size, 2)
        self.assertEqual([m.position for m in team.members.all()], [0, 1])
        self.assertEqual(ledger.current_participants(self.event), 2)

    def test_team_size_bounds(self):
        with self.assertRaises(InvalidTeamSize) as ctx:
            ledger.register_team(self.event.pk, self.caller(self.student), "Solo", self.roster("A1"))
        self.assertEqual(ctx.exception.detail["bound"], "min")
        self.assertEqual(ctx.exception.detail["limit"], 2)

        with self.assertRaises(InvalidTeamSize) as ctx:
            ledger.register_team(
                self.event.pk, self.caller(self.student), "Crowd", self.roster("A1", "A2", "A3", "A4")
            )
        self.assertEqual(ctx.exception.detail["bound"], "max")
        self.assertEqual(ctx.exception.detail["size"], 4)

    def test_duplicate_roll_within_team(self):
        with self.assertRaises(DuplicateRollNumber) as ctx:
            ledger.register_team(
                self.event.pk, self.caller(self.student), "Echo", self.roster("21CS001", " 21cs001 ")
            )
        self.assertEqual(ctx.exception.detail["scope"], "team")

    def test_duplicate_roll_across_teams(self):
        first = ledger.register_team(
            self.event.pk, self.caller(self.student), "First", self.roster("21CS001", "21CS005")
        )
        with self.assertRaises(DuplicateRollNumber) as ctx:
            ledger.register_team(
                self.event.pk, self.caller(self.student2), "Second", self.roster("21CS002", "21cs005")
            )
        self.assertEqual(ctx.exception.detail["scope"], "event")
        self.assertEqual(ctx.exception.detail["team_id"], first.pk)

    def test_cancelled_team_releases_roll_numbers(self):
        first = ledger.register_team(
            self.event.pk, self.caller(self.student), "First", self.roster("21CS001", "21CS005")
        )
        ledger.cancel_team_registration(first.pk, self.caller(self.student))

        second = ledger.register_team(
            self.event.pk, self.caller(self.student2), "Second", self.roster("21CS002", "21CS005")
        )
        self.assertEqual(second.status, RegistrationStatus.REGISTERED)

    def test_team_must_fit_remaining_seats(self):
        ledger.register_team(self.event.pk, self.caller(self.student), "A", self.roster("1", "2", "3"))
        ledger.register_team(self.event.pk, self.caller(self.student2), "B", self.roster("4", "5"))
        third = User.objects.create_user(username="meera", password="pass", role="student")

        with self.assertRaises(EventFull) as ctx:
            ledger.register_team(self.event.pk, self.caller(third), "C", self.roster("6", "7"))
        self.assertEqual(ctx.exception.detail["requested"], 2)
        self.assertEqual(ctx.exception.detail["current"], 5)

    def test_one_active_team_per_leader(self):
        ledger.register_team(self.event.pk, self.caller(self.student), "A", self.roster("1", "2"))
        with self.assertRaises(DuplicateRegistration):
            ledger.register_team(self.event.pk, self.caller(self.student), "B", self.roster("3", "4"))

    def test_missing_roll_number(self):
        with self.assertRaises(ValidationError) as ctx:
            ledger.register_team(
                self.event.pk, self.caller(self.student), "A",
                [{"name": "X", "roll_number": "1"}, {"name": "Y", "roll_number": "  "}],
            )
        self.assertEqual(ctx.exception.field, "members[1].roll_number")

    def test_individual_event_refuses_teams(self):
        solo = self.make_event(status=Event.STATUS_PUBLISHED, hall=self.hall_b, title="Talk")
        with self.assertRaises(WrongEventMode):
            ledger.register_team(solo.pk, self.caller(self.student), "A", self.roster("1", "2"))

    def test_only_leader_cancels(self):
        team = ledger.register_team(self.event.pk, self.caller(self.student), "A", self.roster("1", "2"))
        with self.assertRaises(PermissionDenied):
            ledger.cancel_team_registration(team.pk, self.caller(self.student2))


class AttendanceTestCase(ClubFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.event = self.make_event(status=Event.STATUS_PUBLISHED, hall=self.hall_a)
        self.registration = EventRegistration.objects.create(event=self.event, user=self.student)

    def test_mark_present_is_idempotent(self):
        admin = self.caller(self.club_admin)
        ledger.set_attendance(self.registration.pk, admin, True)
        again = ledger.set_attendance(self.registration.pk, admin, True)

        self.assertEqual(again.status, RegistrationStatus.ATTENDED)
        # Still holds its seat
        self.assertEqual(ledger.current_participants(self.event), 1)

    def test_mark_absent(self):
        registration = ledger.set_attendance(self.registration.pk, self.caller(self.club_admin), False)
        self.assertEqual(registration.status, RegistrationStatus.NO_SHOW)

    def test_withdrawn_registration_cannot_attend(self):
        self.registration.status = RegistrationStatus.WITHDRAWN
        self.registration.save()

        with self.assertRaises(InvalidTransition):
            ledger.set_attendance(self.registration.pk, self.caller(self.club_admin), True)

    def test_students_cannot_mark(self):
        with self.assertRaises(PermissionDenied):
            ledger.set_attendance(self.registration.pk, self.caller(self.student), True)

    def test_cancelled_event_refuses_attendance(self):
        self.event.status = Event.STATUS_CANCELLED
        self.event.save()

        with self.assertRaises(EventNotOpen):
            ledger.set_attendance(self.registration.pk, self.caller(self.club_admin), True)

    def test_team_attendance(self):
        team_event = self.make_event(
            status=Event.STATUS_COMPLETED, hall=self.hall_b, title="Hack",
            is_team_event=True, min_team_members=1, max_team_members=3,
        )
        team = TeamRegistration.objects.create(event=team_event, team_name="Bolts", leader=self.student)

        team = ledger.set_team_attendance(team.pk, self.caller(self.super_admin), True)

        self.assertEqual(team.status, RegistrationStatus.ATTENDED)


class RegistrationVisibilityTestCase(ClubFixtureMixin, TestCase):
    def test_students_see_only_their_own(self):
        event = self.make_event(status=Event.STATUS_PUBLISHED, hall=self.hall_a)
        mine = EventRegistration.objects.create(event=event, user=self.student)
        EventRegistration.objects.create(event=event, user=self.student2)

        self.assertEqual(list(ledger.registrations_for(event, self.caller(self.student))), [mine])
        self.assertEqual(ledger.registrations_for(event, self.caller(self.club_admin)).count(), 2)


class MyRecordsTestCase(ClubFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.workshop = self.make_event(status=Event.STATUS_PUBLISHED, hall=self.hall_a, title="Workshop")
        self.past = self.make_event(
            status=Event.STATUS_COMPLETED, hall=self.hall_b, title="Last Year",
            start_in=timedelta(days=-30),
        )
        self.hackathon = self.make_event(
            status=Event.STATUS_PUBLISHED, hall=self.hall_b, title="Hackathon",
            start_in=timedelta(days=9), is_team_event=True, min_team_members=2, max_team_members=3,
        )

    def test_registrations_across_events_keep_history(self):
        ledger.register_individual(self.workshop.pk, self.caller(self.student))
        EventRegistration.objects.create(
            event=self.past, user=self.student, status=RegistrationStatus.ATTENDED
        )
        EventRegistration.objects.create(event=self.workshop, user=self.student2)

        mine = ledger.registrations_of(self.caller(self.student))

        self.assertEqual(
            sorted((r.event.title, r.status) for r in mine),
            [("Last Year", RegistrationStatus.ATTENDED), ("Workshop", RegistrationStatus.REGISTERED)],
        )

    def test_teams_as_leader_or_member(self):
        led = ledger.register_team(
            self.hackathon.pk, self.caller(self.student2), "Ravi's Team",
            [{"name": "Ravi", "roll_number": "21CS002"}, {"name": "Asha", "roll_number": "21cs001"}],
        )
        other = User.objects.create_user(username="meera", password="pass", role=User.ROLE_STUDENT)
        ledger.register_team(
            self.hackathon.pk, self.caller(other), "Strangers",
            [{"name": "Meera", "roll_number": "21EE005"}, {"name": "Dev", "roll_number": "21EE006"}],
        )

        self.assertEqual([t.pk for t in ledger.teams_of(self.caller(self.student))], [led.pk])
        self.assertEqual([t.pk for t in ledger.teams_of(self.caller(self.student2))], [led.pk])
