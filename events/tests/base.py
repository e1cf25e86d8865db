from datetime import timedelta

from django.utils import timezone

from core.identity import Caller
from core.models import Club
from events.models import Event
from halls.models import Hall
from users.models import User


class ClubFixtureMixin:
    """
    Shared setup: one club with its admin, a super admin, two students,
    and halls of 50 and 200 seats.
    """

    def setUp(self):
        super().setUp()
        self.now = timezone.now()

        self.super_admin = User.objects.create_user(
            username="dean", password="pass", role=User.ROLE_SUPER_ADMIN
        )
        self.club_admin = User.objects.create_user(
            username="robotics_admin", password="pass", role=User.ROLE_CLUB_ADMIN
        )
        self.other_admin = User.objects.create_user(
            username="drama_admin", password="pass", role=User.ROLE_CLUB_ADMIN
        )
        self.student = User.objects.create_user(
            username="asha", password="pass", role=User.ROLE_STUDENT, roll_number="21CS001"
        )
        self.student2 = User.objects.create_user(
            username="ravi", password="pass", role=User.ROLE_STUDENT, roll_number="21CS002"
        )

        self.club = Club.objects.create(
            name="Robotics Club", slug="robotics", admin_user=self.club_admin
        )
        self.hall_a = Hall.objects.create(name="Hall A", location="Block 1", seating_capacity=50)
        self.hall_b = Hall.objects.create(name="Hall B", location="Block 2", seating_capacity=200)

    def caller(self, user):
        return Caller(user)

    def make_event(self, status=Event.STATUS_DRAFT, hall=None, start_in=timedelta(days=7),
                   duration=timedelta(hours=2), **fields):
        start = self.now + start_in
        values = {
            "club": self.club,
            "organizer": self.club_admin,
            "title": "Robot Wars",
            "start_date_time": start,
            "end_date_time": start + duration,
            "hall": hall,
            "max_participants": 40,
            "status": status,
        }
        values.update(fields)
        return Event.objects.create(**values)

    def make_topic(self, deadline=None, **fields):
        values = {
            "club": self.club,
            "organizer": self.club_admin,
            "title": "Ideas for Tech Fest",
            "accepts_ideas": True,
            "idea_submission_deadline": deadline,
            "status": Event.STATUS_DRAFT,
        }
        values.update(fields)
        return Event.objects.create(**values)
