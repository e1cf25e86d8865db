from datetime import timedelta

from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.db import transaction

from core.models import Club
from events.datetime_utils import now
from events.models import Event
from halls.models import Hall

User = get_user_model()

HALLS = [
    ("Seminar Room 1", "Academic Block A", 50),
    ("Seminar Room 2", "Academic Block A", 60),
    ("Lecture Theatre", "Academic Block B", 120),
    ("Main Auditorium", "Central Block", 200),
    ("Open Air Theatre", "Sports Complex", 500),
]

CLUBS = [
    ("Robotics Club", "robotics", "Technical"),
    ("Literary Society", "literary", "Cultural"),
]


class Command(BaseCommand):
    help = "Seeds halls, clubs, demo users, a topic and a published event"

    def add_arguments(self, parser):
        parser.add_argument("--password", default="password", help="Password for every demo user")

    def _user(self, username, role, password, **extra):
        user, created = User.objects.get_or_create(username=username, defaults={"role": role, **extra})
        if created:
            user.set_password(password)
            user.save()
            self.stdout.write(f"Created user: {username} ({role})")
        return user

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding data...")
        password = options["password"]

        # 1. Halls
        halls = []
        for name, location, capacity in HALLS:
            hall, created = Hall.objects.get_or_create(
                name=name, defaults={"location": location, "seating_capacity": capacity}
            )
            halls.append(hall)
            if created:
                self.stdout.write(f"Created hall: {hall}")

        # 2. Users
        dean = self._user("dean", User.ROLE_SUPER_ADMIN, password, email="dean@campus.edu")
        students = [
            self._user(f"student{i}", User.ROLE_STUDENT, password, roll_number=f"21CS{i:03d}")
            for i in range(1, 6)
        ]

        # 3. Clubs, each with its own admin
        clubs = []
        for name, slug, category in CLUBS:
            admin = self._user(f"{slug}_admin", User.ROLE_CLUB_ADMIN, password)
            club, created = Club.objects.get_or_create(
                slug=slug, defaults={"name": name, "category": category, "admin_user": admin}
            )
            clubs.append(club)
            if created:
                self.stdout.write(f"Created club: {club.name}")

        # 4. One open topic and one published event
        robotics = clubs[0]
        Event.objects.get_or_create(
            club=robotics,
            title="Ideas for Tech Fest",
            defaults={
                "organizer": robotics.admin_user,
                "accepts_ideas": True,
                "event_type": Event.TYPE_OTHER,
                "idea_submission_deadline": now() + timedelta(days=7),
            },
        )

        start = (now() + timedelta(days=10)).replace(hour=10, minute=0, second=0, microsecond=0)
        Event.objects.get_or_create(
            club=robotics,
            title="Line Follower Workshop",
            defaults={
                "organizer": robotics.admin_user,
                "event_type": Event.TYPE_WORKSHOP,
                "start_date_time": start,
                "end_date_time": start + timedelta(hours=3),
                "registration_deadline": start - timedelta(days=1),
                "hall": halls[0],
                "max_participants": 40,
                "status": Event.STATUS_PUBLISHED,
                "approval_status": Event.APPROVAL_APPROVED,
                "approved_by": dean,
                "approved_by_name": dean.display_name,
                "approval_date": now(),
            },
        )

        self.stdout.write(
            self.style.SUCCESS(
                f"Seeding complete: {len(halls)} halls, {len(clubs)} clubs, {len(students)} students"
            )
        )
