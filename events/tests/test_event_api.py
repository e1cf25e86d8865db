from datetime import timedelta

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from events.models import Event, EventRegistration, Idea, RegistrationStatus
from .base import ClubFixtureMixin


class EventApiTestCase(ClubFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def auth(self, user):
        self.client.force_authenticate(user=user)

    def schedule(self, days=7, hours=2):
        start = self.now + timedelta(days=days)
        return {
            "start_date_time": start.isoformat(),
            "end_date_time": (start + timedelta(hours=hours)).isoformat(),
        }

    def test_requires_authentication(self):
        resp = self.client.get("/api/events/")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_full_lifecycle_over_http(self):
        self.auth(self.club_admin)
        resp = self.client.post(
            "/api/events/",
            {"club_id": self.club.pk, "title": "Bot Sumo", "max_participants": 40, **self.schedule()},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        event_id = resp.json()["id"]
        self.assertEqual(resp.json()["status"], Event.STATUS_DRAFT)

        resp = self.client.post(
            f"/api/events/{event_id}/submit-for-approval/", {"hall_id": self.hall_a.pk}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["status"], Event.STATUS_PENDING_APPROVAL)

        self.auth(self.super_admin)
        resp = self.client.get("/api/events/pending/")
        self.assertEqual([e["id"] for e in resp.json()], [event_id])

        resp = self.client.post(f"/api/events/{event_id}/approve/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["status"], Event.STATUS_PUBLISHED)
        self.assertEqual(resp.json()["hall_name"], "Hall A")

        self.auth(self.student)
        resp = self.client.post(
            "/api/event-registrations/register/", {"event_id": event_id, "roll_number": "21CS001"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        resp = self.client.get(f"/api/events/{event_id}/participants/")
        self.assertEqual(resp.json()["current_participants"], 1)
        self.assertEqual(resp.json()["seats_remaining"], 39)

        resp = self.client.get("/api/events/")
        self.assertEqual(resp.json()["count"], 1)
        self.assertEqual(resp.json()["results"][0]["current_participants"], 1)

    def test_domain_errors_use_envelope(self):
        self.make_event(status=Event.STATUS_PUBLISHED, hall=self.hall_a)
        event = self.make_event(title="Clash", start_in=timedelta(days=7, hours=1))

        self.auth(self.club_admin)
        resp = self.client.post(
            f"/api/events/{event.pk}/submit-for-approval/", {"hall_id": self.hall_a.pk}, format="json"
        )

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["status_code"], 409)
        self.assertEqual(body["errors"]["kind"], "SchedulingConflict")
        self.assertEqual(body["errors"]["hall_id"], self.hall_a.pk)
        self.assertFalse(body["errors"]["retryable"])

    def test_invalid_transition_is_409(self):
        event = self.make_event()
        self.auth(self.super_admin)

        resp = self.client.post(f"/api/events/{event.pk}/approve/")

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["errors"]["kind"], "InvalidTransition")
        self.assertEqual(resp.json()["errors"]["current"], Event.STATUS_DRAFT)

    def test_serializer_errors_name_the_field(self):
        self.auth(self.club_admin)
        resp = self.client.post("/api/events/", {"club_id": self.club.pk}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.json()["errors"]["kind"], "ValidationError")
        self.assertEqual(resp.json()["errors"]["field"], "title")

    def test_reject_then_resubmit(self):
        event = self.make_event(status=Event.STATUS_PENDING_APPROVAL, hall=self.hall_a)

        self.auth(self.super_admin)
        resp = self.client.post(f"/api/events/{event.pk}/reject/", {"reason": ""}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.json()["errors"]["field"], "reason")

        resp = self.client.post(f"/api/events/{event.pk}/reject/", {"reason": "Budget"}, format="json")
        self.assertEqual(resp.json()["status"], Event.STATUS_REJECTED)

        self.auth(self.club_admin)
        resp = self.client.get("/api/events/rejected/")
        self.assertEqual([e["rejection_reason"] for e in resp.json()], ["Budget"])

        resp = self.client.post(f"/api/events/{event.pk}/resubmit/", {"max_participants": 45}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["status"], Event.STATUS_PENDING_APPROVAL)
        self.assertEqual(resp.json()["max_participants"], 45)

    def test_unpublished_events_hidden_from_students(self):
        draft = self.make_event()
        self.auth(self.student)

        resp = self.client.get(f"/api/events/{draft.pk}/")

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.json()["errors"]["kind"], "NotFound")

    def test_delete_draft(self):
        draft = self.make_event()
        self.auth(self.club_admin)

        resp = self.client.delete(f"/api/events/{draft.pk}/")

        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Event.objects.filter(pk=draft.pk).exists())

    def test_cancel_over_http(self):
        event = self.make_event(status=Event.STATUS_PUBLISHED, hall=self.hall_a)
        registration = EventRegistration.objects.create(event=event, user=self.student)

        self.auth(self.club_admin)
        resp = self.client.post(f"/api/events/{event.pk}/cancel/", {"reason": "Rain"}, format="json")

        self.assertEqual(resp.json()["status"], Event.STATUS_CANCELLED)
        registration.refresh_from_db()
        self.assertEqual(registration.status, RegistrationStatus.CANCELLED)


class TopicApiTestCase(ClubFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def test_create_topic_and_collect_ideas(self):
        self.client.force_authenticate(user=self.club_admin)
        resp = self.client.post(
            "/api/events/",
            {
                "club_id": self.club.pk,
                "title": "Tech fest themes",
                "accepts_ideas": True,
                "idea_submission_deadline": (self.now + timedelta(days=3)).strftime("%d/%m/%Y"),
            },
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        topic_id = resp.json()["id"]
        self.assertTrue(resp.json()["is_accepting_ideas"])

        self.client.force_authenticate(user=self.student)
        resp = self.client.get("/api/events/topics/")
        self.assertEqual([t["id"] for t in resp.json()], [topic_id])

        resp = self.client.post(
            f"/api/events/{topic_id}/ideas/",
            {"title": "Robot soccer", "description": "Five a side"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        idea_id = resp.json()["id"]

        self.client.force_authenticate(user=self.club_admin)
        resp = self.client.patch(
            f"/api/events/ideas/{idea_id}/status/", {"status": Idea.STATUS_UNDER_REVIEW}, format="json"
        )
        self.assertEqual(resp.json()["status"], Idea.STATUS_UNDER_REVIEW)

        start = self.now + timedelta(days=20)
        resp = self.client.post(
            f"/api/events/{topic_id}/promote/",
            {
                "idea_id": idea_id,
                "start_date_time": start.isoformat(),
                "end_date_time": (start + timedelta(hours=4)).isoformat(),
                "max_participants": 30,
            },
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(resp.json()["accepts_ideas"])
        self.assertEqual(resp.json()["source_idea"], idea_id)

    def test_topic_with_schedule_rejected(self):
        self.client.force_authenticate(user=self.club_admin)
        start = self.now + timedelta(days=3)
        resp = self.client.post(
            "/api/events/",
            {
                "club_id": self.club.pk,
                "title": "Themes",
                "accepts_ideas": True,
                "start_date_time": start.isoformat(),
            },
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.json()["errors"]["field"], "start_date_time")

    def test_students_see_only_their_ideas(self):
        topic = self.make_topic()
        Idea.objects.create(event=topic, student=self.student, title="Mine", description="x")
        Idea.objects.create(event=topic, student=self.student2, title="Theirs", description="y")

        self.client.force_authenticate(user=self.student)
        resp = self.client.get(f"/api/events/{topic.pk}/ideas/")
        self.assertEqual([i["title"] for i in resp.json()], ["Mine"])

        self.client.force_authenticate(user=self.club_admin)
        resp = self.client.get(f"/api/events/{topic.pk}/ideas/")
        self.assertEqual(len(resp.json()), 2)


class TeamApiTestCase(ClubFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.event = self.make_event(
            status=Event.STATUS_PUBLISHED, hall=self.hall_a, title="Hackathon",
            max_participants=10, is_team_event=True, min_team_members=2, max_team_members=4,
        )

    def test_register_and_list_team(self):
        self.client.force_authenticate(user=self.student)
        resp = self.client.post(
            "/api/team-registrations/register/",
            {
                "event_id": self.event.pk,
                "team_name": "Null Pointers",
                "members": [
                    {"name": "Asha", "roll_number": "21CS001", "email": "asha@campus.edu"},
                    {"name": "Kiran", "roll_number": "21CS010"},
                ],
            },
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.json()["team_size"], 2)

        resp = self.client.get(f"/api/team-registrations/event/{self.event.pk}/")
        self.assertEqual(resp.json()["current_participants"], 2)
        self.assertEqual(len(resp.json()["results"]), 1)

    def test_invalid_team_size_envelope(self):
        self.client.force_authenticate(user=self.student)
        resp = self.client.post(
            "/api/team-registrations/register/",
            {"event_id": self.event.pk, "team_name": "Solo", "members": [{"name": "A", "roll_number": "1"}]},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.json()["errors"]["kind"], "InvalidTeamSize")
        self.assertEqual(resp.json()["errors"]["bound"], "min")

    def test_individual_registration_on_team_event(self):
        self.client.force_authenticate(user=self.student)
        resp = self.client.post("/api/event-registrations/register/", {"event_id": self.event.pk}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.json()["errors"]["kind"], "WrongEventMode")


class MyRecordsApiTestCase(ClubFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def test_my_registrations_include_cancelled(self):
        event = self.make_event(status=Event.STATUS_PUBLISHED, hall=self.hall_a)
        EventRegistration.objects.create(event=event, user=self.student, status=RegistrationStatus.CANCELLED)
        EventRegistration.objects.create(event=event, user=self.student2)

        self.client.force_authenticate(user=self.student)
        resp = self.client.get("/api/event-registrations/me/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([r["status"] for r in resp.json()], [RegistrationStatus.CANCELLED])

        resp = self.client.get("/api/event-registrations/me/", {"status": RegistrationStatus.REGISTERED})
        self.assertEqual(resp.json(), [])

    def test_my_teams(self):
        event = self.make_event(
            status=Event.STATUS_PUBLISHED, hall=self.hall_a, title="Hackathon",
            is_team_event=True, min_team_members=2, max_team_members=4,
        )
        self.client.force_authenticate(user=self.student2)
        self.client.post(
            "/api/team-registrations/register/",
            {
                "event_id": event.pk,
                "team_name": "Null Pointers",
                "members": [{"name": "Ravi", "roll_number": "21CS002"}, {"name": "Asha", "roll_number": "21CS001"}],
            },
            format="json",
        )

        self.client.force_authenticate(user=self.student)
        resp = self.client.get("/api/team-registrations/me/")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([t["team_name"] for t in resp.json()], ["Null Pointers"])
        self.assertEqual(resp.json()[0]["leader_name"], "ravi")
