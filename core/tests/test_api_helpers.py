from django.db.utils import OperationalError
from django.test import TestCase
from rest_framework import serializers, status
from rest_framework.test import APIClient

from core.api import validated_data
from core.exceptions import EventFull, ValidationError, custom_exception_handler
from core.identity import Caller
from users.models import User


class _MemberSerializer(serializers.Serializer):
    name = serializers.CharField()
    roll_number = serializers.CharField()


class _TeamSerializer(serializers.Serializer):
    team_name = serializers.CharField()
    members = _MemberSerializer(many=True)


class ValidatedDataTestCase(TestCase):
    def test_first_nested_error_names_the_path(self):
        serializer = _TeamSerializer(data={
            "team_name": "Bolts",
            "members": [{"name": "A", "roll_number": "1"}, {"name": "B"}],
        })

        with self.assertRaises(ValidationError) as ctx:
            validated_data(serializer)

        self.assertEqual(ctx.exception.field, "members[1].roll_number")
        self.assertIn("errors", ctx.exception.detail)

    def test_valid_data_passes_through(self):
        data = validated_data(_TeamSerializer(data={"team_name": "Bolts", "members": []}))
        self.assertEqual(data["team_name"], "Bolts")

    def test_error_payload(self):
        error = EventFull("Event is full", max_participants=1, current=1, requested=1)
        self.assertEqual(error.as_dict(), {
            "kind": "EventFull",
            "message": "Event is full",
            "retryable": False,
            "max_participants": 1,
            "current": 1,
            "requested": 1,
        })

    def test_lock_timeout_renders_as_unavailable(self):
        resp = custom_exception_handler(OperationalError("database is locked"), {})

        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(resp.data["errors"]["kind"], "Unavailable")
        self.assertTrue(resp.data["errors"]["retryable"])
        self.assertEqual(resp.data["errors"]["collaborator"], "database")


class CallerTestCase(TestCase):
    def test_role_comes_from_user(self):
        user = User.objects.create_user(username="asha", password="pass", role="student")
        caller = Caller(user)

        self.assertTrue(caller.is_student)
        self.assertFalse(caller.is_super_admin)
        self.assertEqual(caller.id, user.pk)
        self.assertEqual(caller.name, "asha")

    def test_superuser_acts_as_super_admin(self):
        user = User.objects.create_superuser(username="root", password="pass", email="root@campus.edu")
        self.assertTrue(Caller(user).is_super_admin)


class IdentityApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_me_echoes_role(self):
        user = User.objects.create_user(username="robo", password="pass", role="club_admin")
        self.client.force_authenticate(user=user)

        resp = self.client.get("/api/users/me/")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["role"], "club_admin")

    def test_health_is_public(self):
        resp = self.client.get("/api/health/")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.json()["db"])
