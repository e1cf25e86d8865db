from unittest import mock

from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from core.models import Club, DomainActivity
from events import activity_verbs as verbs
from events.models import Event
from notifications import dispatch
from notifications.models import Notification
from notifications.tasks import deliver_notifications
from users.models import User


class EmitTestCase(TestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="pass", role="club_admin")
        self.student = User.objects.create_user(username="stud", password="pass", role="student")
        self.club = Club.objects.create(name="Music Club", slug="music", admin_user=self.admin)
        self.event = Event.objects.create(club=self.club, organizer=self.admin, title="Open Mic")

    def test_emit_records_activity_and_notifies_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            dispatch.emit(
                verbs.EVENT_REJECTED, self.event, self.admin, recipients=[self.student], reason="Too loud"
            )

        self.assertEqual(len(callbacks), 1)
        activity = DomainActivity.objects.get(verb=verbs.EVENT_REJECTED)
        self.assertEqual(activity.actor, self.admin)
        self.assertEqual(activity.club, self.club)
        self.assertEqual(activity.metadata, {"event_id": self.event.pk, "reason": "Too loud"})

        notification = Notification.objects.get(user=self.student)
        self.assertEqual(notification.type, Notification.TYPE_EVENT)
        self.assertEqual(notification.event, self.event)
        self.assertEqual(notification.body, "\"Open Mic\" was rejected: Too loud")

    def test_no_recipients_means_no_delivery(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            dispatch.emit(verbs.EVENT_PUBLISHED, self.event, None)

        self.assertEqual(callbacks, [])
        self.assertIsNone(DomainActivity.objects.get(verb=verbs.EVENT_PUBLISHED).actor)

    def test_audit_failure_does_not_propagate(self):
        with mock.patch(
            "notifications.dispatch.ActivityService.log_activity", side_effect=DatabaseError("disk full")
        ):
            with self.assertLogs("clubs.notifications", level="WARNING"):
                dispatch.emit(verbs.EVENT_PUBLISHED, self.event, self.admin)

        self.assertFalse(DomainActivity.objects.exists())

    def test_broker_failure_is_logged(self):
        with mock.patch("notifications.tasks.deliver_notifications") as task:
            task.delay.side_effect = ConnectionError("broker down")
            with self.assertLogs("clubs.notifications", level="WARNING"):
                with self.captureOnCommitCallbacks(execute=True):
                    dispatch.emit(verbs.REGISTRATION_CREATED, self.event, self.student, recipients=[self.student])

        self.assertFalse(Notification.objects.exists())

    def test_unknown_verb_renders_generic_message(self):
        notif_type, title, body = dispatch.render("event.archived", self.event, {})

        self.assertEqual(notif_type, Notification.TYPE_SYSTEM)
        self.assertEqual(title, "event.archived")
        self.assertEqual(body, "Update on \"Open Mic\".")

    def test_deliver_skips_inactive_users(self):
        self.admin.is_active = False
        self.admin.save()

        count = deliver_notifications(
            verbs.EVENT_CANCELED, self.event.pk, [self.admin.pk, self.student.pk],
            Notification.TYPE_EVENT, "Event cancelled", "Cancelled",
        )

        self.assertEqual(count, 1)
        self.assertEqual(list(Notification.objects.values_list("user", flat=True)), [self.student.pk])


class NotificationApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="noti_user", password="pass", role="student")
        self.other = User.objects.create_user(username="other", password="pass", role="student")

        Notification.objects.create(user=self.user, type=Notification.TYPE_SYSTEM, title="System notice")
        Notification.objects.create(
            user=self.user, type=Notification.TYPE_EVENT, title="Event update", is_read=True
        )
        Notification.objects.create(user=self.other, type=Notification.TYPE_SYSTEM, title="Not mine")

    def test_list_my_notifications(self):
        self.client.force_authenticate(user=self.user)
        resp = self.client.get("/api/notifications/me/")

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual({n["title"] for n in resp.json()}, {"System notice", "Event update"})

    def test_unread_filter(self):
        self.client.force_authenticate(user=self.user)
        resp = self.client.get("/api/notifications/me/", {"unread": "true"})

        self.assertEqual([n["title"] for n in resp.json()], ["System notice"])

    def test_mark_all_read(self):
        self.client.force_authenticate(user=self.user)
        resp = self.client.post("/api/notifications/me/", {}, format="json")

        self.assertEqual(resp.json()["marked_read"], 1)
        self.assertFalse(Notification.objects.filter(user=self.user, is_read=False).exists())
        self.assertTrue(Notification.objects.filter(user=self.other, is_read=False).exists())
