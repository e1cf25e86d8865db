# events/policies.py
"""
Centralized policy layer.

All permission checks for event actions are defined here.
Services call these instead of inline role logic. Every check takes an
explicit ``Caller``; the role claim is trusted as given.
"""
from typing import Tuple

from core.exceptions import PermissionDenied
from core.identity import ROLE_CLUB_ADMIN, ROLE_STUDENT, ROLE_SUPER_ADMIN


class EventPolicy:
    """
    All methods return (bool, reason).
    """

    @staticmethod
    def administers_club(caller, club) -> bool:
        if club is None or not caller.is_club_admin:
            return False
        return club.admin_user_id == caller.id

    # ─────────────────────────────────────────────────────────────
    # Topics & Events
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def can_create_in_club(caller, club) -> Tuple[bool, str]:
        if caller.is_super_admin:
            return True, ""
        if EventPolicy.administers_club(caller, club):
            return True, ""
        return False, "Only the club's admin can create topics or events for it"

    @staticmethod
    def can_manage_event(caller, event) -> Tuple[bool, str]:
        """Edit, submit, resubmit, promote, cancel, remove."""
        if caller.is_super_admin:
            return True, ""
        if caller.is_club_admin and event.organizer_id == caller.id:
            return True, ""
        if EventPolicy.administers_club(caller, event.club):
            return True, ""
        return False, "You do not manage this event"

    @staticmethod
    def can_moderate(caller) -> Tuple[bool, str]:
        """Approve or reject submissions."""
        if caller.is_super_admin:
            return True, ""
        return False, "Only super admins can approve or reject events"

    # ─────────────────────────────────────────────────────────────
    # Ideas
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def can_submit_idea(caller) -> Tuple[bool, str]:
        if caller.is_student:
            return True, ""
        return False, "Only students can submit ideas"

    @staticmethod
    def can_review_idea(caller, idea) -> Tuple[bool, str]:
        return EventPolicy.can_manage_event(caller, idea.event)

    # ─────────────────────────────────────────────────────────────
    # Registration & Attendance
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def can_register(caller) -> Tuple[bool, str]:
        if caller.is_student:
            return True, ""
        return False, "Only students can register for events"

    @staticmethod
    def can_view_registrations(caller, event) -> Tuple[bool, str]:
        return EventPolicy.can_manage_event(caller, event)

    @staticmethod
    def can_mark_attendance(caller, event) -> Tuple[bool, str]:
        return EventPolicy.can_manage_event(caller, event)


REQUIRED_ROLES = {
    "can_create_in_club": ROLE_CLUB_ADMIN,
    "can_manage_event": ROLE_CLUB_ADMIN,
    "can_moderate": ROLE_SUPER_ADMIN,
    "can_submit_idea": ROLE_STUDENT,
    "can_review_idea": ROLE_CLUB_ADMIN,
    "can_register": ROLE_STUDENT,
    "can_view_registrations": ROLE_CLUB_ADMIN,
    "can_mark_attendance": ROLE_CLUB_ADMIN,
}


def enforce(check: str, *args):
    """
    Run ``EventPolicy.<check>`` and raise ``PermissionDenied`` with the
    reason when it fails.
    """
    allowed, reason = getattr(EventPolicy, check)(*args)
    if not allowed:
        raise PermissionDenied(reason, required_role=REQUIRED_ROLES[check])
