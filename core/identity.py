# core/identity.py
"""
Explicit caller identity.

Every mutating service call receives a ``Caller`` built from the
authenticated request. The role claim comes from the identity provider
and is trusted as given; nothing here reads ambient session state.
"""
from typing import Optional

ROLE_STUDENT = "student"
ROLE_CLUB_ADMIN = "club_admin"
ROLE_SUPER_ADMIN = "super_admin"

ROLES = (ROLE_STUDENT, ROLE_CLUB_ADMIN, ROLE_SUPER_ADMIN)


class Caller:
    __slots__ = ("user", "role")

    def __init__(self, user, role: Optional[str] = None):
        self.user = user
        if role is None:
            role = ROLE_SUPER_ADMIN if getattr(user, "is_superuser", False) else getattr(user, "role", None)
        self.role = role

    @classmethod
    def from_request(cls, request) -> "Caller":
        return cls(request.user)

    @property
    def id(self):
        return self.user.pk

    @property
    def name(self) -> str:
        display = getattr(self.user, "display_name", None)
        return display or self.user.get_username()

    @property
    def is_student(self) -> bool:
        return self.role == ROLE_STUDENT

    @property
    def is_club_admin(self) -> bool:
        return self.role == ROLE_CLUB_ADMIN

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    def __repr__(self):
        return f"Caller(id={self.id}, role={self.role})"
