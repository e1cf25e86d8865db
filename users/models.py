# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Campus account. The role claim is trusted as-is by the event core;
    how it gets assigned (SSO, admin panel) is outside this service.
    """
    ROLE_STUDENT = "student"
    ROLE_CLUB_ADMIN = "club_admin"
    ROLE_SUPER_ADMIN = "super_admin"

    ROLE_CHOICES = (
        (ROLE_STUDENT, 'Student'),
        (ROLE_CLUB_ADMIN, 'Club Admin'),
        (ROLE_SUPER_ADMIN, 'Super Admin'),
    )

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_STUDENT,
    )

    roll_number = models.CharField(max_length=32, blank=True, null=True, help_text="College roll number")
    phone = models.CharField(max_length=20, blank=True, null=True)
    department = models.CharField(max_length=100, blank=True, null=True)
    profile_picture = models.CharField(max_length=1024, blank=True, null=True)

    @property
    def display_name(self):
        full = self.get_full_name()
        return full or self.username

    def __str__(self):
        return self.username
