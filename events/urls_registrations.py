from django.urls import path
from .views import (
    RegisterEventView,
    MyRegistrationsView,
    EventRegistrationsView,
    RegistrationAttendanceView,
    WithdrawRegistrationView,
)

urlpatterns = [
    path("register/", RegisterEventView.as_view(), name="registration-register"),
    path("me/", MyRegistrationsView.as_view(), name="registration-mine"),
    path("event/<int:event_id>/", EventRegistrationsView.as_view(), name="registration-event-list"),
    path(
        "<int:registration_id>/attendance/",
        RegistrationAttendanceView.as_view(),
        name="registration-attendance",
    ),
    path("<int:registration_id>/withdraw/", WithdrawRegistrationView.as_view(), name="registration-withdraw"),
]
