# events/urls_teams.py - team registration API

from django.urls import path
from .views import (
    RegisterTeamView,
    MyTeamsView,
    EventTeamsView,
    TeamAttendanceView,
    CancelTeamRegistrationView,
)

urlpatterns = [
    path("register/", RegisterTeamView.as_view(), name="team-register"),
    path("me/", MyTeamsView.as_view(), name="team-mine"),
    path("event/<int:event_id>/", EventTeamsView.as_view(), name="team-event-list"),
    path("<int:team_id>/attendance/", TeamAttendanceView.as_view(), name="team-attendance"),
    path("<int:team_id>/cancel/", CancelTeamRegistrationView.as_view(), name="team-cancel"),
]
