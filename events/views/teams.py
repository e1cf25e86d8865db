from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from core.api import caller_for, validated_data
from events import ledger
from events.serializers import AttendanceSerializer
from events.team_serializers import RegisterTeamSerializer, TeamRegistrationSerializer
from .generics import get_visible_event


class RegisterTeamView(APIView):
    """
    POST /api/team-registrations/register/
    {event_id, team_name, members: [{name, email, roll_number}, ...], notes}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        data = validated_data(RegisterTeamSerializer(data=request.data))
        team = ledger.register_team(
            data["event_id"],
            caller_for(request),
            data["team_name"],
            [dict(member) for member in data["members"]],
            notes=data["notes"],
        )
        return Response(TeamRegistrationSerializer(team).data, status=status.HTTP_201_CREATED)


class MyTeamsView(APIView):
    """
    GET /api/team-registrations/me/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        teams = ledger.teams_of(caller_for(request))
        return Response(TeamRegistrationSerializer(teams, many=True).data)


class EventTeamsView(APIView):
    """
    GET /api/team-registrations/event/<event_id>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        event = get_visible_event(request, event_id)
        teams = ledger.teams_for(event, caller_for(request))
        return Response({
            "event_id": event.pk,
            "current_participants": ledger.current_participants(event),
            "seats_remaining": ledger.seats_remaining(event),
            "results": TeamRegistrationSerializer(teams, many=True).data,
        })


class TeamAttendanceView(APIView):
    """
    POST /api/team-registrations/<id>/attendance/ {present}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, team_id):
        data = validated_data(AttendanceSerializer(data=request.data))
        team = ledger.set_team_attendance(team_id, caller_for(request), data["present"])
        return Response(TeamRegistrationSerializer(team).data)


class CancelTeamRegistrationView(APIView):
    """
    POST /api/team-registrations/<id>/cancel/   (team leader only)
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, team_id):
        team = ledger.cancel_team_registration(team_id, caller_for(request))
        return Response(TeamRegistrationSerializer(team).data)
