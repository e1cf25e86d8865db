from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from core.api import caller_for, validated_data
from events import ledger
from events.serializers import (
    AttendanceSerializer,
    EventRegistrationSerializer,
    RegisterIndividualSerializer,
)
from .generics import get_visible_event


class RegisterEventView(APIView):
    """
    POST /api/event-registrations/register/ {event_id, roll_number, notes}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        data = validated_data(RegisterIndividualSerializer(data=request.data))
        registration = ledger.register_individual(
            data["event_id"],
            caller_for(request),
            roll_number=data["roll_number"],
            notes=data["notes"],
        )
        return Response(EventRegistrationSerializer(registration).data, status=status.HTTP_201_CREATED)


class MyRegistrationsView(APIView):
    """
    GET /api/event-registrations/me/?status=<status>
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = ledger.registrations_of(caller_for(request))
        status_filter = request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)
        return Response(EventRegistrationSerializer(qs, many=True).data)


class EventRegistrationsView(APIView):
    """
    GET /api/event-registrations/event/<event_id>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        event = get_visible_event(request, event_id)
        qs = ledger.registrations_for(event, caller_for(request))
        return Response({
            "event_id": event.pk,
            "current_participants": ledger.current_participants(event),
            "seats_remaining": ledger.seats_remaining(event),
            "results": EventRegistrationSerializer(qs, many=True).data,
        })


class RegistrationAttendanceView(APIView):
    """
    POST /api/event-registrations/<id>/attendance/ {present}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, registration_id):
        data = validated_data(AttendanceSerializer(data=request.data))
        registration = ledger.set_attendance(registration_id, caller_for(request), data["present"])
        return Response(EventRegistrationSerializer(registration).data)


class WithdrawRegistrationView(APIView):
    """
    POST /api/event-registrations/<id>/withdraw/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, registration_id):
        registration = ledger.withdraw_registration(registration_id, caller_for(request))
        return Response(EventRegistrationSerializer(registration).data)
