from django.shortcuts import get_object_or_404
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework import status
import logging

from core.api import caller_for, validated_data
from core.exceptions import PermissionDenied
from core.identity import ROLE_SUPER_ADMIN
from .allocation import resolve
from .models import Hall
from .registry import HallRegistry
from .serializers import (
    HallSerializer,
    HallCorrectionSerializer,
    SuggestionQuerySerializer,
    BookingWindowSerializer,
    serialize_allocation,
)

logger = logging.getLogger('clubs.halls')


def _require_super_admin(request):
    caller = caller_for(request)
    if not caller.is_super_admin:
        raise PermissionDenied("Only super admins can manage halls.", required_role=ROLE_SUPER_ADMIN)
    return caller


class HallListCreateView(APIView):
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request):
        min_capacity = request.query_params.get("min_capacity")
        halls = HallRegistry().list_halls(
            min_capacity=int(min_capacity) if min_capacity and min_capacity.isdigit() else None
        )
        return Response(HallSerializer(halls, many=True).data)

    def post(self, request):
        caller = _require_super_admin(request)
        serializer = HallSerializer(data=request.data)
        validated_data(serializer)
        hall = serializer.save()
        logger.info(f"Hall created: hall={hall.id}, capacity={hall.seating_capacity}, actor={caller.id}")
        return Response(HallSerializer(hall).data, status=status.HTTP_201_CREATED)


class HallDetailView(APIView):
    """
    GET   /api/halls/<id>/
    PATCH /api/halls/<id>/   (capacity corrections only)
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request, hall_id):
        hall = get_object_or_404(Hall, pk=hall_id)
        return Response(HallSerializer(hall).data)

    def patch(self, request, hall_id):
        caller = _require_super_admin(request)
        hall = get_object_or_404(Hall, pk=hall_id)
        serializer = HallCorrectionSerializer(hall, data=request.data, partial=True)
        validated_data(serializer)
        serializer.save()
        logger.info(f"Hall corrected: hall={hall.id}, capacity={hall.seating_capacity}, actor={caller.id}")
        return Response(HallSerializer(hall).data)


class HallSuggestionView(APIView):
    """
    GET /api/halls/suggest/?capacity=40&start=...&end=...

    Fresh best-fit suggestion on every call; nothing is cached or reserved.
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request):
        params = validated_data(SuggestionQuerySerializer(data=request.query_params))
        result = resolve(
            params["capacity"],
            params["start"],
            params["end"],
            exclude_event_id=params.get("exclude_event_id"),
        )
        return Response(serialize_allocation(result))


class HallBookingsView(APIView):
    """
    GET /api/halls/<id>/bookings/?start=...&end=...
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request, hall_id):
        hall = get_object_or_404(Hall, pk=hall_id)
        window = validated_data(BookingWindowSerializer(data=request.query_params))
        bookings = HallRegistry().bookings_for_hall(hall.pk, window["start"], window["end"])
        return Response({
            "hall_id": hall.pk,
            "bookings": [
                {
                    "event_id": b.event_id,
                    "start": b.start.isoformat(),
                    "end": b.end.isoformat(),
                    "status": b.status,
                }
                for b in bookings
            ],
        })
