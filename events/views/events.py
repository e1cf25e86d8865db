from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status
from django.db.models import Q
import logging

from core.api import caller_for, validated_data
from core.exceptions import NotFound, PermissionDenied, ValidationError
from core.identity import ROLE_CLUB_ADMIN, ROLE_SUPER_ADMIN
from core.models import Club
from events import ledger, proposals, state_machine
from events.models import Event, Idea
from events.serializers import (
    CancelSerializer,
    EventCreateSerializer,
    EventSerializer,
    PromoteSerializer,
    RejectSerializer,
    SubmitForApprovalSerializer,
    EventFieldsSerializer,
)
from .generics import flag, get_event, get_visible_event, paginate

logger = logging.getLogger('clubs.api')

TOPIC_FIELDS = ("title", "description", "event_type", "idea_submission_deadline", "poster_url")


def _event_response(event, request, status_code=status.HTTP_200_OK):
    serializer = EventSerializer(event, context={"request": request})
    return Response(serializer.data, status=status_code)


class EventListCreateView(APIView):
    """
    GET  /api/events/            published events (lazily completed)
    POST /api/events/            create an event, or a topic with accepts_ideas=true
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        state_machine.complete_ended_events()

        qs = Event.objects.filter(status=Event.STATUS_PUBLISHED, accepts_ideas=False)

        club_id = request.query_params.get("club_id") or request.query_params.get("club")
        if club_id:
            qs = qs.filter(club_id=club_id)

        if flag(request, "mine"):
            qs = qs.filter(
                Q(organizer=request.user) |
                Q(registrations__user=request.user) |
                Q(team_registrations__leader=request.user)
            ).distinct()

        ordering = request.query_params.get("ordering")
        allowed_ordering = {"start_date_time", "-start_date_time", "created_at", "-created_at"}
        qs = qs.order_by(ordering if ordering in allowed_ordering else "start_date_time")

        page, total_count, limit_val, offset_val = paginate(
            request, qs.select_related("club", "organizer", "hall")
        )
        serializer = EventSerializer(page, many=True, context={"request": request})
        return Response({
            "count": total_count,
            "results": serializer.data,
            "limit": limit_val,
            "offset": offset_val,
        })

    def post(self, request):
        caller = caller_for(request)
        data = dict(validated_data(EventCreateSerializer(data=request.data)))

        club = Club.objects.filter(pk=data.pop("club_id"), is_active=True).first()
        if club is None:
            raise ValidationError("club_id", "Unknown or inactive club")

        if data.pop("accepts_ideas"):
            extra = sorted(set(data) - set(TOPIC_FIELDS))
            if extra:
                raise ValidationError(extra[0], "Topics collecting ideas cannot be scheduled yet")
            event = state_machine.create_topic(caller, club, **data)
        else:
            data.pop("idea_submission_deadline", None)
            event = state_machine.create_event(caller, club, **data)

        return _event_response(event, request, status.HTTP_201_CREATED)


class EventDetailView(APIView):
    """
    GET    /api/events/<id>/
    DELETE /api/events/<id>/     remove a never-published topic or event
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        event = get_visible_event(request, event_id)
        state_machine.complete_if_ended(event)
        return _event_response(event, request)

    def delete(self, request, event_id):
        event = get_event(event_id)
        state_machine.remove_event(event, caller_for(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class TopicListView(APIView):
    """
    GET /api/events/topics/       topics still open for ideas (deadline + grace)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = proposals.open_topics_queryset()
        club_id = request.query_params.get("club_id")
        if club_id:
            qs = qs.filter(club_id=club_id)

        topics = proposals.active_topics(qs)
        return Response(EventSerializer(topics, many=True, context={"request": request}).data)


class PendingApprovalListView(APIView):
    """
    GET /api/events/pending/      super admin approval queue, oldest first
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        caller = caller_for(request)
        if not caller.is_super_admin:
            raise PermissionDenied("Only super admins can view the approval queue", required_role=ROLE_SUPER_ADMIN)

        qs = (
            Event.objects.filter(status=Event.STATUS_PENDING_APPROVAL)
            .select_related("club", "organizer", "hall")
            .order_by("submitted_for_approval_date", "id")
        )
        return Response(EventSerializer(qs, many=True, context={"request": request}).data)


class RejectedEventListView(APIView):
    """
    GET /api/events/rejected/     rejected events the caller can resubmit
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        caller = caller_for(request)
        qs = Event.objects.filter(status=Event.STATUS_REJECTED).select_related("club", "organizer", "hall")

        if not caller.is_super_admin:
            if not caller.is_club_admin:
                raise PermissionDenied("Only club admins can view rejected events", required_role=ROLE_CLUB_ADMIN)
            qs = qs.filter(Q(organizer=request.user) | Q(club__admin_user=request.user))

        qs = qs.order_by("-approval_date", "-id")
        return Response(EventSerializer(qs, many=True, context={"request": request}).data)


class EventPromoteView(APIView):
    """
    POST /api/events/<id>/promote/   {idea_id?, start_date_time, end_date_time, ...}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        topic = get_event(event_id)
        data = dict(validated_data(PromoteSerializer(data=request.data)))

        idea = None
        idea_id = data.pop("idea_id", None)
        if idea_id is not None:
            idea = Idea.objects.filter(pk=idea_id).first()
            if idea is None:
                raise NotFound("Idea", idea_id)

        event = state_machine.promote_topic(topic, caller_for(request), idea=idea, **data)
        return _event_response(event, request)


class EventSubmitForApprovalView(APIView):
    """
    POST /api/events/<id>/submit-for-approval/ {hall_id, start_date_time, end_date_time, max_participants}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        event = get_event(event_id)
        data = validated_data(SubmitForApprovalSerializer(data=request.data))
        event = state_machine.submit_for_approval(event, caller_for(request), **data)
        return _event_response(event, request)


class EventApproveView(APIView):
    """
    POST /api/events/<id>/approve/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        event = get_event(event_id)
        event = state_machine.approve(event, caller_for(request))
        return _event_response(event, request)


class EventRejectView(APIView):
    """
    POST /api/events/<id>/reject/ {reason}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        event = get_event(event_id)
        data = validated_data(RejectSerializer(data=request.data))
        event = state_machine.reject(event, caller_for(request), data["reason"])
        return _event_response(event, request)


class EventResubmitView(APIView):
    """
    POST /api/events/<id>/resubmit/ {any event field to change}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        event = get_event(event_id)
        data = validated_data(EventFieldsSerializer(data=request.data))
        event = state_machine.resubmit(event, caller_for(request), **data)
        return _event_response(event, request)


class EventCancelView(APIView):
    """
    POST /api/events/<id>/cancel/ {reason?}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        event = get_event(event_id)
        data = validated_data(CancelSerializer(data=request.data))
        event = state_machine.cancel(event, caller_for(request), reason=data["reason"])
        return _event_response(event, request)


class EventCompleteView(APIView):
    """
    POST /api/events/<id>/complete/
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        event = get_event(event_id)
        event = state_machine.complete(event, caller_for(request))
        return _event_response(event, request)


class EventParticipantsView(APIView):
    """
    GET /api/events/<id>/participants/   live derived count
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        event = get_visible_event(request, event_id)
        state_machine.complete_if_ended(event)
        return Response({
            "event_id": event.pk,
            "status": event.status,
            "max_participants": event.max_participants,
            "current_participants": ledger.current_participants(event),
            "seats_remaining": ledger.seats_remaining(event),
        })
