from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from core.api import caller_for, validated_data
from events import proposals
from events.models import Idea
from events.policies import EventPolicy
from events.serializers import IdeaCreateSerializer, IdeaSerializer, IdeaStatusSerializer
from .generics import get_idea, get_visible_event


class TopicIdeasView(APIView):
    """
    GET  /api/events/<id>/ideas/     managers see every idea, students their own
    POST /api/events/<id>/ideas/     submit an idea (students, while the topic is active)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        topic = get_visible_event(request, event_id)
        caller = caller_for(request)

        qs = Idea.objects.filter(event=topic).select_related("student")
        allowed, _ = EventPolicy.can_manage_event(caller, topic)
        if not allowed:
            qs = qs.filter(student=request.user)

        return Response(IdeaSerializer(qs, many=True).data)

    def post(self, request, event_id):
        topic = get_visible_event(request, event_id)
        data = validated_data(IdeaCreateSerializer(data=request.data))
        idea = proposals.submit_idea(
            topic,
            caller_for(request),
            data["title"],
            data["description"],
            data["expected_outcome"],
        )
        return Response(IdeaSerializer(idea).data, status=status.HTTP_201_CREATED)


class IdeaStatusView(APIView):
    """
    PATCH /api/events/ideas/<id>/status/ {status}
    """
    permission_classes = [IsAuthenticated]

    def patch(self, request, idea_id):
        idea = get_idea(idea_id)
        data = validated_data(IdeaStatusSerializer(data=request.data))
        idea = proposals.set_idea_status(idea, caller_for(request), data["status"])
        return Response(IdeaSerializer(idea).data)
