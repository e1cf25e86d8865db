from django.urls import path
from .views import (
    EventListCreateView,
    EventDetailView,
    TopicListView,
    PendingApprovalListView,
    RejectedEventListView,
    EventPromoteView,
    EventSubmitForApprovalView,
    EventApproveView,
    EventRejectView,
    EventResubmitView,
    EventCancelView,
    EventCompleteView,
    EventParticipantsView,
    TopicIdeasView,
    IdeaStatusView,
)

# Registration and team APIs live in urls_registrations.py / urls_teams.py

urlpatterns = [
    path("", EventListCreateView.as_view(), name="event-list"),
    path("topics/", TopicListView.as_view(), name="topic-list"),
    path("pending/", PendingApprovalListView.as_view(), name="event-pending"),
    path("rejected/", RejectedEventListView.as_view(), name="event-rejected"),
    path("ideas/<int:idea_id>/status/", IdeaStatusView.as_view(), name="idea-status"),

    path("<int:event_id>/", EventDetailView.as_view(), name="event-detail"),
    path("<int:event_id>/ideas/", TopicIdeasView.as_view(), name="topic-ideas"),
    path("<int:event_id>/promote/", EventPromoteView.as_view(), name="event-promote"),
    path(
        "<int:event_id>/submit-for-approval/",
        EventSubmitForApprovalView.as_view(),
        name="event-submit-for-approval",
    ),
    path("<int:event_id>/approve/", EventApproveView.as_view(), name="event-approve"),
    path("<int:event_id>/reject/", EventRejectView.as_view(), name="event-reject"),
    path("<int:event_id>/resubmit/", EventResubmitView.as_view(), name="event-resubmit"),
    path("<int:event_id>/cancel/", EventCancelView.as_view(), name="event-cancel"),
    path("<int:event_id>/complete/", EventCompleteView.as_view(), name="event-complete"),
    path("<int:event_id>/participants/", EventParticipantsView.as_view(), name="event-participants"),
]
