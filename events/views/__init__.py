from .events import (
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
)
from .ideas import TopicIdeasView, IdeaStatusView
from .registrations import (
    RegisterEventView,
    MyRegistrationsView,
    EventRegistrationsView,
    RegistrationAttendanceView,
    WithdrawRegistrationView,
)
from .teams import (
    RegisterTeamView,
    MyTeamsView,
    EventTeamsView,
    TeamAttendanceView,
    CancelTeamRegistrationView,
)
