# events/activity_verbs.py
"""
Activity verbs for DomainActivity and lifecycle notifications.

All audit logging and notification facts should use these constants
to keep filtering consistent.
"""

# Topic / Idea
TOPIC_CREATED = "topic.created"
TOPIC_PROMOTED = "topic.promoted"
IDEA_SUBMITTED = "idea.submitted"
IDEA_STATUS_CHANGED = "idea.status_changed"

# Event Lifecycle
EVENT_CREATED = "event.created"
EVENT_REMOVED = "event.removed"
EVENT_SUBMITTED_FOR_APPROVAL = "event.submitted_for_approval"
EVENT_RESUBMITTED = "event.resubmitted"
EVENT_APPROVED = "event.approved"
EVENT_REJECTED = "event.rejected"
EVENT_PUBLISHED = "event.published"
EVENT_COMPLETED = "event.completed"
EVENT_CANCELED = "event.canceled"

# Registration
REGISTRATION_CREATED = "registration.created"
REGISTRATION_WITHDRAWN = "registration.withdrawn"
TEAM_REGISTERED = "team.registered"
TEAM_CANCELED = "team.canceled"

# Attendance
ATTENDANCE_MARKED = "attendance.marked"

# Grouped by category for filtering
VERB_CATEGORIES = {
    "topic": [
        TOPIC_CREATED, TOPIC_PROMOTED, IDEA_SUBMITTED, IDEA_STATUS_CHANGED,
    ],
    "event": [
        EVENT_CREATED, EVENT_REMOVED, EVENT_SUBMITTED_FOR_APPROVAL,
        EVENT_RESUBMITTED, EVENT_APPROVED, EVENT_REJECTED,
        EVENT_PUBLISHED, EVENT_COMPLETED, EVENT_CANCELED,
    ],
    "registration": [
        REGISTRATION_CREATED, REGISTRATION_WITHDRAWN,
        TEAM_REGISTERED, TEAM_CANCELED,
    ],
    "attendance": [
        ATTENDANCE_MARKED,
    ],
}


def get_all_verbs() -> list:
    return [verb for verbs in VERB_CATEGORIES.values() for verb in verbs]


def is_valid_verb(verb: str) -> bool:
    return verb in get_all_verbs()
