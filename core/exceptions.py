"""
Error taxonomy for the event core, plus the DRF exception handler that
renders it.

Service functions raise these; views never build error payloads by hand.
Each error carries a machine-readable ``kind`` and a ``detail`` dict naming
the offending field or bound so the UI can render a precise message.
"""
from django.db.utils import OperationalError
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger("clubs.api")


class DomainError(Exception):
    kind = "DomainError"
    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False
    default_message = "Request could not be processed."

    def __init__(self, message=None, **detail):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def as_dict(self):
        payload = {"kind": self.kind, "message": self.message, "retryable": self.retryable}
        payload.update(self.detail)
        return payload


class ValidationError(DomainError):
    """Malformed or missing input. Client must fix and resend."""
    kind = "ValidationError"
    default_message = "Invalid input."

    def __init__(self, field, message=None, **detail):
        super().__init__(message, field=field, **detail)
        self.field = field


class InvalidTransition(DomainError):
    kind = "InvalidTransition"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current, requested, message=None):
        message = message or f"Cannot move from '{current}' to '{requested}'"
        super().__init__(message, current=current, requested=requested)
        self.current = current
        self.requested = requested


class SchedulingConflict(DomainError):
    kind = "SchedulingConflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "The hall is already booked for an overlapping time."


class EventFull(DomainError):
    kind = "EventFull"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Event is full."


class DuplicateRegistration(DomainError):
    kind = "DuplicateRegistration"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Already registered for this event."


class InvalidTeamSize(DomainError):
    kind = "InvalidTeamSize"
    default_message = "Team size is outside the allowed range."


class DuplicateRollNumber(DomainError):
    kind = "DuplicateRollNumber"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Roll number is already registered."


class WrongEventMode(DomainError):
    kind = "WrongEventMode"
    default_message = "Registration type does not match the event."


class EventNotOpen(DomainError):
    kind = "EventNotOpen"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Event is not open for registration."


class PermissionDenied(DomainError):
    kind = "PermissionDenied"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to perform this action."


class NotFound(DomainError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource, pk):
        super().__init__(f"{resource} {pk} not found", resource=resource, id=pk)


class Unavailable(DomainError):
    """A collaborator (database, registry) timed out or is down. Safe to retry."""
    kind = "Unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
    default_message = "Service temporarily unavailable, please retry."


def custom_exception_handler(exc, context):
    """
    Wrap domain, DRF and Django exceptions into a consistent response format.

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    if isinstance(exc, OperationalError):
        # Lock wait or connection timeout; the request can be retried as is
        logger.warning(f"Database unavailable: {exc}")
        exc = Unavailable(collaborator="database")

    if isinstance(exc, DomainError):
        view = context.get("view")
        logger.info(
            f"{exc.kind} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        return Response(
            {
                "success": False,
                "status_code": exc.status_code,
                "errors": exc.as_dict(),
            },
            status=exc.status_code,
        )

    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "errors": response.data,
            },
            status=response.status_code,
        )

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "errors": {"detail": "Internal server error."},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
