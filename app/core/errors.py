# File: app/core/errors.py
"""
Typed failures raised by the issue workflow.

Every operation exposed by the lifecycle controller either returns its
result or raises one of these. The HTTP layer renders them as
``{"code": ..., "message": ...}`` with the status code carried by the class,
so raw database or transport text never reaches a client.
"""
from fastapi import status


class IssueTrackerError(Exception):
    code = "error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(IssueTrackerError):
    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class Forbidden(IssueTrackerError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to perform this action"


class NotFound(IssueTrackerError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidTransition(IssueTrackerError):
    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT
    default_message = "The issue cannot move to that state"


class Conflict(IssueTrackerError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "The issue was modified concurrently, reload and try again"


class StoreUnavailable(IssueTrackerError):
    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Storage is temporarily unavailable"
