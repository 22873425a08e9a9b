"""Error taxonomy for the CxC reconciliation service."""

from typing import Any, Optional


class ReconciliationError(Exception):
    """Base class for every error raised by this package."""


class RequestTimeoutError(ReconciliationError, TimeoutError):
    """An outbound call exceeded its deadline. Retryable by the user."""

    def __init__(self, message: str = "Request timeout", url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ExternalServiceError(ReconciliationError):
    """A remote service answered with a non-2xx status or could not be reached."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.status = status
        self.body = body


class UnexpectedResponseShapeError(ReconciliationError):
    """The response parsed but is not structured as expected."""

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


class ValidationError(ReconciliationError, ValueError):
    """Client-side input rejected before any network call."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class WorkflowStateError(ReconciliationError):
    """An operation was requested in a workflow state that does not allow it."""

    def __init__(self, message: str, state: Optional[str] = None):
        super().__init__(message)
        self.state = state
