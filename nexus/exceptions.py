"""
Domain errors raised by the services layer.

Every error carries the HTTP status the errors blueprint answers with, so
route handlers can let them propagate instead of building responses by hand.
"""


class NexusError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(NexusError):
    status_code = 400


class NotFoundError(NexusError):
    status_code = 404


class RepeatSubmissionError(NexusError):
    status_code = 400


class QuotaExceededError(NexusError):
    status_code = 403


class ExhaustedPoolError(NexusError):
    status_code = 409


class AlreadyReviewedError(NexusError):
    status_code = 409


class InsufficientBalanceError(NexusError):
    status_code = 400


class TriageError(Exception):
    """AI triage could not produce a result. Never reaches the client."""
