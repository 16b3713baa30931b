from typing import Any, Optional


class QuizError(Exception):
    """Base class for every error raised by the quiz platform."""


class ValidationError(QuizError):
    """Client input that can never succeed as sent. Not retried."""


class InvalidStateError(QuizError):
    """An operation was attempted in a session state that does not allow it."""


class RegistrationClosedError(QuizError):
    """The event is not accepting new participants."""


class ApiError(QuizError):
    """Non-retryable HTTP error response (4xx)."""

    def __init__(self, status_code: int, body: Any = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API Error {status_code}: {body}")


class RequestFailedError(QuizError):
    """Request still failing after the retry budget was spent."""

    def __init__(self, path: str, attempts: int, cause: Optional[BaseException] = None):
        self.path = path
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"API request {path} failed after {attempts} attempts")


class SubmissionError(QuizError):
    """Submitting the participant's answers failed; the session can retry."""
