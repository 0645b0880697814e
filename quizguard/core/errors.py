"""Typed failures surfaced by the session engine."""

from __future__ import annotations


class SessionError(Exception):
    """Base class for every failure a session reports to its caller."""


class AlreadyCompletedError(SessionError):
    """Raised when the backend reports the quiz was already submitted."""

    def __init__(self, quiz_id: int) -> None:
        super().__init__(f"Quiz {quiz_id} has already been completed.")
        self.quiz_id = quiz_id


class QuizNotFoundError(SessionError):
    """Raised when the requested quiz does not exist."""

    def __init__(self, quiz_id: int) -> None:
        super().__init__(f"Quiz {quiz_id} not found.")
        self.quiz_id = quiz_id


class NetworkError(SessionError):
    """Raised when a backend call fails in transport or with a non-2xx status."""

    def __init__(self, operation: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.message = message
        self.status_code = status_code


class SessionStateError(SessionError):
    """Raised when an operation is not valid in the session's current state."""


class FullscreenUnavailableError(Exception):
    """Raised by an event source that cannot enter or leave fullscreen."""
