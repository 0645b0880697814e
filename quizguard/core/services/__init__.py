"""Leaf services composed by the session controller."""

from .answer_store import AnswerStore
from .countdown_timer import CountdownTimer
from .integrity_monitor import IntegrityMonitor
from .submission_coordinator import SubmissionCoordinator

__all__ = [
    "AnswerStore",
    "CountdownTimer",
    "IntegrityMonitor",
    "SubmissionCoordinator",
]
