"""Domain models for the quiz session engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping

QuestionId = int
AnswerRecord = Mapping[QuestionId, str]


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "mcq"
    FILL_IN = "fill_in"


class SessionState(str, Enum):
    """Lifecycle of one quiz attempt."""

    LOADING = "loading"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    ERRORED = "errored"


class SubmissionReason(str, Enum):
    MANUAL = "manual"
    TIMEOUT = "timeout"
    INTEGRITY_EXCEEDED = "integrity-exceeded"

    @property
    def forced(self) -> bool:
        """Whether the backend should be told this was a forced submission."""
        return self is SubmissionReason.INTEGRITY_EXCEEDED


class ViolationKind(str, Enum):
    VISIBILITY_LOST = "visibility-lost"
    FULLSCREEN_EXITED = "fullscreen-exited"


@dataclass(frozen=True, slots=True)
class Question:
    """A single question; options are only populated for multiple choice."""

    id: QuestionId
    text: str
    type: QuestionType
    options: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class QuizDefinition:
    """Quiz as loaded from the backend. Never mutated after load."""

    id: int
    title: str
    description: str
    questions: tuple[Question, ...]
    duration_seconds: int

    @property
    def question_ids(self) -> frozenset[QuestionId]:
        return frozenset(question.id for question in self.questions)

    @property
    def total_questions(self) -> int:
        return len(self.questions)


@dataclass(frozen=True, slots=True)
class Violation:
    kind: ViolationKind
    timestamp: datetime


@dataclass(slots=True)
class IntegrityState:
    """Violation accounting owned by the integrity monitor."""

    max_warnings: int
    warning_count: int = 0
    violation_log: list[Violation] = field(default_factory=list)

    @property
    def threshold_reached(self) -> bool:
        return self.warning_count >= self.max_warnings


@dataclass(frozen=True, slots=True)
class QuestionFeedback:
    question_text: str
    student_answer: str
    correct_answer: str
    is_correct: bool


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    """Graded outcome returned by the backend for the single submission."""

    score: float
    correct_answers: int
    total_questions: int
    feedback: tuple[QuestionFeedback, ...] = ()
    reason: SubmissionReason = SubmissionReason.MANUAL

    @property
    def forced(self) -> bool:
        return self.reason.forced


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read-only view of a session handed to the presentation layer."""

    state: SessionState
    quiz_id: int | None
    remaining_seconds: int
    elapsed_seconds: int
    time_display: str
    timer_urgency: str
    answered_count: int
    total_questions: int
    completion_percentage: float
    warning_count: int
    max_warnings: int
    last_warning: str | None
    submission_reason: SubmissionReason | None
    result: SubmissionResult | None
    error: Exception | None
    fullscreen_requested: bool
    fullscreen_active: bool
