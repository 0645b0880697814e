"""Wire payloads exchanged with the grading backend."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from quizguard.core.models import (
    Question,
    QuestionFeedback,
    QuestionType,
    QuizDefinition,
    SubmissionResult,
)


class QuestionPayload(BaseModel):
    id: int
    text: str
    type: Literal["mcq", "fill_in"]
    options: list[str] = Field(default_factory=list)

    def to_question(self) -> Question:
        question_type = QuestionType(self.type)
        options = tuple(self.options) if question_type is QuestionType.MULTIPLE_CHOICE else ()
        return Question(id=self.id, text=self.text, type=question_type, options=options)


class QuizPayload(BaseModel):
    """Quiz body returned by ``GET /api/student/quiz/{id}``."""

    id: int
    title: str
    description: str = ""
    duration_minutes: float = Field(gt=0)
    questions: list[QuestionPayload]

    def to_definition(self) -> QuizDefinition:
        seen: set[int] = set()
        for question in self.questions:
            if question.id in seen:
                raise ValueError(f"Duplicate question id {question.id} in quiz {self.id}.")
            seen.add(question.id)
        return QuizDefinition(
            id=self.id,
            title=self.title,
            description=self.description,
            questions=tuple(question.to_question() for question in self.questions),
            duration_seconds=int(round(self.duration_minutes * 60)),
        )


class CompletionStatusPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_completed: bool = Field(default=False, alias="hasCompleted")


class SubmitQuizPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answers: dict[str, str]
    forced_submission: bool = Field(default=False, alias="forcedSubmission")


class QuestionDetailPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    type: Literal["mcq", "fill_in"] | None = None
    student_answer: str | None = Field(default=None, alias="studentAnswer")
    correct_answer: str = Field(default="", alias="correctAnswer")
    is_correct: bool = Field(default=False, alias="isCorrect")


class SubmissionResultPayload(BaseModel):
    """Graded result returned by ``POST /api/student/submit-quiz/{id}``."""

    model_config = ConfigDict(populate_by_name=True)

    score: float = Field(ge=0, le=100)
    correct_answers: int = Field(ge=0, alias="correctAnswers")
    total_questions: int = Field(ge=0, alias="totalQuestions")
    question_details: list[QuestionDetailPayload] = Field(default_factory=list, alias="questionDetails")

    def to_result(self) -> SubmissionResult:
        return SubmissionResult(
            score=self.score,
            correct_answers=self.correct_answers,
            total_questions=self.total_questions,
            feedback=tuple(
                QuestionFeedback(
                    question_text=detail.question,
                    student_answer=detail.student_answer or "",
                    correct_answer=detail.correct_answer,
                    is_correct=detail.is_correct,
                )
                for detail in self.question_details
            ),
        )
