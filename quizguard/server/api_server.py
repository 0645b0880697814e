"""FastAPI bridge exposing one quiz session to the test-taker's page."""

from __future__ import annotations

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel
import uvicorn

from quizguard.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quizguard.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quizguard.core.errors import (
  AlreadyCompletedError,
  NetworkError,
  QuizNotFoundError,
  SessionError,
  SessionStateError,
)
from quizguard.core.integrity_sources import BrowserEventSource
from quizguard.core.models import SessionSnapshot, SubmissionResult
from quizguard.core.session_controller import SessionController


class AnswerPayload(BaseModel):
  """Payload schema for an answer update."""

  value: str


class FeedbackResponse(BaseModel):
  question_text: str
  student_answer: str
  correct_answer: str
  is_correct: bool


class ResultResponse(BaseModel):
  score: float
  correct_answers: int
  total_questions: int
  reason: str
  forced: bool
  feedback: list[FeedbackResponse]

  @classmethod
  def from_result(cls, result: SubmissionResult) -> ResultResponse:
    return cls(
      score=result.score,
      correct_answers=result.correct_answers,
      total_questions=result.total_questions,
      reason=result.reason.value,
      forced=result.forced,
      feedback=[
        FeedbackResponse(
          question_text=item.question_text,
          student_answer=item.student_answer,
          correct_answer=item.correct_answer,
          is_correct=item.is_correct,
        )
        for item in result.feedback
      ],
    )


class ErrorResponse(BaseModel):
  kind: str
  message: str
  operation: str | None = None


class SnapshotResponse(BaseModel):
  state: str
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
  submission_reason: str | None
  result: ResultResponse | None
  error: ErrorResponse | None
  fullscreen_requested: bool
  fullscreen_active: bool

  @classmethod
  def from_snapshot(cls, snapshot: SessionSnapshot) -> SnapshotResponse:
    return cls(
      state=snapshot.state.value,
      quiz_id=snapshot.quiz_id,
      remaining_seconds=snapshot.remaining_seconds,
      elapsed_seconds=snapshot.elapsed_seconds,
      time_display=snapshot.time_display,
      timer_urgency=snapshot.timer_urgency,
      answered_count=snapshot.answered_count,
      total_questions=snapshot.total_questions,
      completion_percentage=round(snapshot.completion_percentage, 1),
      warning_count=snapshot.warning_count,
      max_warnings=snapshot.max_warnings,
      last_warning=snapshot.last_warning,
      submission_reason=snapshot.submission_reason.value if snapshot.submission_reason else None,
      result=ResultResponse.from_result(snapshot.result) if snapshot.result else None,
      error=_describe_error(snapshot.error) if snapshot.error else None,
      fullscreen_requested=snapshot.fullscreen_requested,
      fullscreen_active=snapshot.fullscreen_active,
    )


class QuestionResponse(BaseModel):
  id: int
  text: str
  type: str
  options: list[str]


class QuizResponse(BaseModel):
  id: int
  title: str
  description: str
  duration_seconds: int
  questions: list[QuestionResponse]


def _describe_error(exc: Exception) -> ErrorResponse:
  return ErrorResponse(
    kind=exc.__class__.__name__,
    message=exc.message if isinstance(exc, NetworkError) else str(exc),
    operation=exc.operation if isinstance(exc, NetworkError) else None,
  )


def _to_http_error(exc: SessionError) -> HTTPException:
  detail = _describe_error(exc).model_dump()
  if isinstance(exc, NetworkError):
    return HTTPException(status_code=502, detail=detail)
  if isinstance(exc, QuizNotFoundError):
    return HTTPException(status_code=404, detail=detail)
  if isinstance(exc, (AlreadyCompletedError, SessionStateError)):
    return HTTPException(status_code=409, detail=detail)
  return HTTPException(status_code=500, detail=detail)


def create_api_app(controller: SessionController, event_source: BrowserEventSource) -> FastAPI:
  """Create a FastAPI application wired to the provided session."""
  app = FastAPI(
    title=f"{APP_NAME} API",
    version=APP_VERSION,
    description=APP_ABOUT_TEXT,
    license_info={"name": APP_LICENSE},
  )

  async def controller_dep() -> SessionController:
    return controller

  async def event_source_dep() -> BrowserEventSource:
    return event_source

  @app.get("/session", response_model=SnapshotResponse)
  async def get_session(session: SessionController = Depends(controller_dep)) -> SnapshotResponse:
    return SnapshotResponse.from_snapshot(session.snapshot())

  @app.get("/quiz", response_model=QuizResponse)
  async def get_quiz(session: SessionController = Depends(controller_dep)) -> QuizResponse:
    quiz = session.quiz
    if quiz is None:
      raise HTTPException(status_code=409, detail="No quiz has been loaded.")
    return QuizResponse(
      id=quiz.id,
      title=quiz.title,
      description=quiz.description,
      duration_seconds=quiz.duration_seconds,
      questions=[
        QuestionResponse(id=q.id, text=q.text, type=q.type.value, options=list(q.options))
        for q in quiz.questions
      ],
    )

  @app.put("/answers/{question_id}")
  async def put_answer(
    question_id: int,
    payload: AnswerPayload,
    session: SessionController = Depends(controller_dep),
  ) -> dict[str, object]:
    accepted = session.update_answer(question_id, payload.value)
    return {"question_id": question_id, "accepted": accepted}

  @app.post("/submit", response_model=ResultResponse)
  async def submit(session: SessionController = Depends(controller_dep)) -> ResultResponse:
    try:
      result = await session.request_manual_submit()
    except SessionError as exc:
      raise _to_http_error(exc) from exc
    return ResultResponse.from_result(result)

  @app.post("/submit/retry", response_model=ResultResponse)
  async def retry_submit(session: SessionController = Depends(controller_dep)) -> ResultResponse:
    try:
      result = await session.retry_submission()
    except SessionError as exc:
      raise _to_http_error(exc) from exc
    return ResultResponse.from_result(result)

  @app.post("/integrity/{signal}", status_code=202)
  async def report_signal(
    signal: str,
    session: SessionController = Depends(controller_dep),
    source: BrowserEventSource = Depends(event_source_dep),
  ) -> dict[str, object]:
    try:
      source.report(signal)
    except ValueError as exc:
      raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"signal": signal, "warning_count": session.snapshot().warning_count}

  return app


def create_api_server(
  controller: SessionController,
  event_source: BrowserEventSource,
  host: str = DEFAULT_HOST,
  port: int = DEFAULT_PORT,
) -> uvicorn.Server:
  """Build a uvicorn server to be awaited on the session's own event loop."""
  app = create_api_app(controller, event_source)
  config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
  return uvicorn.Server(config)
