"""Orchestration of a single timed, proctored quiz attempt."""

from __future__ import annotations

import asyncio
from datetime import datetime
import logging
from typing import Callable, Mapping

from quizguard.client.grading_client import GradingService
from quizguard.constants.quiz_constants import (
    MAX_WARNINGS,
    URGENCY_CRITICAL_PERCENT,
    URGENCY_WARNING_PERCENT,
)
from quizguard.core.errors import (
    AlreadyCompletedError,
    FullscreenUnavailableError,
    NetworkError,
    SessionError,
    SessionStateError,
)
from quizguard.core.integrity_sources import IntegrityEventSource
from quizguard.core.models import (
    IntegrityState,
    QuestionId,
    QuizDefinition,
    SessionSnapshot,
    SessionState,
    SubmissionReason,
    SubmissionResult,
)
from quizguard.core.services.answer_store import AnswerStore
from quizguard.core.services.countdown_timer import CountdownTimer, Sleep
from quizguard.core.services.integrity_monitor import IntegrityMonitor, utcnow
from quizguard.core.services.submission_coordinator import SubmissionCoordinator

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[SessionSnapshot], None]


def format_time(seconds: int) -> str:
    """Render a second count as ``m:ss``."""
    seconds = max(0, seconds)
    return f"{seconds // 60}:{seconds % 60:02d}"


def timer_urgency(remaining_seconds: int, total_seconds: int) -> str:
    if total_seconds <= 0:
        return "normal"
    percentage_left = remaining_seconds / total_seconds * 100
    if percentage_left < URGENCY_CRITICAL_PERCENT:
        return "critical"
    if percentage_left < URGENCY_WARNING_PERCENT:
        return "warning"
    return "normal"


class SessionController:
    """Loads a quiz, runs its clock and proctoring, and submits it exactly once.

    Timer expiry, the integrity threshold and a manual request all go through
    ``_trigger``. The first of them freezes the answers and stops the clock and
    the monitor. The coordinator's latch makes sure only that trigger reaches
    the network.
    """

    def __init__(
        self,
        service: GradingService,
        event_source: IntegrityEventSource,
        max_warnings: int = MAX_WARNINGS,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._service = service
        self._source = event_source
        self._max_warnings = max_warnings
        self._timer = CountdownTimer(sleep=sleep)
        self._monitor = IntegrityMonitor(event_source, clock=clock)

        self._state: SessionState = SessionState.LOADING
        self._loading: bool = False
        self._closed: bool = False
        self._quiz: QuizDefinition | None = None
        self._auth_token: str = ""
        self._answers: AnswerStore | None = None
        self._coordinator: SubmissionCoordinator | None = None
        self._submission: asyncio.Future[SubmissionResult] | None = None
        self._submission_reason: SubmissionReason | None = None
        self._result: SubmissionResult | None = None
        self._error: Exception | None = None
        self._remaining: int = 0
        self._fullscreen_entered: bool = False
        self._listeners: list[SnapshotListener] = []

    # --- Read-only state ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def quiz(self) -> QuizDefinition | None:
        return self._quiz

    @property
    def result(self) -> SubmissionResult | None:
        return self._result

    @property
    def error(self) -> Exception | None:
        return self._error

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def timer(self) -> CountdownTimer:
        return self._timer

    @property
    def monitor(self) -> IntegrityMonitor:
        return self._monitor

    @property
    def integrity_state(self) -> IntegrityState | None:
        return self._monitor.state

    def get_answers(self) -> Mapping[QuestionId, str]:
        if self._answers is None:
            return {}
        return self._answers.get_all()

    # --- Lifecycle ---

    async def load(self, quiz_id: int, auth_token: str) -> SessionState:
        """Fetch the quiz, refuse repeat attempts, and start the clock."""
        if not self._can_load():
            raise SessionStateError(f"Cannot load a quiz while the session is {self._state.value}.")
        self._loading = True
        self._error = None
        self._set_state(SessionState.LOADING)
        try:
            quiz = await self._service.get_quiz(quiz_id, auth_token)
            if await self._service.get_completion_status(quiz_id, auth_token):
                raise AlreadyCompletedError(quiz_id)
        except SessionError as exc:
            logger.warning("Could not load quiz %s: %s", quiz_id, exc)
            self._error = exc
            self._set_state(SessionState.ERRORED)
            raise
        finally:
            self._loading = False

        if self._closed:
            self._error = SessionStateError("Session was closed while the quiz was loading.")
            self._set_state(SessionState.ERRORED)
            raise self._error

        self._quiz = quiz
        self._auth_token = auth_token
        self._answers = AnswerStore(quiz.question_ids)
        self._remaining = quiz.duration_seconds
        self._coordinator = SubmissionCoordinator(self._submit_to_backend)
        logger.info(
            "Loaded quiz %s '%s': %d question(s), %ds",
            quiz.id,
            quiz.title,
            quiz.total_questions,
            quiz.duration_seconds,
        )
        self._set_state(SessionState.READY)
        self._begin(quiz)
        return self._state

    def close(self) -> None:
        """Tear the session down. Answers freeze and no new submission can start.

        A submission already in flight is left to finish.
        """
        if self._closed:
            return
        self._closed = True
        self._timer.stop()
        self._monitor.stop()
        if self._answers is not None:
            self._answers.freeze()
        self._release_fullscreen()
        logger.info("Session closed in state %s", self._state.value)

    def _can_load(self) -> bool:
        if self._closed or self._loading or self._quiz is not None:
            return False
        if self._state is SessionState.LOADING:
            return True
        return self._state is SessionState.ERRORED and isinstance(self._error, NetworkError)

    def _begin(self, quiz: QuizDefinition) -> None:
        self._set_state(SessionState.IN_PROGRESS)
        try:
            self._source.request_fullscreen()
            self._fullscreen_entered = True
        except FullscreenUnavailableError as exc:
            logger.warning("Continuing without fullscreen: %s", exc)
        self._monitor.start(self._on_violation, self._max_warnings, self._on_threshold_breached)
        self._timer.start(quiz.duration_seconds, self._on_tick, self._on_expire)

    # --- Presentation-layer inputs ---

    def update_answer(self, question_id: QuestionId, value: str) -> bool:
        """Record an answer while the attempt is running; ignored otherwise."""
        if self._state is not SessionState.IN_PROGRESS or self._answers is None:
            return False
        accepted = self._answers.set(question_id, value)
        if accepted:
            self._notify()
        return accepted

    async def request_manual_submit(self) -> SubmissionResult:
        future = self._trigger(SubmissionReason.MANUAL)
        return await asyncio.shield(future)

    async def retry_submission(self) -> SubmissionResult:
        """Re-send a submission that failed, with the answers frozen at the time."""
        coordinator = self._coordinator
        if self._state is not SessionState.ERRORED or coordinator is None or not coordinator.has_failed():
            raise SessionStateError("There is no failed submission to retry.")
        self._error = None
        self._set_state(SessionState.SUBMITTING)
        future = coordinator.retry()
        self._track(future)
        return await asyncio.shield(future)

    # --- Snapshot subscription ---

    def subscribe(self, listener: SnapshotListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> SessionSnapshot:
        quiz = self._quiz
        duration = quiz.duration_seconds if quiz else 0
        total = quiz.total_questions if quiz else 0
        answered = self._answers.answered_count if self._answers else 0
        integrity = self._monitor.state
        return SessionSnapshot(
            state=self._state,
            quiz_id=quiz.id if quiz else None,
            remaining_seconds=self._remaining,
            elapsed_seconds=max(0, duration - self._remaining),
            time_display=format_time(self._remaining),
            timer_urgency=timer_urgency(self._remaining, duration),
            answered_count=answered,
            total_questions=total,
            completion_percentage=(answered / total * 100) if total else 0.0,
            warning_count=integrity.warning_count if integrity else 0,
            max_warnings=self._max_warnings,
            last_warning=self._monitor.last_warning_message(),
            submission_reason=self._submission_reason,
            result=self._result,
            error=self._error,
            fullscreen_requested=self._fullscreen_entered,
            fullscreen_active=self._source.fullscreen_active,
        )

    # --- Event callbacks (run synchronously on the loop) ---

    def _on_tick(self, remaining: int) -> None:
        self._remaining = remaining
        self._notify()

    def _on_expire(self) -> None:
        self._remaining = 0
        self._trigger(SubmissionReason.TIMEOUT)

    def _on_violation(self, warning_count: int, max_warnings: int) -> None:
        self._notify()

    def _on_threshold_breached(self) -> None:
        self._trigger(SubmissionReason.INTEGRITY_EXCEEDED)

    # --- Submission ---

    def _trigger(self, reason: SubmissionReason) -> asyncio.Future[SubmissionResult]:
        coordinator = self._coordinator
        if coordinator is None or self._answers is None:
            raise SessionStateError("No quiz is in progress.")
        if coordinator.is_latched():
            return coordinator.begin(reason, self._answers.get_all())
        if self._closed:
            raise SessionStateError("Session has been closed.")

        self._answers.freeze()
        self._timer.stop()
        self._monitor.stop()
        self._submission_reason = reason
        self._set_state(SessionState.SUBMITTING)
        future = coordinator.begin(reason, self._answers.get_all())
        self._track(future)
        return future

    async def _submit_to_backend(self, answers: Mapping[QuestionId, str], forced: bool) -> SubmissionResult:
        if self._quiz is None:
            raise SessionStateError("No quiz has been loaded.")
        return await self._service.submit_quiz(self._quiz.id, answers, forced, self._auth_token)

    def _track(self, future: asyncio.Future[SubmissionResult]) -> None:
        self._submission = future
        future.add_done_callback(self._settle)

    def _settle(self, future: asyncio.Future[SubmissionResult]) -> None:
        if future is not self._submission or future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self._error = exc
            self._set_state(SessionState.ERRORED)
        else:
            self._result = future.result()
            self._set_state(SessionState.COMPLETED)
        self._release_fullscreen()

    def _release_fullscreen(self) -> None:
        if not self._fullscreen_entered:
            return
        self._fullscreen_entered = False
        try:
            self._source.exit_fullscreen()
        except FullscreenUnavailableError as exc:
            logger.warning("Could not leave fullscreen: %s", exc)

    # --- Helpers ---

    def _set_state(self, state: SessionState) -> None:
        if state is not self._state:
            logger.info("Session state %s -> %s", self._state.value, state.value)
            self._state = state
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener %r failed", listener)
