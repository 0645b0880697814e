"""At-most-once arbiter for the session's single submission."""

from __future__ import annotations

import asyncio
from dataclasses import replace
import logging
from typing import Awaitable, Callable, Mapping

from quizguard.core.errors import SessionStateError
from quizguard.core.models import QuestionId, SubmissionReason, SubmissionResult

logger = logging.getLogger(__name__)

SubmitCall = Callable[[Mapping[QuestionId, str], bool], Awaitable[SubmissionResult]]


class SubmissionCoordinator:
    """Latches on the first submission request and shares its outcome.

    ``begin`` sets the latch synchronously before anything is awaited. A
    trigger that arrives while the first request is still in flight therefore
    joins that request rather than issuing its own. The latch never resets on
    failure. Only an explicit ``retry()`` sends the same answers again.
    """

    def __init__(self, submit_call: SubmitCall) -> None:
        self._submit_call = submit_call
        self._future: asyncio.Future[SubmissionResult] | None = None
        self._reason: SubmissionReason | None = None
        self._answers: dict[QuestionId, str] = {}
        self._attempts: int = 0

    @property
    def reason(self) -> SubmissionReason | None:
        return self._reason

    @property
    def attempts(self) -> int:
        """Number of network submissions issued so far."""
        return self._attempts

    def is_latched(self) -> bool:
        return self._future is not None

    def has_failed(self) -> bool:
        future = self._future
        return (
            future is not None
            and future.done()
            and not future.cancelled()
            and future.exception() is not None
        )

    def begin(
        self, reason: SubmissionReason, answers: Mapping[QuestionId, str]
    ) -> asyncio.Future[SubmissionResult]:
        """Latch and start the submission, or join the one already latched."""
        if self._future is not None:
            logger.debug(
                "Submission trigger '%s' joined the '%s' submission already latched",
                reason.value,
                self._reason.value if self._reason else "?",
            )
            return self._future
        self._reason = reason
        self._answers = dict(answers)
        logger.info("Submitting %d answer(s), reason=%s", len(self._answers), reason.value)
        self._future = self._launch()
        return self._future

    async def submit(
        self, reason: SubmissionReason, answers: Mapping[QuestionId, str]
    ) -> SubmissionResult:
        future = self.begin(reason, answers)
        return await asyncio.shield(future)

    def retry(self) -> asyncio.Future[SubmissionResult]:
        """Re-issue a failed submission with the answers captured at latch time."""
        if not self.has_failed():
            raise SessionStateError("Only a failed submission can be retried.")
        logger.info("Retrying submission, reason=%s", self._reason.value if self._reason else "?")
        self._future = self._launch()
        return self._future

    def _launch(self) -> asyncio.Future[SubmissionResult]:
        if self._reason is None:
            raise SessionStateError("No submission has been latched.")
        self._attempts += 1
        task = asyncio.get_running_loop().create_task(
            self._send(self._reason, dict(self._answers)), name="QuizSubmission"
        )
        task.add_done_callback(self._log_outcome)
        return task

    async def _send(
        self, reason: SubmissionReason, answers: dict[QuestionId, str]
    ) -> SubmissionResult:
        result = await self._submit_call(answers, reason.forced)
        return replace(result, reason=reason)

    @staticmethod
    def _log_outcome(future: asyncio.Future[SubmissionResult]) -> None:
        if future.cancelled():
            logger.warning("Submission was cancelled")
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Submission failed: %s", exc)
        else:
            result = future.result()
            logger.info(
                "Submission graded: %s/%s correct (%.0f%%)",
                result.correct_answers,
                result.total_questions,
                result.score,
            )
