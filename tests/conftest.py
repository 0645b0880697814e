"""
Pytest configuration and shared fakes for the QuizGuard tests
"""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from quizguard.core.errors import QuizNotFoundError
from quizguard.core.integrity_sources import SignalEmitter
from quizguard.core.models import (
    Question,
    QuestionFeedback,
    QuestionType,
    QuizDefinition,
    SubmissionResult,
)
from quizguard.core.session_controller import SessionController


async def drain(rounds=20):
    """Let every ready callback and task on the loop run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """Virtual clock whose ``sleep`` only returns when ``advance`` passes the deadline"""

    def __init__(self):
        self.now = 0
        self._waiters = []

    async def sleep(self, seconds):
        future = asyncio.get_running_loop().create_future()
        self._waiters.append((self.now + seconds, future))
        await future

    async def advance(self, seconds):
        for _ in range(int(seconds)):
            await drain()
            self.now += 1
            due = [item for item in self._waiters if item[0] <= self.now]
            self._waiters = [item for item in self._waiters if item[0] > self.now]
            for _, future in due:
                if not future.done():
                    future.set_result(None)
            await drain()

    def wallclock(self):
        return datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=self.now)


class FakeGradingService:
    """In-memory grading backend recording every call"""

    def __init__(self, quiz, completed=False):
        self.quiz = quiz
        self.completed = completed
        self.quiz_error = None
        self.status_error = None
        self.submit_error = None
        self.quiz_gate = None
        self.submit_gate = None
        self.submissions = []
        self.result = SubmissionResult(
            score=60.0,
            correct_answers=3,
            total_questions=5,
            feedback=(
                QuestionFeedback(
                    question_text="Question 1",
                    student_answer="A",
                    correct_answer="A",
                    is_correct=True,
                ),
            ),
        )

    async def get_quiz(self, quiz_id, auth_token):
        if self.quiz_gate is not None:
            await self.quiz_gate.wait()
        if self.quiz_error is not None:
            raise self.quiz_error
        if self.quiz is None or self.quiz.id != quiz_id:
            raise QuizNotFoundError(quiz_id)
        return self.quiz

    async def get_completion_status(self, quiz_id, auth_token):
        if self.status_error is not None:
            raise self.status_error
        return self.completed

    async def submit_quiz(self, quiz_id, answers, forced, auth_token):
        self.submissions.append(
            {"quiz_id": quiz_id, "answers": dict(answers), "forced": forced, "token": auth_token}
        )
        if self.submit_gate is not None:
            await self.submit_gate.wait()
        if self.submit_error is not None:
            raise self.submit_error
        return self.result


def make_quiz(question_count=5, duration_seconds=600, quiz_id=7):
    questions = []
    for index in range(1, question_count + 1):
        if index % 2:
            questions.append(
                Question(
                    id=index,
                    text=f"Question {index}",
                    type=QuestionType.MULTIPLE_CHOICE,
                    options=("A", "B", "C", "D"),
                )
            )
        else:
            questions.append(Question(id=index, text=f"Question {index}", type=QuestionType.FILL_IN))
    return QuizDefinition(
        id=quiz_id,
        title="Cell Biology Midterm",
        description="Chapters 1-3",
        questions=tuple(questions),
        duration_seconds=duration_seconds,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def emitter():
    return SignalEmitter()


@pytest.fixture
def quiz():
    return make_quiz()


@pytest.fixture
def service(quiz):
    return FakeGradingService(quiz)


@pytest_asyncio.fixture
async def controller(service, emitter, clock):
    session = SessionController(service, emitter, sleep=clock.sleep, clock=clock.wallclock)
    yield session
    session.close()
    await drain()
