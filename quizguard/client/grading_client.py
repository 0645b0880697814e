"""Async HTTP client for the grading backend."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ValidationError

from quizguard.constants.network_constants import (
    COMPLETION_STATUS_PATH,
    QUIZ_PATH,
    REQUEST_TIMEOUT_SECONDS,
    SUBMIT_QUIZ_PATH,
)
from quizguard.core.errors import NetworkError, QuizNotFoundError
from quizguard.core.models import AnswerRecord, QuizDefinition, SubmissionResult
from quizguard.client.schemas import (
    CompletionStatusPayload,
    QuizPayload,
    SubmissionResultPayload,
    SubmitQuizPayload,
)

logger = logging.getLogger(__name__)


class GradingService(Protocol):
    """Backend operations the session depends on."""

    async def get_quiz(self, quiz_id: int, auth_token: str) -> QuizDefinition: ...

    async def get_completion_status(self, quiz_id: int, auth_token: str) -> bool: ...

    async def submit_quiz(
        self,
        quiz_id: int,
        answers: AnswerRecord,
        forced: bool,
        auth_token: str,
    ) -> SubmissionResult: ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text.strip() or response.reason_phrase or f"HTTP {response.status_code}"


class GradingClient:
    """``GradingService`` over HTTP.

    Each call is one request with no automatic retry. Every failure comes
    back as a typed ``SessionError``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> GradingClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_quiz(self, quiz_id: int, auth_token: str) -> QuizDefinition:
        response = await self._request("GetQuiz", "GET", QUIZ_PATH.format(quiz_id=quiz_id), auth_token)
        if response.status_code == 404:
            raise QuizNotFoundError(quiz_id)
        self._raise_for_status("GetQuiz", response)
        if not response.content:
            raise QuizNotFoundError(quiz_id)
        payload = self._parse("GetQuiz", response, QuizPayload)
        if payload is None:
            raise QuizNotFoundError(quiz_id)
        try:
            return payload.to_definition()
        except ValueError as exc:
            raise NetworkError("GetQuiz", str(exc), response.status_code) from exc

    async def get_completion_status(self, quiz_id: int, auth_token: str) -> bool:
        response = await self._request(
            "GetCompletionStatus", "GET", COMPLETION_STATUS_PATH.format(quiz_id=quiz_id), auth_token
        )
        self._raise_for_status("GetCompletionStatus", response)
        payload = self._parse("GetCompletionStatus", response, CompletionStatusPayload)
        return payload.has_completed if payload is not None else False

    async def submit_quiz(
        self,
        quiz_id: int,
        answers: AnswerRecord,
        forced: bool,
        auth_token: str,
    ) -> SubmissionResult:
        body = SubmitQuizPayload(
            answers={str(question_id): value for question_id, value in answers.items()},
            forced_submission=forced,
        )
        response = await self._request(
            "SubmitQuiz",
            "POST",
            SUBMIT_QUIZ_PATH.format(quiz_id=quiz_id),
            auth_token,
            json=body.model_dump(by_alias=True),
        )
        self._raise_for_status("SubmitQuiz", response)
        payload = self._parse("SubmitQuiz", response, SubmissionResultPayload)
        if payload is None:
            raise NetworkError("SubmitQuiz", "empty response body", response.status_code)
        return payload.to_result()

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        auth_token: str,
        json: Any = None,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {auth_token}"}
        try:
            return await self._client.request(method, path, headers=headers, json=json)
        except httpx.HTTPError as exc:
            logger.warning("%s transport failure: %s", operation, exc)
            raise NetworkError(operation, str(exc) or exc.__class__.__name__) from exc

    @staticmethod
    def _raise_for_status(operation: str, response: httpx.Response) -> None:
        if response.is_success:
            return
        message = _error_message(response)
        logger.warning("%s returned HTTP %s: %s", operation, response.status_code, message)
        raise NetworkError(operation, message, response.status_code)

    @staticmethod
    def _parse(operation: str, response: httpx.Response, model: type[BaseModel]) -> Any:
        try:
            body = response.json()
        except ValueError as exc:
            raise NetworkError(operation, "response was not valid JSON", response.status_code) from exc
        if not body:
            return None
        try:
            return model.model_validate(body)
        except ValidationError as exc:
            raise NetworkError(operation, f"unexpected response shape: {exc}", response.status_code) from exc
