"""
Tests for the FastAPI session bridge
"""
import httpx
import pytest
import pytest_asyncio

from conftest import FakeGradingService, drain, make_quiz
from quizguard.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME
from quizguard.core.errors import NetworkError
from quizguard.core.integrity_sources import BrowserEventSource
from quizguard.core.session_controller import SessionController
from quizguard.server.api_server import create_api_app


@pytest.fixture
def browser():
    return BrowserEventSource()


@pytest.fixture
def bridge_service():
    return FakeGradingService(make_quiz())


@pytest_asyncio.fixture
async def session(bridge_service, browser, clock):
    controller = SessionController(bridge_service, browser, sleep=clock.sleep, clock=clock.wallclock)
    yield controller
    controller.close()
    await drain()


@pytest_asyncio.fixture
async def api(session, browser):
    app = create_api_app(session, browser)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://quizguard.test") as client:
        yield client


class TestSessionEndpoints:
    """Test snapshot and quiz endpoints"""

    @pytest.mark.asyncio
    async def test_quiz_is_unavailable_before_load(self, api):
        response = await api.get("/quiz")

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_snapshot_after_load(self, api, session):
        await session.load(7, "token-abc")

        response = await api.get("/session")

        body = response.json()
        assert response.status_code == 200
        assert body["state"] == "in_progress"
        assert body["time_display"] == "10:00"
        assert body["total_questions"] == 5
        assert body["max_warnings"] == 3
        assert body["fullscreen_requested"] is True
        assert body["fullscreen_active"] is False
        assert body["result"] is None

    @pytest.mark.asyncio
    async def test_quiz_lists_questions_without_answers(self, api, session):
        await session.load(7, "token-abc")

        response = await api.get("/quiz")

        body = response.json()
        assert body["duration_seconds"] == 600
        assert [q["type"] for q in body["questions"]] == ["mcq", "fill_in", "mcq", "fill_in", "mcq"]
        assert body["questions"][1]["options"] == []


class TestAnswerAndSubmit:
    """Test answer relay and manual submission"""

    @pytest.mark.asyncio
    async def test_answer_then_submit(self, api, session, bridge_service):
        await session.load(7, "token-abc")

        first = await api.put("/answers/1", json={"value": "B"})
        unknown = await api.put("/answers/42", json={"value": "B"})
        response = await api.post("/submit")

        assert first.json()["accepted"] is True
        assert unknown.json()["accepted"] is False
        assert response.status_code == 200
        assert response.json()["reason"] == "manual"
        assert response.json()["forced"] is False
        assert bridge_service.submissions[0]["answers"] == {1: "B"}

    @pytest.mark.asyncio
    async def test_submit_before_load_conflicts(self, api):
        response = await api.post("/submit")

        assert response.status_code == 409
        assert response.json()["detail"]["kind"] == "SessionStateError"

    @pytest.mark.asyncio
    async def test_submit_failure_then_retry(self, api, session, bridge_service):
        bridge_service.submit_error = NetworkError("SubmitQuiz", "bad gateway", 502)
        await session.load(7, "token-abc")

        failed = await api.post("/submit")
        snapshot = (await api.get("/session")).json()
        bridge_service.submit_error = None
        retried = await api.post("/submit/retry")

        assert failed.status_code == 502
        assert failed.json()["detail"]["operation"] == "SubmitQuiz"
        assert snapshot["state"] == "errored"
        assert snapshot["error"]["message"] == "bad gateway"
        assert retried.status_code == 200
        assert len(bridge_service.submissions) == 2


class TestIntegritySignals:
    """Test signals relayed from the page"""

    @pytest.mark.asyncio
    async def test_three_violations_force_submission(self, api, session, bridge_service):
        await session.load(7, "token-abc")

        await api.post("/integrity/fullscreen-entered")
        await api.post("/integrity/visibility-lost")
        await api.post("/integrity/fullscreen-exited")
        await api.post("/integrity/visibility-lost")
        await drain()
        body = (await api.get("/session")).json()

        assert body["state"] == "completed"
        assert body["submission_reason"] == "integrity-exceeded"
        assert body["result"]["forced"] is True
        assert body["warning_count"] == 3
        assert len(bridge_service.submissions) == 1
        assert bridge_service.submissions[0]["forced"] is True

    @pytest.mark.asyncio
    async def test_unknown_signal_is_rejected(self, api, session):
        await session.load(7, "token-abc")

        response = await api.post("/integrity/devtools-opened")

        assert response.status_code == 422


class TestAppMetadata:
    """Test the OpenAPI description of the bridge"""

    @pytest.mark.asyncio
    async def test_openapi_describes_the_app(self, api):
        response = await api.get("/openapi.json")

        info = response.json()["info"]
        assert info["title"] == f"{APP_NAME} API"
        assert info["description"] == APP_ABOUT_TEXT
        assert info["license"]["name"] == APP_LICENSE
