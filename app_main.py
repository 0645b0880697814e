"""Application entry point for a QuizGuard session."""

from __future__ import annotations

import argparse
import asyncio
import sys

from quizguard import config
from quizguard.client.grading_client import GradingClient
from quizguard.core.errors import SessionError
from quizguard.core.integrity_sources import BrowserEventSource
from quizguard.core.session_controller import SessionController
from quizguard.server.api_server import create_api_server
from quizguard.utils.logging_config import configure_logging


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one proctored quiz attempt.")
    parser.add_argument("quiz_id", type=int, help="Identifier of the quiz to take")
    parser.add_argument("--token", default=config.AUTH_TOKEN, help="Bearer token for the grading backend")
    parser.add_argument("--host", default=config.API_HOST)
    parser.add_argument("--port", type=int, default=config.API_PORT)
    return parser.parse_args(argv)


async def run_session(args: argparse.Namespace) -> int:
    """Serve the page bridge and run the session on the same event loop."""
    logger = configure_logging(config.LOG_LEVEL)
    event_source = BrowserEventSource()

    async with GradingClient(config.BACKEND_URL, timeout=config.REQUEST_TIMEOUT) as client:
        controller = SessionController(client, event_source)
        server = create_api_server(controller, event_source, host=args.host, port=args.port)
        server_task = asyncio.create_task(server.serve(), name="QuizGuardApi")
        logger.info("Session page bridge listening on http://%s:%s/", args.host, args.port)
        try:
            await controller.load(args.quiz_id, args.token)
        except SessionError as exc:
            logger.error("Quiz %s could not be started: %s", args.quiz_id, exc)
            server.should_exit = True
            await server_task
            controller.close()
            return 1
        try:
            await server_task
        finally:
            controller.close()
    return 0


def main() -> None:
    """Parse arguments, then run the session until the bridge is stopped."""
    args = _parse_args()
    sys.exit(asyncio.run(run_session(args)))


if __name__ == "__main__":
    main()
