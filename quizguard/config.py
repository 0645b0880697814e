"""Runtime settings, overridable through the environment or a ``.env`` file."""

import os

from dotenv import load_dotenv

from quizguard.constants.network_constants import (
    DEFAULT_BACKEND_URL,
    DEFAULT_HOST,
    DEFAULT_PORT,
    REQUEST_TIMEOUT_SECONDS,
)

load_dotenv()

BACKEND_URL = os.getenv("QUIZGUARD_BACKEND_URL", DEFAULT_BACKEND_URL).rstrip("/")
AUTH_TOKEN = os.getenv("QUIZGUARD_AUTH_TOKEN", "")
API_HOST = os.getenv("QUIZGUARD_API_HOST", DEFAULT_HOST)
API_PORT = int(os.getenv("QUIZGUARD_API_PORT", str(DEFAULT_PORT)))
LOG_LEVEL = os.getenv("QUIZGUARD_LOG_LEVEL", "INFO")
REQUEST_TIMEOUT = float(os.getenv("QUIZGUARD_REQUEST_TIMEOUT", str(REQUEST_TIMEOUT_SECONDS)))
