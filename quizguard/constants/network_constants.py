"""Network configuration constants for the quiz session engine."""

DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 8000
DEFAULT_BACKEND_URL: str = "http://localhost:5000"
REQUEST_TIMEOUT_SECONDS: float = 15.0

QUIZ_PATH: str = "/api/student/quiz/{quiz_id}"
COMPLETION_STATUS_PATH: str = "/api/student/quiz-result/{quiz_id}"
SUBMIT_QUIZ_PATH: str = "/api/student/submit-quiz/{quiz_id}"
