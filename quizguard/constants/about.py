"""Static metadata describing QuizGuard."""

APP_NAME = "QuizGuard"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizGuard runs a single timed, proctored quiz attempt for one test-taker. "
    "It counts focus and fullscreen violations, and it makes sure the attempt "
    "is submitted exactly once, whether by the student, the clock or the proctor."
)
