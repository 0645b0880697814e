"""Quiz-session constants shared across the core and the API bridge."""

MAX_WARNINGS: int = 3
TICK_INTERVAL_SECONDS: float = 1.0

# Timer urgency thresholds, as a percentage of the full duration left.
URGENCY_WARNING_PERCENT: float = 50.0
URGENCY_CRITICAL_PERCENT: float = 25.0

VISIBILITY_LOST_WARNING: str = (
    "Warning {count}/{limit}: Switching tabs or windows is not allowed during the quiz."
)
FULLSCREEN_EXITED_WARNING: str = (
    "Warning {count}/{limit}: Exiting full-screen mode is not allowed during the quiz."
)
THRESHOLD_REACHED_MESSAGE: str = (
    "Maximum warnings reached. Quiz will be submitted automatically "
    "and you will not be able to retake it."
)
