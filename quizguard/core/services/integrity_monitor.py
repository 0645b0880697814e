"""Service counting integrity violations up to a fixed threshold."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Callable

from quizguard.constants.quiz_constants import (
    FULLSCREEN_EXITED_WARNING,
    THRESHOLD_REACHED_MESSAGE,
    VISIBILITY_LOST_WARNING,
)
from quizguard.core.integrity_sources import IntegrityEventSource
from quizguard.core.models import IntegrityState, Violation, ViolationKind

logger = logging.getLogger(__name__)

_WARNING_TEMPLATES = {
    ViolationKind.VISIBILITY_LOST: VISIBILITY_LOST_WARNING,
    ViolationKind.FULLSCREEN_EXITED: FULLSCREEN_EXITED_WARNING,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IntegrityMonitor:
    """Counts discrete violations from an event source.

    Every signal occurrence is one violation, whichever source raised it.
    When the count reaches ``max_warnings`` the monitor detaches and reports
    the breach exactly once. Occurrences after that are never seen.
    """

    def __init__(self, source: IntegrityEventSource, clock: Callable[[], datetime] = utcnow) -> None:
        self._source = source
        self._clock = clock
        self._state: IntegrityState | None = None
        self._listening: bool = False
        self._breached: bool = False
        self._on_violation: Callable[[int, int], None] | None = None
        self._on_threshold_breached: Callable[[], None] | None = None

    @property
    def state(self) -> IntegrityState | None:
        return self._state

    def is_listening(self) -> bool:
        return self._listening

    def has_breached(self) -> bool:
        return self._breached

    def start(
        self,
        on_violation: Callable[[int, int], None],
        max_warnings: int,
        on_threshold_breached: Callable[[], None] | None = None,
    ) -> None:
        if self._state is not None:
            raise RuntimeError("Integrity monitor has already been started.")
        if max_warnings < 1:
            raise ValueError("max_warnings must be at least 1.")
        self._state = IntegrityState(max_warnings=max_warnings)
        self._on_violation = on_violation
        self._on_threshold_breached = on_threshold_breached
        for kind in ViolationKind:
            self._source.add_listener(kind, self._handle_signal)
        self._listening = True

    def stop(self) -> None:
        if not self._listening:
            return
        self._listening = False
        for kind in ViolationKind:
            self._source.remove_listener(kind, self._handle_signal)

    def last_warning_message(self) -> str | None:
        """Human-readable warning for the most recent violation, if any."""
        if self._state is None or not self._state.violation_log:
            return None
        if self._breached:
            return THRESHOLD_REACHED_MESSAGE
        last = self._state.violation_log[-1]
        return _WARNING_TEMPLATES[last.kind].format(
            count=self._state.warning_count, limit=self._state.max_warnings
        )

    def _handle_signal(self, kind: ViolationKind) -> None:
        state = self._state
        if not self._listening or state is None or self._breached:
            logger.debug("Ignoring %s signal: monitor is not listening", kind.value)
            return
        state.warning_count += 1
        state.violation_log.append(Violation(kind=kind, timestamp=self._clock()))
        logger.warning(
            "Integrity violation %d/%d: %s", state.warning_count, state.max_warnings, kind.value
        )
        if self._on_violation is not None:
            self._on_violation(state.warning_count, state.max_warnings)
        if state.threshold_reached:
            self._breached = True
            self.stop()
            logger.warning("Integrity threshold reached after %d violations", state.warning_count)
            if self._on_threshold_breached is not None:
                self._on_threshold_breached()
