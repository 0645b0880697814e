"""
Tests for IntegrityMonitor - discrete violation counting and the breach threshold
"""
import pytest

from quizguard.constants.quiz_constants import THRESHOLD_REACHED_MESSAGE
from quizguard.core.errors import FullscreenUnavailableError
from quizguard.core.integrity_sources import BrowserEventSource, SignalEmitter
from quizguard.core.models import ViolationKind
from quizguard.core.services.integrity_monitor import IntegrityMonitor


class Recorder:
    def __init__(self):
        self.violations = []
        self.breaches = 0

    def on_violation(self, count, limit):
        self.violations.append((count, limit))

    def on_breach(self):
        self.breaches += 1


@pytest.fixture
def recorder():
    return Recorder()


class TestViolationCounting:
    """Test that every signal occurrence counts once"""

    def test_each_signal_is_one_violation(self, emitter, recorder):
        monitor = IntegrityMonitor(emitter)
        monitor.start(recorder.on_violation, 5, recorder.on_breach)

        emitter.emit(ViolationKind.VISIBILITY_LOST)
        emitter.emit(ViolationKind.FULLSCREEN_EXITED)
        emitter.emit(ViolationKind.VISIBILITY_LOST)

        assert monitor.state.warning_count == 3
        assert recorder.violations == [(1, 5), (2, 5), (3, 5)]
        assert recorder.breaches == 0

    def test_violation_log_is_ordered_with_timestamps(self, emitter, recorder, clock):
        monitor = IntegrityMonitor(emitter, clock=clock.wallclock)
        monitor.start(recorder.on_violation, 5, recorder.on_breach)

        emitter.emit(ViolationKind.FULLSCREEN_EXITED)
        clock.now = 12
        emitter.emit(ViolationKind.VISIBILITY_LOST)

        log = monitor.state.violation_log
        assert [entry.kind for entry in log] == [
            ViolationKind.FULLSCREEN_EXITED,
            ViolationKind.VISIBILITY_LOST,
        ]
        assert (log[1].timestamp - log[0].timestamp).total_seconds() == 12

    def test_warning_message_names_the_signal(self, emitter, recorder):
        monitor = IntegrityMonitor(emitter)
        monitor.start(recorder.on_violation, 3, recorder.on_breach)

        assert monitor.last_warning_message() is None
        emitter.emit(ViolationKind.VISIBILITY_LOST)
        assert monitor.last_warning_message().startswith("Warning 1/3: Switching tabs")
        emitter.emit(ViolationKind.FULLSCREEN_EXITED)
        assert monitor.last_warning_message().startswith("Warning 2/3: Exiting full-screen")


class TestThreshold:
    """Test the single breach notification"""

    def test_breach_fires_once_when_count_reaches_maximum(self, emitter, recorder):
        monitor = IntegrityMonitor(emitter)
        monitor.start(recorder.on_violation, 3, recorder.on_breach)

        emitter.emit(ViolationKind.VISIBILITY_LOST)
        emitter.emit(ViolationKind.VISIBILITY_LOST)
        assert recorder.breaches == 0

        emitter.emit(ViolationKind.FULLSCREEN_EXITED)
        assert recorder.breaches == 1
        assert monitor.has_breached()
        assert monitor.last_warning_message() == THRESHOLD_REACHED_MESSAGE

    def test_signals_after_breach_are_ignored(self, emitter, recorder):
        monitor = IntegrityMonitor(emitter)
        monitor.start(recorder.on_violation, 2, recorder.on_breach)

        for _ in range(6):
            emitter.emit(ViolationKind.VISIBILITY_LOST)

        assert monitor.state.warning_count == 2
        assert len(monitor.state.violation_log) == 2
        assert recorder.breaches == 1
        assert emitter.listener_count() == 0

    def test_invalid_maximum_is_rejected(self, emitter, recorder):
        monitor = IntegrityMonitor(emitter)

        with pytest.raises(ValueError):
            monitor.start(recorder.on_violation, 0, recorder.on_breach)


class TestListenerLifecycle:
    """Test attach, detach and restart rules"""

    def test_stop_detaches_and_is_idempotent(self, emitter, recorder):
        monitor = IntegrityMonitor(emitter)
        monitor.start(recorder.on_violation, 3, recorder.on_breach)
        assert emitter.listener_count() == 2

        monitor.stop()
        monitor.stop()
        emitter.emit(ViolationKind.VISIBILITY_LOST)

        assert emitter.listener_count() == 0
        assert monitor.state.warning_count == 0
        assert not monitor.is_listening()

    def test_cannot_start_twice(self, emitter, recorder):
        monitor = IntegrityMonitor(emitter)
        monitor.start(recorder.on_violation, 3, recorder.on_breach)

        with pytest.raises(RuntimeError):
            monitor.start(recorder.on_violation, 3, recorder.on_breach)


class TestBrowserEventSource:
    """Test translation of page-reported signal names"""

    def test_reported_signals_reach_the_monitor(self, recorder):
        source = BrowserEventSource()
        monitor = IntegrityMonitor(source)
        monitor.start(recorder.on_violation, 3, recorder.on_breach)

        source.report("visibility-lost")
        source.report("fullscreen-exited")

        assert monitor.state.warning_count == 2

    def test_fullscreen_entered_is_not_a_violation(self, recorder):
        source = BrowserEventSource()
        monitor = IntegrityMonitor(source)
        monitor.start(recorder.on_violation, 3, recorder.on_breach)

        source.request_fullscreen()
        source.report("fullscreen-entered")

        assert source.fullscreen_requested
        assert source.fullscreen_active
        assert monitor.state.warning_count == 0

    def test_unknown_signal_is_rejected(self):
        source = BrowserEventSource()

        with pytest.raises(ValueError):
            source.report("mouse-left")

    def test_unsupported_fullscreen_raises(self):
        source = SignalEmitter(fullscreen_supported=False)

        with pytest.raises(FullscreenUnavailableError):
            source.request_fullscreen()
