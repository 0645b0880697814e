"""Environment signal sources observed by the integrity monitor.

The monitor never talks to a browser or window system directly. It attaches
to an ``IntegrityEventSource`` which raises one discrete signal per transition:
the page becoming hidden, or the page leaving fullscreen.

``SignalEmitter`` is a plain in-memory implementation, used for deterministic
violation sequences. ``BrowserEventSource`` is the production source. The
test-taker's page relays its ``visibilitychange`` and ``fullscreenchange``
events to the API bridge, and the bridge emits them here.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from quizguard.core.errors import FullscreenUnavailableError
from quizguard.core.models import ViolationKind

logger = logging.getLogger(__name__)

SignalListener = Callable[[ViolationKind], None]


class IntegrityEventSource(Protocol):
    fullscreen_active: bool

    def add_listener(self, kind: ViolationKind, listener: SignalListener) -> None: ...

    def remove_listener(self, kind: ViolationKind, listener: SignalListener) -> None: ...

    def request_fullscreen(self) -> None: ...

    def exit_fullscreen(self) -> None: ...


class SignalEmitter:
    """Synchronous fan-out of integrity signals to registered listeners."""

    def __init__(self, fullscreen_supported: bool = True) -> None:
        self._listeners: dict[ViolationKind, list[SignalListener]] = {kind: [] for kind in ViolationKind}
        self._fullscreen_supported = fullscreen_supported
        self.fullscreen_active: bool = False

    def add_listener(self, kind: ViolationKind, listener: SignalListener) -> None:
        if listener not in self._listeners[kind]:
            self._listeners[kind].append(listener)

    def remove_listener(self, kind: ViolationKind, listener: SignalListener) -> None:
        if listener in self._listeners[kind]:
            self._listeners[kind].remove(listener)

    def listener_count(self, kind: ViolationKind | None = None) -> int:
        if kind is not None:
            return len(self._listeners[kind])
        return sum(len(listeners) for listeners in self._listeners.values())

    def emit(self, kind: ViolationKind) -> None:
        if kind is ViolationKind.FULLSCREEN_EXITED:
            self.fullscreen_active = False
        # Listeners may detach while being notified.
        for listener in list(self._listeners[kind]):
            listener(kind)

    def request_fullscreen(self) -> None:
        if not self._fullscreen_supported:
            raise FullscreenUnavailableError("Fullscreen is not supported by this environment.")
        self.fullscreen_active = True

    def exit_fullscreen(self) -> None:
        self.fullscreen_active = False


class BrowserEventSource(SignalEmitter):
    """Signal source fed by the test-taker's page through the API bridge.

    Fullscreen can only be entered from inside the page, so a request is
    recorded and shown in the session snapshot. The page acts on it and
    reports back with ``fullscreen-entered``.
    """

    def __init__(self) -> None:
        super().__init__(fullscreen_supported=True)
        self.fullscreen_requested: bool = False

    def request_fullscreen(self) -> None:
        self.fullscreen_requested = True

    def exit_fullscreen(self) -> None:
        self.fullscreen_requested = False
        self.fullscreen_active = False

    def mark_fullscreen_entered(self) -> None:
        self.fullscreen_active = True

    def report(self, signal: str) -> None:
        """Translate a signal name posted by the page into an emission."""
        if signal == "fullscreen-entered":
            self.mark_fullscreen_entered()
            return
        try:
            kind = ViolationKind(signal)
        except ValueError as exc:
            raise ValueError(f"Unknown integrity signal '{signal}'.") from exc
        logger.debug("Browser reported %s", kind.value)
        self.emit(kind)
