"""
Session State Machine
=====================

Explicit connection lifecycle for one client session.

States:
    DISCONNECTED: No socket; initial state and the state after a drop
    CONNECTING:   A connection attempt is in flight
    CONNECTED:    Socket open; the capture loop may send
    FAILED:       Reconnect policy exhausted; requires an explicit restart

Transitions:
    DISCONNECTED → CONNECTING
    CONNECTING   → CONNECTED | DISCONNECTED | FAILED
    CONNECTED    → DISCONNECTED | FAILED
    FAILED       → CONNECTING

Transitions are driven by the connection adapter. Any other transition is
rejected with a warning and leaves the state unchanged, so the capture loop
gates sends on real connectivity instead of an assumed-persistent flag.
"""

import logging
import time
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional


logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Connection lifecycle states."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    FAILED = "FAILED"


_ALLOWED_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.DISCONNECTED: frozenset({SessionState.CONNECTING}),
    SessionState.CONNECTING: frozenset({
        SessionState.CONNECTED,
        SessionState.DISCONNECTED,
        SessionState.FAILED,
    }),
    SessionState.CONNECTED: frozenset({
        SessionState.DISCONNECTED,
        SessionState.FAILED,
    }),
    SessionState.FAILED: frozenset({SessionState.CONNECTING}),
}


TransitionListener = Callable[[SessionState, SessionState], None]


class Session:
    """
    Connection state holder for one adapter.

    Attributes:
        state: Current lifecycle state
        connected: True only while in CONNECTED
        last_reason: Reason attached to the most recent transition
        transition_count: Number of accepted transitions
    """

    def __init__(self) -> None:
        self._state = SessionState.DISCONNECTED
        self._entered_at: float = time.monotonic()
        self._listeners: List[TransitionListener] = []
        self.last_reason: Optional[str] = None
        self.transition_count: int = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connected(self) -> bool:
        """Whether the capture loop may send."""
        return self._state == SessionState.CONNECTED

    @property
    def seconds_in_state(self) -> float:
        return time.monotonic() - self._entered_at

    def add_listener(self, listener: TransitionListener) -> None:
        """Register a callback invoked as ``listener(old, new)`` on each transition."""
        self._listeners.append(listener)

    def transition(self, target: SessionState, reason: Optional[str] = None) -> bool:
        """
        Move to ``target`` if the transition is allowed.

        Args:
            target: Requested state
            reason: Optional reason recorded for diagnostics

        Returns:
            True if the state changed, False if it was a no-op or rejected
        """
        current = self._state
        if target == current:
            return False

        if target not in _ALLOWED_TRANSITIONS[current]:
            logger.warning(
                f"Rejected session transition {current.value} → {target.value}"
                + (f" ({reason})" if reason else "")
            )
            return False

        self._state = target
        self._entered_at = time.monotonic()
        self.last_reason = reason
        self.transition_count += 1

        logger.info(
            f"Session {current.value} → {target.value}"
            + (f": {reason}" if reason else "")
        )

        for listener in list(self._listeners):
            try:
                listener(current, target)
            except Exception as e:
                logger.error(f"Session listener error: {e}")

        return True

    # Adapter event hooks

    def on_connecting(self) -> bool:
        return self.transition(SessionState.CONNECTING)

    def on_connected(self) -> bool:
        return self.transition(SessionState.CONNECTED)

    def on_disconnected(self, reason: Optional[str] = None) -> bool:
        return self.transition(SessionState.DISCONNECTED, reason)

    def on_failed(self, reason: Optional[str] = None) -> bool:
        return self.transition(SessionState.FAILED, reason)

    def to_dict(self) -> dict:
        """Export session status."""
        return {
            "state": self._state.value,
            "connected": self.connected,
            "seconds_in_state": round(self.seconds_in_state, 1),
            "transition_count": self.transition_count,
            "last_reason": self.last_reason,
        }
