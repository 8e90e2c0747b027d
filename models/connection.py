"""Connection state machine for the real-time channel.

The transition function is pure: it takes the current state and an event
and returns the next state plus a list of effects for the caller to carry
out. ``ConnectionManager`` owns the actual socket and timers.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006


class ConnectionPhase(Enum):
    """Lifecycle phase of the real-time connection."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING_MANUALLY = "closing_manually"


@dataclass(frozen=True)
class ConnectionState:
    phase: ConnectionPhase = ConnectionPhase.DISCONNECTED
    attempt_count: int = 0
    manual_close: bool = False
    reconnect_pending: bool = False
    stopped: bool = False
    last_delay: Optional[float] = None


# Events

@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Opened:
    pass


@dataclass(frozen=True)
class Closed:
    code: Optional[int] = None
    reason: str = ""


@dataclass(frozen=True)
class Errored:
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class ReconnectDue:
    pass


@dataclass(frozen=True)
class Stop:
    pass


# Effects

@dataclass(frozen=True)
class Connect:
    pass


@dataclass(frozen=True)
class ScheduleReconnect:
    delay: float


@dataclass(frozen=True)
class CancelReconnect:
    pass


@dataclass(frozen=True)
class CloseTransport:
    pass


@dataclass(frozen=True)
class NotifyOpen:
    pass


@dataclass(frozen=True)
class NotifyClose:
    code: Optional[int] = None
    reason: str = ""


@dataclass(frozen=True)
class NotifyError:
    error: Optional[BaseException] = None


def reconnect_delay(attempt: int, base_delay: float = 1.0, max_delay: float = 30.0) -> float:
    """Delay in seconds before reconnect attempt number ``attempt`` (1-based)."""
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return min(base_delay * 2 ** (attempt - 1), max_delay)


def _after_drop(state: ConnectionState, code: Optional[int], base_delay: float, max_delay: float):
    """Decide what happens once a live transport has gone away."""
    if state.manual_close:
        return replace(state, phase=ConnectionPhase.DISCONNECTED, manual_close=False), []
    if state.stopped or code == NORMAL_CLOSURE:
        return replace(state, phase=ConnectionPhase.DISCONNECTED), []

    attempt = state.attempt_count + 1
    delay = reconnect_delay(attempt, base_delay, max_delay)
    next_state = replace(
        state,
        phase=ConnectionPhase.DISCONNECTED,
        attempt_count=attempt,
        reconnect_pending=True,
        last_delay=delay
    )
    return next_state, [ScheduleReconnect(delay)]


def transition(state: ConnectionState, event, base_delay: float = 1.0,
               max_delay: float = 30.0) -> Tuple[ConnectionState, List[object]]:
    """
    Compute the next connection state.

    Args:
        state: Current state
        event: One of Start, Opened, Closed, Errored, ReconnectDue, Stop
        base_delay: First reconnect delay in seconds
        max_delay: Cap on the reconnect delay in seconds

    Returns:
        Tuple of the new state and the effects to perform, in order
    """
    phase = state.phase

    if isinstance(event, (Start, ReconnectDue)):
        if state.stopped or phase != ConnectionPhase.DISCONNECTED:
            return state, []
        if isinstance(event, ReconnectDue) and not state.reconnect_pending:
            return state, []
        effects = [CancelReconnect()] if state.reconnect_pending and isinstance(event, Start) else []
        effects.append(Connect())
        return replace(state, phase=ConnectionPhase.CONNECTING, reconnect_pending=False), effects

    if isinstance(event, Opened):
        if phase == ConnectionPhase.CLOSING_MANUALLY:
            return state, [CloseTransport()]
        if phase != ConnectionPhase.CONNECTING:
            return state, []
        effects = [CancelReconnect()] if state.reconnect_pending else []
        effects.append(NotifyOpen())
        next_state = replace(
            state,
            phase=ConnectionPhase.OPEN,
            attempt_count=0,
            manual_close=False,
            reconnect_pending=False
        )
        return next_state, effects

    if isinstance(event, Closed):
        if phase == ConnectionPhase.DISCONNECTED:
            return state, []
        next_state, effects = _after_drop(state, event.code, base_delay, max_delay)
        return next_state, [NotifyClose(event.code, event.reason)] + effects

    if isinstance(event, Errored):
        if phase == ConnectionPhase.DISCONNECTED:
            return state, []
        next_state, effects = _after_drop(state, None, base_delay, max_delay)
        return next_state, [NotifyError(event.error)] + effects

    if isinstance(event, Stop):
        effects = [CancelReconnect()] if state.reconnect_pending else []
        if phase in (ConnectionPhase.CONNECTING, ConnectionPhase.OPEN):
            effects.append(CloseTransport())
            next_state = replace(
                state,
                phase=ConnectionPhase.CLOSING_MANUALLY,
                manual_close=True,
                reconnect_pending=False,
                stopped=True
            )
            return next_state, effects
        return replace(state, reconnect_pending=False, stopped=True), effects

    raise TypeError(f"Unknown connection event: {event!r}")
