"""Session State Machine - upstream link lifecycle per client connection.

States:
- IDLE: Client connected, no start received
- CONNECTING: Upstream link requested, waiting for Begin
- ACTIVE: Upstream assigned a session; turns are flowing
- STOPPING: Terminate sent; waiting for upstream to flush and close
- TERMINATED: Link gone. A fresh start may reconnect.
"""

import asyncio
import inspect
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from livetranslate.config.constants import RELAY
from livetranslate.exceptions import SessionStateError
from livetranslate.observability.logging import get_logger

logger = get_logger(__name__)


class SessionState(Enum):
    """Lifecycle state of a relay session."""

    IDLE = "idle"
    CONNECTING = "connecting"
    ACTIVE = "active"
    STOPPING = "stopping"
    TERMINATED = "terminated"


# Valid state transitions
VALID_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.IDLE: {SessionState.CONNECTING, SessionState.TERMINATED},
    SessionState.CONNECTING: {
        SessionState.CONNECTING,
        SessionState.ACTIVE,
        SessionState.STOPPING,
        SessionState.TERMINATED,
    },
    SessionState.ACTIVE: {
        SessionState.STOPPING,
        SessionState.TERMINATED,
        SessionState.CONNECTING,
    },
    SessionState.STOPPING: {SessionState.TERMINATED, SessionState.CONNECTING},
    SessionState.TERMINATED: {SessionState.CONNECTING},
}


@dataclass
class StateTransition:
    """Record of a state transition."""

    old_state: SessionState
    new_state: SessionState
    t_ms: int
    reason: str
    metadata: dict = field(default_factory=dict)


StateChangeCallback = Callable[[StateTransition], None]
AsyncStateChangeCallback = Callable[[StateTransition], asyncio.Future]


def _now_ms() -> int:
    return int(time.monotonic() * 1000)


class SessionStateMachine:
    """Lifecycle FSM for one relay session.

    Usage:
        fsm = SessionStateMachine(connection_id="conn-123")
        fsm.on_state_change(handle_state_change)

        await fsm.transition_to(SessionState.CONNECTING, "client_start")
        await fsm.transition_to(SessionState.ACTIVE, "upstream_begin")
    """

    def __init__(self, connection_id: str) -> None:
        self._connection_id = connection_id
        self._state = SessionState.IDLE

        self._on_change_callbacks: list[StateChangeCallback | AsyncStateChangeCallback] = []
        self._on_enter_callbacks: dict[SessionState, list[Callable]] = {
            s: [] for s in SessionState
        }

        self._history: list[StateTransition] = []
        self._max_history = RELAY.MAX_TRANSITION_HISTORY

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state

    @property
    def connection_id(self) -> str:
        return self._connection_id

    def can_transition(self, new_state: SessionState) -> bool:
        """Whether new_state is reachable from the current state."""
        return new_state in VALID_TRANSITIONS.get(self._state, set())

    def on_state_change(
        self, callback: StateChangeCallback | AsyncStateChangeCallback
    ) -> None:
        """Register callback for any state change."""
        self._on_change_callbacks.append(callback)

    def on_enter(self, state: SessionState, callback: Callable) -> None:
        """Register callback for entering a specific state."""
        self._on_enter_callbacks[state].append(callback)

    async def transition_to(
        self,
        new_state: SessionState,
        reason: str = "",
        metadata: dict | None = None,
    ) -> StateTransition:
        """Transition to a new state.

        Args:
            new_state: Target state
            reason: Reason for transition
            metadata: Additional context

        Returns:
            The recorded StateTransition

        Raises:
            SessionStateError: If transition is not allowed
        """
        old_state = self._state

        if not self.can_transition(new_state):
            raise SessionStateError(
                f"Invalid transition: {old_state.value} → {new_state.value}",
                session_id=self._connection_id,
                current_state=old_state.value,
                target_state=new_state.value,
            )

        transition = StateTransition(
            old_state=old_state,
            new_state=new_state,
            t_ms=_now_ms(),
            reason=reason,
            metadata=metadata or {},
        )

        self._state = new_state

        await self._call_callbacks(self._on_enter_callbacks[new_state], transition)
        await self._call_callbacks(self._on_change_callbacks, transition)

        self._history.append(transition)
        if len(self._history) > self._max_history:
            self._history.pop(0)

        return transition

    async def _call_callbacks(
        self,
        callbacks: list[Callable],
        transition: StateTransition,
    ) -> None:
        """Call list of callbacks with transition."""
        for callback in callbacks:
            try:
                if inspect.iscoroutinefunction(callback):
                    await callback(transition)
                else:
                    callback(transition)
            except Exception as e:
                # Callback errors must not break the state machine
                logger.warning(
                    "state_callback_error",
                    connection_id=self._connection_id,
                    new_state=transition.new_state.value,
                    error=str(e),
                )

    @property
    def history(self) -> list[StateTransition]:
        """Transition history (most recent last)."""
        return self._history.copy()

    def get_state_duration_ms(self) -> int:
        """Get time spent in current state (ms)."""
        if not self._history:
            return 0
        return _now_ms() - self._history[-1].t_ms
