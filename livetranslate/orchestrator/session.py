"""Session Container - explicit per-connection relay state.

Holds everything one client connection owns:
- configuration from the latest ``start``
- the current upstream link (at most one)
- upstream session id and expiry from ``Begin``
- lifecycle state machine
- utterance tracker
- cleanup flag suppressing the disconnected status during teardown
"""

from __future__ import annotations

import uuid

from livetranslate.config.session import SessionConfig
from livetranslate.orchestrator.state_machine import SessionState, SessionStateMachine
from livetranslate.orchestrator.turns import TurnTracker
from livetranslate.transcription.base import TranscriptionLink


class Session:
    """Relay session for one client connection.

    Owned exclusively by its SessionOrchestrator and discarded when the
    client disconnects.
    """

    def __init__(
        self,
        connection_id: str | None = None,
        config: SessionConfig | None = None,
    ) -> None:
        self._connection_id = connection_id or str(uuid.uuid4())
        self.config = config or SessionConfig()
        self.state_machine = SessionStateMachine(self._connection_id)
        self.turns = TurnTracker()

        # Assigned by upstream on Begin
        self.session_id: str | None = None
        self.expires_at: int | None = None

        self.link: TranscriptionLink | None = None
        self.cleaning_up: bool = False

    @property
    def connection_id(self) -> str:
        """Local connection identifier."""
        return self._connection_id

    @property
    def state(self) -> SessionState:
        """Current lifecycle state."""
        return self.state_machine.state

    @property
    def link_open(self) -> bool:
        """Whether an upstream link is open."""
        return self.link is not None and self.link.is_open

    def begin_link(self, link: TranscriptionLink, config: SessionConfig) -> None:
        """Adopt a new link and configuration for a fresh start."""
        self.link = link
        self.config = config
        self.session_id = None
        self.expires_at = None
        self.turns.reset()

    def detach_link(self) -> TranscriptionLink | None:
        """Release the current link reference, returning it."""
        link, self.link = self.link, None
        return link
