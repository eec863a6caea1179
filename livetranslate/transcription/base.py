"""Transcription Link Base - upstream streaming connection contract.

A link owns one connection to the streaming transcription service:
- forwards raw PCM frames unmodified (dropped while not open, never queued)
- sends the ``Terminate`` and ``ForceEndpoint`` directives
- delivers decoded upstream events to registered handlers in arrival order

Links are single-use. Reconnecting means creating a new link.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from livetranslate.config.constants import RELAY
from livetranslate.config.session import SessionConfig
from livetranslate.exceptions import TranscriptionConnectionError
from livetranslate.observability.logging import get_logger
from livetranslate.transcription.events import (
    BeginEvent,
    LinkClosedEvent,
    LinkErrorEvent,
    TerminationEvent,
    TurnEvent,
    UpstreamEvent,
)

logger = get_logger(__name__)

EventHandler = Callable[[UpstreamEvent], Awaitable[None]]

TERMINATE_DIRECTIVE: dict[str, Any] = {"type": "Terminate"}


def force_endpoint_directive() -> dict[str, Any]:
    """Directive closing the current turn immediately."""
    return {
        "type": "ForceEndpoint",
        "end_of_turn_confidence": RELAY.FORCE_ENDPOINT_CONFIDENCE,
    }


class TranscriptionLink(ABC):
    """Base class for upstream transcription links.

    Provides handler management and the open/terminate/close bookkeeping.
    Concrete links implement connect, raw sends and transport teardown.
    """

    service_name: str = "transcription"

    def __init__(self, connection_id: str | None = None) -> None:
        self._connection_id = connection_id
        self._handlers: list[EventHandler] = []
        self._open: bool = False
        self._closed: bool = False
        self._terminate_sent: bool = False
        self._close_emitted: bool = False

    @property
    def is_open(self) -> bool:
        """Whether frames and directives are currently forwarded."""
        return self._open

    @property
    def is_closed(self) -> bool:
        """Whether close() has been called or the remote side closed."""
        return self._closed

    @property
    def terminate_sent(self) -> bool:
        return self._terminate_sent

    def on_event(self, handler: EventHandler) -> None:
        """Register an async handler for upstream events."""
        self._handlers.append(handler)

    @abstractmethod
    async def connect(self, config: SessionConfig) -> None:
        """Open the upstream connection.

        Raises:
            TranscriptionConnectionError: If the connection cannot be opened
        """
        ...

    @abstractmethod
    async def _send_raw(self, data: bytes | str) -> None:
        """Write one frame to the transport."""
        ...

    @abstractmethod
    async def _close_transport(self) -> None:
        """Release the transport."""
        ...

    async def send_audio(self, frame: bytes) -> bool:
        """Forward a raw audio frame.

        Returns:
            True if forwarded, False if dropped because the link is not open
        """
        if not self._open:
            return False
        return await self._send(frame, "audio")

    async def terminate(self) -> bool:
        """Ask upstream to flush final events and end the session.

        Sent at most once per link.

        Returns:
            True if the directive was sent by this call
        """
        if not self._open or self._terminate_sent:
            return False
        self._terminate_sent = True
        return await self._send(json.dumps(TERMINATE_DIRECTIVE), "terminate")

    async def force_endpoint(self) -> bool:
        """Ask upstream to end the current turn now."""
        if not self._open:
            return False
        return await self._send(json.dumps(force_endpoint_directive()), "force_endpoint")

    async def close(self) -> None:
        """Close the link. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._open = False
        await self._close_transport()
        await self._emit_closed(None, "closed by relay")

    async def _send(self, data: bytes | str, kind: str) -> bool:
        try:
            await self._send_raw(data)
            return True
        except Exception as e:
            logger.warning(
                "transcription_send_error",
                connection_id=self._connection_id,
                service=self.service_name,
                kind=kind,
                error=str(e),
            )
            return False

    async def _emit(self, event: UpstreamEvent) -> None:
        """Deliver an event to all registered handlers."""
        for handler in self._handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.warning(
                    "transcription_handler_error",
                    connection_id=self._connection_id,
                    handler=getattr(handler, "__name__", str(handler)),
                    event_type=type(event).__name__,
                    error=str(e),
                )

    async def _emit_closed(self, code: int | None, reason: str) -> None:
        """Emit the single LinkClosedEvent for this link."""
        self._open = False
        self._closed = True
        if self._close_emitted:
            return
        self._close_emitted = True
        await self._emit(LinkClosedEvent(code=code, reason=reason))


class MockTranscriptionLink(TranscriptionLink):
    """In-memory link for tests and local development.

    Records forwarded frames and directives; upstream behavior is driven
    through the ``simulate_*`` helpers.
    """

    service_name = "mock"

    def __init__(
        self,
        connection_id: str | None = None,
        connect_error: str | None = None,
    ) -> None:
        super().__init__(connection_id)
        self._connect_error = connect_error
        self.config: SessionConfig | None = None
        self.sent_audio: list[bytes] = []
        self.sent_directives: list[dict[str, Any]] = []

    async def connect(self, config: SessionConfig) -> None:
        if self._connect_error:
            raise TranscriptionConnectionError(self.service_name, self._connect_error)
        self.config = config
        self._open = True

    async def _send_raw(self, data: bytes | str) -> None:
        if isinstance(data, bytes):
            self.sent_audio.append(data)
        else:
            self.sent_directives.append(json.loads(data))

    async def _close_transport(self) -> None:
        pass

    @property
    def directive_types(self) -> list[str]:
        return [d["type"] for d in self.sent_directives]

    async def simulate_begin(
        self, session_id: str = "mock-session", expires_at: int | None = None
    ) -> None:
        await self._emit(BeginEvent(session_id=session_id, expires_at=expires_at))

    async def simulate_turn(self, transcript: str, **fields: Any) -> None:
        await self._emit(TurnEvent(transcript=transcript, **fields))

    async def simulate_termination(
        self,
        audio_duration_s: float | None = None,
        session_duration_s: float | None = None,
    ) -> None:
        await self._emit(
            TerminationEvent(
                audio_duration_s=audio_duration_s,
                session_duration_s=session_duration_s,
            )
        )

    async def simulate_error(self, message: str) -> None:
        await self._emit(LinkErrorEvent(message=message))

    async def simulate_remote_close(self, code: int = 1000, reason: str = "") -> None:
        """Simulate the service closing the socket."""
        await self._emit_closed(code, reason)
