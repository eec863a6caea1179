"""Translation WebSocket - one relay session per browser connection.

The browser streams PCM16 audio as binary frames and JSON control messages
as text frames. Every connection gets its own SessionOrchestrator; nothing
mutable is shared between connections.

Mounted at both ``/ws`` and ``/`` so the bundled client works with either.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Callable

from fastapi import APIRouter, WebSocket

from livetranslate.api.websocket.channel import ClientChannel
from livetranslate.api.websocket.protocol import parse_client_message
from livetranslate.config.settings import Settings, get_settings
from livetranslate.observability.logging import bind_session, get_logger, unbind_session
from livetranslate.observability.metrics import (
    record_client_connected,
    record_client_disconnected,
)
from livetranslate.orchestrator.orchestrator import SessionOrchestrator
from livetranslate.transcription import create_transcription_link
from livetranslate.transcription.base import TranscriptionLink
from livetranslate.translation import Translator, create_translator
from livetranslate.tts import Synthesizer, create_synthesizer

logger = get_logger(__name__)

router = APIRouter(tags=["translate"])


@dataclass
class RelayServices:
    """Providers shared by all connections (stateless per call)."""

    translator: Translator
    synthesizer: Synthesizer
    link_factory: Callable[[str], TranscriptionLink]
    serialize_pipeline: bool = False

    async def close(self) -> None:
        await self.translator.close()
        await self.synthesizer.close()


# Global services (initialized on startup)
_services: RelayServices | None = None
_active: dict[str, SessionOrchestrator] = {}


def build_services(settings: Settings) -> RelayServices:
    """Create providers for the configured engines."""
    engine = settings.transcription_engine

    def link_factory(connection_id: str) -> TranscriptionLink:
        return create_transcription_link(engine, connection_id=connection_id)

    return RelayServices(
        translator=create_translator(settings.translation_engine),
        synthesizer=create_synthesizer(settings.tts_engine),
        link_factory=link_factory,
        serialize_pipeline=settings.pipeline_serialize,
    )


def get_services() -> RelayServices:
    """Get global relay services."""
    global _services
    if _services is None:
        _services = build_services(get_settings())
    return _services


def set_services(services: RelayServices | None) -> None:
    """Replace global relay services (startup and tests)."""
    global _services
    _services = services


def get_active_sessions() -> dict[str, SessionOrchestrator]:
    """Orchestrators of currently connected clients."""
    return _active.copy()


@router.websocket("/ws")
@router.websocket("/")
async def translate_websocket(websocket: WebSocket) -> None:
    """Relay loop for one client connection."""
    await websocket.accept()

    connection_id = str(uuid.uuid4())
    services = get_services()
    channel = ClientChannel(websocket, connection_id)
    orchestrator = SessionOrchestrator(
        send=channel.send,
        link_factory=services.link_factory,
        translator=services.translator,
        synthesizer=services.synthesizer,
        connection_id=connection_id,
        serialize_pipeline=services.serialize_pipeline,
    )

    _active[connection_id] = orchestrator
    bind_session(connection_id)
    record_client_connected()

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            await orchestrator.handle_message(parse_client_message(message))

    finally:
        channel.mark_closed()
        await orchestrator.disconnect()
        _active.pop(connection_id, None)
        record_client_disconnected()
        unbind_session()
        logger.info(
            "client_session_closed",
            connection_id=connection_id,
            events_sent=channel.sent_count,
            events_dropped=channel.dropped_count,
        )
