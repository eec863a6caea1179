"""Upstream transcription links.

Available links:
- MockTranscriptionLink: For testing (events driven by simulate_* helpers)
- AssemblyAILink: AssemblyAI Universal Streaming v3 (production)

Usage:
    from livetranslate.transcription import create_transcription_link

    link = create_transcription_link("assemblyai", api_key="...")
    link.on_event(handle_event)
    await link.connect(config)
"""

from __future__ import annotations

from livetranslate.transcription.base import (
    EventHandler,
    MockTranscriptionLink,
    TranscriptionLink,
)
from livetranslate.transcription.events import (
    BeginEvent,
    LinkClosedEvent,
    LinkErrorEvent,
    TerminationEvent,
    TurnEvent,
    UpstreamEvent,
    decode_message,
)

__all__ = [
    # Base
    "EventHandler",
    "TranscriptionLink",
    "MockTranscriptionLink",
    # Events
    "BeginEvent",
    "TurnEvent",
    "TerminationEvent",
    "LinkErrorEvent",
    "LinkClosedEvent",
    "UpstreamEvent",
    "decode_message",
    # Factory
    "create_transcription_link",
]


def create_transcription_link(
    engine: str = "mock",
    connection_id: str | None = None,
    **kwargs,
) -> TranscriptionLink:
    """Factory function to create transcription links.

    Args:
        engine: Link type ("mock", "assemblyai")
        connection_id: Local connection id used in logs
        **kwargs: Link-specific configuration

    Returns:
        Unconnected link instance

    Raises:
        ValueError: If engine type is unknown
    """
    if engine == "mock":
        return MockTranscriptionLink(connection_id=connection_id, **kwargs)

    elif engine == "assemblyai":
        from livetranslate.transcription.assemblyai import AssemblyAILink

        return AssemblyAILink(
            api_key=kwargs.get("api_key"),
            streaming_url=kwargs.get("streaming_url"),
            speech_model=kwargs.get("speech_model"),
            connection_id=connection_id,
        )

    else:
        raise ValueError(
            f"Unknown transcription engine: {engine}. "
            f"Available: mock, assemblyai"
        )
