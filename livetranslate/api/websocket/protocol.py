"""Client WebSocket Protocol - framing between browser and relay.

Inbound:
- Binary frames are always PCM16 audio, forwarded untouched.
- Text frames are JSON control messages: ``start`` (with optional
  ``config`` overrides), ``stop``, ``force_endpoint``.
- Anything else (bad JSON, unknown type, invalid config) classifies as
  IgnoredMessage so callers can drop it explicitly.

Outbound events serialize to the camelCase JSON the browser expects.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import ValidationError

from livetranslate.config.session import SessionConfig
from livetranslate.transcription.events import TurnEvent

# =============================================================================
# Inbound (client → relay)
# =============================================================================


@dataclass(frozen=True)
class AudioFrame:
    """Raw audio chunk."""

    data: bytes


@dataclass(frozen=True)
class StartCommand:
    """Open (or replace) the upstream link with this configuration."""

    config: SessionConfig = field(default_factory=SessionConfig)


@dataclass(frozen=True)
class StopCommand:
    """Gracefully terminate the upstream session."""


@dataclass(frozen=True)
class ForceEndpointCommand:
    """Close the current turn immediately."""


@dataclass(frozen=True)
class IgnoredMessage:
    """A text frame that is deliberately dropped."""

    reason: str


ClientMessage = Union[
    AudioFrame,
    StartCommand,
    StopCommand,
    ForceEndpointCommand,
    IgnoredMessage,
]


def parse_control(text: str) -> ClientMessage:
    """Classify a text control frame."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return IgnoredMessage("invalid_json")

    if not isinstance(payload, dict):
        return IgnoredMessage("not_an_object")

    message_type = payload.get("type")

    if message_type == "start":
        overrides = payload.get("config") or {}
        if not isinstance(overrides, dict):
            return IgnoredMessage("invalid_config")
        try:
            return StartCommand(config=SessionConfig.merge(overrides))
        except ValidationError:
            return IgnoredMessage("invalid_config")

    if message_type == "stop":
        return StopCommand()

    if message_type == "force_endpoint":
        return ForceEndpointCommand()

    return IgnoredMessage("unknown_type")


def parse_client_message(message: dict[str, Any]) -> ClientMessage:
    """Classify an ASGI ``websocket.receive`` message.

    Args:
        message: Dict returned by ``WebSocket.receive()``

    Returns:
        One ClientMessage variant
    """
    data = message.get("bytes")
    if data is not None:
        return AudioFrame(data=data)

    text = message.get("text")
    if text is not None:
        return parse_control(text)

    return IgnoredMessage("empty_frame")


# =============================================================================
# Outbound (relay → client)
# =============================================================================


class OutboundEvent:
    """Base for events sent to the client."""

    type: str = ""

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class StatusEvent(OutboundEvent):
    """Upstream connection status: connected, disconnected or error."""

    status: str
    type: str = "status"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "status": self.status}


@dataclass
class SessionBeginEvent(OutboundEvent):
    session_id: str
    expires_at: int | None = None
    type: str = "session_begin"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "sessionId": self.session_id,
            "expiresAt": self.expires_at,
        }


@dataclass
class TranscriptEvent(OutboundEvent):
    """Relay of one upstream turn report.

    ``sttLatency`` is only present on end-of-turn reports of an utterance
    whose start was observed.
    """

    turn: TurnEvent
    stt_latency_ms: int | None = None
    type: str = "transcript"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "transcript": self.turn.transcript,
            "endOfTurn": self.turn.end_of_turn,
            "turnIsFormatted": self.turn.turn_is_formatted,
            "languageCode": self.turn.language_code,
            "languageConfidence": self.turn.language_confidence,
            "turnOrder": self.turn.turn_order,
        }
        if self.stt_latency_ms is not None:
            data["sttLatency"] = self.stt_latency_ms
        return data


@dataclass
class TranslationEvent(OutboundEvent):
    original: str
    translated: str
    source_lang: str
    target_lang: str
    translate_latency_ms: int
    turn_order: int = 0
    type: str = "translation"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "original": self.original,
            "translated": self.translated,
            "sourceLang": self.source_lang,
            "targetLang": self.target_lang,
            "translateLatency": self.translate_latency_ms,
            "turnOrder": self.turn_order,
        }


@dataclass
class TtsAudioEvent(OutboundEvent):
    """Synthesized audio, base64 encoded on the wire."""

    audio: bytes
    tts_latency_ms: int
    turn_order: int = 0
    type: str = "tts_audio"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "audio": base64.b64encode(self.audio).decode("ascii"),
            "ttsLatency": self.tts_latency_ms,
            "turnOrder": self.turn_order,
        }


@dataclass
class SessionEndEvent(OutboundEvent):
    audio_duration_s: float | None = None
    session_duration_s: float | None = None
    type: str = "session_end"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "audioDuration": self.audio_duration_s,
            "sessionDuration": self.session_duration_s,
        }


@dataclass
class ErrorEvent(OutboundEvent):
    message: str
    type: str = "error"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "message": self.message}
