"""Upstream transcription events.

The streaming service emits three message kinds (``Begin``, ``Turn``,
``Termination``); the link itself adds ``LinkErrorEvent`` and
``LinkClosedEvent``. Handlers receive them exactly in arrival order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union

from livetranslate.exceptions import TranscriptionProtocolError


@dataclass(frozen=True)
class BeginEvent:
    """Upstream session opened."""

    session_id: str
    expires_at: int | None = None


@dataclass(frozen=True)
class TurnEvent:
    """One report of an utterance.

    An utterance is typically reported several times: interim partials,
    a raw end-of-turn report, then the formatted end-of-turn report.
    """

    transcript: str
    end_of_turn: bool = False
    turn_is_formatted: bool = False
    language_code: str | None = None
    language_confidence: float = 0.0
    turn_order: int = 0


@dataclass(frozen=True)
class TerminationEvent:
    """Upstream acknowledged termination."""

    audio_duration_s: float | None = None
    session_duration_s: float | None = None


@dataclass(frozen=True)
class LinkErrorEvent:
    """Transport-level error on the upstream connection."""

    message: str


@dataclass(frozen=True)
class LinkClosedEvent:
    """Upstream connection closed. Emitted once per link."""

    code: int | None = None
    reason: str = ""


UpstreamEvent = Union[
    BeginEvent,
    TurnEvent,
    TerminationEvent,
    LinkErrorEvent,
    LinkClosedEvent,
]


def _decode_begin(message: dict[str, Any]) -> BeginEvent:
    return BeginEvent(
        session_id=str(message.get("id") or ""),
        expires_at=message.get("expires_at"),
    )


def _decode_turn(message: dict[str, Any]) -> TurnEvent:
    return TurnEvent(
        transcript=message.get("transcript") or "",
        end_of_turn=bool(message.get("end_of_turn", False)),
        turn_is_formatted=bool(message.get("turn_is_formatted", False)),
        language_code=message.get("language_code") or None,
        language_confidence=float(message.get("language_confidence") or 0.0),
        turn_order=int(message.get("turn_order") or 0),
    )


def _decode_termination(message: dict[str, Any]) -> TerminationEvent:
    return TerminationEvent(
        audio_duration_s=message.get("audio_duration_seconds"),
        session_duration_s=message.get("session_duration_seconds"),
    )


_DECODERS = {
    "Begin": _decode_begin,
    "Turn": _decode_turn,
    "Termination": _decode_termination,
}


def decode_message(raw: str | bytes) -> BeginEvent | TurnEvent | TerminationEvent | None:
    """Decode one upstream message.

    Args:
        raw: JSON text frame from the streaming service

    Returns:
        The decoded event, or None for message types the relay does not use

    Raises:
        TranscriptionProtocolError: If the frame is not a JSON object or a
            known message carries malformed fields
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    try:
        message = json.loads(raw)
    except json.JSONDecodeError as e:
        raise TranscriptionProtocolError(str(e), raw=raw) from e

    if not isinstance(message, dict):
        raise TranscriptionProtocolError("expected a JSON object", raw=raw)

    decoder = _DECODERS.get(message.get("type"))
    if decoder is None:
        return None

    try:
        return decoder(message)
    except (TypeError, ValueError) as e:
        raise TranscriptionProtocolError(str(e), raw=raw) from e
