"""Structured Logging - JSON logs with correlation.

Provides structured logging for:
- Session lifecycle (start, upstream begin/termination, teardown)
- State transitions
- Turn pipeline latencies and failures

All session logs include connection_id for correlation.
"""

import logging
import sys
from typing import Any

import structlog


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, output JSON; else human-readable
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    level_name = "WARNING" if level.upper() == "WARN" else level.upper()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Also configure standard logging (uvicorn, websockets)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name),
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structured logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Bound structlog logger
    """
    return structlog.get_logger(name)


def bind_session(connection_id: str) -> None:
    """Bind connection_id to all logs in current context.

    Args:
        connection_id: Local connection identifier
    """
    structlog.contextvars.bind_contextvars(connection_id=connection_id)


def unbind_session() -> None:
    """Remove connection_id from log context."""
    structlog.contextvars.unbind_contextvars("connection_id")


# -----------------------------------------------------------------------------
# Event-specific logging functions
# -----------------------------------------------------------------------------


class SessionLogger:
    """Logger for session lifecycle events."""

    def __init__(self, connection_id: str) -> None:
        self._connection_id = connection_id
        self._log = get_logger("session").bind(connection_id=connection_id)

    def client_connected(self) -> None:
        self._log.info("client_connected", event_type="client.connected")

    def client_disconnected(self, state: str, state_duration_ms: int) -> None:
        self._log.info(
            "client_disconnected",
            event_type="client.disconnected",
            state=state,
            state_duration_ms=state_duration_ms,
        )

    def session_started(self, metadata: dict[str, Any] | None = None) -> None:
        """Log a client ``start`` request."""
        self._log.info(
            "session_started",
            event_type="session.started",
            **(metadata or {}),
        )

    def upstream_begin(self, session_id: str, expires_at: int | None) -> None:
        """Log upstream session assignment."""
        self._log.info(
            "upstream_begin",
            event_type="upstream.begin",
            session_id=session_id,
            expires_at=expires_at,
        )

    def upstream_terminated(
        self,
        audio_duration_s: float | None,
        session_duration_s: float | None,
    ) -> None:
        """Log upstream termination acknowledgement."""
        self._log.info(
            "upstream_terminated",
            event_type="upstream.terminated",
            audio_duration_s=audio_duration_s,
            session_duration_s=session_duration_s,
        )

    def upstream_closed(self, code: int | None, reason: str, deliberate: bool) -> None:
        """Log upstream socket close."""
        self._log.info(
            "upstream_closed",
            event_type="upstream.closed",
            code=code,
            reason=reason,
            deliberate=deliberate,
        )

    def upstream_error(self, error: str) -> None:
        self._log.error("upstream_error", event_type="upstream.error", error=error)

    def state_change(
        self,
        old_state: str,
        new_state: str,
        reason: str,
    ) -> None:
        """Log state transition."""
        self._log.info(
            "state_change",
            event_type="session.state_change",
            old_state=old_state,
            new_state=new_state,
            reason=reason,
        )

    def audio_dropped(self) -> None:
        self._log.debug("audio_dropped", event_type="client.audio_dropped")

    def message_ignored(self, reason: str) -> None:
        """Log a dropped client control message."""
        self._log.debug(
            "client_message_ignored",
            event_type="client.message_ignored",
            reason=reason,
        )

    def turn_started(self, turn_order: int) -> None:
        self._log.debug("turn_started", event_type="turn.started", turn_order=turn_order)

    def turn_ended(self, turn_order: int, stt_latency_ms: float | None) -> None:
        self._log.debug(
            "turn_ended",
            event_type="turn.ended",
            turn_order=turn_order,
            stt_latency_ms=stt_latency_ms,
        )

    def turn_abandoned(self) -> None:
        self._log.debug("turn_abandoned", event_type="turn.abandoned")


class PipelineLogger:
    """Logger for translate/synthesize pipeline events."""

    def __init__(self, connection_id: str) -> None:
        self._connection_id = connection_id
        self._log = get_logger("pipeline").bind(connection_id=connection_id)

    def pipeline_started(self, turn_order: int, source_lang: str, target_lang: str) -> None:
        self._log.debug(
            "pipeline_started",
            event_type="pipeline.started",
            turn_order=turn_order,
            source_lang=source_lang,
            target_lang=target_lang,
        )

    def pipeline_completed(
        self,
        turn_order: int,
        translate_ms: float,
        tts_ms: float,
    ) -> None:
        """Log a completed pipeline with its latencies."""
        self._log.info(
            "pipeline_completed",
            event_type="pipeline.completed",
            turn_order=turn_order,
            translate_ms=translate_ms,
            tts_ms=tts_ms,
        )

    def pipeline_failed(self, turn_order: int, stage: str, error: str) -> None:
        """Log a pipeline failure."""
        self._log.error(
            "pipeline_failed",
            event_type="pipeline.failed",
            turn_order=turn_order,
            stage=stage,
            error=error,
        )


# Initialize default logging configuration
def init_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Initialize logging with defaults.

    Call this once at application startup.
    """
    configure_logging(level=level, json_format=json_format)
