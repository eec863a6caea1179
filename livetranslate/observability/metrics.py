"""Prometheus Metrics - relay observability.

Exports:
- STT / translate / TTS latency histograms
- Session counts
- Pipeline outcomes
- Dropped audio frames and errors by component
"""

from prometheus_client import Counter, Gauge, Histogram

# -----------------------------------------------------------------------------
# Latency Histograms
# -----------------------------------------------------------------------------

# Utterance start (first partial) → end-of-turn report
STT_LATENCY = Histogram(
    "livetranslate_stt_latency_seconds",
    "Time from first partial transcript to end-of-turn",
    buckets=[0.25, 0.5, 1.0, 1.5, 2.0, 3.0, 5.0, 8.0, 13.0],
)

TRANSLATE_LATENCY = Histogram(
    "livetranslate_translate_latency_seconds",
    "Translation call latency",
    buckets=[0.1, 0.2, 0.3, 0.5, 0.75, 1.0, 1.5, 2.5, 5.0],
)

TTS_LATENCY = Histogram(
    "livetranslate_tts_latency_seconds",
    "Speech synthesis call latency",
    buckets=[0.1, 0.2, 0.3, 0.5, 0.75, 1.0, 1.5, 2.5, 5.0],
)

# -----------------------------------------------------------------------------
# Counters
# -----------------------------------------------------------------------------

SESSION_STARTED = Counter(
    "livetranslate_sessions_started_total",
    "Total upstream sessions started",
)

SESSION_ENDED = Counter(
    "livetranslate_sessions_ended_total",
    "Total client connections ended",
    ["reason"],  # client_disconnect, upstream_close
)

PIPELINES = Counter(
    "livetranslate_pipelines_total",
    "Translate/synthesize pipeline runs",
    ["status"],  # success, error
)

AUDIO_FRAMES_DROPPED = Counter(
    "livetranslate_audio_frames_dropped_total",
    "Audio frames dropped because no upstream link was open",
)

ERRORS = Counter(
    "livetranslate_errors_total",
    "Total errors by component",
    ["component", "type"],  # transcription, translation, tts
)

# -----------------------------------------------------------------------------
# Gauges
# -----------------------------------------------------------------------------

ACTIVE_SESSIONS = Gauge(
    "livetranslate_active_sessions",
    "Currently connected clients",
)


# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def record_stt_latency(latency_ms: float) -> None:
    """Record STT latency in milliseconds."""
    STT_LATENCY.observe(latency_ms / 1000.0)


def record_translate_latency(latency_ms: float) -> None:
    """Record translation latency in milliseconds."""
    TRANSLATE_LATENCY.observe(latency_ms / 1000.0)


def record_tts_latency(latency_ms: float) -> None:
    """Record synthesis latency in milliseconds."""
    TTS_LATENCY.observe(latency_ms / 1000.0)


def record_session_start() -> None:
    """Record an upstream session begin."""
    SESSION_STARTED.inc()


def record_client_connected() -> None:
    ACTIVE_SESSIONS.inc()


def record_client_disconnected(reason: str = "client_disconnect") -> None:
    SESSION_ENDED.labels(reason=reason).inc()
    ACTIVE_SESSIONS.dec()


def record_pipeline(status: str) -> None:
    """Record pipeline outcome (success, error)."""
    PIPELINES.labels(status=status).inc()


def record_audio_dropped() -> None:
    AUDIO_FRAMES_DROPPED.inc()


def record_error(component: str, error_type: str) -> None:
    """Record error by component."""
    ERRORS.labels(component=component, type=error_type).inc()
