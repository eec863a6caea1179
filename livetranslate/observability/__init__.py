"""Observability: structured logging and Prometheus metrics."""

from livetranslate.observability.logging import (
    PipelineLogger,
    SessionLogger,
    configure_logging,
    get_logger,
    init_logging,
)

__all__ = [
    "PipelineLogger",
    "SessionLogger",
    "configure_logging",
    "get_logger",
    "init_logging",
]
