"""Session orchestration: lifecycle, turn interpretation, pipelines."""

from livetranslate.orchestrator.orchestrator import LinkFactory, SessionOrchestrator
from livetranslate.orchestrator.pipeline import TranslationPipeline
from livetranslate.orchestrator.session import Session
from livetranslate.orchestrator.state_machine import (
    SessionState,
    SessionStateMachine,
    StateTransition,
)
from livetranslate.orchestrator.turns import (
    TurnTracker,
    resolve_languages,
    should_translate,
)

__all__ = [
    "LinkFactory",
    "SessionOrchestrator",
    "TranslationPipeline",
    "Session",
    "SessionState",
    "SessionStateMachine",
    "StateTransition",
    "TurnTracker",
    "resolve_languages",
    "should_translate",
]
