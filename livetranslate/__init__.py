"""LiveTranslate - Real-time bilingual speech translation relay."""

__version__ = "1.0.0"

# Export exception hierarchy for easy importing
from livetranslate.exceptions import (
    LiveTranslateError,
    SessionError,
    SessionStateError,
    TranscriptionError,
    TranscriptionConnectionError,
    TranscriptionProtocolError,
    TranslationError,
    SynthesisError,
)

__all__ = [
    "__version__",
    # Base
    "LiveTranslateError",
    # Session
    "SessionError",
    "SessionStateError",
    # Transcription
    "TranscriptionError",
    "TranscriptionConnectionError",
    "TranscriptionProtocolError",
    # Providers
    "TranslationError",
    "SynthesisError",
]
