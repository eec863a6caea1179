"""Protocol constants and session defaults.

Values here mirror the upstream streaming contract and the defaults applied
when a client omits fields from its ``start`` configuration.
"""

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class RelayConstants:
    """Immutable relay defaults.

    All silence values in milliseconds.
    """

    # Session defaults (applied when the client omits a field)
    DEFAULT_LANGUAGE_A: Final[str] = "en"
    DEFAULT_LANGUAGE_B: Final[str] = "es"
    DEFAULT_SAMPLE_RATE: Final[int] = 16000  # PCM16 mono
    DEFAULT_END_OF_TURN_CONFIDENCE: Final[float] = 0.4
    DEFAULT_MIN_END_OF_TURN_SILENCE_MS: Final[int] = 400
    DEFAULT_MAX_TURN_SILENCE_MS: Final[int] = 1280

    # Upstream streaming contract
    STREAMING_URL: Final[str] = "wss://streaming.assemblyai.com/v3/ws"
    SPEECH_MODEL: Final[str] = "universal-streaming-multilingual"
    FORCE_ENDPOINT_CONFIDENCE: Final[float] = 1.0

    # Translation / synthesis defaults
    TRANSLATION_MODEL: Final[str] = "gpt-4o-mini"
    TRANSLATION_TEMPERATURE: Final[float] = 0.3
    TRANSLATION_MAX_TOKENS: Final[int] = 1000
    TTS_MODEL: Final[str] = "tts-1"
    TTS_FORMAT: Final[str] = "mp3"
    TTS_SPEED: Final[float] = 1.0
    DEFAULT_VOICE: Final[str] = "alloy"

    # State machine
    MAX_TRANSITION_HISTORY: Final[int] = 100


RELAY = RelayConstants()


# Display names used in the translation prompt
LANGUAGE_NAMES: Final[dict[str, str]] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
}

# Synthesis voice per target language
VOICE_MAP: Final[dict[str, str]] = {
    "en": "alloy",
    "es": "nova",
    "fr": "shimmer",
    "de": "echo",
    "it": "fable",
    "pt": "onyx",
}


def language_name(code: str) -> str:
    """Display name for a language code, falling back to the code itself."""
    return LANGUAGE_NAMES.get(code, code)


def voice_for(language: str) -> str:
    """Synthesis voice for a language."""
    return VOICE_MAP.get(language, RELAY.DEFAULT_VOICE)
