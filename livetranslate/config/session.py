"""Per-session configuration supplied by the client's ``start`` message."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from livetranslate.config.constants import RELAY


class SessionConfig(BaseModel):
    """Language pair and turn-detection tuning for one session.

    Field names are snake_case in Python and camelCase on the wire
    (``languageA``, ``endOfTurnConfidence``, ``keytermsPrompt`` ...).
    Immutable: changing languages mid-session requires a fresh ``start``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    language_a: str = Field(default=RELAY.DEFAULT_LANGUAGE_A, min_length=1)
    language_b: str = Field(default=RELAY.DEFAULT_LANGUAGE_B, min_length=1)
    sample_rate: int = Field(default=RELAY.DEFAULT_SAMPLE_RATE, gt=0)
    end_of_turn_confidence: float = Field(
        default=RELAY.DEFAULT_END_OF_TURN_CONFIDENCE, ge=0.0, le=1.0
    )
    min_end_of_turn_silence: int = Field(
        default=RELAY.DEFAULT_MIN_END_OF_TURN_SILENCE_MS, ge=0
    )
    max_turn_silence: int = Field(default=RELAY.DEFAULT_MAX_TURN_SILENCE_MS, ge=0)
    keyterms_prompt: list[str] = Field(default_factory=list)

    @classmethod
    def merge(cls, overrides: dict[str, Any] | None) -> SessionConfig:
        """Merge client overrides over defaults.

        Missing fields fall back silently; unknown fields are ignored.

        Raises:
            pydantic.ValidationError: If a supplied field has an invalid value
        """
        return cls.model_validate(overrides or {})

    def to_log_dict(self) -> dict[str, Any]:
        """Summary used in session logs."""
        return {
            "language_a": self.language_a,
            "language_b": self.language_b,
            "sample_rate": self.sample_rate,
            "end_of_turn_confidence": self.end_of_turn_confidence,
            "keyterms": len(self.keyterms_prompt),
        }
