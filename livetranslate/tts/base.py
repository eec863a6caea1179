"""Synthesizer interface.

A synthesizer is one opaque async operation:
``synthesize(text, lang) -> audio bytes`` (a complete encoded clip).
"""

from __future__ import annotations

from typing import Protocol

from livetranslate.exceptions import SynthesisError


class Synthesizer(Protocol):
    """Protocol for pluggable speech synthesis backends."""

    async def synthesize(self, text: str, language: str) -> bytes:
        """Synthesize speech.

        Args:
            text: Text to speak
            language: Language code, used to pick the voice

        Returns:
            Encoded audio bytes

        Raises:
            SynthesisError: If the call fails
        """
        ...

    async def close(self) -> None:
        """Release client resources."""
        ...


class MockSynthesizer:
    """Mock synthesizer returning a fixed clip."""

    def __init__(
        self,
        audio: bytes = b"ID3mock-audio",
        fail_with: str | None = None,
    ) -> None:
        self._audio = audio
        self._fail_with = fail_with
        self.calls: list[tuple[str, str]] = []

    async def synthesize(self, text: str, language: str) -> bytes:
        self.calls.append((text, language))
        if self._fail_with:
            raise SynthesisError(self._fail_with, text_length=len(text))
        return self._audio

    async def close(self) -> None:
        pass
