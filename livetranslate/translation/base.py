"""Translator interface.

A translator is one opaque async operation:
``translate(text, source_lang, target_lang) -> text``.
"""

from __future__ import annotations

from typing import Protocol

from livetranslate.exceptions import TranslationError


class Translator(Protocol):
    """Protocol for pluggable translation backends."""

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text.

        Args:
            text: Finalized transcript
            source_lang: Detected (or defaulted) source language code
            target_lang: Target language code

        Returns:
            Translated text

        Raises:
            TranslationError: If the call fails
        """
        ...

    async def close(self) -> None:
        """Release client resources."""
        ...


class MockTranslator:
    """Mock translator for testing and local development.

    Looks the text up in ``phrasebook`` and otherwise tags it with the
    target language.
    """

    def __init__(
        self,
        phrasebook: dict[str, str] | None = None,
        fail_with: str | None = None,
    ) -> None:
        self._phrasebook = phrasebook or {}
        self._fail_with = fail_with
        self.calls: list[tuple[str, str, str]] = []

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        self.calls.append((text, source_lang, target_lang))
        if self._fail_with:
            raise TranslationError(self._fail_with, source_lang, target_lang)
        return self._phrasebook.get(text, f"[{target_lang}] {text}")

    async def close(self) -> None:
        pass
