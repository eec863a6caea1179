"""Translation backends.

Usage:
    from livetranslate.translation import create_translator

    translator = create_translator("openai", api_key="...")
    text = await translator.translate("Hello", "en", "es")
"""

from __future__ import annotations

from livetranslate.translation.base import MockTranslator, Translator

__all__ = [
    "Translator",
    "MockTranslator",
    "create_translator",
]


def create_translator(engine: str = "mock", **kwargs) -> Translator:
    """Factory function to create translators.

    Args:
        engine: Backend type ("mock", "openai")
        **kwargs: Backend-specific configuration

    Raises:
        ValueError: If engine type is unknown
    """
    if engine == "mock":
        return MockTranslator(**kwargs)

    elif engine == "openai":
        from livetranslate.translation.openai_translator import (
            OpenAITranslator,
            TranslatorConfig,
        )

        if not kwargs:
            return OpenAITranslator()
        return OpenAITranslator(TranslatorConfig(**kwargs))

    else:
        raise ValueError(
            f"Unknown translation engine: {engine}. "
            f"Available: mock, openai"
        )
