"""Speech synthesis backends.

Usage:
    from livetranslate.tts import create_synthesizer

    tts = create_synthesizer("openai", api_key="...")
    audio = await tts.synthesize("Hola.", "es")
"""

from __future__ import annotations

from livetranslate.tts.base import MockSynthesizer, Synthesizer

__all__ = [
    "Synthesizer",
    "MockSynthesizer",
    "create_synthesizer",
]


def create_synthesizer(engine: str = "mock", **kwargs) -> Synthesizer:
    """Factory function to create synthesizers.

    Args:
        engine: Backend type ("mock", "openai")
        **kwargs: Backend-specific configuration

    Raises:
        ValueError: If engine type is unknown
    """
    if engine == "mock":
        return MockSynthesizer(**kwargs)

    elif engine == "openai":
        from livetranslate.tts.openai_tts import OpenAISynthesizer, SynthesizerConfig

        if not kwargs:
            return OpenAISynthesizer()
        return OpenAISynthesizer(SynthesizerConfig(**kwargs))

    else:
        raise ValueError(
            f"Unknown TTS engine: {engine}. "
            f"Available: mock, openai"
        )
