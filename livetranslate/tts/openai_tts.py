"""OpenAI Speech Synthesis.

Synthesizes one complete clip per translated turn with a fixed voice per
target language (see ``VOICE_MAP``).
"""

from __future__ import annotations

from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from livetranslate.config.constants import RELAY, voice_for
from livetranslate.config.settings import get_settings
from livetranslate.exceptions import SynthesisError


@dataclass
class SynthesizerConfig:
    """Configuration for OpenAI speech synthesis."""

    api_key: str = ""
    base_url: str | None = None
    model: str = RELAY.TTS_MODEL
    response_format: str = RELAY.TTS_FORMAT
    speed: float = RELAY.TTS_SPEED
    timeout_s: float = 30.0


class OpenAISynthesizer:
    """Synthesizer backed by the OpenAI speech endpoint.

    Usage:
        tts = OpenAISynthesizer(SynthesizerConfig(api_key="..."))
        audio = await tts.synthesize("Hola.", "es")
    """

    def __init__(
        self,
        config: SynthesizerConfig | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        if config is None:
            settings = get_settings()
            config = SynthesizerConfig(
                api_key=settings.openai_api_key or "",
                base_url=settings.openai_base_url,
                model=settings.tts_model,
                response_format=settings.tts_format,
                timeout_s=settings.provider_timeout_s,
            )

        self._config = config
        self._client = client or AsyncOpenAI(
            api_key=config.api_key or "missing",
            base_url=config.base_url,
            timeout=config.timeout_s,
            max_retries=0,
        )

    @property
    def config(self) -> SynthesizerConfig:
        return self._config

    async def synthesize(self, text: str, language: str) -> bytes:
        voice = voice_for(language)
        try:
            response = await self._client.audio.speech.create(
                model=self._config.model,
                voice=voice,
                input=text,
                response_format=self._config.response_format,
                speed=self._config.speed,
            )
            return response.content
        except OpenAIError as e:
            raise SynthesisError(str(e), text_length=len(text), voice=voice) from e

    async def close(self) -> None:
        await self._client.close()
