"""OpenAI Translator - chat-completion based translation.

One non-streaming completion per finalized turn. The prompt asks for the
translated text only, preserving tone and punctuation.
"""

from __future__ import annotations

from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from livetranslate.config.constants import RELAY, language_name
from livetranslate.config.settings import get_settings
from livetranslate.exceptions import TranslationError

SYSTEM_PROMPT = (
    "You are a professional translator. Translate the following text from "
    "{source} to {target}. Return ONLY the translated text. Preserve the "
    "original tone, meaning, and punctuation."
)


@dataclass
class TranslatorConfig:
    """Configuration for the OpenAI translator."""

    api_key: str = ""
    base_url: str | None = None
    model: str = RELAY.TRANSLATION_MODEL
    temperature: float = RELAY.TRANSLATION_TEMPERATURE
    max_tokens: int = RELAY.TRANSLATION_MAX_TOKENS
    timeout_s: float = 30.0


def build_messages(text: str, source_lang: str, target_lang: str) -> list[dict[str, str]]:
    """Chat messages for one translation request."""
    system = SYSTEM_PROMPT.format(
        source=language_name(source_lang),
        target=language_name(target_lang),
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": text},
    ]


class OpenAITranslator:
    """Translator backed by OpenAI chat completions.

    Usage:
        translator = OpenAITranslator(TranslatorConfig(api_key="..."))
        text = await translator.translate("Hello there.", "en", "es")
        await translator.close()
    """

    def __init__(
        self,
        config: TranslatorConfig | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        if config is None:
            settings = get_settings()
            config = TranslatorConfig(
                api_key=settings.openai_api_key or "",
                base_url=settings.openai_base_url,
                model=settings.translation_model,
                timeout_s=settings.provider_timeout_s,
            )

        self._config = config
        self._client = client or AsyncOpenAI(
            api_key=config.api_key or "missing",
            base_url=config.base_url,
            timeout=config.timeout_s,
            max_retries=0,  # Each call is attempted exactly once
        )

    @property
    def config(self) -> TranslatorConfig:
        return self._config

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text, returning "" if the model returns no content."""
        try:
            response = await self._client.chat.completions.create(
                model=self._config.model,
                messages=build_messages(text, source_lang, target_lang),
                temperature=self._config.temperature,
                max_tokens=self._config.max_tokens,
            )
        except OpenAIError as e:
            raise TranslationError(
                str(e),
                source_lang=source_lang,
                target_lang=target_lang,
                model=self._config.model,
            ) from e

        if not response.choices:
            return ""
        content = response.choices[0].message.content
        return (content or "").strip()

    async def close(self) -> None:
        await self._client.close()
