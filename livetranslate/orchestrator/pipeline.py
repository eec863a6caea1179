"""Translation Pipeline - translate then synthesize one finalized turn.

Per turn the two calls are strictly sequential: the translation is relayed
before synthesis begins. Failures are contained here and reported to the
client as an error event; the session carries on. Nothing is retried.

Pipelines for different turns run concurrently unless ``serialize`` is set,
in which case a per-session lock admits one at a time. Results always carry
the turn order so the client can reorder.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable

from livetranslate.api.websocket.protocol import (
    ErrorEvent,
    OutboundEvent,
    TranslationEvent,
    TtsAudioEvent,
)
from livetranslate.observability.logging import PipelineLogger
from livetranslate.observability.metrics import (
    record_error,
    record_pipeline,
    record_translate_latency,
    record_tts_latency,
)
from livetranslate.transcription.events import TurnEvent
from livetranslate.translation.base import Translator
from livetranslate.tts.base import Synthesizer

EventSender = Callable[[OutboundEvent], Awaitable[Any]]


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class TranslationPipeline:
    """Translate + synthesize runner for one session.

    Usage:
        pipeline = TranslationPipeline(translator, synthesizer, channel.send, "conn-1")
        await pipeline.run(turn, source_lang="en", target_lang="es")
    """

    def __init__(
        self,
        translator: Translator,
        synthesizer: Synthesizer,
        send: EventSender,
        connection_id: str,
        serialize: bool = False,
    ) -> None:
        self._translator = translator
        self._synthesizer = synthesizer
        self._send = send
        self._logger = PipelineLogger(connection_id)
        self._lock: asyncio.Lock | None = asyncio.Lock() if serialize else None
        self._runs = 0
        self._failures = 0

    @property
    def serialized(self) -> bool:
        return self._lock is not None

    @property
    def runs(self) -> int:
        return self._runs

    @property
    def failures(self) -> int:
        return self._failures

    async def run(self, turn: TurnEvent, source_lang: str, target_lang: str) -> bool:
        """Run the pipeline for one turn.

        Returns:
            True if both translation and audio were relayed
        """
        if self._lock is None:
            return await self._run(turn, source_lang, target_lang)

        async with self._lock:
            return await self._run(turn, source_lang, target_lang)

    async def _run(self, turn: TurnEvent, source_lang: str, target_lang: str) -> bool:
        self._runs += 1
        self._logger.pipeline_started(turn.turn_order, source_lang, target_lang)
        stage = "translate"

        try:
            started = time.perf_counter()
            translated = await self._translator.translate(
                turn.transcript, source_lang, target_lang
            )
            translate_ms = _elapsed_ms(started)
            record_translate_latency(translate_ms)

            await self._send(
                TranslationEvent(
                    original=turn.transcript,
                    translated=translated,
                    source_lang=source_lang,
                    target_lang=target_lang,
                    translate_latency_ms=translate_ms,
                    turn_order=turn.turn_order,
                )
            )

            stage = "synthesize"
            started = time.perf_counter()
            audio = await self._synthesizer.synthesize(translated, target_lang)
            tts_ms = _elapsed_ms(started)
            record_tts_latency(tts_ms)

            await self._send(
                TtsAudioEvent(
                    audio=audio,
                    tts_latency_ms=tts_ms,
                    turn_order=turn.turn_order,
                )
            )

        except Exception as e:
            self._failures += 1
            record_pipeline("error")
            record_error("translation" if stage == "translate" else "tts", type(e).__name__)
            self._logger.pipeline_failed(turn.turn_order, stage, str(e))
            await self._send(ErrorEvent(message=f"Pipeline error: {e}"))
            return False

        record_pipeline("success")
        self._logger.pipeline_completed(turn.turn_order, translate_ms, tts_ms)
        return True
