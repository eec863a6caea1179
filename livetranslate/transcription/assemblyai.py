"""AssemblyAI Streaming Link - Universal Streaming v3 over WebSocket.

Uses the multilingual streaming model with:
- Automatic language detection per turn
- Formatted end-of-turn reports (``format_turns=true``)
- Tunable end-of-turn confidence and silence thresholds
- Keyterm prompting (one ``keyterms_prompt`` parameter per term)

The link never retries. A failed connect surfaces as
TranscriptionConnectionError and the client decides whether to restart.
"""

from __future__ import annotations

import asyncio

import httpx
import websockets
from websockets.exceptions import ConnectionClosedError

from livetranslate.config.constants import RELAY
from livetranslate.config.session import SessionConfig
from livetranslate.config.settings import get_settings
from livetranslate.exceptions import TranscriptionConnectionError, TranscriptionProtocolError
from livetranslate.observability.logging import get_logger
from livetranslate.transcription.base import TranscriptionLink
from livetranslate.transcription.events import LinkErrorEvent, decode_message

logger = get_logger(__name__)

# Upper bound on waiting for the receive loop to drain after close()
_RECEIVE_DRAIN_TIMEOUT_S = 5.0


def build_query_params(config: SessionConfig, speech_model: str = RELAY.SPEECH_MODEL) -> httpx.QueryParams:
    """Connection parameters for a session configuration."""
    params: list[tuple[str, str]] = [
        ("sample_rate", str(config.sample_rate)),
        ("speech_model", speech_model),
        ("language_detection", "true"),
        ("format_turns", "true"),
        ("end_of_turn_confidence_threshold", str(config.end_of_turn_confidence)),
        ("min_end_of_turn_silence_when_confident", str(config.min_end_of_turn_silence)),
        ("max_turn_silence", str(config.max_turn_silence)),
    ]
    params.extend(("keyterms_prompt", term) for term in config.keyterms_prompt)
    return httpx.QueryParams(params)


class AssemblyAILink(TranscriptionLink):
    """AssemblyAI Universal Streaming link.

    Usage:
        link = AssemblyAILink(api_key="...")
        link.on_event(handle_event)
        await link.connect(SessionConfig())

        await link.send_audio(pcm_frame)
        await link.terminate()  # upstream flushes, sends Termination, closes
    """

    service_name = "assemblyai"

    def __init__(
        self,
        api_key: str | None = None,
        streaming_url: str | None = None,
        speech_model: str | None = None,
        connection_id: str | None = None,
    ) -> None:
        super().__init__(connection_id)

        if api_key is None or streaming_url is None or speech_model is None:
            settings = get_settings()
            api_key = api_key if api_key is not None else settings.assemblyai_api_key or ""
            streaming_url = streaming_url or settings.assemblyai_streaming_url
            speech_model = speech_model or settings.assemblyai_speech_model

        self._api_key = api_key
        self._streaming_url = streaming_url
        self._speech_model = speech_model
        self._websocket = None
        self._receive_task: asyncio.Task | None = None

    def build_url(self, config: SessionConfig) -> str:
        """Full streaming URL for a session configuration."""
        params = build_query_params(config, self._speech_model)
        return str(httpx.URL(self._streaming_url, params=params))

    async def connect(self, config: SessionConfig) -> None:
        """Open the streaming connection and start receiving events."""
        if self._closed:
            raise TranscriptionConnectionError(self.service_name, "link already closed")

        url = self.build_url(config)
        logger.info(
            "assemblyai_connecting",
            connection_id=self._connection_id,
            sample_rate=config.sample_rate,
            keyterms=len(config.keyterms_prompt),
        )

        try:
            self._websocket = await websockets.connect(
                url,
                additional_headers={"Authorization": self._api_key},
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise TranscriptionConnectionError(self.service_name, str(e)) from e

        self._open = True
        self._receive_task = asyncio.create_task(self._receive_loop())
        logger.info("assemblyai_connected", connection_id=self._connection_id)

    async def _send_raw(self, data: bytes | str) -> None:
        await self._websocket.send(data)

    async def _receive_loop(self) -> None:
        """Decode upstream messages until the socket closes."""
        websocket = self._websocket
        try:
            async for raw in websocket:
                try:
                    event = decode_message(raw)
                except TranscriptionProtocolError as e:
                    logger.warning(
                        "assemblyai_decode_error",
                        connection_id=self._connection_id,
                        error=str(e),
                    )
                    continue

                if event is None:
                    continue

                await self._emit(event)

        except ConnectionClosedError as e:
            await self._emit(LinkErrorEvent(message=str(e)))

        finally:
            self._open = False
            await self._emit_closed(
                getattr(websocket, "close_code", None),
                getattr(websocket, "close_reason", None) or "",
            )

    async def _close_transport(self) -> None:
        if self._websocket is not None:
            try:
                await self._websocket.close()
            except Exception as e:
                logger.warning(
                    "assemblyai_close_error",
                    connection_id=self._connection_id,
                    error=str(e),
                )

        task = self._receive_task
        if task is None or task is asyncio.current_task() or task.done():
            return

        try:
            await asyncio.wait_for(task, timeout=_RECEIVE_DRAIN_TIMEOUT_S)
        except asyncio.TimeoutError:
            logger.warning("assemblyai_receive_drain_timeout", connection_id=self._connection_id)
