"""Session Orchestrator - owns one client connection end to end.

Responsibilities:
- Dispatch classified client messages (audio, start, stop, force_endpoint)
- Create, replace and tear down the upstream transcription link
- Interpret upstream events and relay them to the client
- Trigger the translate/synthesize pipeline once per finalized turn

Usage:
    orchestrator = SessionOrchestrator(
        send=channel.send,
        link_factory=lambda connection_id: AssemblyAILink(connection_id=connection_id),
        translator=translator,
        synthesizer=synthesizer,
    )

    await orchestrator.handle_message(parse_client_message(message))
    ...
    await orchestrator.disconnect()
"""

from __future__ import annotations

import asyncio
import functools
from typing import Awaitable, Callable

from livetranslate.api.websocket.protocol import (
    AudioFrame,
    ClientMessage,
    ErrorEvent,
    ForceEndpointCommand,
    IgnoredMessage,
    SessionBeginEvent,
    SessionEndEvent,
    StartCommand,
    StatusEvent,
    StopCommand,
    TranscriptEvent,
)
from livetranslate.config.session import SessionConfig
from livetranslate.exceptions import TranscriptionConnectionError
from livetranslate.observability.logging import SessionLogger
from livetranslate.observability.metrics import (
    record_audio_dropped,
    record_error,
    record_session_start,
    record_stt_latency,
)
from livetranslate.orchestrator.pipeline import EventSender, TranslationPipeline
from livetranslate.orchestrator.session import Session
from livetranslate.orchestrator.state_machine import SessionState, StateTransition
from livetranslate.orchestrator.turns import resolve_languages, should_translate
from livetranslate.transcription.base import TranscriptionLink
from livetranslate.transcription.events import (
    BeginEvent,
    LinkClosedEvent,
    LinkErrorEvent,
    TerminationEvent,
    TurnEvent,
    UpstreamEvent,
)
from livetranslate.translation.base import Translator
from livetranslate.tts.base import Synthesizer

LinkFactory = Callable[[str], TranscriptionLink]


class SessionOrchestrator:
    """Per-connection orchestrator.

    All mutable connection state lives on ``self.session``. The upstream
    link is replaced, never shared; events from a replaced link are ignored.
    """

    def __init__(
        self,
        send: EventSender,
        link_factory: LinkFactory,
        translator: Translator,
        synthesizer: Synthesizer,
        connection_id: str | None = None,
        serialize_pipeline: bool = False,
    ) -> None:
        self.session = Session(connection_id=connection_id)
        self._send = send
        self._link_factory = link_factory
        self._logger = SessionLogger(self.session.connection_id)
        self._pipeline = TranslationPipeline(
            translator,
            synthesizer,
            send,
            self.session.connection_id,
            serialize=serialize_pipeline,
        )
        self._pipeline_tasks: set[asyncio.Task] = set()

        self._message_handlers: dict[type, Callable[..., Awaitable[None]]] = {
            AudioFrame: self._on_audio_frame,
            StartCommand: self._on_start_command,
            StopCommand: self._on_stop_command,
            ForceEndpointCommand: self._on_force_endpoint_command,
            IgnoredMessage: self._on_ignored_message,
        }
        self._event_handlers: dict[type, Callable[..., Awaitable[None]]] = {
            BeginEvent: self._on_begin,
            TurnEvent: self._on_turn,
            TerminationEvent: self._on_termination,
            LinkErrorEvent: self._on_link_error,
            LinkClosedEvent: self._on_link_closed,
        }

        self.session.state_machine.on_state_change(self._log_transition)
        self.session.state_machine.on_enter(SessionState.TERMINATED, self._on_terminated)
        self._logger.client_connected()

    @property
    def connection_id(self) -> str:
        return self.session.connection_id

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def pipeline(self) -> TranslationPipeline:
        return self._pipeline

    @property
    def pending_pipelines(self) -> int:
        return len(self._pipeline_tasks)

    # -------------------------------------------------------------------------
    # Client side
    # -------------------------------------------------------------------------

    async def handle_message(self, message: ClientMessage) -> None:
        """Dispatch one classified client message."""
        handler = self._message_handlers[type(message)]
        await handler(message)

    async def handle_audio(self, frame: bytes) -> bool:
        """Forward an audio frame upstream.

        Returns:
            True if forwarded, False if dropped (no open link)
        """
        if not self.session.link_open:
            record_audio_dropped()
            self._logger.audio_dropped()
            return False
        return await self.session.link.send_audio(frame)

    async def start(self, config: SessionConfig | None = None) -> None:
        """Open a new upstream link, replacing any existing one."""
        config = config or SessionConfig()
        session = self.session

        previous = session.detach_link()
        if previous is not None and not previous.is_closed:
            await previous.close()

        self._logger.session_started({"config": config.to_log_dict()})
        await self._transition(SessionState.CONNECTING, "client_start")

        link = self._link_factory(session.connection_id)
        link.on_event(functools.partial(self._on_upstream_event, link))
        session.begin_link(link, config)

        try:
            await link.connect(config)
        except TranscriptionConnectionError as e:
            record_error("transcription", "connect")
            self._logger.upstream_error(str(e))
            await self._send(ErrorEvent(message=f"Transcription connection error: {e}"))
            await link.close()
            return

        await self._send(StatusEvent(status="connected"))

    async def stop(self) -> None:
        """Gracefully end the upstream session.

        The link stays open until upstream acknowledges and closes.
        """
        if not self.session.link_open:
            return

        await self.session.link.terminate()
        if self.session.state in (SessionState.CONNECTING, SessionState.ACTIVE):
            await self._transition(SessionState.STOPPING, "client_stop")

    async def force_endpoint(self) -> None:
        """Close the current turn without ending the session."""
        if not self.session.link_open:
            return
        await self.session.link.force_endpoint()

    async def disconnect(self) -> None:
        """Tear down after the client connection closed. Idempotent."""
        session = self.session
        if session.cleaning_up:
            return
        session.cleaning_up = True
        state = session.state
        state_duration_ms = session.state_machine.get_state_duration_ms()

        link = session.link
        if link is not None:
            if link.is_open:
                await link.terminate()
            await link.close()
            session.detach_link()

        if session.state != SessionState.TERMINATED:
            await self._transition(SessionState.TERMINATED, "client_disconnect")

        self._logger.client_disconnected(state.value, state_duration_ms)

    async def wait_for_pipelines(self) -> None:
        """Wait for in-flight pipelines to finish."""
        if self._pipeline_tasks:
            await asyncio.gather(*list(self._pipeline_tasks), return_exceptions=True)

    async def _on_audio_frame(self, message: AudioFrame) -> None:
        await self.handle_audio(message.data)

    async def _on_start_command(self, message: StartCommand) -> None:
        await self.start(message.config)

    async def _on_stop_command(self, message: StopCommand) -> None:
        await self.stop()

    async def _on_force_endpoint_command(self, message: ForceEndpointCommand) -> None:
        await self.force_endpoint()

    async def _on_ignored_message(self, message: IgnoredMessage) -> None:
        self._logger.message_ignored(message.reason)

    # -------------------------------------------------------------------------
    # Upstream side
    # -------------------------------------------------------------------------

    async def _on_upstream_event(self, link: TranscriptionLink, event: UpstreamEvent) -> None:
        if link is not self.session.link:
            # Replaced or detached link
            return
        handler = self._event_handlers[type(event)]
        await handler(event)

    async def _on_begin(self, event: BeginEvent) -> None:
        session = self.session
        session.session_id = event.session_id
        session.expires_at = event.expires_at

        self._logger.upstream_begin(event.session_id, event.expires_at)
        record_session_start()

        if session.state == SessionState.CONNECTING:
            await self._transition(SessionState.ACTIVE, "upstream_begin")

        await self._send(
            SessionBeginEvent(session_id=event.session_id, expires_at=event.expires_at)
        )

    async def _on_turn(self, event: TurnEvent) -> None:
        observation = self.session.turns.observe(event)

        if observation.new_utterance:
            self._logger.turn_started(event.turn_order)
        if observation.first_end_of_turn:
            self._logger.turn_ended(event.turn_order, observation.stt_latency_ms)
            if observation.stt_latency_ms is not None:
                record_stt_latency(observation.stt_latency_ms)

        await self._send(TranscriptEvent(turn=event, stt_latency_ms=observation.stt_latency_ms))

        if not should_translate(event):
            return

        source_lang, target_lang = resolve_languages(event, self.session.config)
        task = asyncio.create_task(self._pipeline.run(event, source_lang, target_lang))
        self._pipeline_tasks.add(task)
        task.add_done_callback(self._pipeline_tasks.discard)

    async def _on_termination(self, event: TerminationEvent) -> None:
        self._logger.upstream_terminated(event.audio_duration_s, event.session_duration_s)
        await self._send(
            SessionEndEvent(
                audio_duration_s=event.audio_duration_s,
                session_duration_s=event.session_duration_s,
            )
        )
        if self.session.state != SessionState.TERMINATED:
            await self._transition(SessionState.TERMINATED, "upstream_termination")

    async def _on_link_error(self, event: LinkErrorEvent) -> None:
        record_error("transcription", "link")
        self._logger.upstream_error(event.message)
        await self._send(ErrorEvent(message=f"Transcription connection error: {event.message}"))

    async def _on_link_closed(self, event: LinkClosedEvent) -> None:
        session = self.session
        self._logger.upstream_closed(event.code, event.reason, deliberate=session.cleaning_up)

        if session.state != SessionState.TERMINATED:
            await self._transition(SessionState.TERMINATED, "upstream_closed")

        if not session.cleaning_up:
            await self._send(StatusEvent(status="disconnected"))

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    async def _transition(self, new_state: SessionState, reason: str) -> None:
        await self.session.state_machine.transition_to(new_state, reason)

    def _log_transition(self, transition: StateTransition) -> None:
        self._logger.state_change(
            old_state=transition.old_state.value,
            new_state=transition.new_state.value,
            reason=transition.reason,
        )

    def _on_terminated(self, transition: StateTransition) -> None:
        # Partial utterance can no longer be finalized
        if self.session.turns.in_utterance:
            self._logger.turn_abandoned()
        self.session.turns.reset()
