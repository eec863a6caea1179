"""Tests for the Session Orchestrator.

Tests cover:
- start / stop / force_endpoint / disconnect lifecycle
- Upstream event relay (Begin, Turn, Termination, error, close)
- Pipeline trigger and dedup of end-of-turn reports
- Stale events from replaced links
- Audio drop before the link opens
"""

import pytest
from structlog.testing import capture_logs

from livetranslate.api.websocket.protocol import (
    AudioFrame,
    ForceEndpointCommand,
    IgnoredMessage,
    StartCommand,
    StopCommand,
    parse_control,
)
from livetranslate.config.session import SessionConfig
from livetranslate.orchestrator.orchestrator import SessionOrchestrator
from livetranslate.orchestrator.state_machine import SessionState
from livetranslate.transcription.base import MockTranscriptionLink
from livetranslate.translation.base import MockTranslator
from livetranslate.tts.base import MockSynthesizer


async def _start_active(orchestrator, links, config=None) -> MockTranscriptionLink:
    await orchestrator.start(config or SessionConfig())
    link = links[-1]
    await link.simulate_begin("abc", expires_at=1700000000)
    return link


class TestStart:
    """Tests for start()."""

    @pytest.mark.asyncio
    async def test_start_connects_with_config(self, orchestrator, links, recorder):
        config = SessionConfig(language_a="fr", language_b="de")
        await orchestrator.start(config)

        assert len(links) == 1
        assert links[0].config == config
        assert orchestrator.state == SessionState.CONNECTING
        assert recorder.types == ["status"]
        assert recorder.events[0].status == "connected"

    @pytest.mark.asyncio
    async def test_start_defaults_when_no_config(self, orchestrator, links):
        await orchestrator.start()
        assert links[0].config == SessionConfig()

    @pytest.mark.asyncio
    async def test_begin_activates_and_notifies(self, orchestrator, links, recorder):
        await _start_active(orchestrator, links)

        assert orchestrator.state == SessionState.ACTIVE
        assert orchestrator.session.session_id == "abc"
        assert orchestrator.session.expires_at == 1700000000
        begin = recorder.of_type("session_begin")[0]
        assert begin.to_dict() == {
            "type": "session_begin",
            "sessionId": "abc",
            "expiresAt": 1700000000,
        }

    @pytest.mark.asyncio
    async def test_restart_closes_previous_link(self, orchestrator, links, recorder):
        first = await _start_active(orchestrator, links)
        await orchestrator.start(SessionConfig(language_a="es", language_b="en"))

        assert len(links) == 2
        assert first.is_closed
        assert orchestrator.session.link is links[1]
        assert orchestrator.session.config.language_a == "es"
        # Closing the replaced link is not reported as a disconnect
        assert [e.status for e in recorder.of_type("status")] == ["connected", "connected"]

    @pytest.mark.asyncio
    async def test_restart_before_begin(self, orchestrator, links):
        await orchestrator.start()
        await orchestrator.start()

        assert orchestrator.state == SessionState.CONNECTING
        assert links[0].is_closed
        assert links[1].is_open

    @pytest.mark.asyncio
    async def test_restart_after_termination(self, orchestrator, links):
        link = await _start_active(orchestrator, links)
        await link.simulate_termination(1.0, 2.0)
        assert orchestrator.state == SessionState.TERMINATED

        await orchestrator.start()
        assert orchestrator.state == SessionState.CONNECTING

    @pytest.mark.asyncio
    async def test_connect_failure_reports_error(self, recorder, translator, synthesizer):
        def failing_factory(connection_id):
            return MockTranscriptionLink(connection_id, connect_error="401 Unauthorized")

        orchestrator = SessionOrchestrator(
            send=recorder.send,
            link_factory=failing_factory,
            translator=translator,
            synthesizer=synthesizer,
        )
        await orchestrator.start()

        assert recorder.types == ["error", "status"]
        assert recorder.events[0].message == "Transcription connection error: 401 Unauthorized"
        assert recorder.events[1].status == "disconnected"
        assert orchestrator.state == SessionState.TERMINATED


class TestAudio:
    """Tests for audio forwarding."""

    @pytest.mark.asyncio
    async def test_audio_before_start_dropped(self, orchestrator, recorder):
        forwarded = await orchestrator.handle_audio(b"\x00\x01" * 160)

        assert forwarded is False
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_audio_forwarded_unmodified(self, orchestrator, links):
        link = await _start_active(orchestrator, links)
        frame = bytes(range(256))

        assert await orchestrator.handle_audio(frame) is True
        assert link.sent_audio == [frame]

    @pytest.mark.asyncio
    async def test_audio_after_close_dropped(self, orchestrator, links):
        link = await _start_active(orchestrator, links)
        await link.simulate_remote_close(1000, "")

        assert await orchestrator.handle_audio(b"\x00\x00") is False
        assert link.sent_audio == []

    @pytest.mark.asyncio
    async def test_audio_frame_message_dispatch(self, orchestrator, links):
        link = await _start_active(orchestrator, links)
        await orchestrator.handle_message(AudioFrame(data=b"pcm"))
        assert link.sent_audio == [b"pcm"]


class TestControl:
    """Tests for stop and force_endpoint."""

    @pytest.mark.asyncio
    async def test_stop_sends_terminate(self, orchestrator, links):
        link = await _start_active(orchestrator, links)
        await orchestrator.handle_message(StopCommand())

        assert link.directive_types == ["Terminate"]
        assert orchestrator.state == SessionState.STOPPING
        # Link stays open until upstream closes
        assert link.is_open

    @pytest.mark.asyncio
    async def test_stop_without_link_is_noop(self, orchestrator, recorder):
        await orchestrator.stop()
        assert orchestrator.state == SessionState.IDLE
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_stop_then_termination(self, orchestrator, links, recorder):
        link = await _start_active(orchestrator, links)
        await orchestrator.stop()
        await link.simulate_termination(audio_duration_s=12.5, session_duration_s=14.0)

        end = recorder.of_type("session_end")[0]
        assert end.to_dict() == {
            "type": "session_end",
            "audioDuration": 12.5,
            "sessionDuration": 14.0,
        }
        assert orchestrator.state == SessionState.TERMINATED

    @pytest.mark.asyncio
    async def test_force_endpoint(self, orchestrator, links):
        link = await _start_active(orchestrator, links)
        await orchestrator.handle_message(ForceEndpointCommand())

        assert link.sent_directives == [
            {"type": "ForceEndpoint", "end_of_turn_confidence": 1.0}
        ]
        assert orchestrator.state == SessionState.ACTIVE

    @pytest.mark.asyncio
    async def test_force_endpoint_without_link_is_noop(self, orchestrator):
        await orchestrator.force_endpoint()
        assert orchestrator.state == SessionState.IDLE

    @pytest.mark.asyncio
    async def test_ignored_message_has_no_effect(self, orchestrator, recorder):
        await orchestrator.handle_message(IgnoredMessage("invalid_json"))
        await orchestrator.handle_message(parse_control('{"type":"pause"}'))

        assert recorder.events == []
        assert orchestrator.state == SessionState.IDLE

    @pytest.mark.asyncio
    async def test_start_command_dispatch(self, orchestrator, links):
        await orchestrator.handle_message(StartCommand(SessionConfig(sample_rate=48000)))
        assert links[0].config.sample_rate == 48000


class TestDisconnect:
    """Tests for client disconnect teardown."""

    @pytest.mark.asyncio
    async def test_disconnect_terminates_and_closes(self, orchestrator, links, recorder):
        link = await _start_active(orchestrator, links)
        await orchestrator.disconnect()

        assert link.directive_types == ["Terminate"]
        assert link.is_closed
        assert orchestrator.state == SessionState.TERMINATED
        assert orchestrator.session.link is None
        # Deliberate teardown is not reported as a disconnect
        assert "disconnected" not in [e.status for e in recorder.of_type("status")]

    @pytest.mark.asyncio
    async def test_disconnect_after_stop_sends_one_terminate(self, orchestrator, links):
        link = await _start_active(orchestrator, links)
        await orchestrator.stop()
        await orchestrator.disconnect()

        assert link.directive_types.count("Terminate") == 1

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self, orchestrator, links):
        link = await _start_active(orchestrator, links)
        await orchestrator.disconnect()
        await orchestrator.disconnect()

        assert link.directive_types.count("Terminate") == 1
        assert orchestrator.state == SessionState.TERMINATED

    @pytest.mark.asyncio
    async def test_disconnect_without_start(self, orchestrator, recorder):
        await orchestrator.disconnect()
        assert orchestrator.state == SessionState.TERMINATED
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_disconnect_logs_state_left(self, recorder, link_factory, links, translator, synthesizer):
        with capture_logs() as logs:
            orchestrator = SessionOrchestrator(
                send=recorder.send,
                link_factory=link_factory,
                translator=translator,
                synthesizer=synthesizer,
            )
            await _start_active(orchestrator, links)
            await orchestrator.disconnect()

        disconnected = [log for log in logs if log["event"] == "client_disconnected"]
        assert len(disconnected) == 1
        assert disconnected[0]["state"] == "active"
        assert disconnected[0]["state_duration_ms"] >= 0

    @pytest.mark.asyncio
    async def test_disconnect_mid_utterance_abandons_turn(self, orchestrator, links):
        link = await _start_active(orchestrator, links)
        await link.simulate_turn("half a sente")
        assert orchestrator.session.turns.in_utterance

        await orchestrator.disconnect()
        assert not orchestrator.session.turns.in_utterance


class TestUpstreamClose:
    """Tests for upstream errors and unexpected close."""

    @pytest.mark.asyncio
    async def test_remote_close_reports_disconnected(self, orchestrator, links, recorder):
        link = await _start_active(orchestrator, links)
        await link.simulate_remote_close(1011, "internal error")

        assert recorder.events[-1].to_dict() == {"type": "status", "status": "disconnected"}
        assert orchestrator.state == SessionState.TERMINATED

    @pytest.mark.asyncio
    async def test_link_error_keeps_state(self, orchestrator, links, recorder):
        link = await _start_active(orchestrator, links)
        await link.simulate_error("connection reset")

        error = recorder.of_type("error")[0]
        assert error.message == "Transcription connection error: connection reset"
        assert orchestrator.state == SessionState.ACTIVE

    @pytest.mark.asyncio
    async def test_events_from_replaced_link_ignored(self, orchestrator, links, recorder):
        old = await _start_active(orchestrator, links)
        await orchestrator.start()
        before = len(recorder.events)

        await old.simulate_turn("stale words", turn_order=9)
        await old.simulate_begin("old-session")

        assert len(recorder.events) == before
        assert orchestrator.state == SessionState.CONNECTING


class TestTurns:
    """Tests for turn relay and pipeline triggering."""

    @pytest.mark.asyncio
    async def test_example_scenario(self, orchestrator, links, recorder, translator, synthesizer):
        link = await _start_active(orchestrator, links)
        assert recorder.types == ["status", "session_begin"]

        await link.simulate_turn("Hello", end_of_turn=False, turn_order=0)
        await orchestrator.wait_for_pipelines()
        transcript = recorder.events[-1]
        assert transcript.type == "transcript"
        assert transcript.to_dict()["transcript"] == "Hello"
        assert translator.calls == []

        await link.simulate_turn(
            "Hello there.",
            end_of_turn=True,
            turn_is_formatted=True,
            language_code="en",
            language_confidence=0.98,
            turn_order=0,
        )
        await orchestrator.wait_for_pipelines()

        assert recorder.types[-3:] == ["transcript", "translation", "tts_audio"]
        translation = recorder.events[-2].to_dict()
        assert translation["translated"] == "Hola."
        assert translation["sourceLang"] == "en"
        assert translation["targetLang"] == "es"
        assert translation["original"] == "Hello there."
        assert recorder.events[-1].audio == b"ID3mock-audio"
        assert synthesizer.calls == [("Hola.", "es")]

    @pytest.mark.asyncio
    async def test_pipeline_fires_once_per_utterance(self, orchestrator, links, translator):
        link = await _start_active(orchestrator, links)

        await link.simulate_turn("hello there", turn_order=1)
        await link.simulate_turn("hello there", end_of_turn=True, turn_order=1)
        await link.simulate_turn(
            "Hello there.", end_of_turn=True, turn_is_formatted=True, turn_order=1
        )
        await orchestrator.wait_for_pipelines()

        assert translator.calls == [("Hello there.", "en", "es")]

    @pytest.mark.asyncio
    async def test_blank_formatted_turn_not_translated(self, orchestrator, links, translator, recorder):
        link = await _start_active(orchestrator, links)
        await link.simulate_turn("   ", end_of_turn=True, turn_is_formatted=True)
        await orchestrator.wait_for_pipelines()

        assert translator.calls == []
        assert recorder.types[-1] == "transcript"

    @pytest.mark.asyncio
    async def test_spanish_turn_translates_to_english(self, orchestrator, links, recorder):
        link = await _start_active(orchestrator, links)
        await link.simulate_turn(
            "Hola amigo.", end_of_turn=True, turn_is_formatted=True, language_code="es"
        )
        await orchestrator.wait_for_pipelines()

        translation = recorder.of_type("translation")[0]
        assert translation.translated == "Hello friend."
        assert translation.target_lang == "en"

    @pytest.mark.asyncio
    async def test_stt_latency_on_end_of_turn(self, orchestrator, links, recorder):
        link = await _start_active(orchestrator, links)
        await link.simulate_turn("hi", turn_order=2)
        await link.simulate_turn("Hi.", end_of_turn=True, turn_is_formatted=True, turn_order=2)
        await orchestrator.wait_for_pipelines()

        transcripts = [e.to_dict() for e in recorder.of_type("transcript")]
        assert "sttLatency" not in transcripts[0]
        assert transcripts[1]["sttLatency"] >= 0

    @pytest.mark.asyncio
    async def test_no_stt_latency_for_turn_reported_final_first(self, orchestrator, links, recorder):
        link = await _start_active(orchestrator, links)
        await link.simulate_turn("one", turn_order=0)
        await link.simulate_turn("one", end_of_turn=True, turn_order=0)
        await link.simulate_turn("One.", end_of_turn=True, turn_is_formatted=True, turn_order=0)
        await link.simulate_turn("Yes.", end_of_turn=True, turn_is_formatted=True, turn_order=1)
        await orchestrator.wait_for_pipelines()

        transcripts = [e.to_dict() for e in recorder.of_type("transcript")]
        assert "sttLatency" in transcripts[2]
        assert "sttLatency" not in transcripts[3]

    @pytest.mark.asyncio
    async def test_results_tagged_with_turn_order(self, orchestrator, links, recorder):
        link = await _start_active(orchestrator, links)
        await link.simulate_turn(
            "Hello there.", end_of_turn=True, turn_is_formatted=True, turn_order=4
        )
        await orchestrator.wait_for_pipelines()

        assert recorder.of_type("translation")[0].to_dict()["turnOrder"] == 4
        assert recorder.of_type("tts_audio")[0].to_dict()["turnOrder"] == 4

    @pytest.mark.asyncio
    async def test_translate_failure_is_contained(self, recorder, link_factory, links, synthesizer):
        translator = MockTranslator(fail_with="rate limited")
        orchestrator = SessionOrchestrator(
            send=recorder.send,
            link_factory=link_factory,
            translator=translator,
            synthesizer=synthesizer,
        )
        link = await _start_active(orchestrator, links)

        await link.simulate_turn("First.", end_of_turn=True, turn_is_formatted=True, turn_order=0)
        await orchestrator.wait_for_pipelines()

        assert len(recorder.of_type("error")) == 1
        assert recorder.of_type("error")[0].message == "Pipeline error: Translation failed: rate limited"
        assert recorder.of_type("tts_audio") == []
        assert orchestrator.state == SessionState.ACTIVE
        assert link.is_open

        # Next turn still flows
        await link.simulate_turn("Second", turn_order=1)
        assert recorder.types[-1] == "transcript"

    @pytest.mark.asyncio
    async def test_synthesis_failure_keeps_translation(self, recorder, link_factory, links, translator):
        orchestrator = SessionOrchestrator(
            send=recorder.send,
            link_factory=link_factory,
            translator=translator,
            synthesizer=MockSynthesizer(fail_with="voice unavailable"),
        )
        link = await _start_active(orchestrator, links)

        await link.simulate_turn("Hello there.", end_of_turn=True, turn_is_formatted=True)
        await orchestrator.wait_for_pipelines()

        assert recorder.types[-2:] == ["translation", "error"]
        assert orchestrator.pipeline.failures == 1

    @pytest.mark.asyncio
    async def test_serialized_pipelines_complete_in_order(
        self, recorder, link_factory, links, translator, synthesizer
    ):
        orchestrator = SessionOrchestrator(
            send=recorder.send,
            link_factory=link_factory,
            translator=translator,
            synthesizer=synthesizer,
            serialize_pipeline=True,
        )
        link = await _start_active(orchestrator, links)

        for order in range(3):
            await link.simulate_turn(
                f"Line {order}.", end_of_turn=True, turn_is_formatted=True, turn_order=order
            )
        await orchestrator.wait_for_pipelines()

        orders = [e.turn_order for e in recorder.events if e.type in ("translation", "tts_audio")]
        assert orders == [0, 0, 1, 1, 2, 2]
        assert orchestrator.pending_pipelines == 0
