"""Pytest configuration and shared fixtures."""

import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing settings
os.environ.update({
    "TRANSCRIPTION_ENGINE": "mock",
    "TRANSLATION_ENGINE": "mock",
    "TTS_ENGINE": "mock",
    "ENVIRONMENT": "development",
    "METRICS_ENABLED": "true",
})


class EventRecorder:
    """Stands in for ClientChannel.send and keeps every outbound event."""

    def __init__(self) -> None:
        self.events = []

    async def send(self, event) -> bool:
        self.events.append(event)
        return True

    @property
    def types(self) -> list[str]:
        return [e.type for e in self.events]

    def of_type(self, event_type: str) -> list:
        return [e for e in self.events if e.type == event_type]


@pytest.fixture
def test_settings():
    """Provide test settings instance."""
    from livetranslate.config.settings import Settings
    return Settings(
        transcription_engine="mock",
        translation_engine="mock",
        tts_engine="mock",
    )


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def links() -> list:
    """Every MockTranscriptionLink created by ``link_factory``."""
    return []


@pytest.fixture
def link_factory(links):
    from livetranslate.transcription.base import MockTranscriptionLink

    def factory(connection_id: str) -> MockTranscriptionLink:
        link = MockTranscriptionLink(connection_id=connection_id)
        links.append(link)
        return link

    return factory


@pytest.fixture
def translator():
    from livetranslate.translation.base import MockTranslator
    return MockTranslator(phrasebook={"Hello there.": "Hola.", "Hola amigo.": "Hello friend."})


@pytest.fixture
def synthesizer():
    from livetranslate.tts.base import MockSynthesizer
    return MockSynthesizer()


@pytest.fixture
def orchestrator(recorder, link_factory, translator, synthesizer):
    """Orchestrator wired to mock providers and a recording sender."""
    from livetranslate.orchestrator.orchestrator import SessionOrchestrator
    return SessionOrchestrator(
        send=recorder.send,
        link_factory=link_factory,
        translator=translator,
        synthesizer=synthesizer,
        connection_id="test-conn",
    )


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide FastAPI test client."""
    from livetranslate.main import app
    with TestClient(app) as c:
        yield c
