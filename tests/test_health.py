"""Tests for health and metrics endpoints."""

from fastapi.testclient import TestClient


class TestHealthEndpoints:
    """Test suite for health check endpoints."""

    def test_healthz_always_returns_alive(self, client: TestClient):
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_readyz_after_startup(self, client: TestClient):
        response = client.get("/readyz")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["components"] == {
            "transcription": True,
            "translation": True,
            "tts": True,
        }

    def test_readyz_503_when_component_down(self, client: TestClient):
        from livetranslate.api.routes import health

        health.set_component_health("tts", False)
        try:
            response = client.get("/readyz")
            assert response.status_code == 503
            assert response.json()["status"] == "not_ready"
        finally:
            health.set_component_health("tts", True)

    def test_health_combined_endpoint(self, client: TestClient):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["ready"] is True

    def test_unknown_component_ignored(self):
        from livetranslate.api.routes import health

        health.set_component_health("gpu", True)
        assert "gpu" not in health.get_component_health()

    def test_readyz_503_when_credentials_missing(self, client: TestClient):
        from livetranslate.api.routes import health
        from livetranslate.config.settings import Settings

        settings = Settings(
            _env_file=None,
            transcription_engine="assemblyai",
            assemblyai_api_key=None,
            translation_engine="mock",
            tts_engine="mock",
        )
        try:
            components = health.refresh_component_health(settings)
            assert components == {"transcription": False, "translation": True, "tts": True}

            response = client.get("/readyz")
            assert response.status_code == 503
            assert response.json()["components"]["transcription"] is False
        finally:
            health.refresh_component_health(Settings(_env_file=None))

    def test_component_health_from_settings(self):
        from livetranslate.api.routes import health
        from livetranslate.config.settings import Settings

        try:
            components = health.refresh_component_health(
                Settings(
                    _env_file=None,
                    transcription_engine="assemblyai",
                    assemblyai_api_key="aai-key",
                    translation_engine="openai",
                    tts_engine="openai",
                    openai_api_key=None,
                )
            )
            assert components == {"transcription": True, "translation": False, "tts": False}

            components = health.refresh_component_health(
                Settings(_env_file=None, openai_api_key="sk-test", assemblyai_api_key="aai-key")
            )
            assert all(components.values())
        finally:
            health.refresh_component_health(Settings(_env_file=None))

    def test_api_health_reports_credentials(self, client: TestClient, monkeypatch):
        from livetranslate.config.settings import get_settings

        monkeypatch.setenv("ASSEMBLYAI_API_KEY", "aai-secret")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        get_settings.cache_clear()
        try:
            response = client.get("/api/health")
        finally:
            get_settings.cache_clear()

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "assemblyai": "configured",
            "openai": "missing",
        }
        assert "aai-secret" not in response.text

    def test_metrics_exposition(self, client: TestClient):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "livetranslate_pipelines_total" in response.text
