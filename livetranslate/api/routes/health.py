"""Health check endpoints.

- /healthz: Liveness probe (is the process alive?)
- /readyz: Readiness probe (are providers wired up?)
- /api/health: Provider credential summary for the browser client
- /metrics: Prometheus metrics endpoint
"""

from typing import Any

from fastapi import APIRouter, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from livetranslate.config.settings import Settings, get_settings

router = APIRouter(tags=["health"])


# Health status tracking
_ready: bool = False
_components: dict[str, bool] = {
    "transcription": False,
    "translation": False,
    "tts": False,
}


def set_ready(ready: bool) -> None:
    """Set overall readiness status."""
    global _ready
    _ready = ready


def set_component_health(component: str, healthy: bool) -> None:
    """Set health status for a specific component."""
    if component in _components:
        _components[component] = healthy


def get_component_health() -> dict[str, bool]:
    """Get health status of all components."""
    return _components.copy()


def refresh_component_health(settings: Settings) -> dict[str, bool]:
    """Mark each provider usable unless its selected engine lacks a key."""
    set_component_health(
        "transcription",
        settings.transcription_engine != "assemblyai" or settings.assemblyai_configured,
    )
    set_component_health(
        "translation",
        settings.translation_engine != "openai" or settings.openai_configured,
    )
    set_component_health(
        "tts",
        settings.tts_engine != "openai" or settings.openai_configured,
    )
    return get_component_health()


def _all_ready() -> bool:
    return _ready and all(_components.values())


@router.get("/healthz", response_model=dict[str, str])
async def healthz() -> dict[str, str]:
    """Liveness probe. Returns 200 while the process is alive."""
    return {"status": "alive"}


@router.get("/readyz")
async def readyz(response: Response) -> dict[str, Any]:
    """Readiness probe.

    Returns 503 until startup has wired every provider.
    """
    if _all_ready():
        return {"status": "ready", "components": _components}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "not_ready", "components": _components}


@router.get("/health")
async def health(response: Response) -> dict[str, Any]:
    """Combined liveness and readiness information."""
    ready = _all_ready()
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "healthy" if ready else "degraded",
        "ready": _ready,
        "components": _components,
    }


@router.get("/api/health")
async def api_health() -> dict[str, Any]:
    """Which provider credentials are configured.

    Never reports the keys themselves.
    """
    settings = get_settings()
    return {
        "status": "ok",
        "assemblyai": "configured" if settings.assemblyai_configured else "missing",
        "openai": "configured" if settings.openai_configured else "missing",
    }


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus scrape endpoint."""
    if not get_settings().metrics_enabled:
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
