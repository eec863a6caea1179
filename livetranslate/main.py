"""LiveTranslate - FastAPI Application Entry Point.

Real-time bilingual speech translation relay: browser audio is streamed to
a multilingual transcription service, and every finalized turn is
translated and spoken back in the other language.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from livetranslate import __version__
from livetranslate.api.routes import health, translate
from livetranslate.config.settings import get_settings
from livetranslate.observability.logging import get_logger, init_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Wires providers on startup and releases them on shutdown.
    """
    settings = get_settings()
    init_logging(
        json_format=settings.environment == "production",
        level=settings.log_level,
    )
    logger.info(
        "livetranslate_starting",
        version=__version__,
        environment=settings.environment,
        port=settings.api_port,
        transcription_engine=settings.transcription_engine,
        translation_engine=settings.translation_engine,
        tts_engine=settings.tts_engine,
    )

    try:
        services = translate.get_services()
        components = health.refresh_component_health(settings)

        # Server still starts; a start without credentials fails upstream
        if not components["transcription"]:
            logger.warning("assemblyai_key_missing")
        if not (components["translation"] and components["tts"]):
            logger.warning("openai_key_missing")

        health.set_ready(True)
        logger.info("livetranslate_ready", components=health.get_component_health())

    except Exception as e:
        logger.error("livetranslate_startup_failed", error=str(e))
        raise

    yield  # Application runs here

    logger.info("livetranslate_shutting_down")
    health.set_ready(False)

    await services.close()
    translate.set_services(None)
    logger.info("livetranslate_shutdown_complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="LiveTranslate",
        description="Real-time bilingual speech translation relay",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.environment == "development" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(translate.router)

    # Static client last so API routes take precedence
    if settings.static_dir and Path(settings.static_dir).is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    log_level = "warning" if settings.log_level == "WARN" else settings.log_level.lower()

    logging.basicConfig(format="%(message)s", level=log_level.upper())

    uvicorn.run(
        "livetranslate.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=log_level,
        reload=settings.environment == "development",
    )
