"""Application factory for the FastAPI service."""

from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import get_settings
from .minimax.client import MinimaxClient
from .minimax.identity import DeviceIdentityCache
from .routers.clone import router as clone_router
from .routers.history import router as history_router
from .routers.tts import router as tts_router
from .routers.voices import router as voices_router
from .services.clone import CloneService
from .services.history import HistoryService
from .services.tts_service import TTSService
from .services.voices import VoiceService

logger = logging.getLogger(__name__)

ENDPOINTS: dict[str, dict[str, str]] = {
    "tts": {
        "POST /api/tts": "Generate speech from text",
        "POST /api/tts/stream": "Stream speech generation",
        "POST /api/tts/openai": "OpenAI compatible endpoint",
    },
    "voice": {
        "GET /api/voices": "Get all voices",
        "GET /api/voices/official": "Get official voices",
        "GET /api/voices/cloned": "Get cloned voices",
        "GET /api/voices/{id}": "Get voice detail",
    },
    "history": {
        "GET /api/history": "Get history list",
        "GET /api/history/{id}": "Get audio detail",
        "DELETE /api/history/{id}": "Delete audio",
        "GET /api/history/{id}/download": "Download audio file",
    },
    "clone": {
        "POST /api/clone": "Create clone voice",
        "GET /api/clone/{id}/status": "Get clone status",
        "DELETE /api/clone/{id}": "Delete clone voice",
        "PUT /api/clone/{id}": "Update clone voice name",
    },
}


def _configure_logging() -> None:
    """Configure logging based on LOG_LEVEL environment variable."""
    # Load .env file first to ensure LOG_FILE is available
    load_dotenv()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handlers: list[logging.Handler] = []

    log_file = os.getenv("LOG_FILE")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    logging.getLogger("tts_gateway").setLevel(log_level)
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    # Frame-level chatter from the transports is only useful when debugging
    for noisy in ("httpx", "httpcore", "websockets"):
        logging.getLogger(noisy).setLevel(
            log_level if log_level <= logging.DEBUG else logging.WARNING
        )


def create_app() -> FastAPI:
    # Configure logging first thing
    _configure_logging()

    settings = get_settings()

    identities = DeviceIdentityCache(
        settings.device_identity_ttl,
        capacity=settings.device_identity_capacity,
    )
    client = MinimaxClient(settings, identities)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("TTS gateway started, vendor origin %s", settings.base_url)
        try:
            yield
        finally:
            await client.aclose()
            await MinimaxClient.aclose_shared()

    app = FastAPI(
        title="MiniMax TTS API",
        version=__version__,
        description="HTTP gateway for the MiniMax web text-to-speech service.",
        lifespan=lifespan,
    )

    app.state.identity_cache = identities
    app.state.minimax_client = client
    app.state.tts_service = TTSService(client)
    app.state.voice_service = VoiceService(client)
    app.state.history_service = HistoryService(client)
    app.state.clone_service = CloneService(client)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s - %s - %.0fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    app.include_router(tts_router)
    app.include_router(voices_router)
    app.include_router(history_router)
    app.include_router(clone_router)

    @app.get("/ping", tags=["health"])
    async def ping() -> dict[str, Any]:
        return {"status": "ok", "timestamp": int(time.time() * 1000)}

    @app.get("/", tags=["health"])
    async def index() -> dict[str, Any]:
        return {
            "name": "MiniMax TTS API",
            "version": __version__,
            "endpoints": ENDPOINTS,
        }

    return app


__all__ = ["create_app"]
