"""Speech synthesis routes."""

from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response, StreamingResponse

from ..minimax.errors import MinimaxError
from ..minimax.identity import Credential
from ..schemas.tts import OpenAISpeechRequest, SpeechRequest
from ..services.tts_service import TTSService
from .auth import app_service, require_credential

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/tts", tags=["tts"])

AUDIO_MEDIA_TYPE = "audio/mpeg"


def get_tts_service(request: Request) -> TTSService:
    return app_service(request, "tts_service")


async def _synthesize(
    payload: SpeechRequest, credential: Credential, service: TTSService
) -> Response:
    try:
        result = await service.create_speech(payload, credential)
    except MinimaxError as exc:
        logger.error("TTS Error: %s", exc)
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return Response(content=result.audio, media_type=AUDIO_MEDIA_TYPE)


@router.post("", response_class=Response)
async def create_speech(
    payload: SpeechRequest,
    credential: Credential = Depends(require_credential),
    service: TTSService = Depends(get_tts_service),
) -> Response:
    """Synthesize the full clip and return it as MP3 bytes."""

    if not payload.text:
        raise HTTPException(status_code=400, detail="text is required")
    return await _synthesize(payload, credential, service)


@router.post("/stream", response_class=StreamingResponse)
async def stream_speech(
    payload: SpeechRequest,
    credential: Credential = Depends(require_credential),
    service: TTSService = Depends(get_tts_service),
) -> StreamingResponse:
    """Relay audio chunks to the caller as the vendor produces them."""

    if not payload.text:
        raise HTTPException(status_code=400, detail="text is required")

    try:
        stream = await service.create_speech_stream(payload, credential)
        # Pull the first chunk up front so early vendor errors still map to a status code
        first = await anext(stream, b"")
    except MinimaxError as exc:
        logger.error("TTS Stream Error: %s", exc)
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    async def relay() -> AsyncIterator[bytes]:
        try:
            if first:
                yield first
            async for chunk in stream:
                yield chunk
        except MinimaxError as exc:
            # Headers are already sent; ending the body is all that is left
            logger.error("TTS Stream Error: %s", exc)
        finally:
            await stream.aclose()

    return StreamingResponse(relay(), media_type=AUDIO_MEDIA_TYPE)


@router.post("/openai", response_class=Response)
async def openai_speech(
    payload: OpenAISpeechRequest,
    credential: Credential = Depends(require_credential),
    service: TTSService = Depends(get_tts_service),
) -> Response:
    """OpenAI ``audio/speech`` compatible endpoint."""

    if not payload.input:
        raise HTTPException(status_code=400, detail="input is required")
    return await _synthesize(payload.to_speech_request(), credential, service)
