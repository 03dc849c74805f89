"""Voice catalogue routes."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from ..minimax.errors import MinimaxError
from ..minimax.identity import Credential
from ..schemas.library import VoiceList
from ..services.voices import PRESET_VOICES, VoiceService
from .auth import app_service, require_credential

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/voices", tags=["voices"])


def get_voice_service(request: Request) -> VoiceService:
    return app_service(request, "voice_service")


@router.get("")
async def list_voices(
    credential: Credential = Depends(require_credential),
    service: VoiceService = Depends(get_voice_service),
) -> dict[str, Any]:
    """Official plus cloned voices, falling back to the preset list."""

    try:
        result = await service.all_voices(credential)
    except MinimaxError as exc:
        logger.error("Get voices error: %s", exc)
        return {
            "success": True,
            "data": VoiceList.of(list(PRESET_VOICES)).model_dump(),
            "warning": "Using preset voices due to API error",
        }
    return {"success": True, "data": result.model_dump()}


@router.get("/official")
async def list_official_voices(
    credential: Credential = Depends(require_credential),
    service: VoiceService = Depends(get_voice_service),
) -> dict[str, Any]:
    try:
        result = await service.official(credential)
    except MinimaxError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return {"success": True, "data": result.model_dump()}


@router.get("/cloned")
async def list_cloned_voices(
    credential: Credential = Depends(require_credential),
    service: VoiceService = Depends(get_voice_service),
) -> dict[str, Any]:
    try:
        result = await service.cloned(credential)
    except MinimaxError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return {"success": True, "data": result.model_dump()}


@router.get("/{voice_id}")
async def get_voice(
    voice_id: str,
    credential: Credential = Depends(require_credential),
    service: VoiceService = Depends(get_voice_service),
) -> dict[str, Any]:
    try:
        voice = await service.detail(voice_id, credential)
    except MinimaxError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    if voice is None:
        raise HTTPException(status_code=404, detail="Voice not found")
    return {"success": True, "data": voice.model_dump()}
