"""Voice cloning routes."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from ..minimax.client import MinimaxClient
from ..minimax.errors import MinimaxError
from ..minimax.identity import Credential
from ..schemas.library import CloneUpdateRequest, CloneVoiceRequest
from ..services.clone import CloneService
from .auth import app_service, require_credential

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/clone", tags=["clone"])


def get_clone_service(request: Request) -> CloneService:
    return app_service(request, "clone_service")


def get_minimax_client(request: Request) -> MinimaxClient:
    return app_service(request, "minimax_client")


async def _reference_audio(payload: CloneVoiceRequest, client: MinimaxClient) -> bytes:
    if payload.audio_base64:
        try:
            return base64.b64decode(payload.audio_base64)
        except (binascii.Error, ValueError) as exc:
            raise HTTPException(status_code=400, detail="audio_base64 is not valid base64") from exc
    if payload.audio_url:
        try:
            return await client.download(payload.audio_url)
        except MinimaxError as exc:
            raise HTTPException(
                status_code=400, detail=f"Failed to download audio: {exc.detail}"
            ) from exc
    raise HTTPException(status_code=400, detail="audio_base64 or audio_url is required")


@router.post("")
async def create_clone(
    payload: CloneVoiceRequest,
    credential: Credential = Depends(require_credential),
    service: CloneService = Depends(get_clone_service),
    client: MinimaxClient = Depends(get_minimax_client),
) -> dict[str, Any]:
    if not payload.name:
        raise HTTPException(status_code=400, detail="name is required")
    audio = await _reference_audio(payload, client)
    try:
        result = await service.create(
            payload.name,
            audio,
            credential,
            file_name=payload.file_name,
            description=payload.description,
        )
    except MinimaxError as exc:
        logger.error("Create clone voice error: %s", exc)
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return {"success": True, "data": result.model_dump()}


@router.get("/{voice_id}/status")
async def get_clone_status(
    voice_id: str,
    credential: Credential = Depends(require_credential),
    service: CloneService = Depends(get_clone_service),
) -> dict[str, Any]:
    try:
        result = await service.status(voice_id, credential)
    except MinimaxError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return {"success": True, "data": result.model_dump()}


@router.delete("/{voice_id}")
async def delete_clone(
    voice_id: str,
    credential: Credential = Depends(require_credential),
    service: CloneService = Depends(get_clone_service),
) -> dict[str, Any]:
    if not await service.delete(voice_id, credential):
        raise HTTPException(status_code=502, detail="Failed to delete clone voice")
    return {"success": True, "message": "Clone voice deleted"}


@router.put("/{voice_id}")
async def rename_clone(
    voice_id: str,
    payload: CloneUpdateRequest,
    credential: Credential = Depends(require_credential),
    service: CloneService = Depends(get_clone_service),
) -> dict[str, Any]:
    if not payload.name:
        raise HTTPException(status_code=400, detail="name is required")
    if not await service.rename(voice_id, payload.name, credential):
        raise HTTPException(status_code=502, detail="Failed to update clone voice")
    return {"success": True, "message": "Clone voice updated"}
