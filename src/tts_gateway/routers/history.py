"""Synthesis history routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from ..minimax.errors import MinimaxError
from ..minimax.identity import Credential
from ..services.history import HistoryService
from .auth import app_service, require_credential

router = APIRouter(prefix="/api/history", tags=["history"])


def get_history_service(request: Request) -> HistoryService:
    return app_service(request, "history_service")


@router.get("")
async def list_history(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    credential: Credential = Depends(require_credential),
    service: HistoryService = Depends(get_history_service),
) -> dict[str, Any]:
    try:
        result = await service.list_page(credential, page, page_size)
    except MinimaxError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return {"success": True, "data": result.model_dump(by_alias=True)}


@router.get("/{audio_id}")
async def get_history_item(
    audio_id: str,
    credential: Credential = Depends(require_credential),
    service: HistoryService = Depends(get_history_service),
) -> dict[str, Any]:
    try:
        item = await service.detail(audio_id, credential)
    except MinimaxError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    if item is None:
        raise HTTPException(status_code=404, detail="Audio not found")
    return {"success": True, "data": item.model_dump()}


@router.delete("/{audio_id}")
async def delete_history_item(
    audio_id: str,
    credential: Credential = Depends(require_credential),
    service: HistoryService = Depends(get_history_service),
) -> dict[str, Any]:
    if not await service.delete(audio_id, credential):
        raise HTTPException(status_code=502, detail="Failed to delete audio")
    return {"success": True, "message": "Audio deleted successfully"}


@router.get("/{audio_id}/download", response_class=Response)
async def download_history_item(
    audio_id: str,
    credential: Credential = Depends(require_credential),
    service: HistoryService = Depends(get_history_service),
) -> Response:
    try:
        item = await service.detail(audio_id, credential)
        if item is None or not item.audio_url:
            raise HTTPException(status_code=404, detail="Audio not found")
        audio = await service.download(item.audio_url)
    except MinimaxError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Content-Disposition": f'attachment; filename="{audio_id}.mp3"'},
    )
