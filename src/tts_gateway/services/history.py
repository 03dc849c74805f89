"""Synthesis history passthrough."""

import logging
from typing import Optional

from tts_gateway.minimax.client import MinimaxClient
from tts_gateway.minimax.errors import MinimaxError
from tts_gateway.minimax.identity import Credential
from tts_gateway.minimax.signing import encode_uri_component
from tts_gateway.schemas.library import AudioHistory, HistoryPage

logger = logging.getLogger(__name__)


class HistoryService:
    def __init__(self, client: MinimaxClient):
        self._client = client

    async def list_page(self, credential: Credential, page: int = 1, page_size: int = 20) -> HistoryPage:
        data = await self._client.call(
            "GET",
            f"/v1/api/audio/history_list?page={page}&page_size={page_size}",
            None,
            credential,
        )
        if isinstance(data, dict) and isinstance(data.get("list"), list):
            items = [AudioHistory.from_vendor(item) for item in data["list"] if isinstance(item, dict)]
            return HistoryPage(
                items=items,
                total=data.get("total") or len(items),
                page=page,
                page_size=page_size,
            )
        return HistoryPage(page=page, page_size=page_size)

    async def detail(self, audio_id: str, credential: Credential) -> Optional[AudioHistory]:
        data = await self._client.call(
            "GET", f"/v1/api/audio/details?audio_id={encode_uri_component(audio_id)}", None, credential
        )
        if isinstance(data, dict) and data:
            return AudioHistory.from_vendor(data, fallback_id=audio_id)
        return None

    async def delete(self, audio_id: str, credential: Credential) -> bool:
        try:
            await self._client.call(
                "DELETE", f"/v1/api/audio/delete?audio_id={encode_uri_component(audio_id)}", None, credential
            )
        except MinimaxError as exc:
            logger.error(f"Failed to delete audio {audio_id}: {exc}")
            return False
        logger.info(f"Deleted audio: {audio_id}")
        return True

    async def download(self, audio_url: str) -> bytes:
        return await self._client.download(audio_url)
