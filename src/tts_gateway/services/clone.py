"""Voice cloning: upload a reference clip, then manage the cloned voice."""

import logging

from tts_gateway.minimax.client import MinimaxClient
from tts_gateway.minimax.errors import MinimaxError
from tts_gateway.minimax.identity import Credential
from tts_gateway.minimax.signing import encode_uri_component
from tts_gateway.schemas.library import CloneStatus, CloneVoice

logger = logging.getLogger(__name__)

CLONE_PATH = "/v1/api/audio/voice/clone"


class CloneService:
    def __init__(self, client: MinimaxClient):
        self._client = client

    async def create(
        self,
        name: str,
        audio: bytes,
        credential: Credential,
        *,
        file_name: str = "audio.mp3",
        description: str | None = None,
    ) -> CloneVoice:
        file_id = await self._client.upload_file(audio, file_name, credential)
        data = await self._client.call(
            "POST",
            CLONE_PATH,
            {"name": name, "file_id": file_id, "description": description or ""},
            credential,
        )
        data = data if isinstance(data, dict) else {}
        voice_id = data.get("voice_id") or data.get("id") or ""
        logger.info(f"Created clone voice: {voice_id}")
        return CloneVoice(
            voice_id=str(voice_id),
            name=name,
            status=data.get("status") or "processing",
        )

    async def status(self, voice_id: str, credential: Credential) -> CloneStatus:
        data = await self._client.call(
            "GET", f"{CLONE_PATH}/status?voice_id={encode_uri_component(voice_id)}", None, credential
        )
        data = data if isinstance(data, dict) else {}
        return CloneStatus(
            voice_id=str(data.get("voice_id") or voice_id),
            status=data.get("status") or "unknown",
            progress=data.get("progress"),
            message=data.get("message"),
        )

    async def delete(self, voice_id: str, credential: Credential) -> bool:
        try:
            await self._client.call(
                "DELETE", f"{CLONE_PATH}?voice_id={encode_uri_component(voice_id)}", None, credential
            )
        except MinimaxError as exc:
            logger.error(f"Failed to delete clone voice {voice_id}: {exc}")
            return False
        logger.info(f"Deleted clone voice: {voice_id}")
        return True

    async def rename(self, voice_id: str, name: str, credential: Credential) -> bool:
        try:
            await self._client.call(
                "POST", f"{CLONE_PATH}/update", {"voice_id": voice_id, "name": name}, credential
            )
        except MinimaxError as exc:
            logger.error(f"Failed to update clone voice {voice_id}: {exc}")
            return False
        logger.info(f"Updated clone voice: {voice_id}")
        return True
