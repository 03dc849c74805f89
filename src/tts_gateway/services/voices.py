"""Voice catalogue lookups passed through to the vendor."""

import asyncio
import logging
from typing import Optional

from tts_gateway.minimax.client import MinimaxClient
from tts_gateway.minimax.errors import MinimaxError
from tts_gateway.minimax.identity import Credential
from tts_gateway.minimax.signing import encode_uri_component
from tts_gateway.schemas.library import Voice, VoiceList

logger = logging.getLogger(__name__)

# Served when the vendor voice list cannot be fetched
PRESET_VOICES = [
    Voice(voice_id="279479307768027", name="Female Voice 1", language="Chinese", gender="female"),
    Voice(voice_id="279479307768028", name="Male Voice 1", language="Chinese", gender="male"),
    Voice(voice_id="279479307768029", name="Female Voice 2", language="English", gender="female"),
    Voice(voice_id="279479307768030", name="Male Voice 2", language="English", gender="male"),
]


class VoiceService:
    def __init__(self, client: MinimaxClient):
        self._client = client

    async def _list(self, path: str, credential: Credential, *, is_clone: bool) -> VoiceList:
        data = await self._client.call("GET", path, None, credential)
        if isinstance(data, dict) and isinstance(data.get("list"), list):
            voices = [
                Voice.from_vendor(item, is_clone=is_clone)
                for item in data["list"]
                if isinstance(item, dict)
            ]
            return VoiceList.of(voices)
        return VoiceList()

    async def official(self, credential: Credential) -> VoiceList:
        return await self._list("/v1/api/audio/voice/official_list", credential, is_clone=False)

    async def cloned(self, credential: Credential) -> VoiceList:
        return await self._list("/v1/api/audio/voice/clone_list", credential, is_clone=True)

    async def all_voices(self, credential: Credential) -> VoiceList:
        """Official and cloned voices together; a failing side contributes nothing."""
        official, cloned = await asyncio.gather(
            self.official(credential),
            self.cloned(credential),
            return_exceptions=True,
        )
        voices: list[Voice] = []
        for label, result in (("official", official), ("cloned", cloned)):
            if isinstance(result, MinimaxError):
                logger.warning(f"Failed to get {label} voices: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            voices.extend(result.voices)
        return VoiceList.of(voices)

    async def detail(self, voice_id: str, credential: Credential) -> Optional[Voice]:
        data = await self._client.call(
            "GET", f"/v1/api/audio/voice/detail?voice_id={encode_uri_component(voice_id)}", None, credential
        )
        if isinstance(data, dict) and data:
            return Voice.from_vendor(data, is_clone=False)
        return None
