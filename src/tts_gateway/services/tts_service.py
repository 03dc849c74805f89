import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from tts_gateway.minimax.client import BROWSER_HEADERS, MinimaxClient
from tts_gateway.minimax.identity import Credential
from tts_gateway.minimax.session import COMPLETE_STATUS, SynthesisSession
from tts_gateway.schemas.tts import SpeechRequest

logger = logging.getLogger(__name__)

STREAM_PATH = "/v1/api/audio/stream"


@dataclass
class SpeechResult:
    audio: bytes
    status: int = COMPLETE_STATUS


class TTSService:
    """
    Speech synthesis over the vendor's audio WebSocket.

    Two modes share one session state machine:
    - create_speech() waits for the whole clip and returns it as bytes
    - create_speech_stream() hands back an async iterator of audio chunks
      that are forwarded as soon as they are decoded
    """

    def __init__(self, client: MinimaxClient):
        self._client = client

    def build_command(self, request: SpeechRequest, *, stream: Optional[bool] = None) -> dict[str, Any]:
        """Build the synthesis command payload with gateway defaults applied."""
        settings = self._client.settings
        effects = request.effects
        if stream is None:
            stream = request.stream is not False

        return {
            "model": request.model or settings.default_model,
            "text": request.text,
            "stream": stream,
            "language_boost": request.language_boost or settings.default_language_boost,
            "voice_setting": {
                "speed": request.speed or 1,
                "vol": request.volume or 1,
                "pitch": request.pitch or 0,
                "voice_id": request.voice_id or settings.default_voice_id,
            },
            "effects": {
                "deepen_lighten": (effects and effects.deepen_lighten) or 0,
                "stronger_softer": (effects and effects.stronger_softer) or 0,
                "nasal_crisp": (effects and effects.nasal_crisp) or 0,
                "spacious_echo": bool(effects and effects.spacious_echo),
                "lofi_telephone": bool(effects and effects.lofi_telephone),
            },
            "audio_setting": {},
            "er_weights": [],
        }

    async def _open_session(self, payload: dict[str, Any], credential: Credential) -> SynthesisSession:
        settings = self._client.settings
        url = self._client.build_ws_url(STREAM_PATH, credential)
        logger.debug(f"WebSocket URL: {url}")

        session = SynthesisSession(payload, timeout=settings.synthesis_timeout)
        await session.connect(
            url,
            headers=BROWSER_HEADERS,
            connect_timeout=settings.ws_connect_timeout,
        )
        return session

    async def create_speech(self, request: SpeechRequest, credential: Credential) -> SpeechResult:
        """Synthesize ``request.text`` and return the complete audio clip."""
        payload = self.build_command(request)
        preview = (request.text or "")[:50]
        logger.info(f'TTS Request: text="{preview}...", voice={payload["voice_setting"]["voice_id"]}')

        session = await self._open_session(payload, credential)
        audio = await session.run()
        logger.info(f"TTS finished ({session.state.value}): {len(audio)} bytes in {session.chunk_count} chunk(s)")
        return SpeechResult(audio=audio)

    async def create_speech_stream(self, request: SpeechRequest, credential: Credential) -> AsyncIterator[bytes]:
        """
        Open a streaming synthesis and return its chunk iterator.

        The socket is connected before returning so handshake failures are
        raised here rather than halfway through a response.
        """
        payload = self.build_command(request, stream=True)
        session = await self._open_session(payload, credential)
        return session.stream()
