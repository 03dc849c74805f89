"""WebSocket synthesis sessions against the MiniMax audio stream endpoint.

A session drives one synthesis command from handshake to a single terminal
outcome::

    CONNECTING -> OPEN -> STREAMING -> SUCCESS | ERROR | TIMEOUT

Inbound frames are handled strictly in arrival order by one receive loop.
Heartbeats are answered and otherwise ignored, a non-zero ``base_resp``
status fails the session, audio is decoded and kept (or forwarded), and
``data.status == 2`` completes it. A socket that closes early, or a
deadline that passes, salvages whatever audio already arrived.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
import uuid
from contextlib import suppress
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional, Protocol

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from .errors import (
    ConnectError,
    IncompleteStreamError,
    MinimaxError,
    SynthesisTimeoutError,
    TransportError,
    VendorApiError,
)
from .signing import timestamp_ms

logger = logging.getLogger(__name__)

COMPLETE_STATUS = 2
HEARTBEAT_METHOD = "Heartbeat"
# Seconds to wait for the peer to answer a closing handshake
CLOSE_TIMEOUT = 1.0

ChunkSink = Callable[[bytes], Awaitable[None]]


class SessionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    STREAMING = "streaming"
    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.SUCCESS, SessionState.ERROR, SessionState.TIMEOUT)


class SynthesisConnection(Protocol):
    """The subset of a WebSocket connection a session relies on."""

    async def send(self, message: str) -> None: ...

    async def recv(self) -> str | bytes: ...

    async def close(self) -> None: ...


async def open_connection(
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    connect_timeout: float = 10.0,
) -> SynthesisConnection:
    """Open the WebSocket, mapping every handshake failure to ConnectError."""

    extra = dict(headers or {})
    options: dict[str, Any] = {}
    user_agent = extra.pop("User-Agent", None)
    if user_agent:
        # websockets sends its own User-Agent unless told otherwise
        options["user_agent_header"] = user_agent
    try:
        connection = await connect(
            url,
            additional_headers=extra,
            open_timeout=connect_timeout,
            close_timeout=CLOSE_TIMEOUT,
            max_size=None,
            **options,
        )
    except (TimeoutError, asyncio.TimeoutError) as exc:
        raise ConnectError("WebSocket connection timeout") from exc
    except (InvalidHandshake, InvalidURI, OSError) as exc:
        raise ConnectError(f"WebSocket connection failed: {exc}") from exc

    logger.info("WebSocket connected")
    return connection


class SynthesisSession:
    """State machine for a single streaming synthesis exchange."""

    def __init__(
        self,
        payload: Mapping[str, Any],
        *,
        connection: Optional[SynthesisConnection] = None,
        timeout: float = 60.0,
        on_chunk: Optional[ChunkSink] = None,
    ):
        self._payload = dict(payload)
        self._connection = connection
        self._timeout = timeout
        self._on_chunk = on_chunk
        self._chunks: list[bytes] = []
        self._chunk_count = 0
        self._received_bytes = 0
        self._error: Optional[MinimaxError] = None
        self._state = SessionState.OPEN if connection is not None else SessionState.CONNECTING
        self.msg_id = str(uuid.uuid4())

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> Optional[MinimaxError]:
        return self._error

    @property
    def chunk_count(self) -> int:
        return self._chunk_count

    @property
    def received_bytes(self) -> int:
        return self._received_bytes

    async def connect(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        connect_timeout: float = 10.0,
    ) -> None:
        if self._state is not SessionState.CONNECTING:
            raise RuntimeError(f"Cannot connect a session in state {self._state.value}")
        try:
            self._connection = await open_connection(
                url, headers=headers, connect_timeout=connect_timeout
            )
        except ConnectError as exc:
            logger.error("WebSocket error: %s", exc)
            self._state = SessionState.ERROR
            self._error = exc
            raise
        self._state = SessionState.OPEN

    async def start(self) -> None:
        """Send the one synthesis command this session carries."""

        if self._state is not SessionState.OPEN or self._connection is None:
            raise RuntimeError(f"Cannot start a session in state {self._state.value}")
        message = {"payload": self._payload, "msg_id": self.msg_id}
        encoded = json.dumps(message, ensure_ascii=False)
        logger.debug("Sending WS message: %s", encoded[:200])
        self._state = SessionState.STREAMING
        await self._connection.send(encoded)

    async def handle_frame(self, raw: str | bytes) -> bool:
        """Apply one inbound frame; return whether the session is now terminal."""

        if self._state.is_terminal:
            return True

        try:
            frame = json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.error("Failed to parse TTS response: %s", exc)
            return False
        if not isinstance(frame, dict):
            return False

        if frame.get("method") == HEARTBEAT_METHOD:
            await self._reply_heartbeat(frame)
            return False

        base_resp = frame.get("base_resp")
        if isinstance(base_resp, Mapping) and base_resp.get("status_code") != 0:
            message = base_resp.get("status_msg") or "TTS generation failed"
            logger.error("TTS Error: %s", message)
            await self._finish(
                SessionState.ERROR,
                VendorApiError(base_resp.get("status_code"), message),
            )
            return True

        data = frame.get("data")
        if not isinstance(data, Mapping):
            return False

        audio = data.get("audio")
        if audio:
            try:
                chunk = base64.b64decode(audio)
            except (binascii.Error, TypeError, ValueError) as exc:
                logger.warning("Discarding undecodable audio chunk: %s", exc)
            else:
                await self._accept(chunk)

        if data.get("status") == COMPLETE_STATUS:
            logger.info("TTS generation completed")
            await self._finish(SessionState.SUCCESS)
            return True
        return False

    async def run(self) -> bytes:
        """Drive the session to completion and return the buffered audio."""

        await self._drive()
        return self.result()

    def result(self) -> bytes:
        if not self._state.is_terminal:
            raise RuntimeError("Session has not finished")
        if self._error is not None:
            raise self._error
        return b"".join(self._chunks)

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield audio chunks as they are decoded.

        The iterator ends when the session completes (or is salvaged) and
        raises the session error otherwise. Closing it early closes the
        socket.
        """

        queue: asyncio.Queue[Optional[bytes]] = asyncio.Queue()
        self._on_chunk = queue.put

        async def _produce() -> None:
            try:
                await self._drive()
            finally:
                queue.put_nowait(None)

        task = asyncio.create_task(_produce())
        try:
            while True:
                chunk = await queue.get()
                if chunk is None:
                    break
                yield chunk
            await task
            if self._error is not None:
                raise self._error
        finally:
            if not task.done():
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
                await self._finish(
                    SessionState.ERROR,
                    TransportError("Stream consumer went away"),
                    abort=True,
                )

    async def close(self, *, abort: bool = False) -> None:
        """Close the socket; ``abort`` drops it without a closing handshake."""

        if self._connection is None:
            return
        transport = getattr(self._connection, "transport", None)
        if abort and transport is not None:
            transport.abort()
            return
        try:
            await self._connection.close()
        except Exception as exc:  # pragma: no cover - best effort cleanup
            logger.debug("Error closing synthesis socket: %s", exc)

    async def _drive(self) -> None:
        try:
            await asyncio.wait_for(self._exchange(), timeout=self._timeout)
        except asyncio.TimeoutError:
            await self._expire()
        except ConnectionClosed:
            await self._closed_early()

    async def _exchange(self) -> None:
        if self._state is SessionState.OPEN:
            try:
                await self.start()
            except OSError as exc:
                await self._finish(SessionState.ERROR, TransportError(str(exc)))
                return
        await self._receive_loop()

    async def _receive_loop(self) -> None:
        assert self._connection is not None
        while not self._state.is_terminal:
            try:
                raw = await self._connection.recv()
            except ConnectionClosed:
                await self._closed_early()
                return
            except OSError as exc:
                await self._finish(SessionState.ERROR, TransportError(str(exc)))
                return
            await self.handle_frame(raw)

    async def _reply_heartbeat(self, frame: Mapping[str, Any]) -> None:
        assert self._connection is not None
        reply = {
            "method": HEARTBEAT_METHOD,
            "msg_id": frame.get("msg_id"),
            "timestamp": timestamp_ms(),
        }
        await self._connection.send(json.dumps(reply))

    async def _accept(self, chunk: bytes) -> None:
        self._chunk_count += 1
        self._received_bytes += len(chunk)
        logger.debug("Received audio chunk: %d bytes", len(chunk))
        if self._on_chunk is not None:
            await self._on_chunk(chunk)
        else:
            self._chunks.append(chunk)

    async def _closed_early(self) -> None:
        if self._chunk_count:
            logger.warning(
                "Synthesis socket closed before completion, keeping %d chunk(s)",
                self._chunk_count,
            )
            await self._finish(SessionState.SUCCESS)
        else:
            await self._finish(SessionState.ERROR, IncompleteStreamError())

    async def _expire(self) -> None:
        if self._chunk_count:
            logger.warning(
                "Synthesis timed out after %.1fs, keeping %d chunk(s)",
                self._timeout,
                self._chunk_count,
            )
            await self._finish(SessionState.TIMEOUT, abort=True)
        else:
            await self._finish(
                SessionState.TIMEOUT, SynthesisTimeoutError(), abort=True
            )

    async def _finish(
        self,
        state: SessionState,
        error: Optional[MinimaxError] = None,
        *,
        abort: bool = False,
    ) -> bool:
        if self._state.is_terminal:
            return False
        self._state = state
        self._error = error
        await self.close(abort=abort)
        return True


__all__ = [
    "COMPLETE_STATUS",
    "SessionState",
    "SynthesisConnection",
    "SynthesisSession",
    "open_connection",
]
