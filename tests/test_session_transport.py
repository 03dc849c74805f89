"""Session and handshake behaviour against real local sockets."""

import asyncio
import base64
import json
from http import HTTPStatus

import pytest
from websockets.asyncio.server import serve

from tts_gateway.minimax.errors import ConnectError
from tts_gateway.minimax.session import SessionState, SynthesisSession, open_connection

PAYLOAD = {"model": "speech-2.6-hd", "text": "hello", "stream": True}


def audio_frame(data: bytes, status: int = 1) -> str:
    return json.dumps({"data": {"audio": base64.b64encode(data).decode("ascii"), "status": status}})


def server_url(server) -> str:
    port = server.sockets[0].getsockname()[1]
    return f"ws://127.0.0.1:{port}/v1/api/audio/stream"


@pytest.mark.asyncio
async def test_deadline_drops_unresponsive_peer() -> None:
    release = asyncio.Event()

    async def handler(ws):
        await ws.recv()
        await ws.send(audio_frame(b"xy"))
        # Stop reading so a closing handshake would never be answered
        ws.transport.pause_reading()
        await release.wait()
        ws.transport.resume_reading()

    async with serve(handler, "127.0.0.1", 0, close_timeout=0.5) as server:
        session = SynthesisSession(PAYLOAD, timeout=0.5)
        await session.connect(server_url(server), connect_timeout=2)

        loop = asyncio.get_running_loop()
        started = loop.time()
        audio = await session.run()
        elapsed = loop.time() - started
        release.set()

    assert audio == b"xy"
    assert session.state is SessionState.TIMEOUT
    assert elapsed < 2.0


@pytest.mark.asyncio
async def test_completion_does_not_wait_on_silent_peer() -> None:
    release = asyncio.Event()

    async def handler(ws):
        await ws.recv()
        await ws.send(audio_frame(b"done", status=2))
        ws.transport.pause_reading()
        await release.wait()
        ws.transport.resume_reading()

    async with serve(handler, "127.0.0.1", 0, close_timeout=0.5) as server:
        session = SynthesisSession(PAYLOAD, timeout=5)
        await session.connect(server_url(server), connect_timeout=2)

        loop = asyncio.get_running_loop()
        started = loop.time()
        audio = await session.run()
        elapsed = loop.time() - started
        release.set()

    assert audio == b"done"
    assert session.state is SessionState.SUCCESS
    assert elapsed < 3.0


@pytest.mark.asyncio
async def test_headers_and_user_agent_reach_the_server() -> None:
    seen = {}

    async def handler(ws):
        seen["user_agent"] = ws.request.headers.get_all("User-Agent")
        seen["origin"] = ws.request.headers.get("Origin")
        seen["path"] = ws.request.path
        command = json.loads(await ws.recv())
        seen["msg_id"] = command["msg_id"]
        await ws.send(audio_frame(b"ok", status=2))

    async with serve(handler, "127.0.0.1", 0) as server:
        session = SynthesisSession(PAYLOAD, timeout=5)
        await session.connect(
            server_url(server) + "?token=abc",
            headers={"User-Agent": "Mozilla/5.0 Test", "Origin": "https://www.minimax.io"},
            connect_timeout=2,
        )
        audio = await session.run()

    assert audio == b"ok"
    assert seen["user_agent"] == ["Mozilla/5.0 Test"]
    assert seen["origin"] == "https://www.minimax.io"
    assert seen["path"] == "/v1/api/audio/stream?token=abc"
    assert seen["msg_id"] == session.msg_id


@pytest.mark.asyncio
async def test_rejected_handshake_maps_to_connect_error() -> None:
    def reject(connection, request):
        return connection.respond(HTTPStatus.FORBIDDEN, "forbidden\n")

    async def handler(ws):
        await ws.wait_closed()

    async with serve(handler, "127.0.0.1", 0, process_request=reject) as server:
        session = SynthesisSession(PAYLOAD)
        with pytest.raises(ConnectError) as excinfo:
            await session.connect(server_url(server), connect_timeout=2)

    assert "WebSocket connection failed" in str(excinfo.value)
    assert session.state is SessionState.ERROR
    assert session.error is excinfo.value


@pytest.mark.asyncio
async def test_refused_connection_maps_to_connect_error() -> None:
    async def noop(reader, writer):
        writer.close()

    server = await asyncio.start_server(noop, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()

    with pytest.raises(ConnectError):
        await open_connection(f"ws://127.0.0.1:{port}/", connect_timeout=2)


@pytest.mark.asyncio
async def test_silent_handshake_times_out() -> None:
    async def silent(reader, writer):
        await reader.read()
        writer.close()

    server = await asyncio.start_server(silent, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        session = SynthesisSession(PAYLOAD)
        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(ConnectError) as excinfo:
            await session.connect(f"ws://127.0.0.1:{port}/", connect_timeout=0.5)
        elapsed = loop.time() - started
    finally:
        server.close()
        await server.wait_closed()

    assert str(excinfo.value) == "WebSocket connection timeout"
    assert session.state is SessionState.ERROR
    assert elapsed < 2.0


@pytest.mark.asyncio
async def test_invalid_uri_maps_to_connect_error() -> None:
    with pytest.raises(ConnectError):
        await open_connection("http://127.0.0.1/not-a-websocket", connect_timeout=1)
