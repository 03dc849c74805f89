import asyncio
import json
import pathlib
import sys
from typing import Any, Iterable

import pytest
from websockets.exceptions import ConnectionClosedOK

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from tts_gateway.config import get_settings  # noqa: E402


class FakeConnection:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self, frames: Iterable[Any] = (), *, hang: bool = False):
        self._frames: list[str] = [
            frame if isinstance(frame, (str, bytes)) else json.dumps(frame)
            for frame in frames
        ]
        self._hang = hang
        self.sent: list[dict[str, Any]] = []
        self.closed = False

    async def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionClosedOK(None, None)
        self.sent.append(json.loads(message))

    async def recv(self) -> str | bytes:
        if self.closed:
            raise ConnectionClosedOK(None, None)
        if self._frames:
            return self._frames.pop(0)
        if self._hang:
            await asyncio.Event().wait()
        raise ConnectionClosedOK(None, None)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_connection():
    return FakeConnection


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep a developer's `.env` or shell from leaking into tests."""
    for name in (
        "MINIMAX_BASE_URL",
        "MINIMAX_WS_URL",
        "MINIMAX_TIMEOUT",
        "MINIMAX_SYNTHESIS_TIMEOUT",
        "DEFAULT_VOICE_ID",
        "DEFAULT_MODEL",
        "DEFAULT_LANGUAGE_BOOST",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
