"""Error types raised while talking to the MiniMax web API."""

from __future__ import annotations

from typing import Any

from fastapi import status


class MinimaxError(Exception):
    """Base class carrying the HTTP status the gateway should answer with."""

    status_code: int = status.HTTP_502_BAD_GATEWAY

    def __init__(self, detail: Any, *, status_code: int | None = None):
        super().__init__(str(detail))
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class AuthMissing(MinimaxError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: Any = "Authorization header required"):
        super().__init__(detail)


class ConnectError(MinimaxError):
    """The WebSocket handshake failed or did not complete in time."""


class TransportError(MinimaxError):
    """The underlying HTTP or WebSocket transport failed."""


class VendorApiError(MinimaxError):
    """A vendor envelope or stream frame carried a non-zero status code."""

    def __init__(self, code: Any, message: Any):
        self.code = code
        self.message = message
        super().__init__(f"API Error: [{code}] {message}")


class IncompleteStreamError(MinimaxError):
    """The synthesis socket closed before any audio or completion frame."""

    def __init__(self, detail: Any = "WebSocket closed without audio data"):
        super().__init__(detail)


class SynthesisTimeoutError(MinimaxError, TimeoutError):
    """The synthesis deadline passed before any audio arrived."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, detail: Any = "TTS generation timeout"):
        super().__init__(detail)


__all__ = [
    "AuthMissing",
    "ConnectError",
    "IncompleteStreamError",
    "MinimaxError",
    "SynthesisTimeoutError",
    "TransportError",
    "VendorApiError",
]
