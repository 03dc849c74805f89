"""
MiniMax web API protocol package.

- signing: ``yy`` request signature and device fingerprint query string
- identity: caller credentials and the per-token device identity cache
- client: signed HTTP calls, envelope unwrapping, two-phase uploads
- session: WebSocket synthesis state machine (buffered and streamed)

    credential ──▶ DeviceIdentityCache ──▶ sign() ──┬──▶ MinimaxClient ──▶ HTTPS
                                                    └──▶ SynthesisSession ──▶ WSS
"""

from .client import MinimaxClient, check_result
from .errors import (
    AuthMissing,
    ConnectError,
    IncompleteStreamError,
    MinimaxError,
    SynthesisTimeoutError,
    TransportError,
    VendorApiError,
)
from .identity import Credential, DeviceIdentity, DeviceIdentityCache
from .session import SessionState, SynthesisSession
from .signing import sign

__all__ = [
    "AuthMissing",
    "ConnectError",
    "Credential",
    "DeviceIdentity",
    "DeviceIdentityCache",
    "IncompleteStreamError",
    "MinimaxClient",
    "MinimaxError",
    "SessionState",
    "SynthesisSession",
    "SynthesisTimeoutError",
    "TransportError",
    "VendorApiError",
    "check_result",
    "sign",
]
