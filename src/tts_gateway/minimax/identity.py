"""Caller credentials and the synthetic device identities bound to them."""

from __future__ import annotations

import logging
import random
import time
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

logger = logging.getLogger(__name__)

_DEVICE_ID_DIGITS = 18


@dataclass(frozen=True)
class Credential:
    """Vendor token plus the optional operation ticket."""

    token: str
    op_ticket: str = ""

    @classmethod
    def parse(cls, authorization: str) -> "Credential":
        """Parse ``Bearer token:ticket`` (ticket optional)."""

        raw = authorization.strip()
        if raw[:7].lower() == "bearer ":
            raw = raw[7:].strip()
        parts = raw.split(":")
        if len(parts) >= 2:
            return cls(token=parts[0], op_ticket=parts[1])
        return cls(token=raw)


@dataclass(frozen=True)
class DeviceIdentity:
    device_id: str
    user_id: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


def _generate_device_id() -> str:
    return "".join(random.choices("0123456789", k=_DEVICE_ID_DIGITS))


class DeviceIdentityCache:
    """Map credential tokens to device identities with a fixed validity window.

    Entries are replaced wholesale once expired. When the cache is full the
    expired entries are swept first and, failing that, the entry closest to
    expiry is evicted.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(hours=3),
        *,
        capacity: int = 1024,
        clock: Callable[[], float] = time.time,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._ttl = ttl.total_seconds()
        self._capacity = capacity
        self._clock = clock
        self._entries: dict[str, DeviceIdentity] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, token: object) -> bool:
        return token in self._entries

    def get(self, token: str) -> DeviceIdentity | None:
        return self._entries.get(token)

    def clear(self) -> None:
        self._entries.clear()

    def acquire(self, credential: Credential) -> DeviceIdentity:
        """Return the live identity for ``credential``, creating one if needed."""

        now = self._clock()
        cached = self._entries.get(credential.token)
        if cached is not None and not cached.is_expired(now):
            return cached

        identity = DeviceIdentity(
            device_id=_generate_device_id(),
            user_id=str(uuid.uuid4()),
            expires_at=now + self._ttl,
        )
        if cached is None and len(self._entries) >= self._capacity:
            self._make_room(now)
        self._entries[credential.token] = identity

        logger.info(
            "Generated device info: deviceId=%s, userId=%s",
            identity.device_id,
            identity.user_id,
        )
        return identity

    def _make_room(self, now: float) -> None:
        expired = [
            token for token, entry in self._entries.items() if entry.is_expired(now)
        ]
        for token in expired:
            del self._entries[token]
        if len(self._entries) < self._capacity:
            return
        oldest = min(self._entries, key=lambda token: self._entries[token].expires_at)
        logger.debug("Device identity cache full, evicting oldest entry")
        del self._entries[oldest]


__all__ = ["Credential", "DeviceIdentity", "DeviceIdentityCache"]
