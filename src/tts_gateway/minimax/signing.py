"""Request signing helpers for the MiniMax web API.

The browser client signs every call with an ``yy`` value derived from the
request path (including the device query string), the serialized body and
the millisecond timestamp. Everything here is pure so it can be checked
against fixed vectors.
"""

from __future__ import annotations

import hashlib
import time
from typing import Any, Mapping, Optional
from urllib.parse import quote

# Characters `encodeURIComponent` leaves untouched besides ASCII alphanumerics
_URI_COMPONENT_SAFE = "-_.!~*'()"

_SIGN_SALT = "ooui"


def timestamp_ms() -> int:
    """Return the current wall-clock time in milliseconds."""

    return int(time.time() * 1000)


def md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def encode_uri_component(value: Any) -> str:
    """Percent-encode ``value`` the way browsers' ``encodeURIComponent`` does."""

    return quote(str(value), safe=_URI_COMPONENT_SAFE)


def sign(path: str, body: str = "", time_ms: Optional[int] = None) -> str:
    """Compute the ``yy`` signature for a path/body/timestamp triple."""

    if time_ms is None:
        time_ms = timestamp_ms()
    time_hash = md5_hex(str(time_ms))
    sign_str = f"{encode_uri_component(path)}_{body}{time_hash}{_SIGN_SALT}"
    return md5_hex(sign_str)


def device_params(
    device_id: str, user_id: str, unix_ms: Optional[int] = None
) -> dict[str, Any]:
    """Return the fingerprint query parameters the web client sends."""

    return {
        "device_platform": "web",
        "app_id": "3001",
        "version_code": "22201",
        "biz_id": "1",
        "uuid": user_id,
        "lang": "en",
        "device_id": device_id,
        "os_name": "Windows",
        "browser_name": "chrome",
        "device_memory": 8,
        "cpu_core_num": 12,
        "browser_language": "zh-CN",
        "browser_platform": "Win32",
        "screen_width": 1920,
        "screen_height": 1080,
        "unix": unix_ms if unix_ms is not None else timestamp_ms(),
    }


def build_query_string(params: Mapping[str, Any]) -> str:
    """Join ``params`` in insertion order, skipping ``None`` values."""

    return "&".join(
        f"{key}={encode_uri_component(value)}"
        for key, value in params.items()
        if value is not None
    )


def append_query(path: str, query: str) -> str:
    if not query:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{query}"


__all__ = [
    "append_query",
    "build_query_string",
    "device_params",
    "encode_uri_component",
    "md5_hex",
    "sign",
    "timestamp_ms",
]
