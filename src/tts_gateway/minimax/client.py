"""Signed HTTP client for the MiniMax web API."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping, Optional

import httpx

from ..config import Settings
from .errors import TransportError, VendorApiError
from .identity import Credential, DeviceIdentityCache
from .signing import (
    append_query,
    build_query_string,
    device_params,
    encode_uri_component,
    sign,
    timestamp_ms,
)

logger = logging.getLogger(__name__)

UPLOAD_POLICY_PATH = "/v1/api/audio/upload/policy"

# Headers the vendor's own web page sends
BROWSER_HEADERS: dict[str, str] = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Cache-Control": "no-cache",
    "Origin": "https://www.minimax.io",
    "Pragma": "no-cache",
    "Referer": "https://www.minimax.io/audio/text-to-speech",
    "Sec-Ch-Ua": '"Chromium";v="142", "Microsoft Edge";v="142", "Not_A Brand";v="99"',
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"Windows"',
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "same-origin",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36 Edg/142.0.0.0"
    ),
}


def serialize_body(body: Any) -> str:
    """Return the exact string that is both signed and sent."""

    if body is None:
        return ""
    if isinstance(body, str):
        return body
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def response_json(response: httpx.Response) -> Any:
    """Decode a response body, falling back to text for non-JSON payloads."""

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def check_result(payload: Any) -> Any:
    """Unwrap either vendor envelope shape into its ``data`` field.

    Raises :class:`VendorApiError` when the envelope reports a non-zero
    status. Payloads without an envelope are returned untouched.
    """

    if payload is None or payload == "":
        return None
    if not isinstance(payload, Mapping):
        return payload

    base_resp = payload.get("base_resp")
    if isinstance(base_resp, Mapping):
        code = base_resp.get("status_code")
        if code != 0:
            raise VendorApiError(code, base_resp.get("status_msg"))
        return payload.get("data")

    status_info = payload.get("statusInfo")
    if isinstance(status_info, Mapping):
        code = status_info.get("code")
        if code != 0:
            raise VendorApiError(code, status_info.get("message"))
        return payload.get("data")

    return payload


class MinimaxClient:
    """Client issuing signed requests on behalf of a caller credential."""

    _client_lock: asyncio.Lock = asyncio.Lock()
    _client_pool: dict[tuple[str, float], httpx.AsyncClient] = {}

    def __init__(
        self,
        settings: Settings,
        identities: DeviceIdentityCache,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings
        self._identities = identities
        self._transport = transport
        self._own_client: Optional[httpx.AsyncClient] = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def identities(self) -> DeviceIdentityCache:
        return self._identities

    def _client_key(self) -> tuple[str, float]:
        return (self._settings.base_url, float(self._settings.request_timeout))

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self._settings.request_timeout, connect=10.0)

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._transport is not None:
            # Injected transports (tests) get a private client
            if self._own_client is None:
                self._own_client = httpx.AsyncClient(
                    timeout=self._timeout(), transport=self._transport
                )
            return self._own_client

        key = self._client_key()
        client = self.__class__._client_pool.get(key)
        if client is not None:
            return client

        async with self.__class__._client_lock:
            client = self.__class__._client_pool.get(key)
            if client is None:
                limits = httpx.Limits(
                    max_connections=50,
                    max_keepalive_connections=20,
                )
                client = httpx.AsyncClient(
                    timeout=self._timeout(),
                    limits=limits,
                    http2=True,
                )
                self.__class__._client_pool[key] = client
        return client

    def signed_path(self, path: str, credential: Credential) -> str:
        """Return ``path`` with the caller's device parameters appended."""

        identity = self._identities.acquire(credential)
        query = build_query_string(device_params(identity.device_id, identity.user_id))
        return append_query(path, query)

    async def request(
        self,
        method: str,
        path: str,
        body: Any,
        credential: Credential,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Send a signed request and return the raw response."""

        full_path = self.signed_path(path, credential)
        body_str = serialize_body(body)
        yy = sign(full_path, body_str, timestamp_ms())
        url = f"{self._settings.base_url}{full_path}"

        request_headers = {
            **BROWSER_HEADERS,
            "Content-Type": "application/json",
            "yy": yy,
            "op_ticket": credential.op_ticket,
            **(headers or {}),
        }

        logger.debug("Request: %s %s", method, url)

        client = await self._get_http_client()
        try:
            return await client.request(
                method,
                url,
                content=body_str.encode("utf-8") if body_str else None,
                headers=request_headers,
            )
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

    async def call(
        self,
        method: str,
        path: str,
        body: Any,
        credential: Credential,
    ) -> Any:
        """Send a signed request and unwrap the vendor envelope."""

        response = await self.request(method, path, body, credential)
        return check_result(response_json(response))

    def build_ws_url(self, path: str, credential: Credential) -> str:
        """Return the signed ``wss://`` URL for a streaming endpoint."""

        full_path = self.signed_path(path, credential)
        yy = sign(full_path, "", timestamp_ms())
        return (
            f"{self._settings.ws_url}{full_path}"
            f"&yy={encode_uri_component(yy)}"
            f"&token={encode_uri_component(credential.token)}"
            f"&op_ticket={encode_uri_component(credential.op_ticket)}"
        )

    async def upload_file(
        self,
        data: bytes,
        file_name: str,
        credential: Credential,
        *,
        content_type: str = "audio/mpeg",
    ) -> str:
        """Upload raw bytes through the vendor's upload policy, returning the file id."""

        response = await self.request(
            "GET",
            UPLOAD_POLICY_PATH,
            None,
            credential,
            headers={"Accept": "application/json"},
        )
        policy = check_result(response_json(response))
        if not isinstance(policy, Mapping) or not policy.get("upload_url"):
            raise VendorApiError(-1, "Failed to get upload policy")

        upload_url = str(policy["upload_url"])
        file_id = policy.get("file_id")
        upload_headers = {"Content-Type": content_type}
        extra = policy.get("headers")
        if isinstance(extra, Mapping):
            upload_headers.update({str(k): str(v) for k, v in extra.items()})

        logger.debug("Uploading %d bytes for %s", len(data), file_name)

        client = await self._get_http_client()
        try:
            put = await client.put(upload_url, content=data, headers=upload_headers)
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or exc.__class__.__name__) from exc
        if put.status_code >= 400:
            raise TransportError(f"Audio upload failed ({put.status_code})")

        logger.info("Uploaded audio file: %s", file_id)
        return str(file_id)

    async def download(self, url: str) -> bytes:
        """Fetch an audio file from the vendor CDN."""

        headers = {
            "Referer": f"{self._settings.base_url}/",
            "User-Agent": BROWSER_HEADERS["User-Agent"],
        }
        client = await self._get_http_client()
        try:
            response = await client.get(url, headers=headers, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or exc.__class__.__name__) from exc
        if response.status_code >= 400:
            raise TransportError(f"Audio download failed ({response.status_code})")
        return response.content

    async def aclose(self) -> None:
        if self._own_client is not None:
            await self._own_client.aclose()
            self._own_client = None

    @classmethod
    async def aclose_shared(cls) -> None:
        async with cls._client_lock:
            clients = list(cls._client_pool.values())
            cls._client_pool.clear()
        for client in clients:
            try:
                await client.aclose()
            except Exception:  # pragma: no cover - best effort cleanup
                pass


__all__ = [
    "BROWSER_HEADERS",
    "MinimaxClient",
    "check_result",
    "response_json",
    "serialize_body",
]
