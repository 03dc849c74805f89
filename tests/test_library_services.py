import httpx
import pytest

from tts_gateway.config import Settings
from tts_gateway.minimax.client import MinimaxClient
from tts_gateway.minimax.errors import TransportError, VendorApiError
from tts_gateway.minimax.identity import Credential, DeviceIdentityCache
from tts_gateway.services.clone import CloneService
from tts_gateway.services.history import HistoryService
from tts_gateway.services.voices import VoiceService

CREDENTIAL = Credential("tok-1")


def ok(data) -> httpx.Response:
    return httpx.Response(200, json={"base_resp": {"status_code": 0}, "data": data})


def failure(code: int = 1, message: str = "nope") -> httpx.Response:
    return httpx.Response(200, json={"base_resp": {"status_code": code, "status_msg": message}})


def make_client(handler) -> MinimaxClient:
    settings = Settings(minimax_base_url="https://vendor.example.com")
    return MinimaxClient(settings, DeviceIdentityCache(), transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_all_voices_merges_official_and_cloned() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/official_list"):
            return ok({"list": [{"voice_id": "o1", "name": "Official"}]})
        return ok({"list": [{"voice_id": "c1", "voice_name": "Mine"}]})

    service = VoiceService(make_client(handler))

    result = await service.all_voices(CREDENTIAL)

    assert result.total == 2
    assert [(v.voice_id, v.name, v.is_clone) for v in result.voices] == [
        ("o1", "Official", False),
        ("c1", "Mine", True),
    ]


@pytest.mark.asyncio
async def test_all_voices_skips_failing_side() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/official_list"):
            return ok({"list": [{"voice_id": "o1"}]})
        return failure()

    service = VoiceService(make_client(handler))

    result = await service.all_voices(CREDENTIAL)

    assert [v.voice_id for v in result.voices] == ["o1"]


@pytest.mark.asyncio
async def test_official_voices_error_propagates() -> None:
    service = VoiceService(make_client(lambda request: failure(2, "expired")))

    with pytest.raises(VendorApiError):
        await service.official(CREDENTIAL)


@pytest.mark.asyncio
async def test_voice_detail_missing_returns_none() -> None:
    service = VoiceService(make_client(lambda request: ok(None)))

    assert await service.detail("v-1", CREDENTIAL) is None


@pytest.mark.asyncio
async def test_history_page_maps_items() -> None:
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["params"] = request.url.params
        return ok(
            {
                "list": [
                    {"id": 11, "content": "hello", "url": "https://cdn.example.com/11.mp3"},
                    {"audio_id": "12", "text": "bye", "create_time": 1700000000},
                ],
                "total": 42,
            }
        )

    service = HistoryService(make_client(handler))

    page = await service.list_page(CREDENTIAL, page=3, page_size=2)

    assert captured["params"]["page"] == "3"
    assert captured["params"]["page_size"] == "2"
    assert page.total == 42
    assert page.page == 3
    assert [item.audio_id for item in page.items] == ["11", "12"]
    assert page.items[0].text == "hello"
    assert page.items[0].audio_url == "https://cdn.example.com/11.mp3"
    assert page.items[1].created_at == "1700000000"
    assert page.model_dump(by_alias=True)["list"][0]["audio_id"] == "11"


@pytest.mark.asyncio
async def test_history_delete_reports_failure() -> None:
    service = HistoryService(make_client(lambda request: failure()))

    assert await service.delete("11", CREDENTIAL) is False


@pytest.mark.asyncio
async def test_history_download_fetches_bytes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["referer"] == "https://vendor.example.com/"
        return httpx.Response(200, content=b"mp3-bytes")

    service = HistoryService(make_client(handler))

    assert await service.download("https://cdn.example.com/a.mp3") == b"mp3-bytes"


@pytest.mark.asyncio
async def test_history_download_error_status() -> None:
    service = HistoryService(make_client(lambda request: httpx.Response(404)))

    with pytest.raises(TransportError):
        await service.download("https://cdn.example.com/missing.mp3")


@pytest.mark.asyncio
async def test_clone_create_uploads_then_registers() -> None:
    calls: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        if request.url.path == "/v1/api/audio/upload/policy":
            return ok({"upload_url": "https://upload.example.com/slot", "file_id": "f-1"})
        if request.url.host == "upload.example.com":
            return httpx.Response(200)
        assert request.content.startswith(b'{"name":"Mine","file_id":"f-1"')
        return ok({"voice_id": "clone-7"})

    service = CloneService(make_client(handler))

    voice = await service.create("Mine", b"audio", CREDENTIAL)

    assert voice.voice_id == "clone-7"
    assert voice.name == "Mine"
    assert voice.status == "processing"
    assert calls == [
        ("GET", "/v1/api/audio/upload/policy"),
        ("PUT", "/slot"),
        ("POST", "/v1/api/audio/voice/clone"),
    ]


@pytest.mark.asyncio
async def test_clone_status_defaults_voice_id() -> None:
    service = CloneService(make_client(lambda request: ok({"status": "ready", "progress": 100})))

    status = await service.status("clone-7", CREDENTIAL)

    assert status.voice_id == "clone-7"
    assert status.status == "ready"
    assert status.progress == 100


@pytest.mark.asyncio
async def test_clone_rename_posts_update() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = request.content
        return ok({})

    service = CloneService(make_client(handler))

    assert await service.rename("clone-7", "Renamed", CREDENTIAL) is True
    assert seen == {
        "method": "POST",
        "path": "/v1/api/audio/voice/clone/update",
        "body": b'{"voice_id":"clone-7","name":"Renamed"}',
    }


@pytest.mark.asyncio
async def test_caller_ids_are_encoded_in_vendor_queries() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return ok({"voice_id": "x"})

    client = make_client(handler)
    hostile = "a&x=1"

    await VoiceService(client).detail(hostile, CREDENTIAL)
    await HistoryService(client).detail(hostile, CREDENTIAL)
    await HistoryService(client).delete(hostile, CREDENTIAL)
    await CloneService(client).status(hostile, CREDENTIAL)
    await CloneService(client).delete(hostile, CREDENTIAL)

    assert len(seen) == 5
    for request in seen:
        params = request.url.params
        assert "x" not in params
        assert hostile in (params.get("voice_id"), params.get("audio_id"))
        assert b"a%26x%3D1" in request.url.raw_path
