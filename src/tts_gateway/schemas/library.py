"""Schemas for voice, history and clone passthrough endpoints."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


class Voice(BaseModel):
    voice_id: str
    name: Optional[str] = None
    language: Optional[str] = None
    gender: Optional[str] = None
    preview_url: Optional[str] = None
    is_clone: bool = False

    @classmethod
    def from_vendor(cls, item: Mapping[str, Any], *, is_clone: bool) -> "Voice":
        return cls(
            voice_id=str(item.get("voice_id") or item.get("id") or ""),
            name=item.get("name") or item.get("voice_name"),
            language=item.get("language"),
            gender=item.get("gender"),
            preview_url=item.get("preview_url") or item.get("audio_url"),
            is_clone=bool(item.get("is_clone", is_clone)),
        )


class VoiceList(BaseModel):
    voices: list[Voice] = Field(default_factory=list)
    total: int = 0

    @classmethod
    def of(cls, voices: list[Voice]) -> "VoiceList":
        return cls(voices=voices, total=len(voices))


class AudioHistory(BaseModel):
    audio_id: str
    text: Optional[str] = None
    voice_id: Optional[str] = None
    voice_name: Optional[str] = None
    audio_url: Optional[str] = None
    duration: Optional[float] = None
    created_at: Optional[str] = None
    status: Optional[int] = None

    @classmethod
    def from_vendor(
        cls, item: Mapping[str, Any], *, fallback_id: str = ""
    ) -> "AudioHistory":
        created = item.get("created_at") or item.get("create_time")
        return cls(
            audio_id=str(item.get("audio_id") or item.get("id") or fallback_id),
            text=item.get("text") or item.get("content"),
            voice_id=item.get("voice_id"),
            voice_name=item.get("voice_name"),
            audio_url=item.get("audio_url") or item.get("url"),
            duration=item.get("duration"),
            created_at=str(created) if created is not None else None,
            status=item.get("status"),
        )


class HistoryPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[AudioHistory] = Field(default_factory=list, alias="list")
    total: int = 0
    page: int = 1
    page_size: int = 20


class CloneVoiceRequest(BaseModel):
    """Body of ``POST /api/clone``; audio comes inline or by URL."""

    name: Optional[str] = None
    audio_base64: Optional[str] = None
    audio_url: Optional[str] = None
    file_name: str = "audio.mp3"
    description: Optional[str] = None


class CloneUpdateRequest(BaseModel):
    name: Optional[str] = None


class CloneVoice(BaseModel):
    voice_id: str
    name: str
    status: str = "processing"


class CloneStatus(BaseModel):
    voice_id: str
    status: str = "unknown"
    progress: Optional[float] = None
    message: Optional[str] = None


__all__ = [
    "AudioHistory",
    "CloneStatus",
    "CloneUpdateRequest",
    "CloneVoice",
    "CloneVoiceRequest",
    "HistoryPage",
    "Voice",
    "VoiceList",
]
