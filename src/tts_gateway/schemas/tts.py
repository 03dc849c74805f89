"""Request schemas for speech synthesis endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class VoiceEffects(BaseModel):
    """Timbre effects accepted by the vendor synthesis command."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    deepen_lighten: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("deepenLighten", "deepen_lighten"),
    )
    stronger_softer: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("strongerSofter", "stronger_softer"),
    )
    nasal_crisp: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("nasalCrisp", "nasal_crisp"),
    )
    spacious_echo: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("spaciousEcho", "spacious_echo"),
    )
    lofi_telephone: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("lofiTelephone", "lofi_telephone"),
    )


class SpeechRequest(BaseModel):
    """Body of ``POST /api/tts`` and ``POST /api/tts/stream``.

    Both snake_case and camelCase spellings are accepted. ``text`` is checked
    by the route so the error message stays stable.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: Optional[str] = None
    voice_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("voice_id", "voiceId")
    )
    model: Optional[str] = None
    speed: Optional[float] = None
    volume: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("volume", "vol")
    )
    pitch: Optional[float] = None
    language_boost: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("language_boost", "languageBoost"),
    )
    stream: Optional[bool] = None
    effects: Optional[VoiceEffects] = None


class OpenAISpeechRequest(BaseModel):
    """OpenAI ``/audio/speech`` compatible body."""

    model_config = ConfigDict(extra="ignore")

    model: Optional[str] = None
    input: Optional[str] = None
    voice: Optional[str] = None
    speed: Optional[float] = None

    def to_speech_request(self) -> SpeechRequest:
        # OpenAI model names have no vendor counterpart; the default model is used
        return SpeechRequest(
            text=self.input,
            voice_id=self.voice,
            speed=self.speed or 1,
        )


__all__ = ["OpenAISpeechRequest", "SpeechRequest", "VoiceEffects"]
