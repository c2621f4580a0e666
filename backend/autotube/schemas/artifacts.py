"""Intermediate artifacts passed between pipeline stages."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class NarrationTrack(BaseModel):
    model_config = ConfigDict(frozen=True)

    audio_path: Path
    duration_sec: float
    voice: str


class RenderedVideo(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path
    duration_sec: float
    width: int
    height: int


class PublishResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    video_id: str
