"""Shared fixtures: fake stage adapters and an executor factory.

The fakes record the order in which stages are called so tests can check
that a failed stage stops everything after it.
"""

from pathlib import Path
from typing import Optional

import pytest

from autotube.orchestrator.pipeline import PipelineExecutor
from autotube.orchestrator.store import InMemoryJobStore, JobStore
from autotube.pipeline.base import (
    NarrationSynthesizer,
    Publisher,
    ScriptGenerator,
    VideoRenderer,
)
from autotube.schemas.artifacts import NarrationTrack, PublishResult, RenderedVideo
from autotube.schemas.job import PipelineInput
from autotube.schemas.script import Beat, Script

VIDEO_URL = "https://www.youtube.com/watch?v=abc123"


def make_script(tone: str = "informative", beat_seconds: float = 60.0, beats: int = 3) -> Script:
    return Script(
        topic="AI news of the week",
        tone=tone,
        title="AI news of the week",
        summary="The biggest model releases in two sentences.",
        beats=[
            Beat(
                heading=f"Beat {i}",
                narration=f"Narration for beat {i}.",
                duration_sec=beat_seconds,
            )
            for i in range(beats)
        ],
    )


class FakeScriptGenerator(ScriptGenerator):
    def __init__(self, calls: list, error: Optional[Exception] = None):
        self.calls = calls
        self.error = error

    async def generate(self, topic, tone, target_duration_sec):
        self.calls.append("script")
        if self.error:
            raise self.error
        return make_script(tone, beat_seconds=target_duration_sec / 3)


class FakeNarrator(NarrationSynthesizer):
    def __init__(self, calls: list, directory: Path, error: Optional[Exception] = None):
        self.calls = calls
        self.directory = directory
        self.error = error

    async def synthesize(self, script):
        self.calls.append("narration")
        if self.error:
            raise self.error
        audio_path = self.directory / f"{script.id}.mp3"
        audio_path.write_bytes(b"ID3")
        return NarrationTrack(
            audio_path=audio_path,
            duration_sec=script.planned_duration_sec,
            voice="alloy",
        )


class FakeRenderer(VideoRenderer):
    def __init__(self, calls: list, directory: Path, error: Optional[Exception] = None):
        self.calls = calls
        self.directory = directory
        self.error = error
        self.rendered: list[RenderedVideo] = []

    async def render(self, narration, script, tone):
        self.calls.append("render")
        if self.error:
            raise self.error
        path = self.directory / f"{script.id}.mp4"
        path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
        video = RenderedVideo(
            path=path, duration_sec=narration.duration_sec + 0.004, width=1080, height=1920
        )
        self.rendered.append(video)
        return video


class FakePublisher(Publisher):
    def __init__(self, calls: list, error: Optional[Exception] = None):
        self.calls = calls
        self.error = error
        self.uploads: list[tuple] = []

    async def publish(self, video, visibility, title, description):
        self.calls.append("publish")
        if self.error:
            raise self.error
        self.uploads.append((video.path, visibility, title, description))
        return PublishResult(url=VIDEO_URL, video_id="abc123")


class FakeStages:
    """The four fake adapters sharing one call log."""

    def __init__(self, directory: Path, **errors: Exception):
        self.calls: list[str] = []
        self.script = FakeScriptGenerator(self.calls, errors.get("script"))
        self.narrator = FakeNarrator(self.calls, directory, errors.get("narration"))
        self.renderer = FakeRenderer(self.calls, directory, errors.get("render"))
        self.publisher = FakePublisher(self.calls, errors.get("publish"))

    def executor(self, store: Optional[JobStore] = None) -> PipelineExecutor:
        return PipelineExecutor(
            store or InMemoryJobStore(),
            script_generator=self.script,
            narrator=self.narrator,
            renderer=self.renderer,
            publisher=self.publisher,
        )


@pytest.fixture
def make_stages(tmp_path):
    """Build FakeStages; pass script=, narration=, render= or publish= errors."""

    def _make(**errors: Exception) -> FakeStages:
        return FakeStages(tmp_path, **errors)

    return _make


@pytest.fixture
def pipeline_input() -> PipelineInput:
    return PipelineInput(
        topic="AI news of the week",
        tone="informative",
        target_duration_sec=180,
        visibility="unlisted",
    )
