"""Capability interfaces for the four pipeline stages.

The executor depends only on these contracts, so an alternate script
model, TTS engine, renderer or platform can be swapped in without
touching orchestration code. Adapters signal failure by raising; the
executor attaches the stage tag.
"""

from abc import ABC, abstractmethod

from autotube.schemas.artifacts import NarrationTrack, PublishResult, RenderedVideo
from autotube.schemas.job import Tone, Visibility
from autotube.schemas.script import Script


class StageFailure(Exception):
    """A stage raised; carries the stage tag and the verbatim message."""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage
        self.message = message

    def __str__(self) -> str:
        return f"{self.stage} failed: {self.message}"


class PublishSkipped(Exception):
    """Publishing was intentionally omitted (missing credentials, platform rejection).

    Not a job failure: the rendered video remains the result.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ScriptGenerator(ABC):
    @abstractmethod
    async def generate(self, topic: str, tone: Tone, target_duration_sec: int) -> Script:
        """Write a paced script whose beats approximate target_duration_sec."""


class NarrationSynthesizer(ABC):
    @abstractmethod
    async def synthesize(self, script: Script) -> NarrationTrack:
        """Voice the script narration and report the realized duration."""


class VideoRenderer(ABC):
    @abstractmethod
    async def render(self, narration: NarrationTrack, script: Script, tone: Tone) -> RenderedVideo:
        """Assemble the final video around the narration track."""


class Publisher(ABC):
    @abstractmethod
    async def publish(
        self,
        video: RenderedVideo,
        visibility: Visibility,
        title: str,
        description: str,
    ) -> PublishResult:
        """Upload the video. Raise PublishSkipped for expected non-publication."""
