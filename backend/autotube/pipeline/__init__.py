"""Pipeline stage contracts and their concrete adapters."""

from autotube.pipeline.base import (
    NarrationSynthesizer,
    Publisher,
    PublishSkipped,
    ScriptGenerator,
    StageFailure,
    VideoRenderer,
)

__all__ = [
    "NarrationSynthesizer",
    "Publisher",
    "PublishSkipped",
    "ScriptGenerator",
    "StageFailure",
    "VideoRenderer",
]
