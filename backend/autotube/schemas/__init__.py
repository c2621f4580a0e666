"""Pydantic schemas for jobs, scripts and stage artifacts."""

from autotube.schemas.artifacts import NarrationTrack, PublishResult, RenderedVideo
from autotube.schemas.job import (
    Job,
    JobError,
    JobSummary,
    PipelineInput,
    PipelineResult,
)
from autotube.schemas.script import Beat, Script, ScriptDraft

__all__ = [
    "Beat",
    "Job",
    "JobError",
    "JobSummary",
    "NarrationTrack",
    "PipelineInput",
    "PipelineResult",
    "PublishResult",
    "RenderedVideo",
    "Script",
    "ScriptDraft",
]
