"""Pydantic schemas for job records, pipeline input and results.

PipelineInput is the validation boundary for untrusted requests: the API
and CLI both build one before a job is created, so malformed input never
reaches the job store.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

Tone = Literal["informative", "playful", "dramatic"]
Visibility = Literal["public", "unlisted", "private"]
JobStatus = Literal["queued", "running", "success", "failed"]
StageName = Literal["script", "narration", "render", "publish", "cancelled"]

TONES: tuple[str, ...] = get_args(Tone)
VISIBILITIES: tuple[str, ...] = get_args(Visibility)

MIN_DURATION_SEC = 30
MAX_DURATION_SEC = 600
DEFAULT_DURATION_SEC = 180


class PipelineInput(BaseModel):
    """Validated request to produce one video.

    Accepts both snake_case and camelCase keys (the web UI posts
    targetDurationSec).
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    topic: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3)]
    tone: Tone = "informative"
    target_duration_sec: int = Field(
        default=DEFAULT_DURATION_SEC, ge=MIN_DURATION_SEC, le=MAX_DURATION_SEC
    )
    visibility: Visibility = "unlisted"


class PipelineResult(BaseModel):
    """Artifact descriptor for a successful run."""

    video_path: str
    duration_sec: float
    published_url: Optional[str] = None
    publish_skipped_reason: Optional[str] = None
    publish_error: Optional[str] = None
    stage_timings: dict[str, float] = Field(default_factory=dict)


class JobError(BaseModel):
    """Failure attributed to the stage that raised it.

    stage is None only for jobs that failed before any stage started.
    """

    stage: Optional[StageName] = None
    message: str


class Job(BaseModel):
    """Authoritative record of one pipeline run, owned by the job store."""

    id: str
    status: JobStatus = "queued"
    input: PipelineInput
    result: Optional[PipelineResult] = None
    error: Optional[JobError] = None
    current_stage: Optional[StageName] = None
    created_at: datetime
    updated_at: datetime


class JobSummary(BaseModel):
    """Presentation view of a job with its age computed at read time."""

    id: str
    status: JobStatus
    topic: str
    tone: Tone
    visibility: Visibility
    created_ago: str
    current_stage: Optional[StageName] = None
    duration_sec: Optional[float] = None
    video_path: Optional[str] = None
    published_url: Optional[str] = None
    publish_error: Optional[str] = None
    error: Optional[str] = None
    failed_stage: Optional[StageName] = None
