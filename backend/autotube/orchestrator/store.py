"""Job store: the only owner and mutation path for job records.

Both implementations share the transition and invariant checks in
apply_update(), so the in-memory registry and the SQL-backed store
enforce the same state machine.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from autotube.orchestrator.state import can_transition, is_terminal
from autotube.schemas.job import Job, JobError, JobSummary, PipelineInput, PipelineResult

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"status", "result", "error", "current_stage"})


class JobNotFoundError(LookupError):
    """Raised for an id the store never issued. Not retryable."""

    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class InvalidTransitionError(ValueError):
    """Raised when an update would move a job backwards or out of a terminal state."""

    def __init__(self, job_id: str, current: str, new: str):
        super().__init__(f"Job {job_id}: illegal status transition {current} -> {new}")
        self.job_id = job_id
        self.current = current
        self.new = new


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_relative_age(created_at: datetime, now: Optional[datetime] = None) -> str:
    """Render a timestamp as a human relative age ("5 minutes ago")."""
    now = now or utcnow()
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    seconds = max(0, int((now - created_at).total_seconds()))

    if seconds < 45:
        return "just now"
    if seconds < 90:
        return "1 minute ago"
    minutes = round(seconds / 60)
    if minutes < 60:
        return f"{minutes} minutes ago"
    hours = round(minutes / 60)
    if hours < 24:
        return "1 hour ago" if hours == 1 else f"{hours} hours ago"
    days = round(hours / 24)
    return "1 day ago" if days == 1 else f"{days} days ago"


def summarize(job: Job, now: Optional[datetime] = None) -> JobSummary:
    """Project a job into its presentation view."""
    return JobSummary(
        id=job.id,
        status=job.status,
        topic=job.input.topic,
        tone=job.input.tone,
        visibility=job.input.visibility,
        created_ago=format_relative_age(job.created_at, now),
        current_stage=job.current_stage,
        duration_sec=job.result.duration_sec if job.result else None,
        video_path=job.result.video_path if job.result else None,
        published_url=job.result.published_url if job.result else None,
        publish_error=job.result.publish_error if job.result else None,
        error=job.error.message if job.error else None,
        failed_stage=job.error.stage if job.error else None,
    )


def apply_update(job: Job, fields: Dict[str, Any]) -> Job:
    """Merge fields into a copy of job after checking the state machine.

    Raises:
        InvalidTransitionError: status change not allowed from job.status
        ValueError: unknown field, or result/error inconsistent with status
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update job fields: {sorted(unknown)}")

    new_status = fields.get("status", job.status)
    if not can_transition(job.status, new_status):
        raise InvalidTransitionError(job.id, job.status, new_status)

    data = job.model_dump()
    data.update(fields)
    if isinstance(data.get("result"), PipelineResult):
        data["result"] = data["result"].model_dump()
    if isinstance(data.get("error"), JobError):
        data["error"] = data["error"].model_dump()
    if is_terminal(new_status):
        data["current_stage"] = None
    data["updated_at"] = utcnow()
    updated = Job.model_validate(data)

    if updated.status == "success" and (updated.result is None or updated.error is not None):
        raise ValueError(f"Job {job.id}: success requires a result and no error")
    if updated.status == "failed" and (updated.error is None or updated.result is not None):
        raise ValueError(f"Job {job.id}: failed requires an error and no result")
    if not is_terminal(updated.status) and (updated.result is not None or updated.error is not None):
        raise ValueError(f"Job {job.id}: result/error may only be set on terminal status")

    return updated


class JobStore(ABC):
    """Contract shared by every job store backend.

    Returned Job objects are copies; mutate a job only through update().
    """

    async def init(self) -> None:
        """Prepare the backend. No-op by default."""

    async def close(self) -> None:
        """Release backend resources. No-op by default."""

    @abstractmethod
    async def create(self, pipeline_input: PipelineInput) -> Job: ...

    @abstractmethod
    async def get(self, job_id: str) -> Job: ...

    @abstractmethod
    async def list(self) -> List[Job]: ...

    @abstractmethod
    async def update(self, job_id: str, **fields: Any) -> Job: ...

    def summarize(self, job: Job) -> JobSummary:
        return summarize(job)


class InMemoryJobStore(JobStore):
    """Process-wide registry of jobs keyed by id.

    Jobs live for the lifetime of the process. Creation order is the dict
    insertion order, and created_at is kept non-decreasing even if the
    wall clock steps backwards.
    """

    def __init__(self) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = asyncio.Lock()
        self._last_created_at: Optional[datetime] = None

    async def create(self, pipeline_input: PipelineInput) -> Job:
        async with self._lock:
            job_id = str(uuid.uuid4())
            while job_id in self._jobs:
                job_id = str(uuid.uuid4())

            now = utcnow()
            if self._last_created_at is not None and now < self._last_created_at:
                now = self._last_created_at
            self._last_created_at = now

            job = Job(
                id=job_id,
                status="queued",
                input=pipeline_input,
                created_at=now,
                updated_at=now,
            )
            self._jobs[job_id] = job
            logger.info(f"Created job {job_id} for topic: {pipeline_input.topic[:50]}")
            return job.model_copy(deep=True)

    async def get(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job.model_copy(deep=True)

    async def list(self) -> List[Job]:
        async with self._lock:
            return [job.model_copy(deep=True) for job in self._jobs.values()]

    async def update(self, job_id: str, **fields: Any) -> Job:
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            updated = apply_update(job, fields)
            self._jobs[job_id] = updated
            if updated.status != job.status:
                logger.info(f"Job {job_id}: {job.status} -> {updated.status}")
            return updated.model_copy(deep=True)
