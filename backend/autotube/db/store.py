"""SQLAlchemy-backed job store.

Keeps a record of every run across restarts. Jobs are never resumed:
init() fails whatever a previous process left queued or running.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, List

from sqlalchemy import select

from autotube.db.engine import create_engine, create_session_factory
from autotube.db.models import Base, JobRecord
from autotube.orchestrator.store import JobNotFoundError, JobStore, apply_update, utcnow
from autotube.schemas.job import Job, JobError, PipelineInput

logger = logging.getLogger(__name__)

RESTART_MESSAGE = "interrupted by process restart"


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on read
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_job(record: JobRecord) -> Job:
    return Job(
        id=record.id,
        status=record.status,
        input=PipelineInput.model_validate(record.input_json),
        result=record.result_json,
        error=record.error_json,
        current_stage=record.current_stage,
        created_at=_aware(record.created_at),
        updated_at=_aware(record.updated_at),
    )


def _copy_to_record(job: Job, record: JobRecord) -> None:
    record.status = job.status
    record.result_json = job.result.model_dump() if job.result else None
    record.error_json = job.error.model_dump() if job.error else None
    record.current_stage = job.current_stage
    record.updated_at = job.updated_at


class SqlJobStore(JobStore):
    """Job store persisted through an async SQLAlchemy engine."""

    def __init__(self, database_url: str) -> None:
        self._engine = create_engine(database_url)
        self._session_factory = create_session_factory(self._engine)
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        """Create the schema and fail jobs stranded by a previous process."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with self._lock, self._session_factory() as session:
            result = await session.execute(
                select(JobRecord).where(JobRecord.status.in_(("queued", "running")))
            )
            stranded = result.scalars().all()
            for record in stranded:
                job = apply_update(
                    _to_job(record),
                    {
                        "status": "failed",
                        "error": JobError(stage=record.current_stage, message=RESTART_MESSAGE),
                    },
                )
                _copy_to_record(job, record)
            await session.commit()

        if stranded:
            logger.warning(f"Marked {len(stranded)} stranded job(s) as failed")

    async def close(self) -> None:
        await self._engine.dispose()

    async def create(self, pipeline_input: PipelineInput) -> Job:
        async with self._lock, self._session_factory() as session:
            now = utcnow()
            record = JobRecord(
                id=str(uuid.uuid4()),
                status="queued",
                input_json=pipeline_input.model_dump(),
                created_at=now,
                updated_at=now,
            )
            session.add(record)
            await session.commit()
            logger.info(f"Created job {record.id} for topic: {pipeline_input.topic[:50]}")
            return _to_job(record)

    async def get(self, job_id: str) -> Job:
        async with self._session_factory() as session:
            result = await session.execute(select(JobRecord).where(JobRecord.id == job_id))
            record = result.scalar_one_or_none()
            if record is None:
                raise JobNotFoundError(job_id)
            return _to_job(record)

    async def list(self) -> List[Job]:
        async with self._session_factory() as session:
            result = await session.execute(select(JobRecord).order_by(JobRecord.seq))
            return [_to_job(record) for record in result.scalars().all()]

    async def update(self, job_id: str, **fields: Any) -> Job:
        async with self._lock, self._session_factory() as session:
            result = await session.execute(select(JobRecord).where(JobRecord.id == job_id))
            record = result.scalar_one_or_none()
            if record is None:
                raise JobNotFoundError(job_id)

            current = _to_job(record)
            updated = apply_update(current, fields)
            _copy_to_record(updated, record)
            await session.commit()

            if updated.status != current.status:
                logger.info(f"Job {job_id}: {current.status} -> {updated.status}")
            return updated
