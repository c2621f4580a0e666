"""API route handlers and Pydantic response schemas."""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from autotube.orchestrator.pipeline import PipelineExecutor
from autotube.orchestrator.store import JobNotFoundError, summarize
from autotube.schemas.job import JobSummary, PipelineInput

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ============================================================================
# Response Schemas
# ============================================================================

class RunResponse(BaseModel):
    job_id: str
    result: Optional[JobSummary] = None


class JobAcceptedResponse(BaseModel):
    job_id: str
    status: str
    status_url: str


class JobListResponse(BaseModel):
    jobs: list[JobSummary]


class InvalidPayload(Exception):
    def __init__(self, details: str):
        super().__init__(details)
        self.details = details


def _executor(request: Request) -> PipelineExecutor:
    return request.app.state.executor


async def _parse_input(request: Request) -> PipelineInput:
    """Validate an untrusted request body before any job is created."""
    try:
        payload = await request.json()
        return PipelineInput.model_validate(payload)
    except ValueError as e:
        # ValidationError, JSONDecodeError and UnicodeDecodeError
        raise InvalidPayload(str(e)) from e


def _invalid_payload(exc: InvalidPayload) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid payload", "details": exc.details},
    )


# ============================================================================
# Background Task Wrapper
# ============================================================================

async def run_job_background(executor: PipelineExecutor, job_id: str) -> None:
    """Run a queued job after the 202 response has been sent."""
    try:
        await executor.run_job(job_id)
    except Exception as e:
        # Failure already persisted to the job store by the executor
        logger.error(f"Background job {job_id} failed: {type(e).__name__}: {str(e)}")


# ============================================================================
# Endpoint Handlers
# ============================================================================

@router.post("/run", response_model=RunResponse)
async def run_pipeline(request: Request):
    """Create a job and run the pipeline to completion within the request.

    Returns 400 for invalid input (no job is created), 500 with the stage
    error when the pipeline fails.
    """
    try:
        pipeline_input = await _parse_input(request)
    except InvalidPayload as e:
        return _invalid_payload(e)

    job = await _executor(request).run(pipeline_input)
    if job.status == "failed":
        return JSONResponse(
            status_code=500,
            content={
                "error": job.error.message if job.error else "Unknown error",
                "stage": job.error.stage if job.error else None,
                "job_id": job.id,
            },
        )

    return RunResponse(job_id=job.id, result=summarize(job))


@router.post("/jobs", status_code=202, response_model=JobAcceptedResponse)
async def submit_job(request: Request, background_tasks: BackgroundTasks):
    """Create a job and run the pipeline in the background."""
    try:
        pipeline_input = await _parse_input(request)
    except InvalidPayload as e:
        return _invalid_payload(e)

    executor = _executor(request)
    job = await executor.store.create(pipeline_input)
    background_tasks.add_task(run_job_background, executor, job.id)

    return JobAcceptedResponse(
        job_id=job.id,
        status=job.status,
        status_url=f"/api/jobs/{job.id}",
    )


@router.get("/run", response_model=JobListResponse)
@router.get("/jobs", response_model=JobListResponse)
async def list_jobs(request: Request):
    """List all jobs, newest first."""
    jobs = await _executor(request).store.list()
    return JobListResponse(jobs=[summarize(job) for job in reversed(jobs)])


@router.get("/jobs/{job_id}", response_model=JobSummary)
async def get_job(job_id: str, request: Request):
    try:
        job = await _executor(request).store.get(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    return summarize(job)


@router.get("/health")
async def health():
    return {"status": "ok"}
