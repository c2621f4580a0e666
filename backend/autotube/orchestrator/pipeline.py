"""Pipeline executor: runs Script -> Narration -> Render -> Publish once per job.

Coordinates the four stages with:
- Strict ordering, each stage's artifact feeding the next
- Fail-fast error containment with stage-attributed messages
- Best-effort publishing (a skipped or failed upload never fails a job)
- Per-stage timing and logging
- Optional progress callback and cancellation event
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Optional, TypeVar

from autotube.orchestrator.state import STAGE_MESSAGES
from autotube.orchestrator.store import InvalidTransitionError, JobStore
from autotube.pipeline.base import (
    NarrationSynthesizer,
    Publisher,
    PublishSkipped,
    ScriptGenerator,
    StageFailure,
    VideoRenderer,
)
from autotube.schemas.artifacts import PublishResult
from autotube.schemas.job import Job, JobError, PipelineInput, PipelineResult
from autotube.schemas.script import Script

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[str], None]
StageHook = Callable[[str], Awaitable[None]]

MAX_TITLE_CHARS = 100


def publish_metadata(pipeline_input: PipelineInput, script: Script) -> tuple[str, str]:
    """Return (title, description) for the upload, derived from the topic."""
    title = pipeline_input.topic[:MAX_TITLE_CHARS]
    if script.summary:
        description = f"{script.summary}\n\n{pipeline_input.topic}"
    else:
        description = pipeline_input.topic
    return title, description


class PipelineExecutor:
    """Runs the stage sequence and reflects job state through the job store.

    The executor holds no job state of its own; it is safe to run many
    jobs concurrently on one instance.
    """

    def __init__(
        self,
        store: JobStore,
        script_generator: ScriptGenerator,
        narrator: NarrationSynthesizer,
        renderer: VideoRenderer,
        publisher: Publisher,
    ) -> None:
        self.store = store
        self._script_generator = script_generator
        self._narrator = narrator
        self._renderer = renderer
        self._publisher = publisher

    async def run(
        self,
        pipeline_input: PipelineInput,
        *,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Job:
        """Create a job for pipeline_input and run it to a terminal state."""
        job = await self.store.create(pipeline_input)
        return await self.run_job(
            job.id, progress_callback=progress_callback, cancel_event=cancel_event
        )

    async def run_job(
        self,
        job_id: str,
        *,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Job:
        """Run a queued job and return it in its terminal state.

        Raises:
            JobNotFoundError: job_id unknown to the store
            InvalidTransitionError: job is not queued (already started or finished)
        """
        job = await self.store.get(job_id)
        if job.status != "queued":
            raise InvalidTransitionError(job_id, job.status, "running")
        pipeline_start = time.monotonic()

        async def _mark_stage(stage: str) -> None:
            await self.store.update(job_id, current_stage=stage)

        try:
            await self.store.update(job_id, status="running")
            logger.info(f"Job {job_id}: pipeline started")
            result = await self.execute(
                job.input,
                progress_callback=progress_callback,
                cancel_event=cancel_event,
                on_stage=_mark_stage,
            )
        except StageFailure as failure:
            logger.error(
                f"Job {job_id}: failed at {failure.stage} after "
                f"{time.monotonic() - pipeline_start:.2f}s: {failure.message}"
            )
            return await self._finish(
                job_id,
                status="failed",
                error=JobError(stage=failure.stage, message=failure.message),
            )
        except asyncio.CancelledError:
            logger.warning(f"Job {job_id}: task cancelled")
            await self._finish(
                job_id,
                status="failed",
                error=JobError(stage="cancelled", message="job task cancelled"),
            )
            raise
        except Exception as e:
            # Not raised by a stage: a hook or callback broke. Persist, then re-raise.
            logger.error(f"Job {job_id}: pipeline error: {type(e).__name__}: {e}")
            await self._finish(
                job_id,
                status="failed",
                error=JobError(message=f"{type(e).__name__}: {e}"),
            )
            raise

        logger.info(f"Job {job_id}: pipeline completed in {time.monotonic() - pipeline_start:.2f}s")
        return await self._finish(job_id, status="success", result=result)

    async def _finish(self, job_id: str, **fields) -> Job:
        """Write a terminal state.

        Shielded so a cancellation arriving mid-write cannot leave the job running.
        """
        return await asyncio.shield(self.store.update(job_id, **fields))

    async def execute(
        self,
        pipeline_input: PipelineInput,
        *,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
        on_stage: Optional[StageHook] = None,
    ) -> PipelineResult:
        """Run the four stages in order and assemble the result.

        Raises:
            StageFailure: the first script, narration or render stage that raised
        """
        step_log: Dict[str, float] = {}

        async def _stage(name: str, call: Callable[[], Awaitable[T]]) -> T:
            if cancel_event is not None and cancel_event.is_set():
                raise StageFailure("cancelled", f"cancelled before {name} stage")
            if on_stage is not None:
                await on_stage(name)
            if progress_callback is not None:
                progress_callback(STAGE_MESSAGES[name])

            logger.info(f"Starting {name} stage")
            step_start = time.monotonic()
            try:
                return await call()
            except (PublishSkipped, StageFailure):
                raise
            except Exception as e:
                raise StageFailure(name, str(e) or type(e).__name__) from e
            finally:
                step_log[name] = round(time.monotonic() - step_start, 3)
                logger.info(f"{name} stage finished in {step_log[name]:.2f}s")

        script = await _stage(
            "script",
            lambda: self._script_generator.generate(
                pipeline_input.topic,
                pipeline_input.tone,
                pipeline_input.target_duration_sec,
            ),
        )
        narration = await _stage("narration", lambda: self._narrator.synthesize(script))
        video = await _stage(
            "render", lambda: self._renderer.render(narration, script, pipeline_input.tone)
        )

        title, description = publish_metadata(pipeline_input, script)
        published: Optional[PublishResult] = None
        skipped_reason: Optional[str] = None
        publish_error: Optional[str] = None
        try:
            published = await _stage(
                "publish",
                lambda: self._publisher.publish(
                    video, pipeline_input.visibility, title, description
                ),
            )
        except PublishSkipped as skip:
            skipped_reason = skip.reason
            logger.warning(f"Publish skipped: {skip.reason}; video kept at {video.path}")
        except StageFailure as failure:
            if failure.stage != "publish":
                raise
            # Upload errors stay on the result; the rendered video is the outcome
            publish_error = failure.message
            logger.error(f"Publish failed: {failure.message}; video kept at {video.path}")

        duration = video.duration_sec if video.duration_sec > 0 else narration.duration_sec
        return PipelineResult(
            video_path=str(video.path),
            duration_sec=round(duration, 2),
            published_url=published.url if published else None,
            publish_skipped_reason=skipped_reason,
            publish_error=publish_error,
            stage_timings=step_log,
        )
