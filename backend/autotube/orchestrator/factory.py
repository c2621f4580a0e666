"""Wiring: build the job store and executor from settings.

Called once at process start (API lifespan or CLI command); the returned
objects are injected wherever they are needed.
"""

import logging
from typing import Optional

from autotube.config import Settings, settings as app_settings
from autotube.orchestrator.pipeline import PipelineExecutor
from autotube.orchestrator.store import InMemoryJobStore, JobStore
from autotube.pipeline.narration import SpeechSynthesizer
from autotube.pipeline.publish import YouTubePublisher
from autotube.pipeline.render import FfmpegRenderer
from autotube.pipeline.script import LLMScriptGenerator
from autotube.services.file_manager import FileManager

logger = logging.getLogger(__name__)


async def create_job_store(config: Optional[Settings] = None) -> JobStore:
    """Create and initialize the configured job store backend."""
    config = config or app_settings
    if config.storage.job_store == "sql":
        from autotube.db import SqlJobStore

        store: JobStore = SqlJobStore(config.storage.database_url)
    else:
        store = InMemoryJobStore()

    await store.init()
    logger.info(f"Job store ready: {type(store).__name__}")
    return store


def build_executor(store: JobStore, config: Optional[Settings] = None) -> PipelineExecutor:
    """Assemble the executor with the concrete stage adapters."""
    config = config or app_settings
    file_manager = FileManager(config.storage.tmp_dir)
    publisher = YouTubePublisher.from_settings(config)
    if not publisher.has_credentials:
        logger.warning("YouTube credentials not configured; videos will stay local")

    return PipelineExecutor(
        store,
        script_generator=LLMScriptGenerator.from_settings(config),
        narrator=SpeechSynthesizer.from_settings(config, file_manager),
        renderer=FfmpegRenderer.from_settings(config, file_manager),
        publisher=publisher,
    )
