"""Pipeline orchestrator module.

Provides the job store, the job state machine and the pipeline executor.
"""

from autotube.orchestrator.pipeline import PipelineExecutor
from autotube.orchestrator.store import (
    InMemoryJobStore,
    InvalidTransitionError,
    JobNotFoundError,
    JobStore,
    summarize,
)

__all__ = [
    "InMemoryJobStore",
    "InvalidTransitionError",
    "JobNotFoundError",
    "JobStore",
    "PipelineExecutor",
    "summarize",
]
