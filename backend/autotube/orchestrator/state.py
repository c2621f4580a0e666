"""Job state machine constants and transition checks.

queued -> running -> success | failed. Terminal states never change.
queued -> failed is allowed so a job cancelled before it starts, or
stranded by a process restart, can still reach a terminal state.
"""

from typing import Dict, FrozenSet

JOB_STATES = {
    "queued": "Job created, pipeline not yet started",
    "running": "Pipeline stages executing",
    "success": "Video rendered (and published when credentials allow)",
    "failed": "A stage failed or the job was cancelled",
}

TERMINAL_STATES: FrozenSet[str] = frozenset({"success", "failed"})

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "queued": frozenset({"running", "failed"}),
    "running": frozenset({"success", "failed"}),
    "success": frozenset(),
    "failed": frozenset(),
}

# Pipeline stages in execution order
STAGES = ("script", "narration", "render", "publish")

STAGE_MESSAGES = {
    "script": "Writing script...",
    "narration": "Synthesizing narration...",
    "render": "Rendering video...",
    "publish": "Publishing to YouTube...",
}


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES


def can_transition(current: str, new: str) -> bool:
    """Check whether a job may move from current to new status.

    Re-asserting the same non-terminal status (e.g. running -> running
    while only current_stage changes) is allowed.
    """
    if current == new:
        return not is_terminal(current)
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())
