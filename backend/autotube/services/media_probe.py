"""ffprobe helpers for measuring realized media durations."""

import asyncio
import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class ProbeError(RuntimeError):
    pass


def _probe_duration(path: Path) -> float:
    cmd = [
        "ffprobe", "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    if proc.returncode != 0:
        raise ProbeError(f"ffprobe failed for {path.name}: {proc.stderr.strip()[-300:]}")

    raw = proc.stdout.strip()
    try:
        duration = float(raw)
    except ValueError as e:
        raise ProbeError(f"ffprobe returned no duration for {path.name}: {raw!r}") from e
    if duration <= 0:
        raise ProbeError(f"{path.name} has zero duration")
    return duration


async def probe_duration(path: Path) -> float:
    """Return the container duration of path in seconds."""
    duration = await asyncio.to_thread(_probe_duration, path)
    logger.debug(f"Probed {path.name}: {duration:.2f}s")
    return duration
