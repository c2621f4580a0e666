"""AutoTube - topic-to-video production pipeline.

Generates a narrated short video from a topic string and optionally
publishes it to YouTube. Call validate_dependencies() during application
startup so a missing ffmpeg install fails before any job is accepted.
"""

import logging
import shutil
import subprocess

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

_REQUIRED_BINARIES = ("ffmpeg", "ffprobe")


def validate_dependencies() -> None:
    """Validate required system binaries are available.

    Raises:
        RuntimeError: If ffmpeg or ffprobe is missing or not functional.
    """
    for binary in _REQUIRED_BINARIES:
        if shutil.which(binary) is None:
            raise RuntimeError(
                f"{binary} not found on PATH. Install ffmpeg to render videos.\n"
                "Ubuntu/Debian: sudo apt-get install ffmpeg\n"
                "macOS: brew install ffmpeg\n"
                "Windows: https://ffmpeg.org/download.html"
            )
        try:
            result = subprocess.run(
                [binary, "-version"],
                capture_output=True,
                check=True,
                text=True,
            )
        except subprocess.CalledProcessError as e:
            raise RuntimeError(f"{binary} is installed but not functional: {e}") from e
        logger.info(f"{binary} validated: {result.stdout.splitlines()[0]}")
