"""
File management service for autotube.

Handles artifact storage with path traversal protection. Each script run
gets its own directory so narration and render outputs of concurrent jobs
never collide.
"""
from pathlib import Path

from autotube.config import settings


class FileManager:
    """
    Manage filesystem artifacts for pipeline runs.

    Creates structured directories:
    - {base_dir}/{run_id}/audio/ - Narration tracks
    - {base_dir}/{run_id}/output/ - Rendered video

    Artifacts are not garbage-collected when a later stage fails.
    """

    def __init__(self, base_dir: str | Path | None = None):
        """
        Initialize FileManager with base directory.

        Args:
            base_dir: Root directory for all run artifacts.
                     If None, uses settings.storage.tmp_dir
        """
        if base_dir is None:
            base_dir = settings.storage.tmp_dir

        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def get_run_dir(self, run_id: str) -> Path:
        """
        Get or create the directory for one run.

        Raises:
            ValueError: If run_id resolves outside base_dir (traversal attack)
        """
        run_dir = (self.base_dir / str(run_id)).resolve()

        if not run_dir.is_relative_to(self.base_dir) or run_dir == self.base_dir:
            raise ValueError("Invalid run path")

        run_dir.mkdir(exist_ok=True)
        (run_dir / "audio").mkdir(exist_ok=True)
        (run_dir / "output").mkdir(exist_ok=True)

        return run_dir

    def get_audio_path(self, run_id: str, filename: str = "narration.mp3") -> Path:
        return self.get_run_dir(run_id) / "audio" / filename

    def save_audio(self, run_id: str, data: bytes, filename: str = "narration.mp3") -> Path:
        """Write a narration track (or one chunk of it) and return its path."""
        filepath = self.get_audio_path(run_id, filename)
        filepath.write_bytes(data)
        return filepath

    def get_output_path(self, run_id: str, filename: str = "final.mp4") -> Path:
        return self.get_run_dir(run_id) / "output" / filename
