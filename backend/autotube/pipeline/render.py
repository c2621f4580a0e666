"""Video assembly with ffmpeg.

Renders a tone-coloured background with one caption per beat and muxes
the narration track on top. Caption timing follows the beats' planned
durations scaled to the realized narration length.
"""

import asyncio
import logging
import subprocess
import textwrap
from pathlib import Path
from typing import Optional

from autotube.config import RenderConfig, Settings, settings as app_settings
from autotube.pipeline.base import VideoRenderer
from autotube.schemas.artifacts import NarrationTrack, RenderedVideo
from autotube.schemas.job import Tone
from autotube.schemas.script import Script
from autotube.services.file_manager import FileManager
from autotube.services.media_probe import probe_duration

logger = logging.getLogger(__name__)

CAPTION_WIDTH_CHARS = 18


class RenderError(RuntimeError):
    pass


def _escape_filter_value(value: str) -> str:
    """Escape a value for use inside a quoted ffmpeg filtergraph option."""
    return value.replace("\\", "\\\\").replace("'", "\\'").replace(":", "\\:")


def caption_windows(script: Script, total_duration: float) -> list[tuple[float, float]]:
    """Return (start, end) seconds for each beat, scaled to total_duration."""
    planned = script.planned_duration_sec
    scale = total_duration / planned if planned > 0 else 0.0
    windows = []
    cursor = 0.0
    for beat in script.beats:
        end = cursor + beat.duration_sec * scale
        windows.append((round(cursor, 3), round(end, 3)))
        cursor = end
    return windows


def build_filter(
    caption_files: list[Path],
    windows: list[tuple[float, float]],
    config: RenderConfig,
) -> str:
    """Chain one drawtext filter per caption onto the background stream."""
    font = f"fontfile='{_escape_filter_value(str(config.font_file))}':" if config.font_file else ""
    parts = []
    for caption_file, (start, end) in zip(caption_files, windows):
        parts.append(
            "drawtext="
            f"{font}textfile='{_escape_filter_value(str(caption_file))}':"
            f"fontcolor=white:fontsize={config.font_size}:line_spacing=12:"
            "box=1:boxcolor=black@0.45:boxborderw=24:"
            "x=(w-text_w)/2:y=(h-text_h)/2:"
            f"enable='between(t,{start},{end})'"
        )
    return ",".join(parts) if parts else "null"


class FfmpegRenderer(VideoRenderer):
    """Renders captioned narration videos with a local ffmpeg binary."""

    def __init__(self, config: RenderConfig, file_manager: FileManager) -> None:
        self._config = config
        self._files = file_manager

    @classmethod
    def from_settings(
        cls, config: Optional[Settings] = None, file_manager: Optional[FileManager] = None
    ) -> "FfmpegRenderer":
        config = config or app_settings
        return cls(config.render, file_manager or FileManager(config.storage.tmp_dir))

    async def render(self, narration: NarrationTrack, script: Script, tone: Tone) -> RenderedVideo:
        if not narration.audio_path.exists():
            raise RenderError(f"Narration audio missing: {narration.audio_path}")
        background = self._config.backgrounds.get(tone)
        if not background:
            raise RenderError(f"No background configured for tone '{tone}'")

        output_path = self._files.get_output_path(script.id)
        caption_files = self._write_captions(script, output_path.parent)
        windows = caption_windows(script, narration.duration_sec)
        command = self._build_command(
            narration, background, build_filter(caption_files, windows, self._config), output_path
        )

        logger.info(
            f"Script {script.id}: rendering {len(script.beats)} captions, "
            f"{narration.duration_sec:.1f}s, {self._config.width}x{self._config.height}"
        )
        try:
            await asyncio.to_thread(
                subprocess.run, command, check=True, capture_output=True
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace") if e.stderr else "No error output"
            logger.error(f"Script {script.id}: ffmpeg error: {stderr[-1000:]}")
            raise RenderError(f"ffmpeg exited with code {e.returncode}: {stderr[-500:]}") from e
        except FileNotFoundError as e:
            raise RenderError("ffmpeg not found on PATH") from e

        duration = await probe_duration(output_path)
        logger.info(f"Script {script.id}: render complete -> {output_path} ({duration:.1f}s)")
        return RenderedVideo(
            path=output_path,
            duration_sec=duration,
            width=self._config.width,
            height=self._config.height,
        )

    def _write_captions(self, script: Script, directory: Path) -> list[Path]:
        # textfile= avoids escaping caption text inside the filtergraph
        paths = []
        for index, beat in enumerate(script.beats):
            path = directory / f"caption_{index:02d}.txt"
            path.write_text(
                "\n".join(textwrap.wrap(beat.heading.strip(), CAPTION_WIDTH_CHARS)) or " ",
                encoding="utf-8",
            )
            paths.append(path)
        return paths

    def _build_command(
        self,
        narration: NarrationTrack,
        background: str,
        video_filter: str,
        output_path: Path,
    ) -> list[str]:
        cfg = self._config
        return [
            "ffmpeg",
            "-y",
            "-f", "lavfi",
            "-i", f"color=c={background}:s={cfg.width}x{cfg.height}:r={cfg.fps}:d={narration.duration_sec:.3f}",
            "-i", str(narration.audio_path),
            "-vf", video_filter,
            "-map", "0:v",
            "-map", "1:a",
            "-c:v", cfg.video_codec,
            "-pix_fmt", "yuv420p",
            "-c:a", cfg.audio_codec,
            "-shortest",
            str(output_path),
        ]
