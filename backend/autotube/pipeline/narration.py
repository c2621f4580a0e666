"""Narration synthesis through an OpenAI-compatible speech endpoint.

POSTs the script narration to {endpoint} and stores the returned MP3 in
the run directory. Narration longer than the engine's input limit is
split on beat boundaries, synthesized chunk by chunk and joined with
ffmpeg. The realized duration comes from ffprobe, not from the script's
planned timing.
"""

import asyncio
import logging
import subprocess
import textwrap
from pathlib import Path
from typing import Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from autotube.config import Settings, settings as app_settings
from autotube.pipeline.base import NarrationSynthesizer
from autotube.schemas.artifacts import NarrationTrack
from autotube.schemas.script import Script
from autotube.services.file_manager import FileManager
from autotube.services.media_probe import probe_duration

logger = logging.getLogger(__name__)

# OpenAI speech endpoints reject longer inputs
MAX_INPUT_CHARS = 4096


class SynthesisError(RuntimeError):
    pass


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def split_narration(script: Script, limit: int = MAX_INPUT_CHARS) -> list[str]:
    """Group beat narrations into chunks of at most limit characters.

    Chunks break on beat boundaries; a single beat longer than limit is
    broken on word boundaries.
    """
    pieces: list[str] = []
    for beat in script.beats:
        text = beat.narration.strip()
        if not text:
            continue
        if len(text) <= limit:
            pieces.append(text)
        else:
            pieces.extend(textwrap.wrap(text, limit, break_on_hyphens=False))

    chunks: list[str] = []
    current = ""
    for piece in pieces:
        candidate = f"{current}\n\n{piece}" if current else piece
        if len(candidate) <= limit:
            current = candidate
        else:
            chunks.append(current)
            current = piece
    if current:
        chunks.append(current)
    return chunks


async def concat_audio(parts: list[Path], output_path: Path) -> Path:
    """Join MP3 chunks into output_path with ffmpeg's concat demuxer."""
    list_file = output_path.with_name("concat.txt")
    list_file.write_text(
        "".join("file '{}'\n".format(str(part).replace("'", "'\\''")) for part in parts),
        encoding="utf-8",
    )
    command = [
        "ffmpeg",
        "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(list_file),
        "-c", "copy",
        str(output_path),
    ]
    try:
        await asyncio.to_thread(subprocess.run, command, check=True, capture_output=True)
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode(errors="replace") if e.stderr else "No error output"
        raise SynthesisError(
            f"ffmpeg could not join narration chunks (code {e.returncode}): {stderr[-500:]}"
        ) from e
    except FileNotFoundError as e:
        raise SynthesisError("ffmpeg not found on PATH") from e
    return output_path


class SpeechSynthesizer(NarrationSynthesizer):
    """Narration synthesizer for OpenAI-compatible /audio/speech APIs."""

    def __init__(
        self,
        endpoint: str,
        *,
        api_key: Optional[str] = None,
        model: str = "tts-1",
        voices: dict[str, str],
        file_manager: FileManager,
        timeout_seconds: float = 120.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._endpoint = endpoint
        self._api_key = api_key
        self._model = model
        self._voices = voices
        self._files = file_manager
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._transport = transport

    @classmethod
    def from_settings(
        cls, config: Optional[Settings] = None, file_manager: Optional[FileManager] = None
    ) -> "SpeechSynthesizer":
        config = config or app_settings
        return cls(
            config.tts.endpoint,
            api_key=config.tts.api_key,
            model=config.tts.model,
            voices=config.tts.voices,
            file_manager=file_manager or FileManager(config.storage.tmp_dir),
            timeout_seconds=config.tts.timeout_seconds,
            max_retries=config.tts.max_retries,
        )

    def voice_for(self, tone: str) -> str:
        voice = self._voices.get(tone)
        if not voice:
            raise SynthesisError(f"No narration voice configured for tone '{tone}'")
        return voice

    async def synthesize(self, script: Script) -> NarrationTrack:
        voice = self.voice_for(script.tone)
        chunks = split_narration(script)
        if not chunks:
            raise SynthesisError("Script has no narration text")

        logger.info(
            f"Script {script.id}: synthesizing {sum(len(c) for c in chunks)} chars "
            f"in {len(chunks)} request(s) with voice '{voice}'"
        )
        if len(chunks) == 1:
            audio_path = self._files.save_audio(script.id, await self._synthesize_chunk(chunks[0], voice))
        else:
            parts = []
            for index, chunk in enumerate(chunks):
                audio = await self._synthesize_chunk(chunk, voice)
                parts.append(self._files.save_audio(script.id, audio, f"part_{index:02d}.mp3"))
            audio_path = await concat_audio(parts, self._files.get_audio_path(script.id))

        duration = await probe_duration(audio_path)
        logger.info(f"Script {script.id}: narration {duration:.1f}s -> {audio_path}")
        return NarrationTrack(audio_path=audio_path, duration_sec=duration, voice=voice)

    async def _synthesize_chunk(self, text: str, voice: str) -> bytes:
        audio = await self._request_speech(text, voice)
        if not audio:
            raise SynthesisError("Speech engine returned empty audio")
        return audio

    async def _request_speech(self, text: str, voice: str) -> bytes:
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        payload = {
            "model": self._model,
            "input": text,
            "voice": voice,
            "response_format": "mp3",
        }

        @retry(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            retry=retry_if_exception(_is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async def _call() -> bytes:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._endpoint, json=payload, headers=headers)
                response.raise_for_status()
                return response.content

        try:
            return await _call()
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:300]
            raise SynthesisError(
                f"Speech engine returned HTTP {e.response.status_code}: {detail}"
            ) from e
        except httpx.TransportError as e:
            raise SynthesisError(f"Speech engine unreachable: {e}") from e
