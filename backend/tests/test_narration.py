"""Tests for the speech synthesizer against a mocked HTTP engine."""

import json
import subprocess
from pathlib import Path

import httpx
import pytest

from autotube.pipeline import narration
from autotube.pipeline.narration import (
    MAX_INPUT_CHARS,
    SpeechSynthesizer,
    SynthesisError,
    split_narration,
)
from autotube.services.file_manager import FileManager
from tests.conftest import make_script

ENDPOINT = "https://tts.example.com/v1/audio/speech"
VOICES = {"informative": "alloy", "playful": "nova", "dramatic": "onyx"}


@pytest.fixture(autouse=True)
def fake_probe(monkeypatch):
    async def _probe(path):
        return 42.5

    monkeypatch.setattr(narration, "probe_duration", _probe)


def make_synthesizer(tmp_path, handler, voices=VOICES):
    return SpeechSynthesizer(
        ENDPOINT,
        api_key="secret",
        voices=voices,
        file_manager=FileManager(tmp_path),
        max_retries=1,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_synthesize_writes_audio(tmp_path):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=b"ID3fake-mp3")

    script = make_script(tone="dramatic", beat_seconds=10)
    track = await make_synthesizer(tmp_path, handler).synthesize(script)

    assert track.voice == "onyx"
    assert track.duration_sec == 42.5
    assert track.audio_path == tmp_path.resolve() / script.id / "audio" / "narration.mp3"
    assert track.audio_path.read_bytes() == b"ID3fake-mp3"

    body = json.loads(requests[0].content)
    assert body["voice"] == "onyx"
    assert body["input"] == script.narration_text
    assert body["response_format"] == "mp3"
    assert requests[0].headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_engine_error_is_reported(tmp_path):
    def handler(request):
        return httpx.Response(429, text="synthesis quota exceeded")

    with pytest.raises(SynthesisError, match="HTTP 429: synthesis quota exceeded"):
        await make_synthesizer(tmp_path, handler).synthesize(make_script())


@pytest.mark.asyncio
async def test_unreachable_engine(tmp_path):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SynthesisError, match="unreachable"):
        await make_synthesizer(tmp_path, handler).synthesize(make_script())


@pytest.mark.asyncio
async def test_empty_audio_rejected(tmp_path):
    def handler(request):
        return httpx.Response(200, content=b"")

    with pytest.raises(SynthesisError, match="empty audio"):
        await make_synthesizer(tmp_path, handler).synthesize(make_script())


@pytest.mark.asyncio
async def test_missing_voice_for_tone(tmp_path):
    def handler(request):
        raise AssertionError("engine should not be called")

    synthesizer = make_synthesizer(tmp_path, handler, voices={"informative": "alloy"})

    with pytest.raises(SynthesisError, match="tone 'playful'"):
        await synthesizer.synthesize(make_script(tone="playful"))


@pytest.mark.asyncio
async def test_long_narration_is_chunked_and_joined(tmp_path, monkeypatch):
    requests = []
    concat_commands = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(200, content=f"chunk{len(requests)}".encode())

    def fake_run(command, **kwargs):
        concat_commands.append(command)
        Path(command[-1]).write_bytes(b"joined")
        return subprocess.CompletedProcess(command, 0, b"", b"")

    monkeypatch.setattr(narration.subprocess, "run", fake_run)

    # Ten beats of ~1500 characters each: a 600s script at 150 wpm
    script = make_script(beat_seconds=60, beats=10)
    for index, beat in enumerate(script.beats):
        beat.narration = f"Beat {index} " + "word " * 298

    track = await make_synthesizer(tmp_path, handler).synthesize(script)

    assert len(script.narration_text) > MAX_INPUT_CHARS
    assert len(requests) > 1
    assert all(len(body["input"]) <= MAX_INPUT_CHARS for body in requests)
    assert "\n\n".join(body["input"] for body in requests) == script.narration_text

    assert len(concat_commands) == 1
    assert track.audio_path.name == "narration.mp3"
    assert track.audio_path.read_bytes() == b"joined"
    assert track.duration_sec == 42.5
    concat_list = (track.audio_path.parent / "concat.txt").read_text()
    assert concat_list.count("file '") == len(requests)


def test_split_breaks_oversized_beat_on_words():
    script = make_script(beats=1)
    script.beats[0].narration = "lorem " * 2000

    chunks = split_narration(script, limit=1000)

    assert len(chunks) > 1
    assert all(len(chunk) <= 1000 for chunk in chunks)
    assert " ".join(chunks).split() == script.beats[0].narration.split()


def test_split_keeps_short_script_whole():
    script = make_script(beats=3)

    assert split_narration(script) == [script.narration_text]
