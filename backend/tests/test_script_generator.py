"""Tests for LLM script generation with a scripted adapter."""

from typing import Optional, Type

import pytest

from autotube.pipeline.script import (
    LLMScriptGenerator,
    ScriptValidationError,
    build_prompt,
    reading_time_sec,
    validate_script,
)
from autotube.schemas.script import Beat, ScriptDraft
from autotube.services.llm import LLMAdapter, strip_code_fences


def words(count: int) -> str:
    return " ".join(["word"] * count)


class ScriptedAdapter(LLMAdapter):
    """Returns a fixed draft and records the prompt it was given."""

    model_id = "fake-model"

    def __init__(self, draft: ScriptDraft):
        self.draft = draft
        self.prompts: list[str] = []
        self.system_prompt: Optional[str] = None

    async def generate_text(self, prompt, schema: Type, *, temperature=0.7, system_prompt=None, max_retries=3):
        self.prompts.append(prompt)
        self.system_prompt = system_prompt
        assert schema is ScriptDraft
        return self.draft


def make_draft(beat_words: list[int], title: str = "A title") -> ScriptDraft:
    return ScriptDraft(
        title=title,
        summary="A summary.",
        beats=[
            Beat(heading=f"Beat {i}", narration=words(n) if n else "   ", duration_sec=99)
            for i, n in enumerate(beat_words)
        ],
    )


@pytest.mark.asyncio
async def test_generate_recomputes_beat_durations():
    # 25 words at 150 wpm read in 10s; three beats hit a 30s target
    adapter = ScriptedAdapter(make_draft([25, 25, 25]))
    generator = LLMScriptGenerator(adapter)

    script = await generator.generate("quantum computing", "playful", 30)

    assert script.topic == "quantum computing"
    assert script.tone == "playful"
    assert [beat.duration_sec for beat in script.beats] == [10.0, 10.0, 10.0]
    assert script.planned_duration_sec == 30.0
    assert "quantum computing" in adapter.prompts[0]
    assert "playful" in adapter.prompts[0]
    assert adapter.system_prompt


@pytest.mark.asyncio
async def test_generate_drops_empty_beats_and_defaults_title():
    adapter = ScriptedAdapter(make_draft([25, 0, 25, 25], title="  "))
    script = await LLMScriptGenerator(adapter).generate("deep sea life", "informative", 30)

    assert len(script.beats) == 3
    assert script.title == "deep sea life"


@pytest.mark.asyncio
async def test_generate_rejects_script_far_from_target():
    adapter = ScriptedAdapter(make_draft([25, 25, 25]))

    with pytest.raises(ScriptValidationError, match="outside"):
        await LLMScriptGenerator(adapter).generate("deep sea life", "informative", 180)


@pytest.mark.asyncio
async def test_generate_rejects_empty_script():
    adapter = ScriptedAdapter(make_draft([]))

    with pytest.raises(ScriptValidationError, match="no beats"):
        await LLMScriptGenerator(adapter).generate("deep sea life", "informative", 30)


def test_validate_script_tolerance_edges():
    beats = [Beat(heading="h", narration="n", duration_sec=75)]
    validate_script(beats, 100, 0.25)

    with pytest.raises(ScriptValidationError):
        validate_script([Beat(heading="h", narration="n", duration_sec=74)], 100, 0.25)


def test_reading_time():
    assert reading_time_sec(words(150), 150) == 60.0
    assert reading_time_sec("", 150) == 0.0


def test_build_prompt_states_word_budget():
    prompt = build_prompt("volcanoes", "dramatic", 120, 150, 3, 20)

    assert "about 300 words" in prompt
    assert "3 to 20 beats" in prompt


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'
