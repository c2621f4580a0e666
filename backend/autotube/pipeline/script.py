"""Script generation using LLM structured output.

Turns a topic into a titled script of paced narration beats. Beat
durations are recomputed from word count at the configured reading
speed, so validation checks the real reading time rather than the
model's own estimate.
"""

import logging
from typing import Optional

from autotube.config import Settings, settings as app_settings
from autotube.pipeline.base import ScriptGenerator
from autotube.schemas.job import Tone
from autotube.schemas.script import Beat, Script, ScriptDraft
from autotube.services.llm import LLMAdapter, get_adapter

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You write narration scripts for short vertical videos.

RULES:
1. Open with a hook in the first beat; close with a one-line takeaway.
2. Every beat is spoken aloud: no stage directions, emojis or markdown inside narration.
3. Headings are short on-screen captions, at most 6 words.
4. Stay factual. If the topic is about recent news, speak in general terms rather than inventing specifics.
"""

TONE_GUIDANCE = {
    "informative": "Clear, confident and neutral, like a well-produced explainer.",
    "playful": "Light, witty and energetic, with a friendly conversational voice.",
    "dramatic": "Suspenseful and cinematic, building tension toward each reveal.",
}


class ScriptValidationError(ValueError):
    """The model returned a script that cannot be narrated as requested."""


def reading_time_sec(text: str, words_per_minute: int) -> float:
    words = len(text.split())
    return round(words * 60.0 / words_per_minute, 2)


def build_prompt(
    topic: str,
    tone: Tone,
    target_duration_sec: int,
    words_per_minute: int,
    min_beats: int,
    max_beats: int,
) -> str:
    target_words = round(target_duration_sec * words_per_minute / 60)
    return (
        f"Topic: {topic}\n"
        f"Tone: {tone}. {TONE_GUIDANCE[tone]}\n"
        f"Target length: {target_duration_sec} seconds of narration "
        f"(about {target_words} words at {words_per_minute} words per minute).\n"
        f"Split the narration into {min_beats} to {max_beats} beats. "
        "Give each beat a duration_sec equal to its reading time; "
        f"the durations must add up to roughly {target_duration_sec} seconds."
    )


def validate_script(
    beats: list[Beat],
    target_duration_sec: int,
    tolerance: float,
) -> None:
    """Check the script is non-empty and paced within tolerance of the target.

    Raises:
        ScriptValidationError: on empty output or out-of-tolerance timing
    """
    if not beats:
        raise ScriptValidationError("Script generator returned no beats")
    for index, beat in enumerate(beats):
        if not beat.narration.strip():
            raise ScriptValidationError(f"Beat {index} has empty narration")

    planned = sum(beat.duration_sec for beat in beats)
    low = target_duration_sec * (1 - tolerance)
    high = target_duration_sec * (1 + tolerance)
    if not low <= planned <= high:
        raise ScriptValidationError(
            f"Script reads in {planned:.0f}s, outside {low:.0f}-{high:.0f}s "
            f"for a {target_duration_sec}s target"
        )


class LLMScriptGenerator(ScriptGenerator):
    """Script generator backed by any LLMAdapter."""

    def __init__(
        self,
        adapter: LLMAdapter,
        *,
        temperature: float = 0.7,
        max_retries: int = 3,
        words_per_minute: int = 150,
        duration_tolerance: float = 0.25,
        min_beats: int = 3,
        max_beats: int = 20,
    ) -> None:
        self._adapter = adapter
        self._temperature = temperature
        self._max_retries = max_retries
        self._words_per_minute = words_per_minute
        self._duration_tolerance = duration_tolerance
        self._min_beats = min_beats
        self._max_beats = max_beats

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "LLMScriptGenerator":
        config = config or app_settings
        return cls(
            get_adapter(config.llm.script_model, config),
            temperature=config.llm.temperature,
            max_retries=config.llm.max_retries,
            words_per_minute=config.pipeline.words_per_minute,
            duration_tolerance=config.pipeline.duration_tolerance,
            min_beats=config.pipeline.min_beats,
            max_beats=config.pipeline.max_beats,
        )

    async def generate(self, topic: str, tone: Tone, target_duration_sec: int) -> Script:
        prompt = build_prompt(
            topic,
            tone,
            target_duration_sec,
            self._words_per_minute,
            self._min_beats,
            self._max_beats,
        )
        logger.info(f"Generating {tone} script for '{topic[:50]}' with {self._adapter.model_id}")

        draft = await self._adapter.generate_text(
            prompt,
            ScriptDraft,
            temperature=self._temperature,
            system_prompt=SYSTEM_PROMPT,
            max_retries=self._max_retries,
        )

        beats = [
            beat.model_copy(
                update={"duration_sec": reading_time_sec(beat.narration, self._words_per_minute)}
            )
            for beat in draft.beats
            if beat.narration.strip()
        ]
        validate_script(beats, target_duration_sec, self._duration_tolerance)

        script = Script(
            topic=topic,
            tone=tone,
            title=draft.title.strip() or topic,
            summary=draft.summary.strip(),
            beats=beats,
        )
        logger.info(
            f"Script {script.id}: {len(beats)} beats, "
            f"~{script.planned_duration_sec:.0f}s planned for {target_duration_sec}s target"
        )
        return script
