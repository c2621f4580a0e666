"""Pydantic schemas for script structured output.

ScriptDraft is the shape requested from the LLM; Script is the validated
artifact handed to the narration and render stages.
"""

import uuid
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field

from autotube.schemas.job import Tone


def _coerce_to_str(v: Any) -> str:
    """Coerce list values to a single string.

    Some providers (e.g. Ollama) return arrays for fields declared as
    string in the JSON schema.
    """
    if isinstance(v, list):
        return " ".join(str(item) for item in v)
    return v


CoercedStr = Annotated[str, BeforeValidator(_coerce_to_str)]


class Beat(BaseModel):
    """One paced segment of narration with its on-screen cue."""

    heading: CoercedStr = Field(
        description="Short on-screen caption for this beat, at most 6 words"
    )
    narration: CoercedStr = Field(
        description="Exact words the narrator reads aloud for this beat"
    )
    visual_cue: CoercedStr = Field(
        default="",
        description="What the viewer should see while this beat is narrated",
    )
    duration_sec: float = Field(
        gt=0,
        description="Estimated reading time of the narration in seconds",
    )


class ScriptDraft(BaseModel):
    """Script as returned by the language model."""

    title: CoercedStr = Field(description="Catchy video title, under 80 characters")
    summary: CoercedStr = Field(
        description="Two-sentence description of the video for the upload page"
    )
    beats: list[Beat] = Field(
        description="Ordered narration beats whose durations add up to the target length"
    )


class Script(BaseModel):
    """Validated script artifact."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    topic: str
    tone: Tone
    title: str
    summary: str
    beats: list[Beat]

    @property
    def narration_text(self) -> str:
        return "\n\n".join(beat.narration.strip() for beat in self.beats)

    @property
    def planned_duration_sec(self) -> float:
        return sum(beat.duration_sec for beat in self.beats)
