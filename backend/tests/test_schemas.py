"""Tests for request validation at the PipelineInput boundary."""

import pytest
from pydantic import ValidationError

from autotube.schemas.job import PipelineInput
from autotube.schemas.script import Beat, ScriptDraft


@pytest.mark.parametrize("seconds", [30, 180, 600])
def test_duration_bounds_accepted(seconds):
    assert PipelineInput(topic="valid topic", target_duration_sec=seconds).target_duration_sec == seconds


@pytest.mark.parametrize("seconds", [29, 601, 0, -5])
def test_duration_out_of_range_rejected(seconds):
    with pytest.raises(ValidationError):
        PipelineInput(topic="valid topic", target_duration_sec=seconds)


def test_defaults():
    pipeline_input = PipelineInput(topic="valid topic")

    assert pipeline_input.tone == "informative"
    assert pipeline_input.visibility == "unlisted"
    assert pipeline_input.target_duration_sec == 180


def test_camel_case_payload():
    pipeline_input = PipelineInput.model_validate(
        {"topic": "AI news", "tone": "dramatic", "targetDurationSec": 90, "visibility": "public"}
    )

    assert pipeline_input.target_duration_sec == 90
    assert pipeline_input.tone == "dramatic"


@pytest.mark.parametrize("topic", ["", "ab", "  ab  "])
def test_short_topic_rejected(topic):
    with pytest.raises(ValidationError):
        PipelineInput(topic=topic)


def test_topic_is_stripped():
    assert PipelineInput(topic="  space news  ").topic == "space news"


@pytest.mark.parametrize(
    "field, value",
    [("tone", "sarcastic"), ("visibility", "friends")],
)
def test_enum_fields_rejected(field, value):
    with pytest.raises(ValidationError):
        PipelineInput(topic="valid topic", **{field: value})


def test_input_is_frozen():
    pipeline_input = PipelineInput(topic="valid topic")
    with pytest.raises(ValidationError):
        pipeline_input.topic = "changed"


def test_draft_coerces_list_fields():
    draft = ScriptDraft.model_validate(
        {
            "title": ["Big", "news"],
            "summary": "Short summary.",
            "beats": [{"heading": "Hook", "narration": ["Part one.", "Part two."], "duration_sec": 4}],
        }
    )

    assert draft.title == "Big news"
    assert draft.beats[0].narration == "Part one. Part two."


def test_beat_duration_must_be_positive():
    with pytest.raises(ValidationError):
        Beat(heading="Hook", narration="Words.", duration_sec=0)
