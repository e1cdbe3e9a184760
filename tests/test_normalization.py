import pytest

from clip_core.errors import CandidateRejected
from clip_core.intelligence.models import ViralMoment
from clip_core.intelligence.normalization import (
    DEFAULT_SCORE,
    NORMALIZATION_RULES,
    normalize_candidate,
    normalize_clips,
    normalize_hashtags,
    round_tenth,
)

DURATION = 600.0


def candidate(**overrides):
    clip = {
        "startTime": 120.0,
        "endTime": 165.0,
        "title": "The Secret That Changed Everything",
        "description": "Reveals the strategy",
        "transcript": "The exact words spoken...",
        "hashtags": ["secret", "mindset"],
        "score": 0.8,
        "reasoning": "Emotional and actionable",
    }
    clip.update(overrides)
    return clip


def test_valid_candidate_passes_through():
    clip = normalize_candidate(candidate(), DURATION)
    assert clip.start_time == 120.0
    assert clip.end_time == 165.0
    assert clip.title == "The Secret That Changed Everything"
    assert clip.hashtags == ["secret", "mindset"]
    assert clip.score == 0.8


def test_ten_second_clip_always_dropped():
    with pytest.raises(CandidateRejected):
        normalize_candidate(candidate(startTime=100, endTime=110, score=1.0), DURATION)


@pytest.mark.parametrize(
    "start,end",
    [
        (-1.0, 30.0),  # negative start
        (50.0, 50.0),  # empty window
        (60.0, 40.0),  # reversed
        (580.0, 601.0),  # beyond duration
        (0.0, 14.9),  # too short
        (0.0, 90.5),  # too long
    ],
)
def test_bad_windows_dropped(start, end):
    with pytest.raises(CandidateRejected):
        normalize_candidate(candidate(startTime=start, endTime=end), DURATION)


def test_window_boundaries_accepted():
    assert normalize_candidate(candidate(startTime=0, endTime=15), DURATION).end_time == 15.0
    assert normalize_candidate(candidate(startTime=510, endTime=600), DURATION).end_time == 600.0


@pytest.mark.parametrize(
    "field,value",
    [
        ("startTime", "12"),
        ("startTime", None),
        ("startTime", True),
        ("endTime", float("nan")),
        ("endTime", float("inf")),
        ("title", 42),
        ("transcript", None),
        ("hashtags", "secret,mindset"),
    ],
)
def test_wrong_types_dropped(field, value):
    with pytest.raises(CandidateRejected, match=field):
        normalize_candidate(candidate(**{field: value}), DURATION)


@pytest.mark.parametrize("field", ["startTime", "endTime", "title", "transcript", "hashtags"])
def test_missing_required_field_dropped(field):
    raw = candidate()
    del raw[field]
    with pytest.raises(CandidateRejected):
        normalize_candidate(raw, DURATION)


def test_non_object_candidate_dropped():
    with pytest.raises(CandidateRejected):
        normalize_candidate(["not", "a", "clip"], DURATION)


def test_times_rounded_to_one_decimal():
    clip = normalize_candidate(candidate(startTime=12.34, endTime=48.25), DURATION)
    assert clip.start_time == 12.3
    assert clip.end_time == 48.3


def test_end_time_capped_at_duration():
    clip = normalize_candidate(candidate(startTime=550.0, endTime=599.98), 599.98)
    assert clip.end_time == 599.98


@pytest.mark.parametrize("start,end", [(1.4, 16.4), (3.4, 18.4), (10.7, 100.7), (0.1, 90.1)])
def test_exact_boundary_windows_with_float_noise_kept(start, end):
    clip = normalize_candidate(candidate(startTime=start, endTime=end), DURATION)
    assert (clip.start_time, clip.end_time) == (start, end)


def test_exact_boundary_moment_constructs_directly():
    clip = ViralMoment(start_time=1.4, end_time=16.4, title="t", transcript="w", score=0.5)
    assert clip.end_time - clip.start_time != 15.0
    assert clip.start_time == 1.4


def test_window_broken_by_rounding_is_dropped():
    # 15.02s as proposed; start rounds up to 15.1 and the end is capped at 30.08.
    with pytest.raises(CandidateRejected, match="normalised clip invalid"):
        normalize_candidate(candidate(startTime=15.06, endTime=30.08), 30.08)


def test_text_fields_trimmed_and_truncated():
    clip = normalize_candidate(
        candidate(
            title="  " + "T" * 150,
            description="D" * 600,
            reasoning="R" * 250,
            transcript="  spoken words  ",
        ),
        DURATION,
    )
    assert clip.title == "T" * 100
    assert len(clip.description) == 500
    assert len(clip.reasoning) == 200
    assert clip.transcript == "spoken words"


@pytest.mark.parametrize("value", [None, 7, ["list"]])
def test_optional_text_defaults_to_empty(value):
    clip = normalize_candidate(candidate(description=value, reasoning=value), DURATION)
    assert clip.description == ""
    assert clip.reasoning == ""


def test_hashtags_normalised_without_dedup():
    assert normalize_hashtags(["#Viral", "VIRAL", ""]) == ["viral", "viral"]


def test_hashtags_skip_non_strings_and_cap_at_eight():
    tags = ["  #One ", 3, None, "   "] + [f"tag{i}" for i in range(10)]
    result = normalize_hashtags(tags)
    assert result[0] == "one"
    assert len(result) == 8


@pytest.mark.parametrize(
    "raw,expected",
    [(1.5, 1.0), (-0.3, 0.0), (0.42, 0.42), (1, 1.0), (None, DEFAULT_SCORE), ("0.9", DEFAULT_SCORE), (False, DEFAULT_SCORE)],
)
def test_score_clamped_or_defaulted(raw, expected):
    assert normalize_candidate(candidate(score=raw), DURATION).score == expected


def test_missing_score_defaults():
    raw = candidate()
    del raw["score"]
    assert normalize_candidate(raw, DURATION).score == 0.5


def test_rule_table_defaults_are_enumerable():
    optional = {rule.source: rule.default for rule in NORMALIZATION_RULES if not rule.required}
    assert optional == {"description": "", "reasoning": "", "score": 0.5}
    required = [rule.source for rule in NORMALIZATION_RULES if rule.required]
    assert required == ["startTime", "endTime", "title", "transcript", "hashtags"]


def test_round_tenth_rounds_half_up():
    assert round_tenth(0.25) == 0.3
    assert round_tenth(12.35) == pytest.approx(12.4)
    assert round_tenth(12.34) == 12.3


def test_batch_drops_bad_and_ranks_stably():
    raws = [
        candidate(title="low", score=0.2),
        candidate(title="short", startTime=0, endTime=10, score=0.99),
        candidate(title="tie-a", score=0.7),
        "garbage",
        candidate(title="top", score=0.9),
        candidate(title="tie-b", score=0.7),
    ]
    clips = normalize_clips(raws, DURATION)
    assert [c.title for c in clips] == ["top", "tie-a", "tie-b", "low"]


def test_batch_keeps_top_n():
    raws = [candidate(title=f"c{i}", score=i / 20) for i in range(12)]
    clips = normalize_clips(raws, DURATION, max_clips=10)
    assert len(clips) == 10
    assert clips[0].title == "c11"
    assert [c.score for c in clips] == sorted((c.score for c in clips), reverse=True)
