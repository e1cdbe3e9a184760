import pytest

from clip_core.intelligence.scoring import EngagementIndicators, calculate_viral_score, count_indicators


def test_reference_transcript_scores():
    # 2 emotional words, 3 questions, 1 exclamation, no action words
    text = "Is this amazing? Is it a secret? Why? Wow!"
    counts = count_indicators(text)
    assert (counts.emotional_words, counts.question_count, counts.exclamation_count, counts.action_words) == (2, 3, 1, 0)
    assert calculate_viral_score(text, 45) == pytest.approx(0.88)


def test_counts_distinct_lexicon_entries():
    counts = count_indicators("Amazing, AMAZING, amazing! Watch and see. Watch again?")
    assert counts.emotional_words == 1
    assert counts.action_words == 2
    assert counts.exclamation_count == 1
    assert counts.question_count == 1


def test_substring_matches_count():
    # "seen" contains "see"
    assert count_indicators("I have seen it").action_words == 1


@pytest.mark.parametrize(
    "duration,bonus",
    [(10, 0.0), (15, 0.1), (29.9, 0.1), (30, 0.2), (60, 0.2), (61, 0.1), (90, 0.1), (91, 0.0)],
)
def test_duration_bands(duration, bonus):
    assert calculate_viral_score("plain words", duration) == pytest.approx(0.5 + bonus)


def test_component_caps():
    indicators = EngagementIndicators(emotional_words=20, question_count=20, exclamation_count=20, action_words=20)
    # 0.5 + 0.2 + 0.2 + 0.1 + 0.1 + 0.1 is clamped
    assert calculate_viral_score("", 45, indicators) == 1.0


@pytest.mark.parametrize(
    "text,duration",
    [
        ("", 0),
        ("?!" * 500, 45),
        ("amazing incredible shocking unbelievable secret revealed breakthrough transformation", 60),
        ("learn discover find out watch see try do this follow", 1000),
    ],
)
def test_score_is_always_in_unit_interval(text, duration):
    assert 0.0 <= calculate_viral_score(text, duration) <= 1.0


def test_explicit_indicators_replace_text_counts():
    indicators = EngagementIndicators(question_count=1)
    score = calculate_viral_score("amazing secret! watch!", 100, indicators)
    assert score == pytest.approx(0.52)


def test_deterministic():
    text = "Discover the incredible breakthrough?"
    assert calculate_viral_score(text, 40) == calculate_viral_score(text, 40)
