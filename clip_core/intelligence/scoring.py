from typing import Optional

from pydantic import BaseModel, Field

BASE_SCORE = 0.5

EMOTIONAL_WORDS = (
    "amazing",
    "incredible",
    "shocking",
    "unbelievable",
    "secret",
    "revealed",
    "breakthrough",
    "transformation",
)

ACTION_WORDS = ("learn", "discover", "find out", "watch", "see", "try", "do this", "follow")


class EngagementIndicators(BaseModel):
    """Counts the heuristic score is built from."""

    emotional_words: int = Field(default=0, ge=0, description="Distinct emotional lexicon entries present")
    question_count: int = Field(default=0, ge=0)
    exclamation_count: int = Field(default=0, ge=0)
    action_words: int = Field(default=0, ge=0, description="Distinct action lexicon entries present")


def count_indicators(transcript: str) -> EngagementIndicators:
    text = transcript.lower()
    return EngagementIndicators(
        emotional_words=sum(1 for word in EMOTIONAL_WORDS if word in text),
        question_count=text.count("?"),
        exclamation_count=text.count("!"),
        action_words=sum(1 for word in ACTION_WORDS if word in text),
    )


def calculate_viral_score(
    transcript: str, duration: float, indicators: Optional[EngagementIndicators] = None
) -> float:
    """
    Deterministic, network-free viral score in [0, 1].

    Lexicon hits are substring matches, so "see" also counts inside "seen".
    Passing ``indicators`` replaces the counts derived from ``transcript``.
    """
    score = BASE_SCORE

    # 30-60s is the sweet spot
    if 30 <= duration <= 60:
        score += 0.2
    elif 15 <= duration <= 90:
        score += 0.1

    counts = indicators or count_indicators(transcript)
    score += min(0.2, counts.emotional_words * 0.05)
    score += min(0.1, counts.question_count * 0.02)
    score += min(0.1, counts.exclamation_count * 0.02)
    score += min(0.1, counts.action_words * 0.02)

    return max(0.0, min(1.0, score))
