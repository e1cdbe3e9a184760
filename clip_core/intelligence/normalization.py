import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from loguru import logger
from pydantic import ValidationError

from clip_core.errors import CandidateRejected
from clip_core.intelligence.models import MAX_CLIP_SECONDS, MIN_CLIP_SECONDS, ViralMoment, clip_length

MAX_TITLE_CHARS = 100
MAX_DESCRIPTION_CHARS = 500
MAX_REASONING_CHARS = 200
MAX_HASHTAGS = 8
DEFAULT_SCORE = 0.5


def is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def is_text(value: Any) -> bool:
    return isinstance(value, str)


def is_list(value: Any) -> bool:
    return isinstance(value, list)


def round_tenth(value: float) -> float:
    """Half-up rounding to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


def clamp_score(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def normalize_hashtags(tags: List[Any]) -> List[str]:
    """Keeps non-empty strings, lower-cased without a leading '#'. Repeats are kept."""
    cleaned = [
        tag.strip().lower().removeprefix("#")
        for tag in tags
        if isinstance(tag, str) and tag.strip()
    ]
    return cleaned[:MAX_HASHTAGS]


def _truncate(limit: int) -> Callable[[str], str]:
    return lambda text: text.strip()[:limit]


@dataclass(frozen=True)
class FieldRule:
    """
    How one field of a raw candidate becomes a ViralMoment field.

    A value failing ``accepts`` rejects the candidate when ``required``, otherwise
    it is replaced by ``default``. Accepted values go through ``transform``.
    """

    source: str
    target: str
    accepts: Callable[[Any], bool]
    required: bool = False
    default: Any = None
    transform: Callable[[Any], Any] = lambda value: value


NORMALIZATION_RULES: List[FieldRule] = [
    FieldRule("startTime", "start_time", is_number, required=True, transform=float),
    FieldRule("endTime", "end_time", is_number, required=True, transform=float),
    FieldRule("title", "title", is_text, required=True, transform=_truncate(MAX_TITLE_CHARS)),
    FieldRule("transcript", "transcript", is_text, required=True, transform=str.strip),
    FieldRule("hashtags", "hashtags", is_list, required=True, transform=normalize_hashtags),
    FieldRule("description", "description", is_text, default="", transform=_truncate(MAX_DESCRIPTION_CHARS)),
    FieldRule("reasoning", "reasoning", is_text, default="", transform=_truncate(MAX_REASONING_CHARS)),
    FieldRule("score", "score", is_number, default=DEFAULT_SCORE, transform=clamp_score),
]


def apply_rules(raw: Dict[str, Any], rules: List[FieldRule] = NORMALIZATION_RULES) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for rule in rules:
        value = raw.get(rule.source)
        if rule.accepts(value):
            fields[rule.target] = rule.transform(value)
        elif rule.required:
            raise CandidateRejected(f"missing or invalid '{rule.source}'")
        else:
            fields[rule.target] = rule.default
    return fields


def check_window(start: float, end: float, duration: float) -> None:
    if start < 0:
        raise CandidateRejected(f"negative start time {start}")
    if end <= start:
        raise CandidateRejected(f"end time {end} not after start time {start}")
    if end > duration:
        raise CandidateRejected(f"end time {end} beyond source duration {duration}")
    length = clip_length(start, end)
    if length < MIN_CLIP_SECONDS or length > MAX_CLIP_SECONDS:
        raise CandidateRejected(f"clip length {length:.1f}s outside {MIN_CLIP_SECONDS:g}-{MAX_CLIP_SECONDS:g}s")


def normalize_candidate(raw: Any, duration: float) -> ViralMoment:
    """
    Validates one model-proposed clip and returns it normalised.

    Raises:
        CandidateRejected: the candidate cannot be turned into a valid ViralMoment.
    """
    if not isinstance(raw, dict):
        raise CandidateRejected(f"candidate is a {type(raw).__name__}, not an object")

    fields = apply_rules(raw)
    check_window(fields["start_time"], fields["end_time"], duration)

    fields["start_time"] = max(0.0, round_tenth(fields["start_time"]))
    fields["end_time"] = min(duration, round_tenth(fields["end_time"]))

    try:
        return ViralMoment(**fields)
    except ValidationError as e:
        # Rounding can push a borderline window just outside the allowed length.
        raise CandidateRejected(f"normalised clip invalid: {e.errors()[0]['msg']}") from e


def normalize_clips(raw_clips: List[Any], duration: float, max_clips: int = 10) -> List[ViralMoment]:
    """Drops invalid candidates, then ranks by score (stable) and keeps the top ``max_clips``."""
    valid: List[ViralMoment] = []
    for index, raw in enumerate(raw_clips):
        try:
            valid.append(normalize_candidate(raw, duration))
        except CandidateRejected as e:
            logger.warning(f"Skipping clip candidate #{index}: {e.reason}")

    valid.sort(key=lambda clip: clip.score, reverse=True)
    return valid[:max_clips]
