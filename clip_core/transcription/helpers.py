import random
import time
from typing import List, Optional

from clip_core.transcription.models import JobStatus, TranscriptionJob, TranscriptSegment

COST_PER_SECOND = 0.00025
WORDS_PER_MINUTE = 150
MAX_SIMULATED_WORDS = 200

SAMPLE_WORDS = (
    "Welcome to our presentation today we will discuss the future of technology and how it impacts "
    "our daily lives This is an exciting time for innovation and growth in the industry Let me share "
    "some insights about what we can expect in the coming years and how these changes will affect "
    "businesses worldwide"
).split()


def validate_transcription_job(job: TranscriptionJob) -> bool:
    """True when a job carries everything the analysis step needs."""
    return bool(
        job.id
        and job.status
        and job.text
        and isinstance(job.segments, list)
        and isinstance(job.duration, (int, float))
        and isinstance(job.confidence, (int, float))
    )


def transcription_cost(duration_seconds: float) -> float:
    """Provider cost in dollars, rounded to cents."""
    return round(duration_seconds * COST_PER_SECOND, 2)


def simulate_transcription(audio_url: str, duration: float, seed: Optional[int] = None) -> TranscriptionJob:
    """
    Builds a completed job with synthetic word timings, for running the pipeline
    without a transcription provider. ``audio_url`` is only used for the job id.
    """
    rng = random.Random(seed)
    total_words = min(int(duration / 60 * WORDS_PER_MINUTE), MAX_SIMULATED_WORDS)

    segments: List[TranscriptSegment] = []
    text_parts: List[str] = []
    current = 0.0
    for i in range(total_words):
        word = SAMPLE_WORDS[i % len(SAMPLE_WORDS)]
        word_duration = 0.5 + rng.random() * 0.5
        segments.append(
            TranscriptSegment(
                text=word,
                start_time=current,
                end_time=current + word_duration,
                confidence=0.85 + rng.random() * 0.15,
            )
        )
        text_parts.append(word)
        current += word_duration

        if i > 0 and i % 10 == 0:
            text_parts[-1] += "."

    return TranscriptionJob(
        id=f"sim-{abs(hash(audio_url)) % 10**8}-{int(time.time())}",
        status=JobStatus.COMPLETED,
        text=" ".join(text_parts),
        segments=segments,
        duration=duration,
        language="en",
        confidence=0.92,
    )
