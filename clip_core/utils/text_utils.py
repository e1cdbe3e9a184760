from typing import List, Sequence

from clip_core.transcription.models import TranscriptSegment


def chunk_segments(segments: Sequence[TranscriptSegment], max_words: int = 12) -> List[TranscriptSegment]:
    """
    Merges word-level segments into phrase-level ones of at most ``max_words`` words.
    A chunk also closes at a word ending in sentence punctuation.
    """
    groups = []
    current_chunk: List[TranscriptSegment] = []

    for segment in segments:
        current_chunk.append(segment)

        if len(current_chunk) >= max_words or segment.text.rstrip().endswith((".", "?", "!")):
            groups.append(_merge(current_chunk))
            current_chunk = []

    if current_chunk:
        groups.append(_merge(current_chunk))

    return groups


def _merge(words: List[TranscriptSegment]) -> TranscriptSegment:
    return TranscriptSegment(
        text=" ".join(w.text for w in words),
        start_time=words[0].start_time,
        end_time=max(w.end_time for w in words),
        confidence=sum(w.confidence for w in words) / len(words),
    )
