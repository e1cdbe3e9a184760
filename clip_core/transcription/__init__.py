from clip_core.transcription.client import STATUS_MAP, TranscriptionJobClient, map_api_status
from clip_core.transcription.models import JobStatus, TranscriptionJob, TranscriptionRequest, TranscriptSegment
from clip_core.transcription.poller import CancellationToken, PollOutcome, TranscriptionPoller

__all__ = [
    "CancellationToken",
    "JobStatus",
    "PollOutcome",
    "STATUS_MAP",
    "TranscriptSegment",
    "TranscriptionJob",
    "TranscriptionJobClient",
    "TranscriptionPoller",
    "TranscriptionRequest",
    "map_api_status",
]
