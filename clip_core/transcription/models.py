from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


class TranscriptSegment(BaseModel):
    """A timed span of transcript text. Times are in seconds."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str
    start_time: float = Field(..., ge=0, alias="startTime")
    end_time: float = Field(..., ge=0, alias="endTime")
    confidence: float = Field(default=1.0, description="Confidence score 0-1")

    @model_validator(mode="after")
    def _check_order(self) -> "TranscriptSegment":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class TranscriptionRequest(BaseModel):
    audio_url: str
    language: Optional[str] = None
    speaker_labels: bool = False
    punctuate: bool = True


class TranscriptionJob(BaseModel):
    """State of a provider transcription job as last observed."""

    id: str
    status: JobStatus = JobStatus.QUEUED
    text: str = ""
    segments: List[TranscriptSegment] = Field(default_factory=list)
    duration: float = Field(default=0.0, description="Audio duration in seconds")
    language: str = Field(default="en")
    confidence: float = Field(default=0.0)
    error: Optional[str] = None
