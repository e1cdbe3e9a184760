from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from clip_core.transcription.models import TranscriptSegment

MIN_CLIP_SECONDS = 15.0
MAX_CLIP_SECONDS = 90.0


def clip_length(start: float, end: float) -> float:
    """Window length with subtraction noise removed, so 16.4 - 1.4 counts as 15.0."""
    return round(end - start, 6)


class ContentType(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"


class ViralMoment(BaseModel):
    """A validated clip candidate with high viral potential."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_time: float = Field(..., ge=0, alias="startTime", description="Start time in seconds")
    end_time: float = Field(..., alias="endTime", description="End time in seconds")
    title: str = Field(..., max_length=100, description="A catchy title for this clip")
    description: str = Field(default="", max_length=500)
    transcript: str = Field(..., description="Words spoken during the clip")
    hashtags: List[str] = Field(default_factory=list, max_length=8)
    score: float = Field(..., ge=0.0, le=1.0, description="Viral potential, 0-1")
    reasoning: str = Field(default="", max_length=200, description="Why this clip was selected")

    @model_validator(mode="after")
    def _check_window(self) -> "ViralMoment":
        length = clip_length(self.start_time, self.end_time)
        if not MIN_CLIP_SECONDS <= length <= MAX_CLIP_SECONDS:
            raise ValueError(f"clip length {length:.1f}s outside {MIN_CLIP_SECONDS:g}-{MAX_CLIP_SECONDS:g}s")
        return self


class AnalysisRequest(BaseModel):
    transcript: str
    segments: List[TranscriptSegment] = Field(default_factory=list)
    duration: float = Field(..., gt=0, description="Source media duration in seconds")
    content_type: ContentType = Field(default=ContentType.VIDEO, alias="contentType")

    model_config = ConfigDict(populate_by_name=True)


class AnalysisResponse(BaseModel):
    """Either a successful ranked clip list or a typed failure; never both."""

    success: bool
    clips: List[ViralMoment] = Field(default_factory=list)
    error: Optional[str] = None
    error_code: Optional[str] = None


# --- Viral potential analysis (LLM-scored, 0-100 scales) ---

Percent = Annotated[float, Field(ge=0, le=100)]


class VideoMetadata(BaseModel):
    title: Optional[str] = None
    duration: Optional[str] = None
    platform: Optional[str] = None
    creator: Optional[str] = None


class ViralPotentialScore(BaseModel):
    overall_score: Percent
    engagement_potential: Percent
    shareability: Percent
    trending_alignment: Percent
    emotional_impact: Percent
    uniqueness: Percent
    explanation: str = ""


class TrendingTopic(BaseModel):
    topic: str
    relevance_score: Percent
    current_popularity: Literal["high", "medium", "low"]
    related_keywords: List[str] = Field(default_factory=list)
    suggested_angles: List[str] = Field(default_factory=list)

    @field_validator("current_popularity", mode="before")
    @classmethod
    def _lower(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class KeyMoment(BaseModel):
    timestamp: str = Field(..., description="MM:SS")
    description: str
    viral_potential: Percent
    suggested_clip_duration: str = ""


class EmotionalPeak(BaseModel):
    timestamp: str
    emotion: str
    intensity: Percent


class QuotableMoment(BaseModel):
    timestamp: str
    quote: str
    context: str = ""


class VideoInsights(BaseModel):
    key_moments: List[KeyMoment] = Field(default_factory=list)
    emotional_peaks: List[EmotionalPeak] = Field(default_factory=list)
    quotable_moments: List[QuotableMoment] = Field(default_factory=list)
    trending_elements: List[str] = Field(default_factory=list)
    target_demographics: List[str] = Field(default_factory=list)
    optimal_posting_times: List[str] = Field(default_factory=list)


class AnalysisMetadata(BaseModel):
    analysis_timestamp: datetime
    confidence_level: int = Field(..., ge=0, le=100)
    processing_time_ms: int = Field(..., ge=0)


class ViralAnalysis(BaseModel):
    """Full viral-potential report for one transcript."""

    viral_score: ViralPotentialScore
    trending_topics: List[TrendingTopic] = Field(default_factory=list)
    insights: VideoInsights = Field(default_factory=VideoInsights)
    recommendations: List[str] = Field(default_factory=list)
    metadata: Optional[AnalysisMetadata] = None
