from clip_core.intelligence.analyst import ContentAnalyst, validate_analysis_result
from clip_core.intelligence.engine import ClipExtractionEngine
from clip_core.intelligence.models import (
    AnalysisRequest,
    AnalysisResponse,
    ContentType,
    TrendingTopic,
    VideoInsights,
    ViralAnalysis,
    ViralMoment,
    ViralPotentialScore,
)
from clip_core.intelligence.scoring import EngagementIndicators, calculate_viral_score

__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "ClipExtractionEngine",
    "ContentAnalyst",
    "ContentType",
    "EngagementIndicators",
    "TrendingTopic",
    "VideoInsights",
    "ViralAnalysis",
    "ViralMoment",
    "ViralPotentialScore",
    "calculate_viral_score",
    "validate_analysis_result",
]
