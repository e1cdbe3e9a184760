import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Sequence, Type, TypeVar

from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from clip_core.completion.client import CompletionClient
from clip_core.completion.models import ChatMessage, CompletionOptions
from clip_core.errors import EmptyTranscript, MalformedResponse
from clip_core.intelligence.extraction import ARRAY_PARSERS, DEFAULT_PARSERS, ResponseParser, extract_json
from clip_core.intelligence.models import (
    AnalysisMetadata,
    TrendingTopic,
    VideoInsights,
    VideoMetadata,
    ViralAnalysis,
    ViralPotentialScore,
)
from clip_core.intelligence.prompts import (
    INSIGHTS_SYSTEM_PROMPT,
    INSIGHTS_USER_TEMPLATE,
    METADATA_BLOCK_TEMPLATE,
    TRENDING_SYSTEM_PROMPT,
    TRENDING_USER_TEMPLATE,
    VIRAL_ANALYSIS_SYSTEM_PROMPT,
    VIRAL_ANALYSIS_USER_TEMPLATE,
    VIRAL_SCORE_SYSTEM_PROMPT,
    VIRAL_SCORE_USER_TEMPLATE,
)

M = TypeVar("M", bound=BaseModel)

_TOPICS = TypeAdapter(List[TrendingTopic])
_ANALYSIS_SECTIONS = {
    "viral_score": dict,
    "trending_topics": list,
    "insights": dict,
    "recommendations": list,
    "metadata": dict,
}


def calculate_confidence_level(analysis: ViralAnalysis) -> int:
    """20 points for each populated part of the analysis, 100 at most."""
    filled = [
        analysis.viral_score.overall_score > 0,
        bool(analysis.trending_topics),
        bool(analysis.insights.key_moments),
        bool(analysis.insights.emotional_peaks),
        bool(analysis.recommendations),
    ]
    return min(100, 20 * sum(filled))


def validate_analysis_result(data: Any) -> bool:
    """Shallow shape check of a serialized ViralAnalysis (e.g. one read back from storage)."""
    if not isinstance(data, dict):
        return False
    return all(isinstance(data.get(key), kind) for key, kind in _ANALYSIS_SECTIONS.items())


class ContentAnalyst:
    """
    Search-backed content analysis on top of a CompletionClient.

    Unlike ClipExtractionEngine these calls raise on failure (ClipCoreError
    subclasses); there is no success/error envelope.
    """

    def __init__(
        self,
        completion_client: CompletionClient,
        object_parsers: Sequence[ResponseParser] = DEFAULT_PARSERS,
        array_parsers: Sequence[ResponseParser] = ARRAY_PARSERS,
    ):
        self.client = completion_client
        self.object_parsers = object_parsers
        self.array_parsers = array_parsers

    def _ask(self, system: str, user: str, options: CompletionOptions, parsers: Sequence[ResponseParser]) -> Any:
        result = self.client.complete(
            [ChatMessage(role="system", content=system), ChatMessage(role="user", content=user)],
            options,
        )
        return extract_json(result.text, parsers)

    @staticmethod
    def _validate(model: Type[M], data: Any, what: str) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Rejected {what} payload: {e.error_count()} validation errors")
            raise MalformedResponse(f"Invalid {what} format") from e

    def analyze_viral_potential(self, transcript: str, metadata: Optional[VideoMetadata] = None) -> ViralAnalysis:
        """
        Full viral-potential report for a transcript.

        ``metadata`` on the result is filled in locally: timestamp, a confidence
        level derived from how much of the report came back, and elapsed time.

        Raises:
            EmptyTranscript: ``transcript`` is blank.
            MalformedResponse: the reply is not a JSON object of the expected shape.
            CompletionError: the completion call itself failed.
        """
        if not transcript or not transcript.strip():
            raise EmptyTranscript()

        started = time.monotonic()
        metadata_block = ""
        if metadata:
            metadata_block = METADATA_BLOCK_TEMPLATE.format(
                title=metadata.title or "Unknown",
                duration=metadata.duration or "Unknown",
                platform=metadata.platform or "Unknown",
                creator=metadata.creator or "Unknown",
            )

        data = self._ask(
            VIRAL_ANALYSIS_SYSTEM_PROMPT,
            VIRAL_ANALYSIS_USER_TEMPLATE.format(metadata_block=metadata_block, transcript=transcript),
            CompletionOptions(
                temperature=0.3,
                max_tokens=4000,
                extra={"return_citations": True, "search_recency_filter": "day", "return_related_questions": False},
            ),
            self.object_parsers,
        )
        if isinstance(data, dict):
            data.pop("metadata", None)
        analysis = self._validate(ViralAnalysis, data, "viral analysis")

        analysis.metadata = AnalysisMetadata(
            analysis_timestamp=datetime.now(timezone.utc),
            confidence_level=calculate_confidence_level(analysis),
            processing_time_ms=int((time.monotonic() - started) * 1000),
        )
        logger.info(
            f"Viral analysis: overall {analysis.viral_score.overall_score:.0f}, "
            f"{len(analysis.trending_topics)} topics, confidence {analysis.metadata.confidence_level}"
        )
        return analysis

    def get_trending_topics(
        self, category: Optional[str] = None, region: Optional[str] = None, timeframe: Optional[str] = None
    ) -> List[TrendingTopic]:
        scope = ""
        if category:
            scope += f" in {category}"
        if region:
            scope += f" for {region}"
        scope += f" ({timeframe or 'today'})"

        data = self._ask(
            TRENDING_SYSTEM_PROMPT,
            TRENDING_USER_TEMPLATE.format(scope=scope),
            CompletionOptions(
                temperature=0.2,
                max_tokens=2000,
                extra={"return_citations": True, "search_recency_filter": timeframe or "day"},
            ),
            self.array_parsers,
        )
        try:
            topics = _TOPICS.validate_python(data)
        except ValidationError as e:
            raise MalformedResponse("Invalid trending topics format") from e

        logger.info(f"Fetched {len(topics)} trending topics{scope}")
        return topics

    def generate_viral_score(
        self, content: str, content_type: Literal["transcript", "title", "description"]
    ) -> ViralPotentialScore:
        data = self._ask(
            VIRAL_SCORE_SYSTEM_PROMPT,
            VIRAL_SCORE_USER_TEMPLATE.format(content_kind=content_type, content=content),
            CompletionOptions(temperature=0.3, max_tokens=1000, extra={"return_citations": False}),
            self.object_parsers,
        )
        return self._validate(ViralPotentialScore, data, "viral score")

    def extract_key_insights(self, transcript: str, focus_areas: Optional[List[str]] = None) -> VideoInsights:
        if not transcript or not transcript.strip():
            raise EmptyTranscript()

        focus_line = f"\nFocus areas: {', '.join(focus_areas)}\n" if focus_areas else ""
        data = self._ask(
            INSIGHTS_SYSTEM_PROMPT,
            INSIGHTS_USER_TEMPLATE.format(transcript=transcript, focus_line=focus_line),
            CompletionOptions(temperature=0.3, max_tokens=3000, extra={"return_citations": True}),
            self.object_parsers,
        )
        return self._validate(VideoInsights, data, "insights")


def analysis_summary(analysis: ViralAnalysis) -> Dict[str, Any]:
    """Compact view for CLI output."""
    return {
        "overall_score": analysis.viral_score.overall_score,
        "topics": [t.topic for t in analysis.trending_topics],
        "key_moments": len(analysis.insights.key_moments),
        "recommendations": analysis.recommendations,
        "confidence": analysis.metadata.confidence_level if analysis.metadata else 0,
    }
