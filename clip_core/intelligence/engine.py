import math
from typing import List, Optional, Sequence, Union

from loguru import logger

from clip_core.completion.client import CompletionClient
from clip_core.completion.models import ChatMessage, CompletionOptions
from clip_core.config_manager import AnalysisConfig, ConfigManager
from clip_core.errors import ClipCoreError, EmptyTranscript, InvalidRequest
from clip_core.intelligence.extraction import DEFAULT_PARSERS, ResponseParser, extract_clips_payload
from clip_core.intelligence.models import AnalysisRequest, AnalysisResponse, ContentType
from clip_core.intelligence.normalization import normalize_clips
from clip_core.intelligence.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    ANALYSIS_USER_TEMPLATE,
    HASHTAG_SYSTEM_PROMPT,
    HASHTAG_USER_TEMPLATE,
    TITLE_SYSTEM_PROMPT,
    TITLE_USER_TEMPLATE,
)
from clip_core.transcription.models import TranscriptSegment

DEFAULT_TITLE = "Viral Moment"
DEFAULT_HASHTAGS = ["viral", "content"]


def _js_round(value: float) -> int:
    return int(math.floor(value + 0.5))


def _seconds(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class ClipExtractionEngine:
    """
    Turns a transcript into a ranked list of clip candidates with one completion call.

    Holds no state between calls besides the completion client (and its rate limiter).
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        completion_client: Optional[CompletionClient] = None,
        parsers: Sequence[ResponseParser] = DEFAULT_PARSERS,
    ):
        self.cfg: AnalysisConfig = config_manager.analysis
        self.parsers = parsers
        self.client: Optional[CompletionClient] = completion_client or self._init_client(config_manager)

    def _init_client(self, config_manager: ConfigManager) -> Optional[CompletionClient]:
        if not config_manager.completion.api_key:
            logger.warning("Completion API key not found. Clip analysis is unavailable.")
            return None
        return CompletionClient.from_config(config_manager.completion)

    def _format_segments(self, segments: Sequence[TranscriptSegment]) -> str:
        return "\n".join(
            f"{_seconds(seg.start_time)}s-{_seconds(seg.end_time)}s: {seg.text[:100]}..." for seg in segments
        )

    def build_messages(
        self, transcript: str, segments: Sequence[TranscriptSegment], duration: float, content_type: ContentType
    ) -> List[ChatMessage]:
        user_prompt = ANALYSIS_USER_TEMPLATE.format(
            content_type=ContentType(content_type).value,
            duration_seconds=_js_round(duration),
            duration_minutes=_js_round(duration / 60),
            transcript_length=len(transcript),
            transcript=transcript,
            segment_lines=self._format_segments(segments),
        )
        return [
            ChatMessage(role="system", content=ANALYSIS_SYSTEM_PROMPT),
            ChatMessage(role="user", content=user_prompt),
        ]

    def analyze(self, request: AnalysisRequest) -> AnalysisResponse:
        return self.analyze_transcript(request.transcript, request.segments, request.duration, request.content_type)

    def analyze_transcript(
        self,
        transcript: str,
        segments: Sequence[TranscriptSegment],
        duration: float,
        content_type: Union[ContentType, str] = ContentType.VIDEO,
    ) -> AnalysisResponse:
        """
        Asks the model for viral moments and returns the validated, ranked survivors.

        Any whole-call failure comes back as ``success=False`` with an error code;
        individual bad candidates are only logged and dropped.
        """
        try:
            if not transcript or not transcript.strip():
                raise EmptyTranscript()
            try:
                content_type = ContentType(content_type)
            except ValueError as e:
                raise InvalidRequest(f"Unsupported content type: {content_type!r}") from e
            if not self.client:
                return AnalysisResponse(
                    success=False, error="Completion client not configured", error_code="NOT_CONFIGURED"
                )

            logger.info(f"Analyzing transcript: {len(transcript)} chars, {len(segments)} segments, {duration:.0f}s")

            result = self.client.complete(
                self.build_messages(transcript, segments, duration, content_type),
                CompletionOptions(temperature=self.cfg.temperature, max_tokens=self.cfg.max_tokens),
            )
            raw_clips = extract_clips_payload(result.text, self.parsers)
            clips = normalize_clips(raw_clips, duration, self.cfg.max_clips)

            logger.success(f"Identified {len(clips)} viral candidates (from {len(raw_clips)} raw).")
            return AnalysisResponse(success=True, clips=clips)

        except ClipCoreError as e:
            logger.error(f"Clip analysis failed [{e.code}]: {e.message}")
            return AnalysisResponse(success=False, error=e.message, error_code=e.code)

    def generate_clip_title(self, transcript: str, context: Optional[str] = None) -> str:
        """Best-effort title; falls back to a fixed default on any failure."""
        if not self.client:
            return DEFAULT_TITLE

        try:
            prompt = TITLE_USER_TEMPLATE.format(
                context_line=f"\nContext: {context}\n" if context else "",
                transcript=transcript[:500],
            )
            result = self.client.complete(
                [
                    ChatMessage(role="system", content=TITLE_SYSTEM_PROMPT),
                    ChatMessage(role="user", content=prompt),
                ],
                CompletionOptions(temperature=0.7, max_tokens=100),
            )
            title = result.text.strip()
            return title[:100] if title else DEFAULT_TITLE
        except Exception as e:
            logger.error(f"Title generation failed: {e}")
            return DEFAULT_TITLE

    def generate_hashtags(self, transcript: str, title: str) -> List[str]:
        """Best-effort hashtags; falls back to a fixed default on any failure."""
        if not self.client:
            return list(DEFAULT_HASHTAGS)

        try:
            prompt = HASHTAG_USER_TEMPLATE.format(title=title, transcript=transcript[:300])
            result = self.client.complete(
                [
                    ChatMessage(role="system", content=HASHTAG_SYSTEM_PROMPT),
                    ChatMessage(role="user", content=prompt),
                ],
                CompletionOptions(temperature=0.5, max_tokens=200),
            )
            text = result.text.strip()
            if not text:
                return list(DEFAULT_HASHTAGS)

            tags = [tag.strip().lower().removeprefix("#") for tag in text.split(",")]
            return [tag for tag in tags if 0 < len(tag) <= 30][:8]
        except Exception as e:
            logger.error(f"Hashtag generation failed: {e}")
            return list(DEFAULT_HASHTAGS)
