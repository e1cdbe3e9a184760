from typing import Any, Callable, Optional, Union

from loguru import logger
from pydantic import BaseModel

from clip_core.config_manager import ConfigManager
from clip_core.intelligence.engine import ClipExtractionEngine
from clip_core.intelligence.models import AnalysisResponse, ContentType
from clip_core.transcription.client import TranscriptionJobClient
from clip_core.transcription.models import TranscriptionJob
from clip_core.transcription.poller import CancellationToken
from clip_core.utils.text_utils import chunk_segments


class PipelineResult(BaseModel):
    """What the persistence layer receives for one audio asset."""

    job: TranscriptionJob
    analysis: AnalysisResponse


class ClipPipeline:
    """
    audio URL -> transcription job -> clip analysis.

    ``run`` blocks while the transcription is polled, so it belongs in a worker
    (see ``clip_core.worker``), never in a request handler.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        transcription_client: Optional[TranscriptionJobClient] = None,
        engine: Optional[ClipExtractionEngine] = None,
    ):
        self.cfg = config_manager
        self.transcriber = transcription_client or TranscriptionJobClient.from_config(config_manager.transcription)
        self._owns_transcriber = transcription_client is None
        self.engine = engine or ClipExtractionEngine(config_manager)

    def close(self) -> None:
        """Releases the HTTP connection pool of a transcription client this pipeline created."""
        if self._owns_transcriber:
            self.transcriber.close()

    def __enter__(self) -> "ClipPipeline":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def run(
        self,
        audio_url: str,
        content_type: Union[ContentType, str] = ContentType.AUDIO,
        language: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
        wait: Optional[Callable[[float], bool]] = None,
    ) -> PipelineResult:
        """
        Raises the transcription errors (failure, timeout, cancellation, network)
        unchanged; analysis failures are reported inside the result.
        """
        logger.info(f"Starting pipeline for {audio_url}")
        tcfg = self.cfg.transcription

        job_id = self.transcriber.submit(audio_url, language=language)
        job = self.transcriber.poll_until_complete(
            job_id,
            max_attempts=tcfg.max_attempts,
            interval_ms=tcfg.interval_ms,
            cancel_token=cancel_token,
            wait=wait,
        )
        return self.analyze_job(job, content_type)

    def analyze_job(
        self, job: TranscriptionJob, content_type: Union[ContentType, str] = ContentType.AUDIO
    ) -> PipelineResult:
        duration = job.duration
        if duration <= 0 and job.segments:
            duration = job.segments[-1].end_time

        analysis = self.engine.analyze_transcript(
            job.text,
            chunk_segments(job.segments),
            duration,
            content_type,
        )

        if analysis.success:
            logger.success(f"Job {job.id}: {len(analysis.clips)} clips ready")
        else:
            logger.warning(f"Job {job.id}: analysis failed ({analysis.error_code})")
        return PipelineResult(job=job, analysis=analysis)
