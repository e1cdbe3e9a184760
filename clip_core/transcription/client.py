import math
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlsplit

import httpx
from loguru import logger
from pydantic import ValidationError

from clip_core.config_manager import TranscriptionConfig
from clip_core.errors import ApiError, NetworkError, StatusCheckFailed, SubmissionFailed
from clip_core.transcription.models import JobStatus, TranscriptionJob, TranscriptionRequest, TranscriptSegment
from clip_core.transcription.poller import CancellationToken, TranscriptionPoller

# Provider vocabulary -> canonical status. Lookup is case-insensitive.
STATUS_MAP: Dict[str, JobStatus] = {
    "queued": JobStatus.QUEUED,
    "submitted": JobStatus.QUEUED,
    "processing": JobStatus.PROCESSING,
    "running": JobStatus.PROCESSING,
    "completed": JobStatus.COMPLETED,
    "success": JobStatus.COMPLETED,
    "error": JobStatus.ERROR,
    "failed": JobStatus.ERROR,
}


def map_api_status(api_status: Optional[str]) -> JobStatus:
    """Unknown statuses count as not-yet-terminal rather than as failures."""
    if not isinstance(api_status, str):
        return JobStatus.QUEUED
    return STATUS_MAP.get(api_status.lower(), JobStatus.QUEUED)


class TranscriptionJobClient:
    """
    Submits audio to the transcription provider and follows the job to completion.

    Calls go straight to ``base_url`` unless ``relay_url`` is set, in which case each
    call is wrapped in a relay envelope and POSTed there instead.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.assemblyai.com",
        relay_url: Optional[str] = None,
        language: str = "en",
        word_times_in_ms: bool = True,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.relay_url = relay_url
        self.language = language
        self.word_times_in_ms = word_times_in_ms
        self.http = http_client or httpx.Client(timeout=timeout_seconds)

    @classmethod
    def from_config(cls, cfg: TranscriptionConfig) -> "TranscriptionJobClient":
        return cls(
            api_key=cfg.api_key or "",
            base_url=cfg.base_url,
            relay_url=cfg.relay_url,
            language=cfg.language,
            word_times_in_ms=cfg.word_times_in_ms,
            timeout_seconds=cfg.timeout_seconds,
        )

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "TranscriptionJobClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _send(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> httpx.Response:
        headers = {"authorization": self.api_key}
        if body is not None:
            headers["content-type"] = "application/json"

        if not self.relay_url:
            return self.http.request(method, f"{self.base_url}{path}", headers=headers, json=body)

        parts = urlsplit(self.base_url)
        envelope: Dict[str, Any] = {
            "protocol": parts.scheme,
            "origin": parts.netloc,
            "path": path,
            "method": method,
            "headers": headers,
        }
        if body is not None:
            envelope["body"] = body
        return self.http.post(self.relay_url, json=envelope)

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ApiError("Transcription API returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise ApiError("Transcription API returned an unexpected payload")
        return data

    def submit(
        self,
        audio_url: str,
        language: Optional[str] = None,
        speaker_labels: bool = False,
        punctuate: bool = True,
    ) -> str:
        """Submits an audio URL for transcription and returns the provider job id."""
        request = TranscriptionRequest(
            audio_url=audio_url,
            language=language or self.language,
            speaker_labels=speaker_labels,
            punctuate=punctuate,
        )
        body = {
            "audio_url": request.audio_url,
            "language_code": request.language,
            "speaker_labels": request.speaker_labels,
            "punctuate": request.punctuate,
            "format_text": True,
        }

        try:
            response = self._send("POST", "/v2/transcript", body)
        except httpx.HTTPError as e:
            logger.error(f"Transcription submission failed to connect: {e}")
            raise NetworkError("Network error during transcription submission", e) from e

        if not response.is_success:
            raise SubmissionFailed(response.status_code)

        result = self._json(response)
        if result.get("error"):
            raise ApiError(str(result["error"]))

        job_id = result.get("id")
        if not job_id:
            raise ApiError("Transcription API did not return a job id")

        logger.info(f"Submitted transcription job {job_id} for {audio_url}")
        return str(job_id)

    def poll_once(self, job_id: str) -> TranscriptionJob:
        """Fetches the current state of a job. Never waits."""
        try:
            response = self._send("GET", f"/v2/transcript/{job_id}")
        except httpx.HTTPError as e:
            logger.error(f"Status check for {job_id} failed to connect: {e}")
            raise NetworkError("Network error during status check", e) from e

        if not response.is_success:
            raise StatusCheckFailed(response.status_code)

        result = self._json(response)
        status = map_api_status(result.get("status"))
        error = result.get("error")
        if error and status is not JobStatus.ERROR:
            raise ApiError(str(error))

        try:
            job = TranscriptionJob(
                id=str(result.get("id") or job_id),
                status=status,
                text=result.get("text") or "",
                segments=self._to_segments(result.get("words")),
                duration=result.get("audio_duration") or 0.0,
                language=result.get("language_code") or self.language,
                confidence=result.get("confidence") or 0.0,
                error=str(error) if error else None,
            )
        except ValidationError as e:
            raise ApiError(f"Transcription API returned an invalid job payload for {job_id}") from e

        logger.debug(f"Job {job.id}: provider status {result.get('status')!r} -> {job.status.value}")
        return job

    def poll_until_complete(
        self,
        job_id: str,
        max_attempts: int = 60,
        interval_ms: int = 5000,
        cancel_token: Optional[CancellationToken] = None,
        wait: Optional[Callable[[float], bool]] = None,
    ) -> TranscriptionJob:
        """
        Polls at a fixed interval until the job is terminal.

        Blocks for up to ``max_attempts * interval_ms``; run it from a worker,
        not from a request handler.

        Raises:
            TranscriptionFailed: the provider reported the job as failed.
            TranscriptionTimeout: ``max_attempts`` checks without a terminal status.
            PollingCancelled: ``cancel_token`` was cancelled.
        """
        poller = TranscriptionPoller(
            self,
            job_id,
            max_attempts=max_attempts,
            interval_ms=interval_ms,
            cancel_token=cancel_token,
            wait=wait,
        )
        return poller.run()

    def _to_segments(self, words: Any) -> List[TranscriptSegment]:
        if not isinstance(words, list):
            return []

        scale = 1000.0 if self.word_times_in_ms else 1.0
        segments = []
        for word in words:
            if not isinstance(word, dict):
                continue
            start, end = word.get("start"), word.get("end")
            if not (_is_time(start) and _is_time(end)):
                continue
            start, end = start / scale, end / scale
            if start < 0 or end <= start:
                logger.debug(f"Dropping word with invalid timing: {word}")
                continue
            try:
                segment = TranscriptSegment(
                    text=word.get("text") or "",
                    start_time=start,
                    end_time=end,
                    confidence=word.get("confidence") or 0.0,
                )
            except ValidationError:
                logger.debug(f"Dropping malformed word: {word}")
                continue
            segments.append(segment)

        segments.sort(key=lambda s: s.start_time)
        return segments


def _is_time(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
