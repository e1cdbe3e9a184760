import threading
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from loguru import logger

from clip_core.errors import PollingCancelled, TranscriptionFailed, TranscriptionTimeout
from clip_core.transcription.models import JobStatus, TranscriptionJob

if TYPE_CHECKING:
    from clip_core.transcription.client import TranscriptionJobClient

_STATUS_RANK = {
    JobStatus.QUEUED: 0,
    JobStatus.PROCESSING: 1,
    JobStatus.COMPLETED: 2,
    JobStatus.ERROR: 2,
}


class PollOutcome(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class CancellationToken:
    """Lets a caller abandon a polling loop, including one that is mid-wait."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleeps up to ``seconds``; returns True if cancelled meanwhile."""
        return self._event.wait(seconds)


class TranscriptionPoller:
    """
    Polling state machine for a single transcription job.

    ``step()`` performs at most one status check, so an external scheduler can
    drive the job one tick at a time. ``run()`` is the blocking driver used by
    workers. Observed status never moves backwards: once the job has been seen
    processing, a later ``queued`` report is kept as processing.
    """

    def __init__(
        self,
        client: "TranscriptionJobClient",
        job_id: str,
        max_attempts: int = 60,
        interval_ms: int = 5000,
        cancel_token: Optional[CancellationToken] = None,
        wait: Optional[Callable[[float], bool]] = None,
    ):
        self.client = client
        self.job_id = job_id
        self.max_attempts = max_attempts
        self.interval_ms = interval_ms
        self.cancel_token = cancel_token or CancellationToken()
        self._wait = wait or self.cancel_token.wait

        self.attempts = 0
        self.outcome = PollOutcome.PENDING
        self.last_job: Optional[TranscriptionJob] = None

    def step(self) -> PollOutcome:
        if self.outcome is not PollOutcome.PENDING:
            return self.outcome

        if self.cancel_token.cancelled:
            self.outcome = PollOutcome.CANCELLED
            return self.outcome

        if self.attempts >= self.max_attempts:
            self.outcome = PollOutcome.TIMED_OUT
            return self.outcome

        job = self.client.poll_once(self.job_id)
        self.attempts += 1

        if self.last_job and _STATUS_RANK[job.status] < _STATUS_RANK[self.last_job.status]:
            job = job.model_copy(update={"status": self.last_job.status})
        if not self.last_job or job.status is not self.last_job.status:
            logger.info(f"Transcription {self.job_id} is {job.status.value} (check {self.attempts})")
        self.last_job = job

        if job.status is JobStatus.COMPLETED:
            self.outcome = PollOutcome.COMPLETED
        elif job.status is JobStatus.ERROR:
            self.outcome = PollOutcome.FAILED
        elif self.attempts >= self.max_attempts:
            self.outcome = PollOutcome.TIMED_OUT
        return self.outcome

    def run(self) -> TranscriptionJob:
        interval_s = self.interval_ms / 1000.0

        while True:
            outcome = self.step()

            if outcome is PollOutcome.COMPLETED:
                logger.success(f"Transcription {self.job_id} completed after {self.attempts} checks")
                return self.last_job
            if outcome is PollOutcome.FAILED:
                reason = self.last_job.error or "Transcription failed"
                logger.error(f"Transcription {self.job_id} failed: {reason}")
                raise TranscriptionFailed(reason)
            if outcome is PollOutcome.TIMED_OUT:
                logger.error(f"Transcription {self.job_id} still pending after {self.attempts} checks")
                raise TranscriptionTimeout(self.attempts)
            if outcome is PollOutcome.CANCELLED:
                raise PollingCancelled(self.job_id)

            if self._wait(interval_s) or self.cancel_token.cancelled:
                self.outcome = PollOutcome.CANCELLED
                logger.info(f"Polling cancelled for {self.job_id}")
                raise PollingCancelled(self.job_id)
