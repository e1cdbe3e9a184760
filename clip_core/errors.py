from typing import Any, Optional


class ClipCoreError(Exception):
    """Base error. `code` is the stable identifier surfaced to callers."""

    code = "CLIP_CORE_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


# --- Completion API ---


class CompletionError(ClipCoreError):
    code = "COMPLETION_ERROR"


class RateLimitExceeded(CompletionError):
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, retry_after_seconds: int):
        super().__init__(f"Rate limit exceeded. Please wait {retry_after_seconds} seconds.")
        self.retry_after_seconds = retry_after_seconds


class TransportError(CompletionError):
    code = "TRANSPORT_ERROR"

    def __init__(self, cause: BaseException):
        super().__init__(f"Network error: {cause}")
        self.cause = cause


class UpstreamError(CompletionError):
    code = "UPSTREAM_ERROR"

    def __init__(self, status_code: int, body: Any = None):
        super().__init__(f"API request failed: {status_code}")
        self.status_code = status_code
        self.body = body


class EmptyResponse(CompletionError):
    code = "EMPTY_RESPONSE"

    def __init__(self, message: str = "Empty response from completion API"):
        super().__init__(message)


# --- Clip analysis ---


class AnalysisError(ClipCoreError):
    code = "ANALYSIS_ERROR"


class EmptyTranscript(AnalysisError):
    code = "EMPTY_TRANSCRIPT"

    def __init__(self, message: str = "Empty transcript provided"):
        super().__init__(message)


class InvalidRequest(AnalysisError):
    code = "INVALID_REQUEST"


class MalformedResponse(AnalysisError):
    code = "MALFORMED_RESPONSE"


class CandidateRejected(AnalysisError):
    """Raised for a single clip candidate. Never escapes the engine."""

    code = "CANDIDATE_REJECTED"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


# --- Transcription jobs ---


class TranscriptionError(ClipCoreError):
    code = "TRANSCRIPTION_ERROR"


class SubmissionFailed(TranscriptionError):
    code = "SUBMISSION_FAILED"

    def __init__(self, status_code: int):
        super().__init__(f"Failed to submit transcription job (HTTP {status_code})")
        self.status_code = status_code


class StatusCheckFailed(TranscriptionError):
    code = "STATUS_CHECK_FAILED"

    def __init__(self, status_code: int):
        super().__init__(f"Failed to get transcription status (HTTP {status_code})")
        self.status_code = status_code


class ApiError(TranscriptionError):
    code = "API_ERROR"


class NetworkError(TranscriptionError):
    code = "NETWORK_ERROR"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class TranscriptionFailed(TranscriptionError):
    code = "TRANSCRIPTION_FAILED"


class TranscriptionTimeout(TranscriptionError):
    code = "TIMEOUT"

    def __init__(self, attempts: int):
        super().__init__(f"Transcription timeout after {attempts} status checks")
        self.attempts = attempts


class PollingCancelled(TranscriptionError):
    code = "CANCELLED"

    def __init__(self, job_id: str):
        super().__init__(f"Polling cancelled for job {job_id}")
        self.job_id = job_id
