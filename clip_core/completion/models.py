from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One message of a chat-completions conversation."""

    role: Literal["system", "user", "assistant"]
    content: str


class CompletionOptions(BaseModel):
    """Per-call overrides. Unset fields fall back to the client defaults."""

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    extra: Dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific body keys, e.g. return_citations or search_recency_filter",
    )


class CompletionResult(BaseModel):
    text: str
    usage: Dict[str, Any] = Field(default_factory=dict)


class RateLimitState(BaseModel):
    """Snapshot of a RateLimiter window."""

    requests_in_window: int
    window_reset_at: float = Field(..., description="Clock reading (ms) at which the window expires")
    max_requests: int
    window_ms: int
