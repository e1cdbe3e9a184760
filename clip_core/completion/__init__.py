from clip_core.completion.client import CompletionClient
from clip_core.completion.models import ChatMessage, CompletionOptions, CompletionResult, RateLimitState
from clip_core.completion.rate_limiter import RateLimiter

__all__ = [
    "ChatMessage",
    "CompletionClient",
    "CompletionOptions",
    "CompletionResult",
    "RateLimitState",
    "RateLimiter",
]
