from typing import Any, Dict, Optional, Sequence

import openai
from loguru import logger
from openai import OpenAI

from clip_core.completion.models import ChatMessage, CompletionOptions, CompletionResult, RateLimitState
from clip_core.completion.rate_limiter import RateLimiter
from clip_core.config_manager import CompletionConfig
from clip_core.errors import EmptyResponse, TransportError, UpstreamError


class CompletionClient:
    """
    Rate-limited client for an OpenAI-compatible ``/chat/completions`` endpoint.

    Every call is a single attempt (SDK retries are off). The limiter is consulted
    before any network traffic, and failed calls still count against the window.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.perplexity.ai",
        model_name: str = "llama-3.1-sonar-large-128k-online",
        rate_limiter: Optional[RateLimiter] = None,
        timeout_seconds: float = 30.0,
    ):
        if not api_key:
            raise ValueError("API key is required")

        self.model_name = model_name
        self.rate_limiter = rate_limiter or RateLimiter()
        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )

    @classmethod
    def from_config(cls, cfg: CompletionConfig) -> "CompletionClient":
        return cls(
            api_key=cfg.api_key or "",
            base_url=cfg.base_url,
            model_name=cfg.model_name,
            rate_limiter=RateLimiter(max_requests=cfg.max_requests, window_ms=cfg.window_ms),
            timeout_seconds=cfg.timeout_seconds,
        )

    def complete(
        self, messages: Sequence[ChatMessage], options: Optional[CompletionOptions] = None
    ) -> CompletionResult:
        """
        Sends one chat-completions request.

        Raises:
            ValueError: ``messages`` is empty.
            RateLimitExceeded: the current window is exhausted (no request is sent).
            UpstreamError: the provider answered with a non-2xx status or an unusable body
                (status 0 when no HTTP status applies).
            TransportError: no response was received (connection failure, timeout).
            EmptyResponse: the first choice carries no content.
        """
        if not messages:
            raise ValueError("At least one message is required")

        options = options or CompletionOptions()
        self.rate_limiter.check_and_consume()

        request: Dict[str, Any] = {
            "model": options.model or self.model_name,
            "messages": [m.model_dump() for m in messages],
        }
        if options.temperature is not None:
            request["temperature"] = options.temperature
        if options.max_tokens is not None:
            request["max_tokens"] = options.max_tokens
        if options.top_p is not None:
            request["top_p"] = options.top_p
        if options.extra:
            request["extra_body"] = options.extra

        try:
            resp = self.client.chat.completions.create(**request)
        except openai.APIStatusError as e:
            logger.error(f"Completion API returned {e.status_code}")
            raise UpstreamError(e.status_code, e.body) from e
        except openai.APIConnectionError as e:
            logger.error(f"Completion API unreachable: {e}")
            raise TransportError(e) from e
        except openai.APIResponseValidationError as e:
            logger.error(f"Completion API returned an unreadable body ({e.status_code})")
            raise UpstreamError(e.status_code, e.body) from e
        except openai.APIError as e:
            logger.error(f"Completion API error: {e}")
            raise UpstreamError(0, e.body) from e

        content = None
        if resp.choices:
            message = resp.choices[0].message
            content = message.content if message else None
        if not content:
            raise EmptyResponse()

        usage = resp.usage.model_dump() if resp.usage else {}
        logger.debug(f"Completion OK ({usage.get('total_tokens', '?')} tokens)")
        return CompletionResult(text=content, usage=usage)

    def rate_limit_status(self) -> RateLimitState:
        return self.rate_limiter.status()

    def reset_rate_limit(self) -> None:
        self.rate_limiter.reset()
