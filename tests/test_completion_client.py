import httpx
import openai
import pytest
from openai.types.chat import ChatCompletion

from clip_core.completion.client import CompletionClient
from clip_core.completion.models import ChatMessage, CompletionOptions
from clip_core.completion.rate_limiter import RateLimiter
from clip_core.config_manager import CompletionConfig
from clip_core.errors import EmptyResponse, RateLimitExceeded, TransportError, UpstreamError

URL = "https://llm.example.com/chat/completions"


def make_completion(content, usage=None):
    return ChatCompletion.model_validate(
        {
            "id": "cmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "test-model",
            "choices": [
                {"index": 0, "finish_reason": "stop", "message": {"role": "assistant", "content": content}}
            ],
            "usage": usage or {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
        }
    )


@pytest.fixture
def mock_openai(mocker):
    return mocker.patch("clip_core.completion.client.OpenAI")


@pytest.fixture
def messages():
    return [
        ChatMessage(role="system", content="You are terse."),
        ChatMessage(role="user", content="Say hi."),
    ]


def test_complete_returns_text_and_usage(mock_openai, messages):
    mock_create = mock_openai.return_value.chat.completions.create
    mock_create.return_value = make_completion("hi")

    client = CompletionClient(api_key="pk-test", model_name="test-model")
    result = client.complete(messages, CompletionOptions(temperature=0.3, max_tokens=50))

    assert result.text == "hi"
    assert result.usage["total_tokens"] == 15

    kwargs = mock_create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["messages"] == [
        {"role": "system", "content": "You are terse."},
        {"role": "user", "content": "Say hi."},
    ]
    assert kwargs["temperature"] == 0.3
    assert kwargs["max_tokens"] == 50
    assert "extra_body" not in kwargs


def test_sdk_configured_without_retries(mock_openai):
    CompletionClient(api_key="pk-test", base_url="https://llm.example.com", timeout_seconds=12)
    mock_openai.assert_called_once_with(
        api_key="pk-test", base_url="https://llm.example.com", timeout=12, max_retries=0
    )


def test_provider_options_go_in_extra_body(mock_openai, messages):
    mock_create = mock_openai.return_value.chat.completions.create
    mock_create.return_value = make_completion("ok")

    client = CompletionClient(api_key="pk-test")
    client.complete(messages, CompletionOptions(model="other", extra={"search_recency_filter": "day"}))

    kwargs = mock_create.call_args.kwargs
    assert kwargs["model"] == "other"
    assert kwargs["extra_body"] == {"search_recency_filter": "day"}
    assert "temperature" not in kwargs


def test_empty_messages_rejected(mock_openai):
    client = CompletionClient(api_key="pk-test")
    with pytest.raises(ValueError):
        client.complete([])


def test_missing_api_key_rejected(mock_openai):
    with pytest.raises(ValueError):
        CompletionClient(api_key="")


def test_rate_limit_exhaustion_skips_network(mock_openai, messages):
    mock_create = mock_openai.return_value.chat.completions.create
    mock_create.return_value = make_completion("ok")

    client = CompletionClient(api_key="pk-test", rate_limiter=RateLimiter(max_requests=2))
    client.complete(messages)
    client.complete(messages)

    with pytest.raises(RateLimitExceeded):
        client.complete(messages)
    assert mock_create.call_count == 2


def test_http_error_becomes_upstream_error(mock_openai, messages):
    response = httpx.Response(503, request=httpx.Request("POST", URL))
    mock_openai.return_value.chat.completions.create.side_effect = openai.APIStatusError(
        "Service Unavailable", response=response, body={"error": "overloaded"}
    )

    client = CompletionClient(api_key="pk-test")
    with pytest.raises(UpstreamError) as exc_info:
        client.complete(messages)

    assert exc_info.value.status_code == 503
    assert exc_info.value.body == {"error": "overloaded"}


def test_unreadable_body_becomes_upstream_error(mock_openai, messages):
    response = httpx.Response(200, request=httpx.Request("POST", URL))
    mock_openai.return_value.chat.completions.create.side_effect = openai.APIResponseValidationError(
        response=response, body="<html>"
    )

    client = CompletionClient(api_key="pk-test")
    with pytest.raises(UpstreamError) as exc_info:
        client.complete(messages)

    assert exc_info.value.status_code == 200
    assert exc_info.value.body == "<html>"


def test_other_sdk_errors_become_upstream_error(mock_openai, messages):
    mock_openai.return_value.chat.completions.create.side_effect = openai.APIError(
        "stream ended early", request=httpx.Request("POST", URL), body=None
    )

    client = CompletionClient(api_key="pk-test")
    with pytest.raises(UpstreamError) as exc_info:
        client.complete(messages)

    assert exc_info.value.status_code == 0
    assert exc_info.value.code == "UPSTREAM_ERROR"


@pytest.mark.parametrize("error_cls", [openai.APIConnectionError, openai.APITimeoutError])
def test_no_response_becomes_transport_error(mock_openai, messages, error_cls):
    cause = error_cls(request=httpx.Request("POST", URL))
    mock_openai.return_value.chat.completions.create.side_effect = cause

    client = CompletionClient(api_key="pk-test")
    with pytest.raises(TransportError) as exc_info:
        client.complete(messages)
    assert exc_info.value.cause is cause


@pytest.mark.parametrize("content", [None, ""])
def test_missing_content_is_empty_response(mock_openai, messages, content):
    mock_openai.return_value.chat.completions.create.return_value = make_completion(content)

    client = CompletionClient(api_key="pk-test")
    with pytest.raises(EmptyResponse):
        client.complete(messages)


def test_failed_calls_still_count_against_quota(mock_openai, messages):
    mock_openai.return_value.chat.completions.create.side_effect = openai.APIConnectionError(
        request=httpx.Request("POST", URL)
    )
    client = CompletionClient(api_key="pk-test", rate_limiter=RateLimiter(max_requests=1))

    with pytest.raises(TransportError):
        client.complete(messages)
    with pytest.raises(RateLimitExceeded):
        client.complete(messages)


def test_from_config_wires_limiter(mock_openai):
    cfg = CompletionConfig(api_key="pk-cfg", max_requests=7, window_ms=1000, model_name="cfg-model")
    client = CompletionClient.from_config(cfg)

    status = client.rate_limit_status()
    assert status.max_requests == 7
    assert status.window_ms == 1000
    assert client.model_name == "cfg-model"


def test_reset_rate_limit(mock_openai, messages):
    mock_openai.return_value.chat.completions.create.return_value = make_completion("ok")
    client = CompletionClient(api_key="pk-test", rate_limiter=RateLimiter(max_requests=1))
    client.complete(messages)
    client.reset_rate_limit()
    client.complete(messages)
    assert client.rate_limit_status().requests_in_window == 1
