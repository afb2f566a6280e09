import httpx
import pytest
from litellm.exceptions import (
    AuthenticationError,
    BadRequestError,
    RateLimitError,
    ServiceUnavailableError,
    Timeout,
)

from provider_router import Outcome
from provider_router.error_handler import (
    AUTHENTICATION,
    INVALID_REQUEST,
    RATE_LIMIT,
    SERVER_ERROR,
    TIMEOUT,
    UNKNOWN,
    classify_error,
    extract_retry_after,
)
from provider_router.errors import (
    CapabilityUnknownError,
    NoAdmissibleProviderError,
    ProviderNotFoundError,
    RoutingError,
    mask_credential,
)


def _status_error(status: int, headers=None) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.example.com/v1/chat/completions")
    response = httpx.Response(status, headers=headers, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


@pytest.mark.parametrize(
    "error,expected",
    [
        (RateLimitError(message="slow down", llm_provider="groq", model="llama"), RATE_LIMIT),
        (AuthenticationError(message="bad key", llm_provider="openai", model="gpt-4o"), AUTHENTICATION),
        (BadRequestError(message="bad input", model="gpt-4o", llm_provider="openai"), INVALID_REQUEST),
        (ServiceUnavailableError(message="down", llm_provider="openai", model="gpt-4o"), SERVER_ERROR),
        (Timeout(message="took too long", model="gpt-4o", llm_provider="openai"), TIMEOUT),
        (_status_error(429), RATE_LIMIT),
        (_status_error(401), AUTHENTICATION),
        (_status_error(404), INVALID_REQUEST),
        (_status_error(503), SERVER_ERROR),
        (httpx.ReadTimeout("read timed out"), TIMEOUT),
        (httpx.ConnectError("refused"), SERVER_ERROR),
        (TimeoutError(), TIMEOUT),
        (RuntimeError("boom"), UNKNOWN),
    ],
)
def test_classify_error(error, expected) -> None:
    assert classify_error(error).error_type == expected


def test_retry_after_header_wins() -> None:
    error = _status_error(429, headers={"Retry-After": "42"})

    classified = classify_error(error)

    assert classified.is_rate_limit
    assert classified.retry_after == 42.0
    assert classified.status_code == 429


@pytest.mark.parametrize(
    "message,expected",
    [
        ("Rate limit exceeded, retry after 30 seconds", 30.0),
        ("Please wait 12 seconds before retrying", 12.0),
        ('{"retryDelay": "7s"}', 7.0),
        ("quota exceeded", None),
    ],
)
def test_retry_after_from_message(message, expected) -> None:
    assert extract_retry_after(RuntimeError(message)) == expected


def test_outcome_from_exception() -> None:
    outcome = Outcome.from_exception("p1", "gpt-4o", _status_error(500), latency=1.5)

    assert outcome.success is False
    assert outcome.latency == 1.5
    assert outcome.error.error_type == SERVER_ERROR
    assert outcome.error.status_code == 500


def test_mask_credential() -> None:
    assert mask_credential("sk-live-abcdef123456") == "...3456"
    assert mask_credential("abc") == "****"
    assert mask_credential(None) == "<none>"


def test_error_taxonomy() -> None:
    unknown = CapabilityUnknownError("x")
    blocked = NoAdmissibleProviderError("x", {"p1": "status error"})
    missing = ProviderNotFoundError("ghost")

    assert isinstance(unknown, RoutingError)
    assert isinstance(blocked, RoutingError)
    assert str(unknown) == "capability not found: x"
    assert "p1: status error" in str(blocked)
    assert isinstance(missing, KeyError)
    assert str(missing) == "provider not found: ghost"
