# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Classification of transport errors reported back into the router.

The router never sees the transport call itself, only the exception a caller
hands to ``Outcome.from_exception``. Classification decides whether a failure
rate-limits the provider or only counts towards its error threshold.
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx
from litellm.exceptions import (
    APIConnectionError,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    NotFoundError,
    RateLimitError,
    ServiceUnavailableError,
    Timeout,
)

RATE_LIMIT = "rate_limit"
AUTHENTICATION = "authentication"
INVALID_REQUEST = "invalid_request"
SERVER_ERROR = "server_error"
TIMEOUT = "timeout"
UNKNOWN = "unknown"

_RETRY_PATTERNS = [
    r"retry_delay.*?(\d+)",
    r"retrydelay.*?(\d+)s",
    r"retry after\s*(\d+)",
    r"wait.*?(\d+)\s*seconds?",
]


@dataclass
class ClassifiedError:
    """A transport exception reduced to what the router acts on."""

    error_type: str
    original_exception: Optional[BaseException] = None
    status_code: Optional[int] = None
    retry_after: Optional[float] = None

    @property
    def is_rate_limit(self) -> bool:
        return self.error_type == RATE_LIMIT

    def __str__(self) -> str:
        return f"{self.error_type}: {self.original_exception}"


def is_rate_limit_error(e: BaseException) -> bool:
    """Checks if the exception is a rate limit error."""
    if isinstance(e, RateLimitError):
        return True
    return isinstance(e, httpx.HTTPStatusError) and e.response.status_code == 429


def is_server_error(e: BaseException) -> bool:
    """Checks if the exception is a temporary server-side error."""
    if isinstance(e, (ServiceUnavailableError, InternalServerError, APIConnectionError)):
        return True
    if isinstance(e, httpx.HTTPStatusError):
        return e.response.status_code >= 500
    return isinstance(e, httpx.TransportError)


def is_unrecoverable_error(e: BaseException) -> bool:
    """
    Checks if the exception is a non-retriable client-side error.
    These are errors that will not resolve on their own.
    """
    if isinstance(e, (BadRequestError, AuthenticationError, NotFoundError)):
        return True
    if isinstance(e, httpx.HTTPStatusError):
        return e.response.status_code in (400, 401, 403, 404)
    return False


def _headers_of(e: BaseException) -> Optional[Mapping[str, Any]]:
    response = getattr(e, "response", None)
    headers = getattr(response, "headers", None)
    return headers if headers is not None else None


def extract_retry_after(e: BaseException) -> Optional[float]:
    """
    Find how long the provider asked us to wait, in seconds.

    Looks at the ``Retry-After`` header first, then at the error message.
    """
    headers = _headers_of(e)
    if headers:
        value = headers.get("retry-after") or headers.get("Retry-After")
        if value is not None:
            try:
                return float(value)
            except (TypeError, ValueError):
                pass

    error_str = str(e).lower()
    for pattern in _RETRY_PATTERNS:
        match = re.search(pattern, error_str, re.IGNORECASE)
        if match:
            try:
                return float(match.group(1))
            except (ValueError, IndexError):
                continue
    return None


def _status_code_of(e: BaseException) -> Optional[int]:
    status = getattr(e, "status_code", None)
    if isinstance(status, int):
        return status
    response = getattr(e, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def classify_error(e: BaseException) -> ClassifiedError:
    """Classify a transport exception for the usage tracker."""
    status_code = _status_code_of(e)

    # litellm's Timeout derives from its connection error, check it first
    if isinstance(e, (Timeout, httpx.TimeoutException, TimeoutError)):
        return ClassifiedError(TIMEOUT, e, status_code)
    if is_rate_limit_error(e):
        return ClassifiedError(RATE_LIMIT, e, status_code or 429, extract_retry_after(e))
    if isinstance(e, AuthenticationError) or status_code in (401, 403):
        return ClassifiedError(AUTHENTICATION, e, status_code)
    if is_unrecoverable_error(e):
        return ClassifiedError(INVALID_REQUEST, e, status_code)
    if is_server_error(e):
        return ClassifiedError(SERVER_ERROR, e, status_code)
    return ClassifiedError(UNKNOWN, e, status_code)
