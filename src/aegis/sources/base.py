"""
HTTP plumbing shared by the wiki and statistics sources.

Requests go through ``request_with_retry``, which wraps an httpx call in a
tenacity retry loop. Only transient failures are retried: transport errors
(connection reset, timeout), 429 and the usual 5xx gateway codes. Anything
else (a 404, a rejected token) fails on the first attempt with a
SourceError.
"""

import logging
from typing import Any, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

logger = logging.getLogger(__name__)

# HTTP status codes that warrant a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

DEFAULT_RETRY_WAIT = wait_exponential(multiplier=1, min=1, max=10)


class SourceError(Exception):
    """A source request failed or returned an unusable response."""


class TransientSourceError(SourceError):
    """A failure worth retrying (network error, gateway error)."""


class RateLimitedError(TransientSourceError):
    """The remote side answered 429."""


def _check_status(response: httpx.Response, source: str) -> None:
    status = response.status_code
    if status == 429:
        retry_after = response.headers.get("Retry-After")
        logger.warning("%s rate limited us (429), Retry-After: %s", source, retry_after)
        raise RateLimitedError(f"{source} rate limited the request")
    if status in RETRYABLE_STATUS_CODES:
        logger.warning("%s returned %d, will retry", source, status)
        raise TransientSourceError(f"{source} returned HTTP {status}")
    if status >= 400:
        raise SourceError(f"{source} returned HTTP {status}")


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    source: str,
    max_attempts: int,
    params: Optional[dict[str, Any]] = None,
    json: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
    wait: Optional[wait_base] = None,
) -> httpx.Response:
    """
    Perform one logical request, retrying transient failures.

    Args:
        client: Shared async client
        method: HTTP method
        url: Absolute URL
        source: Name used in log lines and error messages
        max_attempts: Total attempts, including the first
        wait: Backoff strategy between attempts (exponential 1-10s by default)

    Returns:
        The successful response

    Raises:
        SourceError: On a non-retryable failure, or the last transient
            failure once attempts run out
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait or DEFAULT_RETRY_WAIT,
        retry=retry_if_exception_type(TransientSourceError),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            try:
                response = await client.request(method, url, params=params, json=json, headers=headers)
            except httpx.TransportError as e:
                logger.warning("Request to %s failed: %s", source, e)
                raise TransientSourceError(f"{source} request failed: {e}") from e
            _check_status(response, source)
            return response

    raise SourceError(f"{source} request was never attempted")


def decode_json(response: httpx.Response, source: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise SourceError(f"{source} returned invalid JSON") from e
