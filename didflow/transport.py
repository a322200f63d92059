"""
HTTP Transport for didflow.

Handles HTTP communication with an agent's REST API: auth key injection,
request/response logging and error parsing. Retries are opt-in and bounded.
"""

import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from didflow.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DidFlowError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    TransportError,
    ValidationError,
)
from didflow.logging import log_http_request, log_http_response


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    The default performs no retries, so a failed call surfaces immediately.
    """

    max_retries: int = 0
    backoff_factor: float = 2.0
    retry_on: list[int] = field(default_factory=lambda: [429, 500, 502, 503])
    respect_retry_after: bool = True
    max_backoff: float = 60.0  # Maximum backoff time in seconds
    jitter: float = 0.1  # Jitter factor (0.1 = ±10%)


class HTTPTransport:
    """
    HTTP transport layer for one agent.

    Handles:
    - The `apikey` header on every call
    - Optional bounded exponential backoff with jitter
    - Retry-After header respect for rate limiting
    - Error response parsing into typed exceptions
    """

    AUTH_HEADER = "apikey"

    def __init__(
        self,
        base_url: str,
        auth_key: str | None = None,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
    ) -> None:
        """
        Initialize HTTP transport.

        Args:
            base_url: Base URL of the agent API (e.g., "http://localhost:8080/cloud-agent")
            auth_key: Opaque key sent as the apikey header (optional)
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()

        headers = {"Content-Type": "application/json"}
        if auth_key:
            headers[self.AUTH_HEADER] = auth_key

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "HTTPTransport":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Make a request against the agent API.

        Args:
            method: HTTP method
            path: API path (e.g., "/connections")
            params: Query parameters
            body: JSON request body

        Returns:
            Parsed JSON response

        Raises:
            TransportError: On API or network errors
        """
        def make_request() -> httpx.Response:
            log_http_request(method, f"{self.base_url}{path}", dict(self._client.headers), body)
            return self._client.request(method, path, params=params, json=body)

        return self._execute_with_retry(make_request)

    def _execute_with_retry(
        self, request_fn: Callable[[], httpx.Response]
    ) -> dict[str, Any]:
        """
        Execute a request, retrying only as far as the retry config allows.

        Raises:
            TransportError: On non-retryable errors or after max retries
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                started = time.monotonic()
                response = request_fn()
                elapsed_ms = (time.monotonic() - started) * 1000

                if response.status_code < 400:
                    data = response.json() if response.content else {}
                    log_http_response(response.status_code, str(response.url), data, elapsed_ms)
                    return data

                log_http_response(response.status_code, str(response.url), None, elapsed_ms)
                error = self._parse_error_response(response)

                if not self._should_retry(response.status_code, attempt):
                    raise error

                last_error = error

                retry_after = response.headers.get("Retry-After")
                wait_time = self._get_backoff_time(attempt, retry_after)
                time.sleep(wait_time)

            except httpx.RequestError as e:
                if attempt >= self.retry_config.max_retries:
                    raise ServerError("CONNECTION_ERROR", str(e)) from e

                last_error = e
                wait_time = self._get_backoff_time(attempt, None)
                time.sleep(wait_time)

        if last_error:
            if isinstance(last_error, DidFlowError):
                raise last_error
            raise ServerError("MAX_RETRIES_EXCEEDED", str(last_error))

        raise ServerError("UNKNOWN_ERROR", "Request failed with no error details")

    def _should_retry(self, status_code: int, attempt: int) -> bool:
        """
        Determine if a request should be retried.

        Args:
            status_code: HTTP status code
            attempt: Current attempt number (0-indexed)

        Returns:
            True if the request should be retried
        """
        if attempt >= self.retry_config.max_retries:
            return False

        return status_code in self.retry_config.retry_on

    def _get_backoff_time(
        self, attempt: int, retry_after: str | None
    ) -> float:
        """
        Calculate backoff time for retry.

        Uses exponential backoff with jitter, respecting Retry-After header
        if present.
        """
        if retry_after and self.retry_config.respect_retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass  # Fall through to exponential backoff

        base_wait = self.retry_config.backoff_factor ** attempt

        jitter_range = base_wait * self.retry_config.jitter
        jitter = random.uniform(-jitter_range, jitter_range)
        wait_time = base_wait + jitter

        return min(wait_time, self.retry_config.max_backoff)

    def _parse_error_response(self, response: httpx.Response) -> TransportError:
        """
        Parse an error response into a typed exception.

        The agent answers errors as RFC 7807 problem documents
        ({"status", "type", "title", "detail", "instance"}); an
        {"error": {"code", "message"}} envelope is accepted as well.
        """
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        error = data.get("error") or {}
        code = error.get("code") or data.get("type") or data.get("title") or "UNKNOWN_ERROR"
        message = error.get("message") or data.get("detail") or f"HTTP {response.status_code}"
        request_id = data.get("meta", {}).get("requestId") or data.get("instance")

        status_code = response.status_code

        if status_code == 401:
            return AuthenticationError(code, message, request_id)
        elif status_code == 403:
            return AuthorizationError(code, message, request_id)
        elif status_code == 404:
            return NotFoundError(code, message, request_id)
        elif status_code == 409:
            return ConflictError(code, message, request_id)
        elif status_code == 429:
            retry_after_str = response.headers.get("Retry-After", "60")
            try:
                retry_after = int(retry_after_str)
            except ValueError:
                retry_after = 60
            return RateLimitedError(code, message, retry_after, request_id)
        elif status_code >= 500:
            return ServerError(code, message, request_id)
        else:
            return ValidationError(code, message, request_id)
