"""
Async HTTP transport shared by the GitHub and PowerDNS-Admin clients.

Wraps an ``httpx.AsyncClient`` with static credential headers, retries with
exponential backoff and conversion of error responses into the typed
``APIError`` family.
"""

import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from suffixbot.exceptions import (
    APIError,
    APIValidationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RateLimitedError,
    ServerError,
)
from suffixbot.logging import log_http_request, log_http_response

_STATUS_ERRORS: dict[int, type[APIError]] = {
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
    409: ConflictError,
}

_DEFAULT_RATE_LIMIT_WAIT = 60


@dataclass
class RetryConfig:
    """When and how long to wait before repeating a failed request."""

    max_retries: int = 3
    backoff_factor: float = 2.0
    retry_on: list[int] = field(default_factory=lambda: [429, 500, 502, 503])
    respect_retry_after: bool = True
    max_backoff: float = 60.0  # seconds
    jitter: float = 0.1  # fraction of the base wait, applied both ways


class AsyncHTTPTransport:
    """
    JSON-over-HTTP transport with retries.

    Retries cover the status codes in ``RetryConfig.retry_on`` and
    connection-level failures (``httpx.RequestError``). A server-supplied
    ``Retry-After`` in seconds overrides the computed backoff.
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            base_url: API root, e.g. ``https://api.github.com``
            headers: Sent with every request (credentials go here)
            timeout: Per-request timeout in seconds
            retry_config: Retry policy (default: ``RetryConfig()``)
            client: Pre-built httpx client; tests pass one with a MockTransport
        """
        self.base_url = base_url.rstrip("/")
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, headers=self.headers
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | list[Any] | None = None,
    ) -> Any:
        """
        Send a request, retrying transient failures.

        Args:
            method: HTTP verb
            path: Path relative to ``base_url``
            params: Query string parameters
            body: JSON payload

        Returns:
            Decoded JSON body, ``{}`` when the response has none

        Raises:
            APIError: For error responses, once retries are used up
        """
        url = f"{self.base_url}{path}"
        attempts = self.retry_config.max_retries + 1

        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            log_http_request(
                method, url, headers=self.headers, body=body if isinstance(body, dict) else None
            )
            started = time.monotonic()
            try:
                response = await self._client.request(
                    method, path, params=params, json=body, headers=self.headers
                )
            except httpx.RequestError as e:
                if last_attempt:
                    raise ServerError("CONNECTION_ERROR", str(e) or type(e).__name__) from e
                await asyncio.sleep(self._get_backoff_time(attempt, None))
                continue

            elapsed_ms = (time.monotonic() - started) * 1000
            if response.status_code < 400:
                data = self._decode(response)
                log_http_response(
                    response.status_code,
                    str(response.request.url),
                    body=data if isinstance(data, dict) else None,
                    elapsed_ms=elapsed_ms,
                )
                return data

            log_http_response(response.status_code, str(response.request.url), elapsed_ms=elapsed_ms)
            if not self._should_retry(response.status_code, attempt):
                raise self._parse_error_response(response)
            await asyncio.sleep(
                self._get_backoff_time(attempt, response.headers.get("Retry-After"))
            )

        # Unreachable: the final attempt always returns or raises.
        raise ServerError("MAX_RETRIES_EXCEEDED", f"{method} {url} failed after {attempts} attempts")

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    def _should_retry(self, status_code: int, attempt: int) -> bool:
        """True for a retryable status while ``attempt`` (0-based) has retries left."""
        return (
            attempt < self.retry_config.max_retries
            and status_code in self.retry_config.retry_on
        )

    def _get_backoff_time(self, attempt: int, retry_after: str | None) -> float:
        """
        Seconds to wait before the next attempt.

        A numeric ``Retry-After`` wins when respected; otherwise
        ``backoff_factor ** attempt`` with jitter, capped at ``max_backoff``.
        """
        policy = self.retry_config
        if retry_after and policy.respect_retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass  # HTTP-date form is not supported

        base = policy.backoff_factor ** attempt
        spread = base * policy.jitter
        return min(base + random.uniform(-spread, spread), policy.max_backoff)

    @staticmethod
    def _error_fields(response: httpx.Response) -> tuple[str, str]:
        """
        ``(code, message)`` of an error body.

        GitHub answers ``{"message": ...}``, PowerDNS ``{"error": "..."}``;
        some proxies nest ``{"error": {"code", "message"}}``.
        """
        fallback = f"HTTP {response.status_code}"
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            return f"HTTP_{response.status_code}", fallback

        error = data.get("error")
        if isinstance(error, dict):
            return error.get("code", "UNKNOWN_ERROR"), error.get("message", fallback)
        return f"HTTP_{response.status_code}", data.get("message") or error or fallback

    def _parse_error_response(self, response: httpx.Response) -> APIError:
        """Map an error response onto the matching ``APIError`` subclass."""
        status = response.status_code
        code, message = self._error_fields(response)

        if status == 429:
            try:
                retry_after = int(response.headers.get("Retry-After", _DEFAULT_RATE_LIMIT_WAIT))
            except ValueError:
                retry_after = _DEFAULT_RATE_LIMIT_WAIT
            return RateLimitedError(code, message, retry_after, status)
        if status >= 500:
            return ServerError(code, message, status)
        return _STATUS_ERRORS.get(status, APIValidationError)(code, message, status)
