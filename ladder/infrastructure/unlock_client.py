"""Spoiler Unlock Client — httpx client for the seed generation API's unlock endpoints.

Invariants:
    - Satisfies core.repository_protocols.SpoilerUnlocker structurally
    - Requests are spaced by at least min_interval_ms (remote allows 20 req / 10 s)
    - Rate limits (429): backoff that respects Retry-After
    - Transient errors (5xx, connection, timeout): max_retries retries with exponential backoff
    - Client errors (4xx except 429) and undecodable bodies: immediate failure, no retry
    - All failures mapped to SpoilerUnlockError (core/errors.py)

Design Decisions:
    - unlock() = POST /seed/unlock then GET /seed/details: the unlocked log is
      returned so the caller can store it next to the match
    - ±25% jitter on backoff: prevents thundering herd when a whole session unlocks at once
    - API key sent as a query parameter, as the remote API expects
"""

import asyncio
import json
import logging
import random
import time

import httpx

from ladder.core.errors import ErrorContext, SpoilerUnlockError

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({500, 502, 503, 504})


class SpoilerUnlockClient:
    """Unlocks spoiler logs through the generation API with retry and throttling."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 10,
        min_interval_ms: int = 500,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
        )
        self.api_key = api_key
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.min_interval_ms = min_interval_ms
        self._throttle_lock = asyncio.Lock()
        self._last_request_at: float | None = None

    async def unlock(self, spoiler_ref: str) -> bytes:
        """Unlock the spoiler log of ``spoiler_ref`` and return it as JSON bytes."""
        context = ErrorContext(debug_info={"spoiler_ref": spoiler_ref})
        await self._request("POST", "/seed/unlock", spoiler_ref, context)
        response = await self._request("GET", "/seed/details", spoiler_ref, context)

        try:
            spoiler_log = response.json()["spoilerLog"]
        except (ValueError, KeyError, TypeError) as e:
            raise SpoilerUnlockError(
                f"unable to parse response: {e}", "decode_error", context=context,
            ) from e
        logger.info("Spoiler log unlocked", extra={"spoiler_ref": spoiler_ref})
        return json.dumps(spoiler_log).encode()

    @property
    def is_closed(self) -> bool:
        return self.client.is_closed

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(
        self, method: str, path: str, spoiler_ref: str, context: ErrorContext,
    ) -> httpx.Response:
        """Send one API request, retrying transient failures."""
        params = {"id": spoiler_ref, "key": self.api_key}
        for attempt in range(self.max_retries + 1):
            await self._throttle()
            try:
                response = await self.client.request(method, path, params=params)
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt, context)
                continue

            if response.status_code == 200:
                return response
            if response.status_code == 429:
                await self._handle_rate_limit(response, attempt, context)
                continue
            if response.status_code in _RETRYABLE_STATUS:
                await self._handle_transient_error(
                    f"got status code {response.status_code}", attempt, context,
                )
                continue
            raise SpoilerUnlockError(
                f"got status code {response.status_code}", "client_error",
                context=context,
            )

        # Unreachable: the handlers raise on the last attempt.
        raise SpoilerUnlockError("retries exhausted", "connection_error", context=context)

    async def _throttle(self) -> None:
        """Keep at least min_interval_ms between two requests of this client."""
        async with self._throttle_lock:
            now = time.monotonic()
            if self._last_request_at is not None:
                wait = self._last_request_at + self.min_interval_ms / 1000 - now
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_request_at = time.monotonic()

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext,
    ) -> None:
        """Handle rate limit response with retry or raise."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise SpoilerUnlockError(
                "Rate limit exceeded after retries",
                "rate_limit",
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: object, attempt: int, context: ErrorContext,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise SpoilerUnlockError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"Transient error, retry after {delay}ms: {e}",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return int(val) * 1000
        return None
