from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter

from pricetag.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

    from httpx._types import (
        HeaderTypes,
        QueryParamTypes,
        RequestData,
        RequestFiles,
        TimeoutTypes,
        URLTypes,
    )
    from httpx_retries import Retry

__all__ = [
    "RateGate",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
]

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    data: RequestData | None
    files: RequestFiles | None
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport


class RateGate:
    """Admission gate for one rate-limited endpoint family.

    Admissions are spaced at least ``per_seconds / max_calls`` apart (a leaky
    bucket of capacity one), so no window of ``per_seconds`` admits more than
    ``max_calls`` requests. At most ``max_calls`` requests are in flight.
    """

    def __init__(self, ratelimit: RateLimit) -> None:
        self.ratelimit = ratelimit
        self._limiter = AsyncLimiter(1, ratelimit.interval)
        self._in_flight = asyncio.Semaphore(ratelimit.max_calls)

    async def __aenter__(self) -> None:
        await self._in_flight.acquire()
        try:
            await self._limiter.acquire()
        except BaseException:
            self._in_flight.release()
            raise

    async def __aexit__(self, *exc: object) -> None:
        self._in_flight.release()


class ResilientClient:
    """``httpx.AsyncClient`` with an admission gate and a bounded retry loop.

    Every attempt, retries included, passes through the gate. Whether an
    attempt is retried, and how long to wait, is decided by the
    ``httpx_retries.Retry`` built from the policy: its allowed methods,
    status forcelist, retryable exceptions and backoff. Once it is exhausted
    the last response is returned (or the last transport error raised) for
    the caller to classify.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._gate: RateGate | None = RateGate(config.ratelimit) if config.ratelimit else None

        headers = dict(config.default_headers) if config.default_headers else None
        client_kwargs: AsyncClientOptions = {"timeout": config.timeout_seconds}
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if headers is not None:
            client_kwargs["headers"] = headers
        if transport is not None:
            client_kwargs["transport"] = transport

        self._client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        async def do_request() -> httpx.Response:
            return await self._client.request(method, url, **kwargs)

        return await self._send_with_retries(method, url, do_request)

    async def post(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def patch(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def _send_with_retries(
        self,
        method: str,
        url: URLTypes,
        func: Callable[[], Awaitable[httpx.Response]],
    ) -> httpx.Response:
        retry = self.config.retry.build()
        while True:
            try:
                response = await self._send(func)
            except retry.retryable_exceptions as exc:
                if not _can_retry(retry, method):
                    raise
                delay = retry.backoff_strategy()
                log.warning(
                    "%s %s %s failed (%s); retry %s/%s in %.2fs",
                    self.config.name,
                    method,
                    url,
                    type(exc).__name__,
                    retry.attempts_made + 1,
                    retry.total,
                    delay,
                )
            else:
                retryable = retry.is_retryable_status_code(response.status_code)
                if not retryable or not _can_retry(retry, method):
                    return response
                delay = _retry_delay(retry, response)
                log.warning(
                    "%s %s %s returned %s; retry %s/%s in %.2fs",
                    self.config.name,
                    method,
                    url,
                    response.status_code,
                    retry.attempts_made + 1,
                    retry.total,
                    delay,
                )
                await response.aclose()
            await asyncio.sleep(delay)
            retry = retry.increment()

    async def _send(self, func: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        if self._gate is None:
            return await func()
        async with self._gate:
            return await func()


def _can_retry(retry: Retry, method: str) -> bool:
    return retry.is_retryable_method(method) and not retry.is_exhausted()


def _retry_delay(retry: Retry, response: httpx.Response) -> float:
    """Backoff for the next attempt, raised to the server's ``Retry-After`` when given."""
    delay = retry.backoff_strategy()
    retry_after = response.headers.get("Retry-After", "").strip()
    if retry.respect_retry_after_header and retry_after:
        try:
            delay = max(delay, retry.parse_retry_after(retry_after))
        except ValueError:
            log.warning("Ignoring malformed Retry-After header %r", retry_after)
    return min(delay, retry.max_backoff_wait)
