"""Polling client for an unreliable upstream HTTP resource.

UpstreamResultsClient fetches a JSON resource on a fixed interval, keeps the
last good payload, retries failures following a backoff schedule and serves
whatever it has to readers without blocking them on network I/O.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Generic, Mapping, TypeVar

import httpx

from .errors import (
    FeedError,
    NetworkError,
    NoDataAvailable,
    SchemaValidationError,
    UpstreamError,
)
from .models.cache import CachedEntry, LatestView
from .models.client_config import ClientConfig
from .models.feed_status import FeedStatus
from .models.outcome import FetchOutcome
from .models.retry_state import RetryState
from .retry import plan_next

logger = logging.getLogger(__name__)

T = TypeVar("T")

Validator = Callable[[Any], Any]
Transform = Callable[[Any], Any]
Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]

_ERROR_SNIPPET_CHARS = 200


class UpstreamResultsClient(Generic[T]):
    """Best-effort, always-available view of a periodically refreshed resource.

    Args:
        name: Feed name, used in logs and errors.
        url: Absolute URL of the GET endpoint.
        config: Timing and retry settings.
        validate: Callable turning the decoded JSON body into the payload.
            Must raise SchemaValidationError when the body has the wrong shape.
        params: Query string parameters sent with every request.
        headers: Extra request headers.
        transform: Optional post-validation step (e.g. election processing).
        http_client: Shared httpx.AsyncClient. When omitted the client owns one
            and closes it in aclose().
        transport: httpx transport for the owned client (tests use MockTransport).
        clock: Wall-clock source in seconds, used for fetched_at and staleness.
        sleep: Coroutine used to wait between polls.
    """

    def __init__(
        self,
        name: str,
        url: str,
        config: ClientConfig,
        validate: Validator,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        transform: Transform | None = None,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = time.time,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.name = name
        self.url = url
        self.config = config
        self._validate = validate
        self._transform = transform
        self._params = dict(params or {})
        self._clock = clock
        self._sleep = sleep

        self._owns_http = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(config.request_timeout_s),
                headers=dict(headers or {}),
                transport=transport,
                follow_redirects=True,
            )
            self._headers: dict[str, str] = {}
        else:
            self._headers = dict(headers or {})
        self._http = http_client

        self._entry: CachedEntry[T] | None = None
        self._retry = RetryState()
        self._cycle_started_at = 0.0
        self._in_flight = False
        self._fetch_owner: asyncio.Task | None = None
        self._running = False
        self._task: asyncio.Task | None = None
        self._cancelled_task: asyncio.Task | None = None

        self._fetch_count = 0
        self._skipped_ticks = 0
        self._consecutive_failures = 0
        self._last_failure: FetchOutcome | None = None
        self._last_attempt_at: float | None = None
        self._next_poll_at: float | None = None

    # Reads

    def get_latest(self) -> LatestView[T]:
        """Return the cached payload without touching the network.

        Raises:
            NoDataAvailable: No fetch has succeeded yet.
        """
        entry = self._entry
        if entry is None:
            raise NoDataAvailable(self.name)
        age_s = max(0.0, self._clock() - entry.fetched_at)
        return LatestView(
            data=entry.payload,
            is_stale=(age_s * 1000.0) > self.config.cache_ttl_ms,
            fetched_at=entry.fetched_at,
            age_s=age_s,
        )

    def has_data(self) -> bool:
        return self._entry is not None

    @property
    def running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def retry_state(self) -> RetryState:
        return self._retry

    @property
    def fetch_count(self) -> int:
        return self._fetch_count

    def status(self) -> FeedStatus:
        entry = self._entry
        is_stale = False
        if entry is not None:
            age_ms = (self._clock() - entry.fetched_at) * 1000.0
            is_stale = age_ms > self.config.cache_ttl_ms
        failure = self._last_failure
        return FeedStatus(
            name=self.name,
            running=self.running,
            in_flight=self._in_flight,
            has_data=entry is not None,
            fetched_at=entry.fetched_at if entry else None,
            is_stale=is_stale,
            attempt=self._retry.attempt,
            consecutive_failures=self._consecutive_failures,
            fetch_count=self._fetch_count,
            skipped_ticks=self._skipped_ticks,
            last_failure=failure.failure if failure else None,
            last_failure_detail=failure.detail if failure else None,
            last_attempt_at=self._last_attempt_at,
            next_poll_at=self._next_poll_at,
        )

    # Lifecycle

    def start(self) -> None:
        """Start the poll loop on the running event loop. No-op if running."""
        if self._task is not None and not self._task.done():
            # A loop stopped mid-fetch has not exited yet; keep using it.
            self._running = True
            return
        self._running = True
        self._task = asyncio.create_task(self._run(), name=f"feed:{self.name}")

    def stop(self) -> None:
        """Stop scheduling polls.

        A fetch already in flight is left to finish and its result is still
        committed; the loop exits right after it.
        """
        self._running = False
        task = self._task
        if task is None or task.done():
            return
        if not self._in_flight or self._fetch_owner is not task:
            task.cancel()
            self._cancelled_task = task
            self._task = None

    async def wait_stopped(self) -> None:
        """Wait for the poll loop to exit after stop()."""
        tasks = [t for t in (self._task, self._cancelled_task) if t is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._cancelled_task = None

    async def aclose(self) -> None:
        self.stop()
        await self.wait_stopped()
        if self._owns_http:
            await self._http.aclose()

    async def refresh_now(self) -> FetchOutcome[T] | None:
        """Fetch once outside the schedule. Returns None if a fetch is in flight."""
        return await self._tick()

    # Poll loop

    async def _run(self) -> None:
        logger.info(
            "Starting feed %s poll loop (interval=%sms, ttl=%sms)",
            self.name,
            self.config.poll_interval_ms,
            self.config.cache_ttl_ms,
        )
        try:
            while self._running:
                delay_ms = self.config.poll_interval_ms
                if self._retry.attempt == 0:
                    self._cycle_started_at = self._clock()
                try:
                    outcome = await self._tick()
                    if outcome is not None:
                        delay_ms = self._plan(outcome)
                except Exception:
                    logger.exception("Feed %s poll loop error", self.name)
                if not self._running:
                    break
                self._next_poll_at = self._clock() + delay_ms / 1000.0
                await self._sleep(delay_ms / 1000.0)
        finally:
            self._next_poll_at = None
            logger.info("Feed %s poll loop stopped", self.name)

    def _plan(self, outcome: FetchOutcome[T]) -> int:
        elapsed_ms = max(0, round((self._clock() - self._cycle_started_at) * 1000))
        decision = plan_next(outcome, self._retry, self.config, elapsed_ms)
        self._retry = decision.state
        if outcome.ok:
            return decision.delay_ms
        if decision.exhausted:
            if self.config.exhaustion_policy == "halt":
                logger.error(
                    "Feed %s: %d attempts failed, halting poll loop",
                    self.name,
                    self.config.max_retries,
                )
                self._running = False
            else:
                logger.warning(
                    "Feed %s: retries exhausted, next poll in %dms",
                    self.name,
                    decision.delay_ms,
                )
            return decision.delay_ms
        logger.info(
            "Feed %s: retry %d/%d in %dms",
            self.name,
            decision.state.attempt,
            self.config.max_retries,
            decision.delay_ms,
        )
        return decision.delay_ms

    async def _tick(self) -> FetchOutcome[T] | None:
        if self._in_flight:
            self._skipped_ticks += 1
            logger.debug("Feed %s: fetch already in flight, skipping tick", self.name)
            return None
        self._in_flight = True
        self._fetch_owner = asyncio.current_task()
        self._fetch_count += 1
        self._last_attempt_at = self._clock()
        try:
            outcome = await self._fetch()
        finally:
            self._in_flight = False
            self._fetch_owner = None
        self._commit(outcome)
        return outcome

    def _commit(self, outcome: FetchOutcome[T]) -> None:
        if outcome.ok:
            now = self._clock()
            previous = self._entry
            if previous is not None and now < previous.fetched_at:
                now = previous.fetched_at
            self._entry = CachedEntry(payload=outcome.payload, fetched_at=now)
            self._retry = RetryState(0, self.config.poll_interval_ms)
            self._consecutive_failures = 0
            logger.debug("Feed %s: cache updated", self.name)
            return
        self._consecutive_failures += 1
        self._last_failure = outcome
        logger.warning(
            "Feed %s fetch failed (%s): %s",
            self.name,
            outcome.failure,
            outcome.detail,
        )

    async def _fetch(self) -> FetchOutcome[T]:
        timeout_s = self.config.request_timeout_s
        try:
            payload = await asyncio.wait_for(self._request(), timeout=timeout_s)
        except asyncio.TimeoutError:
            return FetchOutcome.from_error(
                NetworkError(f"timed out after {self.config.request_timeout_ms}ms")
            )
        except FeedError as exc:
            return FetchOutcome.from_error(exc)
        return FetchOutcome.success(payload)

    async def _request(self) -> T:
        try:
            resp = await self._http.get(
                self.url,
                params=self._params or None,
                headers=self._headers or None,
                timeout=self.config.request_timeout_s,
            )
        except httpx.TimeoutException as exc:
            raise NetworkError(f"timeout: {exc}") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"{type(exc).__name__}: {exc}") from exc

        if not resp.is_success:
            snippet = resp.text[:_ERROR_SNIPPET_CHARS].replace("\n", " ")
            raise UpstreamError(resp.status_code, snippet)

        try:
            body = resp.json()
        except ValueError as exc:
            raise SchemaValidationError(f"invalid JSON: {exc}") from exc

        data = self._validate(body)
        if self._transform is None:
            return data
        try:
            return self._transform(data)
        except Exception as exc:
            raise SchemaValidationError(
                f"transform failed: {type(exc).__name__}: {exc}"
            ) from exc


__all__ = ["UpstreamResultsClient"]
