import asyncio

import httpx
import pytest

from conftest import DOLAR_BODY, FakeClock, RecordingSleep, make_client, make_config

from argenpulse.errors import NoDataAvailable, SchemaValidationError
from argenpulse.models.retry_state import RetryState


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=DOLAR_BODY)


async def _wait_until(predicate, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.mark.asyncio
async def test_get_latest_before_first_success_raises() -> None:
    client = make_client(_ok)
    with pytest.raises(NoDataAvailable) as exc_info:
        client.get_latest()
    assert exc_info.value.feed == "dolar"
    assert not client.has_data()
    await client.aclose()


@pytest.mark.asyncio
async def test_stale_after_ttl_but_still_served() -> None:
    clock = FakeClock(0.0)
    client = make_client(_ok, clock=clock)

    outcome = await client.refresh_now()
    assert outcome is not None and outcome.ok

    clock.now = 60.0
    fresh = client.get_latest()
    assert fresh.is_stale is False
    assert fresh.source == "live"
    assert fresh.fetched_at == 0.0

    # poll 60s, ttl 120s: first success at t=0, read at t=121s.
    clock.now = 121.0
    stale = client.get_latest()
    assert stale.is_stale is True
    assert stale.source == "stale"
    assert stale.age_s == pytest.approx(121.0)
    assert [q.casa for q in stale.data] == ["oficial", "blue", "tarjeta"]
    await client.aclose()


@pytest.mark.asyncio
async def test_staleness_boundary_is_exclusive() -> None:
    clock = FakeClock(0.0)
    client = make_client(_ok, clock=clock, config=make_config(cache_ttl_ms=1000))
    await client.refresh_now()

    clock.now = 1.0
    assert client.get_latest().is_stale is False
    clock.now = 1.001
    assert client.get_latest().is_stale is True
    await client.aclose()


@pytest.mark.asyncio
async def test_failure_keeps_last_good_payload() -> None:
    responses = [httpx.Response(200, json=DOLAR_BODY), httpx.Response(503, text="down")]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    clock = FakeClock(10.0)
    client = make_client(handler, clock=clock)
    await client.refresh_now()

    clock.advance(30)
    outcome = await client.refresh_now()

    assert outcome.failure == "upstream"
    assert outcome.status_code == 503
    assert "HTTP 503" in outcome.detail
    latest = client.get_latest()
    assert latest.fetched_at == 10.0
    assert latest.data[0].casa == "oficial"

    status = client.status()
    assert status.consecutive_failures == 1
    assert status.last_failure == "upstream"
    assert status.fetch_count == 2
    await client.aclose()


@pytest.mark.asyncio
async def test_schema_mismatch_is_a_failed_fetch() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"moneda": "USD", "casa": "blue"}])

    client = make_client(handler)
    outcome = await client.refresh_now()

    assert outcome.failure == "schema"
    assert outcome.payload is None
    with pytest.raises(NoDataAvailable):
        client.get_latest()
    await client.aclose()


@pytest.mark.asyncio
async def test_invalid_json_is_schema_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    client = make_client(handler)
    outcome = await client.refresh_now()
    assert outcome.failure == "schema"
    assert "invalid JSON" in outcome.detail
    await client.aclose()


@pytest.mark.asyncio
async def test_connection_error_is_network_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    outcome = await client.refresh_now()
    assert outcome.failure == "network"
    assert "connection refused" in outcome.detail
    await client.aclose()


@pytest.mark.asyncio
async def test_slow_upstream_times_out_as_network_failure() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json=DOLAR_BODY)

    client = make_client(handler, config=make_config(request_timeout_ms=50))
    outcome = await client.refresh_now()
    assert outcome.failure == "network"
    assert not client.in_flight
    await client.aclose()


@pytest.mark.asyncio
async def test_transform_errors_become_schema_failures() -> None:
    def transform(quotes):
        return quotes[10]

    client = make_client(_ok, transform=transform)
    outcome = await client.refresh_now()
    assert outcome.failure == "schema"
    assert "IndexError" in outcome.detail
    await client.aclose()


@pytest.mark.asyncio
async def test_any_transform_exception_is_schema_failure() -> None:
    def transform(quotes):
        return quotes[0].no_such_field

    client = make_client(_ok, transform=transform)
    outcome = await client.refresh_now()
    assert outcome.failure == "schema"
    assert "AttributeError" in outcome.detail
    assert not client.in_flight
    with pytest.raises(NoDataAvailable):
        client.get_latest()
    await client.aclose()


@pytest.mark.asyncio
async def test_validator_error_propagates_as_schema() -> None:
    def validate(body):
        raise SchemaValidationError("nope")

    client = make_client(_ok, validate=validate)
    outcome = await client.refresh_now()
    assert outcome.failure == "schema"
    assert outcome.detail == "nope"
    await client.aclose()


@pytest.mark.asyncio
async def test_fetched_at_never_moves_backwards() -> None:
    clock = FakeClock(100.0)
    client = make_client(_ok, clock=clock)
    await client.refresh_now()

    clock.now = 90.0
    await client.refresh_now()

    assert client.get_latest().fetched_at == 100.0
    await client.aclose()


@pytest.mark.asyncio
async def test_success_resets_retry_state() -> None:
    responses = [httpx.Response(500), httpx.Response(500), httpx.Response(200, json=DOLAR_BODY)]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    client = make_client(handler)
    await client.refresh_now()
    await client.refresh_now()
    assert client.status().consecutive_failures == 2

    await client.refresh_now()
    assert client.retry_state == RetryState(0, 60000)
    assert client.status().consecutive_failures == 0
    await client.aclose()


@pytest.mark.asyncio
async def test_tick_during_fetch_is_skipped() -> None:
    release = asyncio.Event()
    calls = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        await release.wait()
        return httpx.Response(200, json=DOLAR_BODY)

    client = make_client(handler)
    first = asyncio.create_task(client.refresh_now())
    await _wait_until(lambda: client.in_flight)

    assert await client.refresh_now() is None
    assert client.status().skipped_ticks == 1

    release.set()
    outcome = await first
    assert outcome.ok
    assert calls == 1
    assert client.fetch_count == 1
    await client.aclose()


@pytest.mark.asyncio
async def test_stop_during_fetch_still_commits() -> None:
    release = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        await release.wait()
        return httpx.Response(200, json=DOLAR_BODY)

    client = make_client(handler)
    client.start()
    await _wait_until(lambda: client.in_flight)

    client.stop()
    assert client.in_flight
    release.set()
    await client.wait_stopped()

    assert client.get_latest().data[1].casa == "blue"
    assert not client.running
    assert client.fetch_count == 1
    await client.aclose()


@pytest.mark.asyncio
async def test_stop_during_manual_refresh_ends_loop_promptly() -> None:
    release = asyncio.Event()
    responses = [httpx.Response(200, json=DOLAR_BODY)]

    async def handler(request: httpx.Request) -> httpx.Response:
        if responses:
            return responses.pop(0)
        await release.wait()
        return httpx.Response(200, json=DOLAR_BODY)

    client = make_client(handler)
    client.start()
    await _wait_until(lambda: client.fetch_count == 1 and not client.in_flight)

    manual = asyncio.create_task(client.refresh_now())
    await _wait_until(lambda: client.in_flight)
    client.stop()
    await asyncio.wait_for(client.wait_stopped(), timeout=1)
    assert not client.running

    release.set()
    outcome = await manual
    assert outcome.ok
    await client.aclose()


@pytest.mark.asyncio
async def test_start_is_idempotent() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, json=DOLAR_BODY)

    parked = asyncio.Event()

    async def sleep(seconds: float) -> None:
        await parked.wait()

    client = make_client(handler, sleep=sleep)
    client.start()
    task = client._task
    client.start()
    assert client._task is task

    await _wait_until(lambda: client.fetch_count == 1)
    client.start()
    await asyncio.sleep(0)
    assert calls == 1
    assert client.running

    await client.aclose()
    assert not client.running


@pytest.mark.asyncio
async def test_restart_after_stop() -> None:
    parked = asyncio.Event()

    async def sleep(seconds: float) -> None:
        await parked.wait()

    client = make_client(_ok, sleep=sleep)
    client.start()
    await _wait_until(lambda: client.fetch_count == 1)
    client.stop()
    await client.wait_stopped()
    assert not client.running

    client.start()
    await _wait_until(lambda: client.fetch_count == 2)
    assert client.running
    await client.aclose()


@pytest.mark.asyncio
async def test_params_and_headers_are_sent() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=DOLAR_BODY)

    client = make_client(handler, params={"anio": 2025}, headers={"X-Test": "1"})
    await client.refresh_now()

    assert seen[0].url.params["anio"] == "2025"
    assert seen[0].headers["X-Test"] == "1"
    await client.aclose()


@pytest.mark.asyncio
async def test_shared_http_client_is_not_closed() -> None:
    http = httpx.AsyncClient(transport=httpx.MockTransport(_ok))
    client = make_client(_ok, http_client=http)
    await client.refresh_now()
    await client.aclose()

    assert not http.is_closed
    await http.aclose()


@pytest.mark.asyncio
async def test_failing_upstream_serves_last_value_as_stale() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls == 1:
            return httpx.Response(200, json={"value": 42})
        return httpx.Response(500)

    clock = FakeClock(0.0)
    sleep = RecordingSleep(clock, stop_after=3)
    client = make_client(handler, clock=clock, sleep=sleep, validate=lambda body: body)
    sleep.client = client

    client.start()
    await client.wait_stopped()
    assert sleep.delays == [60.0, 1.0, 2.0]

    clock.now = 121.0
    latest = client.get_latest()
    assert latest.data == {"value": 42}
    assert latest.is_stale is True
    assert latest.fetched_at == 0.0
    await client.aclose()
