import pytest

from argenpulse.errors import NetworkError, UpstreamError
from argenpulse.models.client_config import ClientConfig
from argenpulse.models.outcome import FetchOutcome
from argenpulse.models.retry_state import RetryState
from argenpulse.retry import backoff_delay_ms, plan_next

CONFIG = ClientConfig(
    poll_interval_ms=60000,
    cache_ttl_ms=120000,
    max_retries=3,
    backoff_schedule_ms=(1000, 2000, 4000),
    request_timeout_ms=5000,
)

FAILED = FetchOutcome.from_error(NetworkError("boom"))


def test_backoff_delay_indexes_schedule() -> None:
    assert backoff_delay_ms(1, (1000, 2000, 4000)) == 1000
    assert backoff_delay_ms(3, (1000, 2000, 4000)) == 4000
    assert backoff_delay_ms(9, (1000, 2000, 4000)) == 4000
    assert backoff_delay_ms(0, (250,)) == 250


def test_backoff_delay_rejects_empty_schedule() -> None:
    with pytest.raises(ValueError):
        backoff_delay_ms(1, ())


def test_success_resets_to_poll_interval() -> None:
    decision = plan_next(FetchOutcome.success([1]), RetryState(2, 2000), CONFIG)
    assert decision.state == RetryState(0, 60000)
    assert decision.delay_ms == 60000
    assert not decision.exhausted


def test_failures_follow_schedule_until_exhausted() -> None:
    state = RetryState()
    delays = []
    exhausted = []
    for _ in range(4):
        decision = plan_next(FAILED, state, CONFIG)
        delays.append(decision.delay_ms)
        exhausted.append(decision.exhausted)
        state = decision.state
    assert delays == [1000, 2000, 60000, 1000]
    assert exhausted == [False, False, True, False]


def test_exhaustion_resets_attempt_counter() -> None:
    decision = plan_next(FAILED, RetryState(2, 2000), CONFIG)
    assert decision.exhausted
    assert decision.state == RetryState(0, 60000)


def test_plan_next_does_not_mutate_inputs() -> None:
    state = RetryState(1, 1000)
    plan_next(FAILED, state, CONFIG)
    assert state == RetryState(1, 1000)


def test_outcome_from_upstream_error_keeps_status() -> None:
    outcome = FetchOutcome.from_error(UpstreamError(502, "bad gateway"))
    assert not outcome.ok
    assert outcome.failure == "upstream"
    assert outcome.status_code == 502
    assert outcome.detail == "HTTP 502: bad gateway"


@pytest.mark.parametrize(
    "overrides",
    [
        {"poll_interval_ms": 0},
        {"cache_ttl_ms": -1},
        {"max_retries": -1},
        {"request_timeout_ms": 0},
        {"backoff_schedule_ms": ()},
        {"backoff_schedule_ms": (1000, -5)},
        {"exhaustion_policy": "explode"},
    ],
)
def test_client_config_rejects_invalid_values(overrides) -> None:
    values = dict(
        poll_interval_ms=1000,
        cache_ttl_ms=1000,
        max_retries=1,
        backoff_schedule_ms=(100,),
        request_timeout_ms=1000,
    )
    values.update(overrides)
    with pytest.raises(ValueError):
        ClientConfig(**values)


def test_client_config_stores_schedule_as_tuple() -> None:
    config = ClientConfig(1000, 0, 0, [100, 200], 1000)
    assert config.backoff_schedule_ms == (100, 200)
    assert config.poll_interval_s == 1.0
    assert config.exhaustion_policy == "resume"


def test_exhaustion_waits_for_rest_of_poll_interval() -> None:
    decision = plan_next(FAILED, RetryState(2, 2000), CONFIG, cycle_elapsed_ms=3000)
    assert decision.exhausted
    assert decision.delay_ms == 57000

    late = plan_next(FAILED, RetryState(2, 2000), CONFIG, cycle_elapsed_ms=75000)
    assert late.delay_ms == 0
