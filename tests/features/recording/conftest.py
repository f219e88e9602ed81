"""BDD step definitions for queue time recording features."""

import pytest
from pytest_bdd import given, parsers, then, when
from tests.features.recording.steps_helpers import (
    InMemoryTimeSeriesStorage,
    RecordingScenarioContext,
    request_metrics,
    run_async,
    simulate_request,
    wrap_app,
)
from tests.helpers import FailingStorage, FakeClock


@pytest.fixture
def ctx() -> RecordingScenarioContext:
    """Fresh scenario context for each test."""
    return RecordingScenarioContext()


# === Given ===


@given("a shared in-memory store")
def given_in_memory_store(ctx: RecordingScenarioContext) -> None:
    ctx.storage = InMemoryTimeSeriesStorage()


@given("the store is unavailable")
def given_store_unavailable(ctx: RecordingScenarioContext) -> None:
    ctx.storage = FailingStorage()


@given(parsers.parse("the clock reads {now:d}"))
def given_clock(ctx: RecordingScenarioContext, now: int) -> None:
    ctx.clock = FakeClock(float(now))


@given("an ASGI app wrapped in queue time middleware")
def given_wrapped_app(ctx: RecordingScenarioContext) -> None:
    wrap_app(ctx)


@given("retention sweeping on every request")
def given_always_sweep(ctx: RecordingScenarioContext) -> None:
    """Force the sweeper's random draw below any probability."""
    ctx.sweep_probability_draw = 0.0


@given(parsers.parse("a queue time of {value:f} recorded {age:d} seconds ago"))
def given_queue_time(ctx: RecordingScenarioContext, value: float, age: int) -> None:
    run_async(ctx.storage.insert(ctx.config.queue_times_key, ctx.clock() - age, value))


@given(parsers.parse("{n:d} request arrivals {age:d} seconds ago"))
def given_arrivals(ctx: RecordingScenarioContext, n: int, age: int) -> None:
    arrived = ctx.clock() - age
    for _ in range(n):
        run_async(ctx.storage.insert(ctx.config.requests_key, arrived, arrived))


# === When ===


@when(parsers.parse('a request arrives with X-Request-Start "{header}"'))
def when_request_with_header(ctx: RecordingScenarioContext, header: str) -> None:
    run_async(simulate_request(ctx, headers={"X-Request-Start": header}))


@when("a request arrives without X-Request-Start")
def when_request_without_header(ctx: RecordingScenarioContext) -> None:
    run_async(simulate_request(ctx))


@when("the metrics endpoint is requested")
def when_metrics_requested(ctx: RecordingScenarioContext) -> None:
    run_async(request_metrics(ctx))


# === Then ===


@then(parsers.parse("the queue time series holds {value:f}"))
def then_series_holds(ctx: RecordingScenarioContext, value: float) -> None:
    assert run_async(ctx.storage.range_by_score(ctx.config.queue_times_key)) == [value]


@then("the queue time series is empty")
def then_series_empty(ctx: RecordingScenarioContext) -> None:
    assert run_async(ctx.storage.range_by_score(ctx.config.queue_times_key)) == []


@then(parsers.parse("{n:d} request arrival is recorded"))
def then_arrivals_recorded(ctx: RecordingScenarioContext, n: int) -> None:
    assert len(run_async(ctx.storage.range_by_score(ctx.config.requests_key))) == n


@then(parsers.parse("the response status is {code:d}"))
def then_status(ctx: RecordingScenarioContext, code: int) -> None:
    assert ctx.status_code == code


@then(parsers.parse('the "{label}" window average is {avg:f} over {count:d} samples'))
def then_window(ctx: RecordingScenarioContext, label: str, avg: float, count: int) -> None:
    assert ctx.body["queue_time_windows"][label] == {"avg": avg, "sample_count": count}


@then(parsers.parse("requests per minute is {count:d}"))
def then_requests_per_minute(ctx: RecordingScenarioContext, count: int) -> None:
    assert ctx.body["requests_per_minute"]["count"] == count


@then(parsers.parse('the queue time stats report "{message}"'))
def then_stats_error(ctx: RecordingScenarioContext, message: str) -> None:
    assert ctx.body["queue_time_ms"]["error"] == message
