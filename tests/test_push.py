import pytest

from limits_monitor import ClaudePushPayload, ClaudePushReceiver
from limits_monitor.providers.claude_provider import ClaudeProvider

HEADERS = {
    "anthropic-ratelimit-unified-5h-utilization": "0.3",
    "anthropic-ratelimit-unified-7d-utilization": "0.6",
    "anthropic-ratelimit-unified-status": "allowed",
}


@pytest.fixture
def receiver(cache) -> ClaudePushReceiver:
    return ClaudePushReceiver(cache)


def test_payload_accepts_camel_case_keys():
    payload = ClaudePushPayload.model_validate(
        {"timestamp": 1760000000, "rateLimits": HEADERS}
    )

    assert payload.rate_limits == HEADERS
    assert payload.error is None


def test_push_is_stored_under_claude(receiver, cache, clock):
    result = receiver.ingest(ClaudePushPayload(timestamp=clock() - 5, rate_limits=HEADERS))

    assert result == "ok"
    record, found = cache.get("claude")
    assert found
    assert record.status == "ok"
    assert record.data.source == "push"
    assert record.data.utilization_7d == 60.0
    assert record.cached_at == int(clock() - 5)


def test_pushed_record_outlives_the_ttl(receiver, cache, clock):
    receiver.ingest(ClaudePushPayload(timestamp=clock(), rate_limits=HEADERS))

    clock.advance(1800 + 299)
    assert cache.get("claude")[1] is True

    clock.advance(1)
    assert cache.get("claude")[1] is False


def test_collector_error_is_stored(receiver, cache, clock):
    result = receiver.ingest(
        ClaudePushPayload(timestamp=clock(), error="claude CLI not logged in")
    )

    assert result == "error_stored"
    record, _ = cache.get("claude")
    assert record.status == "error"
    assert record.error == "claude CLI not logged in"


def test_push_without_headers_is_a_warning(receiver, cache, clock):
    receiver.ingest(ClaudePushPayload(timestamp=clock(), rate_limits={"x-request-id": "abc"}))

    record, _ = cache.get("claude")
    assert record.status == "warning"
    assert record.error == "Push contained no rate-limit headers"


def test_missing_timestamp_uses_receive_time(receiver, cache, clock):
    receiver.ingest(ClaudePushPayload(rate_limits=HEADERS))

    record, _ = cache.get("claude")
    assert record.cached_at == int(clock())


def test_later_push_replaces_earlier(receiver, cache, clock):
    receiver.ingest(ClaudePushPayload(timestamp=clock(), rate_limits=HEADERS))
    clock.advance(60)
    receiver.ingest(
        ClaudePushPayload(
            timestamp=clock(),
            rate_limits={"anthropic-ratelimit-unified-5h-utilization": "0.95"},
        )
    )

    record, _ = cache.get("claude")
    assert record.status == "warning"
    assert record.cached_at == int(clock())


@pytest.mark.asyncio
async def test_push_mode_resolution_serves_pushed_record(receiver, cache, make_store, clock):
    store = make_store(claude_enabled=True, claude_mode="push")
    provider = ClaudeProvider(cache, token_store=store)
    receiver.ingest(ClaudePushPayload(timestamp=clock(), rate_limits=HEADERS))

    record = await provider.resolve(store.get(), client=None)

    assert record.status == "ok"
    assert record.data.utilization_5h == 30.0
