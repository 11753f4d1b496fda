import json

import httpx
import pytest
import respx

from limits_monitor import Configuration, TTLCache
from limits_monitor.errors import UpstreamError
from limits_monitor.providers.augment_provider import (
    CREDIT_INFO_ENDPOINT,
    AugmentProvider,
    parse_credit_info,
)

CONFIG = Configuration(augment_enabled=True, augment_access_token="aug-token-123456")


def _credit_info(remaining=10, total=100, included=100, is_low=True):
    return {
        "usage_units_remaining": remaining,
        "usage_units_total": total,
        "included_usage_units_per_billing_cycle": included,
        "current_billing_cycle_end_date_iso": "2026-11-01T00:00:00Z",
        "is_credit_balance_low": is_low,
        "display_info": {"plan_display_name": "Developer"},
    }


@pytest.fixture
def provider(cache: TTLCache) -> AugmentProvider:
    return AugmentProvider(cache)


@pytest.mark.asyncio
async def test_low_balance_is_a_warning(provider: AugmentProvider, clock):
    with respx.mock(assert_all_called=True) as mock_router:
        route = mock_router.post(CREDIT_INFO_ENDPOINT)

        def responder(request: httpx.Request) -> httpx.Response:
            assert request.headers["authorization"] == "Bearer aug-token-123456"
            assert json.loads(request.content) == {}
            return httpx.Response(200, json=_credit_info())

        route.mock(side_effect=responder)

        async with httpx.AsyncClient() as client:
            record = await provider.resolve(CONFIG, client)

    assert record.status == "warning"
    assert record.data.usage_used == 90
    assert record.data.usage_total == 100
    assert record.data.plan_name == "Developer"
    assert record.cached_at == int(clock())


@pytest.mark.asyncio
async def test_healthy_balance_is_ok(provider: AugmentProvider):
    with respx.mock() as mock_router:
        mock_router.post(CREDIT_INFO_ENDPOINT).mock(
            return_value=httpx.Response(200, json=_credit_info(remaining=60, is_low=False))
        )
        async with httpx.AsyncClient() as client:
            record = await provider.resolve(CONFIG, client)

    assert record.status == "ok"
    assert record.to_wire()["data"]["usageRemaining"] == 60


@pytest.mark.asyncio
async def test_remaining_below_ten_percent_warns_without_flag(provider: AugmentProvider):
    with respx.mock() as mock_router:
        mock_router.post(CREDIT_INFO_ENDPOINT).mock(
            return_value=httpx.Response(200, json=_credit_info(remaining=5, is_low=False))
        )
        async with httpx.AsyncClient() as client:
            record = await provider.resolve(CONFIG, client)

    assert record.status == "warning"


def test_included_units_replace_total():
    info = parse_credit_info(_credit_info(remaining=100, total=1000, included=400))

    assert info.usage_total == 400
    assert info.usage_used == 300


def test_missing_fields_default_to_zero():
    info = parse_credit_info({"usage_units_remaining": "oops", "display_info": []})

    assert info.usage_remaining == 0
    assert info.usage_total == 0
    assert info.plan_name == ""
    assert info.is_low is False


@pytest.mark.asyncio
async def test_missing_token_makes_no_call_and_is_not_cached(provider: AugmentProvider, cache):
    config = Configuration(augment_enabled=True)

    with respx.mock() as mock_router:
        async with httpx.AsyncClient() as client:
            record = await provider.resolve(config, client)
        assert not mock_router.calls

    assert record.status == "error"
    assert record.error == "Access token not configured"
    assert record.cached_at is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_auth_failure_is_cached_for_the_ttl(provider: AugmentProvider, clock):
    with respx.mock() as mock_router:
        route = mock_router.post(CREDIT_INFO_ENDPOINT).mock(
            return_value=httpx.Response(401, json={"error": {"message": "token expired"}})
        )
        async with httpx.AsyncClient() as client:
            first = await provider.resolve(CONFIG, client)
            clock.advance(120)
            second = await provider.resolve(CONFIG, client)

    assert first.status == "error"
    assert first.error == "HTTP 401: token expired"
    assert second is first
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_error_body_is_truncated(provider: AugmentProvider):
    with respx.mock() as mock_router:
        mock_router.post(CREDIT_INFO_ENDPOINT).mock(
            return_value=httpx.Response(502, text="x" * 1000)
        )
        async with httpx.AsyncClient() as client:
            record = await provider.resolve(CONFIG, client)

    assert record.error == "HTTP 502: " + "x" * 200


@pytest.mark.asyncio
async def test_non_2xx_raises_with_status_code(provider: AugmentProvider):
    with respx.mock() as mock_router:
        mock_router.post(CREDIT_INFO_ENDPOINT).mock(
            return_value=httpx.Response(503, json={"error": {"message": "maintenance"}})
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(UpstreamError) as excinfo:
                await provider._request(client, "POST", CREDIT_INFO_ENDPOINT)

    assert excinfo.value.status_code == 503
    assert str(excinfo.value) == "HTTP 503: maintenance"
    assert not hasattr(excinfo.value, "body")


@pytest.mark.asyncio
async def test_timeout_becomes_transport_error(provider: AugmentProvider):
    with respx.mock() as mock_router:
        mock_router.post(CREDIT_INFO_ENDPOINT).mock(side_effect=httpx.ConnectTimeout)
        async with httpx.AsyncClient() as client:
            record = await provider.resolve(CONFIG, client)

    assert record.status == "error"
    assert record.error.startswith("API error: request timed out")


@pytest.mark.asyncio
async def test_non_json_body_is_a_parse_error(provider: AugmentProvider):
    with respx.mock() as mock_router:
        mock_router.post(CREDIT_INFO_ENDPOINT).mock(
            return_value=httpx.Response(200, text="<html>maintenance</html>")
        )
        async with httpx.AsyncClient() as client:
            record = await provider.resolve(CONFIG, client)

    assert record.status == "error"
    assert record.error.startswith("Parse error")
    assert "maintenance" in record.error
