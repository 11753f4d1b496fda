import httpx
import pytest
import respx

from limits_monitor import Configuration, TTLCache
from limits_monitor.providers.zai_provider import (
    QUOTA_LIMIT_ENDPOINT,
    SUBSCRIPTION_ENDPOINT,
    ZaiProvider,
    parse_quota_limits,
)

CONFIG = Configuration(zai_enabled=True, zai_api_key="zai-key-abcdef")

SUBSCRIPTION_BODY = {
    "code": 200,
    "data": [{"productName": "GLM Coding Pro", "status": "VALID"}],
}


def _quota_body(used=200_000, total=1_000_000, remaining=800_000):
    return {
        "code": 200,
        "data": {
            "limits": [
                {
                    "type": "TOKENS_LIMIT",
                    "usage": total,
                    "currentValue": used,
                    "remaining": remaining,
                    "nextResetTime": 1760003600000,
                },
                {"type": "TIME_LIMIT", "usage": 1000, "currentValue": 12, "remaining": 988},
                "garbage",
            ]
        },
    }


@pytest.fixture
def provider(cache: TTLCache) -> ZaiProvider:
    return ZaiProvider(cache)


@pytest.mark.asyncio
async def test_quota_and_plan_are_combined(provider: ZaiProvider):
    with respx.mock(assert_all_called=True) as mock_router:
        mock_router.get(SUBSCRIPTION_ENDPOINT).mock(
            return_value=httpx.Response(200, json=SUBSCRIPTION_BODY)
        )
        quota_route = mock_router.get(QUOTA_LIMIT_ENDPOINT).mock(
            return_value=httpx.Response(200, json=_quota_body())
        )
        async with httpx.AsyncClient() as client:
            record = await provider.resolve(CONFIG, client)

    assert quota_route.calls.last.request.headers["authorization"] == "Bearer zai-key-abcdef"
    assert record.status == "ok"
    assert record.data.plan_name == "GLM Coding Pro"
    assert record.data.plan_status == "VALID"
    assert record.data.tokens_used == 200_000
    assert record.data.mcp_remaining == 988

    wire = record.to_wire()
    assert wire["data"]["tokensTotal"] == 1_000_000
    assert wire["data"]["nextReset"] == 1760003600000


@pytest.mark.asyncio
async def test_less_than_ten_percent_left_is_a_warning(provider: ZaiProvider):
    with respx.mock() as mock_router:
        mock_router.get(SUBSCRIPTION_ENDPOINT).mock(
            return_value=httpx.Response(200, json=SUBSCRIPTION_BODY)
        )
        mock_router.get(QUOTA_LIMIT_ENDPOINT).mock(
            return_value=httpx.Response(
                200, json=_quota_body(used=950_000, remaining=50_000)
            )
        )
        async with httpx.AsyncClient() as client:
            record = await provider.resolve(CONFIG, client)

    assert record.status == "warning"


@pytest.mark.asyncio
async def test_subscription_failure_is_not_fatal(provider: ZaiProvider):
    with respx.mock() as mock_router:
        mock_router.get(SUBSCRIPTION_ENDPOINT).mock(return_value=httpx.Response(500))
        mock_router.get(QUOTA_LIMIT_ENDPOINT).mock(
            return_value=httpx.Response(200, json=_quota_body())
        )
        async with httpx.AsyncClient() as client:
            record = await provider.resolve(CONFIG, client)

    assert record.status == "ok"
    assert record.data.plan_name == ""


@pytest.mark.asyncio
async def test_quota_failure_is_an_error(provider: ZaiProvider):
    with respx.mock() as mock_router:
        mock_router.get(SUBSCRIPTION_ENDPOINT).mock(
            return_value=httpx.Response(200, json=SUBSCRIPTION_BODY)
        )
        mock_router.get(QUOTA_LIMIT_ENDPOINT).mock(
            return_value=httpx.Response(500, json={"msg": "internal error"})
        )
        async with httpx.AsyncClient() as client:
            record = await provider.resolve(CONFIG, client)

    assert record.status == "error"
    assert record.error == "HTTP 500: internal error"


@pytest.mark.asyncio
async def test_missing_api_key_is_reported(provider: ZaiProvider):
    record = await provider.resolve(Configuration(zai_enabled=True), client=None)

    assert record.status == "error"
    assert record.error == "API key not configured"


def test_unknown_or_missing_limits_leave_defaults():
    info = parse_quota_limits({"data": {"limits": [{"type": "OTHER", "usage": 5}]}})

    assert info.tokens_total == 0
    assert info.mcp_total == 0

    assert parse_quota_limits({"data": None}).tokens_total == 0
