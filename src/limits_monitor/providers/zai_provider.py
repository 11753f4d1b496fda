# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/providers/zai_provider.py

import logging
from typing import Any, Dict, Tuple

import httpx

from ..config import Configuration
from ..errors import ConfigurationError, LimitsMonitorError
from ..models import ServiceStatus, ZaiQuotaInfo
from ..utils.tolerant import first_dict, get_dict, get_float, get_int, get_list, get_str
from .provider_interface import UsageProvider

lib_logger = logging.getLogger("limits_monitor")

SUBSCRIPTION_ENDPOINT = "https://api.z.ai/api/biz/subscription/list"
QUOTA_LIMIT_ENDPOINT = "https://api.z.ai/api/monitor/usage/quota/limit"

TOKENS_LIMIT = "TOKENS_LIMIT"
TIME_LIMIT = "TIME_LIMIT"

LOW_QUOTA_FRACTION = 0.10


class ZaiProvider(UsageProvider):
    """
    Token quota for a Z.AI coding plan.

    Two calls: the subscription list (plan name and state, best effort) and
    the quota limits (required). Limits come as a list of typed entries; the
    TOKENS_LIMIT entry is the main quota and TIME_LIMIT counts tool calls.
    """

    provider_id = "zai"
    display_name = "Z.AI"
    timeout = 10.0

    def is_enabled(self, config: Configuration) -> bool:
        return config.zai_enabled

    def check_configuration(self, config: Configuration) -> None:
        if not config.zai_api_key:
            raise ConfigurationError("API key not configured")

    async def fetch_status(
        self, config: Configuration, client: httpx.AsyncClient
    ) -> ServiceStatus:
        headers = {"Authorization": f"Bearer {config.zai_api_key}"}

        plan_name, plan_status = await self._fetch_subscription(client, headers)

        response = await self._request(client, "GET", QUOTA_LIMIT_ENDPOINT, headers=headers)
        info = parse_quota_limits(self._json(response))
        info.plan_name = plan_name
        info.plan_status = plan_status

        return self.record(classify_quota(info), info)

    async def _fetch_subscription(
        self, client: httpx.AsyncClient, headers: Dict[str, str]
    ) -> Tuple[str, str]:
        try:
            response = await self._request(client, "GET", SUBSCRIPTION_ENDPOINT, headers=headers)
            subscription = first_dict(get_list(self._json(response), "data"))
        except LimitsMonitorError as e:
            lib_logger.debug(f"Z.AI subscription lookup failed, continuing without plan info: {e}")
            return "", ""
        return get_str(subscription, "productName"), get_str(subscription, "status")


def parse_quota_limits(raw: Dict[str, Any]) -> ZaiQuotaInfo:
    info = ZaiQuotaInfo()
    for entry in get_list(get_dict(raw, "data"), "limits"):
        if not isinstance(entry, dict):
            continue
        limit_type = get_str(entry, "type")
        if limit_type == TOKENS_LIMIT:
            info.tokens_used = get_float(entry, "currentValue")
            info.tokens_total = get_float(entry, "usage")
            info.tokens_remaining = get_float(entry, "remaining")
            info.next_reset = get_int(entry, "nextResetTime")
        elif limit_type == TIME_LIMIT:
            info.mcp_used = get_float(entry, "currentValue")
            info.mcp_total = get_float(entry, "usage")
            info.mcp_remaining = get_float(entry, "remaining")
    return info


def classify_quota(info: ZaiQuotaInfo) -> str:
    if info.tokens_total > 0 and info.tokens_remaining / info.tokens_total < LOW_QUOTA_FRACTION:
        return "warning"
    return "ok"
