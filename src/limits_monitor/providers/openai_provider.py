# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/providers/openai_provider.py

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..config import Configuration
from ..errors import ConfigurationError
from ..models import OpenAIUsageInfo, ServiceStatus
from ..utils.tolerant import get_bool, get_dict, get_float, get_list, get_str
from .provider_interface import UsageProvider

lib_logger = logging.getLogger("limits_monitor")

COSTS_ENDPOINT = "https://api.openai.com/v1/organization/costs"

# One daily bucket per day of the month
BUCKET_LIMIT = 31
MAX_PAGES = 5

BUDGET_WARNING_FRACTION = 0.80


def month_window(now: datetime) -> Tuple[datetime, datetime]:
    """Return (start of this UTC month, start of next UTC month)."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        next_start = start.replace(year=start.year + 1, month=1)
    else:
        next_start = start.replace(month=start.month + 1)
    return start, next_start


class OpenAIProvider(UsageProvider):
    """
    Month-to-date organization spend from the Costs API.

    Requires an admin key. Bucket amounts are summed as reported, in
    currency units. Budget and prepaid credit balance come from
    configuration because the API exposes neither.
    """

    provider_id = "openai"
    display_name = "OpenAI"
    timeout = 15.0

    def is_enabled(self, config: Configuration) -> bool:
        return config.openai_enabled

    def check_configuration(self, config: Configuration) -> None:
        if not config.openai_admin_key:
            raise ConfigurationError("Admin API key not configured")

    async def fetch_status(
        self, config: Configuration, client: httpx.AsyncClient
    ) -> ServiceStatus:
        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        month_start, next_month = month_window(now)

        buckets = await self._fetch_buckets(
            client,
            config.openai_admin_key,
            start_time=int(month_start.timestamp()),
            end_time=int(now.timestamp()),
        )

        info = OpenAIUsageInfo(
            total_cost=round(sum_bucket_costs(buckets), 6),
            budget=config.openai_monthly_budget,
            credit_balance=config.openai_credit_balance,
            period=month_start.strftime("%b %Y"),
            days_until_reset=int((next_month - now).total_seconds() // 86400),
            bucket_count=len(buckets),
        )
        if info.credit_balance is not None:
            info.credit_remaining = round(info.credit_balance - info.total_cost, 6)

        return self.record(classify_cost(info.total_cost, info.budget), info)

    async def _fetch_buckets(
        self,
        client: httpx.AsyncClient,
        admin_key: str,
        start_time: int,
        end_time: int,
    ) -> List[Any]:
        """Collect cost buckets, following next_page cursors."""
        params: Dict[str, Any] = {
            "start_time": start_time,
            "end_time": end_time,
            "bucket_width": "1d",
            "limit": BUCKET_LIMIT,
        }
        buckets: List[Any] = []
        for _ in range(MAX_PAGES):
            response = await self._request(
                client,
                "GET",
                COSTS_ENDPOINT,
                headers={"Authorization": f"Bearer {admin_key}"},
                params=params,
            )
            page = self._json(response)
            buckets.extend(get_list(page, "data"))

            next_page = get_str(page, "next_page")
            if not get_bool(page, "has_more") or not next_page:
                break
            params = dict(params, page=next_page)
        else:
            lib_logger.warning(
                f"OpenAI costs: stopped after {MAX_PAGES} pages; total may be incomplete"
            )
        return buckets


def sum_bucket_costs(buckets: List[Any]) -> float:
    total = 0.0
    for bucket in buckets:
        for result in get_list(bucket, "results"):
            total += get_float(get_dict(result, "amount"), "value")
    return total


def classify_cost(total_cost: float, budget: Optional[float]) -> str:
    if not budget or budget <= 0:
        return "ok"
    if total_cost >= budget:
        return "error"
    if total_cost / budget >= BUDGET_WARNING_FRACTION:
        return "warning"
    return "ok"
