# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/providers/augment_provider.py

import httpx

from ..config import Configuration
from ..errors import ConfigurationError
from ..models import AugmentCreditInfo, ServiceStatus
from ..utils.tolerant import get_bool, get_dict, get_float, get_str
from .provider_interface import UsageProvider

CREDIT_INFO_ENDPOINT = "https://d2.api.augmentcode.com/get-credit-info"

# Remaining/included fraction below which the balance is flagged
LOW_BALANCE_FRACTION = 0.10


class AugmentProvider(UsageProvider):
    """Credit balance for an Augment Code subscription."""

    provider_id = "augment"
    display_name = "Augment Code"
    timeout = 10.0

    def is_enabled(self, config: Configuration) -> bool:
        return config.augment_enabled

    def check_configuration(self, config: Configuration) -> None:
        if not config.augment_access_token:
            raise ConfigurationError("Access token not configured")

    async def fetch_status(
        self, config: Configuration, client: httpx.AsyncClient
    ) -> ServiceStatus:
        response = await self._request(
            client,
            "POST",
            CREDIT_INFO_ENDPOINT,
            headers={"Authorization": f"Bearer {config.augment_access_token}"},
            json={},
        )
        raw = self._json(response)
        info = parse_credit_info(raw)
        included = get_float(raw, "included_usage_units_per_billing_cycle")
        return self.record(classify_credit_info(info, included), info)


def parse_credit_info(raw: dict) -> AugmentCreditInfo:
    """
    Normalize a get-credit-info response.

    The per-cycle allowance, when present, replaces the reported total.
    """
    remaining = get_float(raw, "usage_units_remaining")
    total = get_float(raw, "usage_units_total")
    included = get_float(raw, "included_usage_units_per_billing_cycle")
    if included > 0:
        total = included

    return AugmentCreditInfo(
        plan_name=get_str(get_dict(raw, "display_info"), "plan_display_name"),
        usage_remaining=remaining,
        usage_total=total,
        usage_used=total - remaining,
        cycle_end=get_str(raw, "current_billing_cycle_end_date_iso"),
        is_low=get_bool(raw, "is_credit_balance_low"),
    )


def classify_credit_info(info: AugmentCreditInfo, included: float) -> str:
    if info.is_low:
        return "warning"
    if included > 0 and info.usage_remaining / included < LOW_BALANCE_FRACTION:
        return "warning"
    return "ok"
