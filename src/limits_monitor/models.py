# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/models.py
"""
Status records and the per-provider normalized data shapes.

All models serialize with camelCase field names, which is what the display
client reads.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

StatusValue = Literal["ok", "warning", "error", "disabled"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# NORMALIZED PROVIDER DATA
# =============================================================================


class AugmentCreditInfo(CamelModel):
    """Credit usage for the current billing cycle."""
    plan_name: str = ""
    usage_remaining: float = 0
    usage_total: float = 0
    usage_used: float = 0
    cycle_end: str = ""
    is_low: bool = False


class ZaiQuotaInfo(CamelModel):
    """Token quota plus the secondary tool (MCP) quota."""
    plan_name: str = ""
    plan_status: str = ""
    tokens_used: float = 0
    tokens_total: float = 0
    tokens_remaining: float = 0
    next_reset: int = 0
    mcp_used: float = 0
    mcp_total: float = 0
    mcp_remaining: float = 0


class OpenAIUsageInfo(CamelModel):
    """Month-to-date organization cost against the configured budget."""
    total_cost: float = 0
    budget: Optional[float] = None
    credit_balance: Optional[float] = None
    credit_remaining: Optional[float] = None
    period: str = ""
    days_until_reset: int = 0
    bucket_count: int = 0


class ClaudeRateLimitInfo(CamelModel):
    """Two utilization windows taken from rate-limit response headers."""
    utilization_5h: float = Field(default=0, alias="utilization5h")
    reset_5h: Optional[int] = Field(default=None, alias="reset5h")
    status_5h: str = Field(default="", alias="status5h")
    utilization_7d: float = Field(default=0, alias="utilization7d")
    reset_7d: Optional[int] = Field(default=None, alias="reset7d")
    status_7d: str = Field(default="", alias="status7d")
    overall_status: str = ""
    representative_claim: str = ""
    source: Literal["pull", "push"] = "pull"
    has_data: bool = False


ProviderData = Union[AugmentCreditInfo, ZaiQuotaInfo, OpenAIUsageInfo, ClaudeRateLimitInfo]


# =============================================================================
# STATUS RECORD
# =============================================================================


class ServiceStatus(CamelModel):
    """One provider's entry in the status list."""
    id: str
    name: str
    enabled: bool
    status: StatusValue
    data: Optional[ProviderData] = None
    error: Optional[str] = None
    cached_at: Optional[int] = None

    def to_wire(self) -> Dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class StatusResponse(CamelModel):
    services: List[ServiceStatus]

    def to_wire(self) -> Dict:
        return {"services": [service.to_wire() for service in self.services]}


# =============================================================================
# PUSH PAYLOAD
# =============================================================================


class ClaudePushPayload(CamelModel):
    """Body posted by the external header-capture script."""
    timestamp: float = 0
    rate_limits: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
