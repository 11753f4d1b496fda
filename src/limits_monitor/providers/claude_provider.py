# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/providers/claude_provider.py

import logging
from typing import Any, Callable, Mapping, Optional

import httpx

from ..cache import TTLCache
from ..config import ConfigStore, Configuration
from ..errors import ConfigurationError, ParseError
from ..models import ClaudeRateLimitInfo, ServiceStatus
from ..utils.tolerant import parse_float_text
from .claude_auth_base import ClaudeAuthBase
from .provider_interface import UsageProvider

lib_logger = logging.getLogger("limits_monitor")

MESSAGES_ENDPOINT = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
OAUTH_BETA = "oauth-2025-04-20"

# Smallest possible request: the response headers are what we want
PROBE_REQUEST = {
    "model": "claude-3-5-haiku-latest",
    "max_tokens": 1,
    "messages": [{"role": "user", "content": "ok"}],
}

HEADER_PREFIX = "anthropic-ratelimit-unified-"
WINDOWS = ("5h", "7d")

WARNING_UTILIZATION = 80.0
EXHAUSTED_UTILIZATION = 100.0
REJECTED = "rejected"

PUSH_PLACEHOLDER_MESSAGE = (
    "Waiting for the first push. Schedule scripts/claude-push.sh (cron, every 30 minutes) "
    "to POST Claude rate-limit headers to /api/v1/claude-push."
)
MISSING_TOKEN_MESSAGE = (
    "Access token not configured. Run 'claude' CLI on the server, authorize, "
    "then copy tokens from ~/.claude/.credentials.json"
)


class ClaudeProvider(ClaudeAuthBase, UsageProvider):
    """
    Claude subscription rate-limit utilization.

    The usage numbers only exist as response headers, so there is nothing to
    query directly. Two modes:

    - pull: send a one-token completion with the OAuth token and read the
      anthropic-ratelimit-unified-* headers off the response
    - push: an external script captures the headers from the Claude CLI and
      posts them to the webhook; resolution only reads the cache
    """

    provider_id = "claude"
    display_name = "Claude"
    timeout = 15.0

    def __init__(
        self,
        cache: TTLCache,
        token_store: ConfigStore,
        clock: Optional[Callable[[], float]] = None,
    ):
        UsageProvider.__init__(self, cache, clock)
        ClaudeAuthBase.__init__(self, token_store)

    def is_enabled(self, config: Configuration) -> bool:
        return config.claude_enabled

    def check_configuration(self, config: Configuration) -> None:
        if config.claude_mode == "pull" and not config.claude_access_token:
            raise ConfigurationError(MISSING_TOKEN_MESSAGE)

    async def resolve(
        self, config: Configuration, client: httpx.AsyncClient
    ) -> ServiceStatus:
        if config.claude_mode == "push":
            cached, found = self._cache.get(self.provider_id)
            if found:
                return cached
            return self.placeholder_record()
        return await super().resolve(config, client)

    async def fetch_status(
        self, config: Configuration, client: httpx.AsyncClient
    ) -> ServiceStatus:
        async def send(access_token: str) -> httpx.Response:
            return await self._request(
                client,
                "POST",
                MESSAGES_ENDPOINT,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "anthropic-version": ANTHROPIC_VERSION,
                    "anthropic-beta": OAUTH_BETA,
                },
                json=PROBE_REQUEST,
                # A rate-limited response still carries the headers
                ok_statuses=(429,),
            )

        response = await self._send_with_refresh(client, config.claude_access_token, send)
        info = parse_rate_limit_headers(response.headers, source="pull")
        if not info.has_data:
            raise ParseError(
                f"HTTP {response.status_code} response carried no rate-limit headers"
            )
        return self.record(classify_rate_limits(info), info)

    def placeholder_record(self) -> ServiceStatus:
        return ServiceStatus(
            id=self.provider_id,
            name=self.display_name,
            enabled=True,
            status="warning",
            error=PUSH_PLACEHOLDER_MESSAGE,
        )


# =============================================================================
# HEADER NORMALIZATION (shared by pull and push)
# =============================================================================


def parse_rate_limit_headers(headers: Mapping[str, Any], source: str) -> ClaudeRateLimitInfo:
    """
    Normalize anthropic-ratelimit-unified-* headers.

    Utilization headers are fractions ("0.45"); they are reported here as
    percentages. Header names are matched case-insensitively.
    """
    lowered = {str(key).lower(): value for key, value in headers.items()}
    fields = {"source": source}
    has_data = False

    for window in WINDOWS:
        utilization = parse_float_text(lowered.get(f"{HEADER_PREFIX}{window}-utilization"))
        if utilization is not None:
            fields[f"utilization_{window}"] = round(utilization * 100, 2)
            has_data = True
        reset = parse_float_text(lowered.get(f"{HEADER_PREFIX}{window}-reset"))
        if reset is not None:
            fields[f"reset_{window}"] = int(reset)
        status = lowered.get(f"{HEADER_PREFIX}{window}-status")
        if isinstance(status, str):
            fields[f"status_{window}"] = status

    overall = lowered.get(f"{HEADER_PREFIX}status")
    if isinstance(overall, str):
        fields["overall_status"] = overall
        has_data = True
    claim = lowered.get(f"{HEADER_PREFIX}representative-claim")
    if isinstance(claim, str):
        fields["representative_claim"] = claim

    return ClaudeRateLimitInfo(has_data=has_data, **fields)


def classify_rate_limits(info: ClaudeRateLimitInfo) -> str:
    statuses = (info.status_5h, info.status_7d, info.overall_status)
    if REJECTED in statuses:
        return "error"
    if max(info.utilization_5h, info.utilization_7d) >= EXHAUSTED_UTILIZATION:
        return "error"
    if info.utilization_5h > WARNING_UTILIZATION or info.utilization_7d > WARNING_UTILIZATION:
        return "warning"
    return "ok"
