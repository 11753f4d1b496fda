# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/push.py
"""
Ingestion of Claude rate-limit data pushed by the external collector.

The collector runs the Claude CLI on a schedule (about every 30 minutes),
captures the rate-limit response headers and posts them here. Records land
in the shared cache under the provider's key with a fetch timestamp moved
into the future, so they stay valid between pushes even with a 5 minute TTL.
"""

import logging
from typing import Callable, Optional

from .cache import TTLCache
from .models import ClaudePushPayload, ServiceStatus
from .providers.claude_provider import (
    ClaudeProvider,
    classify_rate_limits,
    parse_rate_limit_headers,
)

lib_logger = logging.getLogger("limits_monitor")

DEFAULT_TTL_EXTENSION_SECONDS = 30 * 60

PUSH_OK = "ok"
PUSH_ERROR_STORED = "error_stored"


class ClaudePushReceiver:
    """
    Stores pushed payloads as Claude status records.

    Args:
        cache: Shared status cache
        clock: Time source (default: the cache's clock)
        ttl_extension_seconds: How far into the future the fetch timestamp
            is set; pushed records live for TTL + this
    """

    def __init__(
        self,
        cache: TTLCache,
        clock: Optional[Callable[[], float]] = None,
        ttl_extension_seconds: int = DEFAULT_TTL_EXTENSION_SECONDS,
    ):
        self._cache = cache
        self._clock = clock or cache.now
        self._ttl_extension = ttl_extension_seconds

    def ingest(self, payload: ClaudePushPayload) -> str:
        """
        Store one pushed payload.

        Returns:
            "error_stored" if the collector reported an error, else "ok"
        """
        now = self._clock()
        record = build_push_record(payload, now)
        self._cache.set(
            ClaudeProvider.provider_id, record, fetched_at=now + self._ttl_extension
        )

        if payload.error:
            lib_logger.warning(f"Claude push reported an error: {payload.error}")
            return PUSH_ERROR_STORED

        lib_logger.debug(
            f"Claude push stored (status={record.status}, "
            f"{len(payload.rate_limits)} headers, timestamp={payload.timestamp:.0f})"
        )
        return PUSH_OK


def build_push_record(payload: ClaudePushPayload, now: float) -> ServiceStatus:
    cached_at = int(payload.timestamp) if payload.timestamp > 0 else int(now)

    if payload.error:
        return ServiceStatus(
            id=ClaudeProvider.provider_id,
            name=ClaudeProvider.display_name,
            enabled=True,
            status="error",
            error=payload.error,
            cached_at=cached_at,
        )

    info = parse_rate_limit_headers(payload.rate_limits, source="push")
    if not info.has_data:
        return ServiceStatus(
            id=ClaudeProvider.provider_id,
            name=ClaudeProvider.display_name,
            enabled=True,
            status="warning",
            data=info,
            error="Push contained no rate-limit headers",
            cached_at=cached_at,
        )
    return ServiceStatus(
        id=ClaudeProvider.provider_id,
        name=ClaudeProvider.display_name,
        enabled=True,
        status=classify_rate_limits(info),
        data=info,
        cached_at=cached_at,
    )
