# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/providers/provider_interface.py

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import httpx

from ..cache import TTLCache
from ..config import Configuration
from ..errors import (
    AuthExpiredError,
    ConfigurationError,
    LimitsMonitorError,
    ParseError,
    TransportError,
    UpstreamError,
    truncate_body,
)
from ..models import ServiceStatus, StatusValue

lib_logger = logging.getLogger("limits_monitor")

USER_AGENT = "AILimitsMonitor/1.0"


class UsageProvider(ABC):
    """
    Base class for a provider status resolver.

    Subclasses declare the provider identity and implement
    check_configuration() and fetch_status(). resolve() wraps them with the
    shared cache lookup, error capture and cache population.

    Every upstream-derived outcome is cached for the TTL, failures included,
    so a broken provider is retried at most once per TTL window. Missing
    credentials are reported without touching the network or the cache.
    """

    provider_id: str = ""
    display_name: str = ""
    timeout: float = 10.0

    def __init__(self, cache: TTLCache, clock: Optional[Callable[[], float]] = None):
        self._cache = cache
        self._clock = clock or cache.now

    @abstractmethod
    def is_enabled(self, config: Configuration) -> bool:
        """Whether the operator turned this provider on."""

    @abstractmethod
    def check_configuration(self, config: Configuration) -> None:
        """Raise ConfigurationError if required credentials are missing."""

    @abstractmethod
    async def fetch_status(
        self, config: Configuration, client: httpx.AsyncClient
    ) -> ServiceStatus:
        """Call the provider and build a normalized record."""

    # =========================================================================
    # RESOLUTION PIPELINE
    # =========================================================================

    async def resolve(
        self, config: Configuration, client: httpx.AsyncClient
    ) -> ServiceStatus:
        try:
            self.check_configuration(config)
        except ConfigurationError as e:
            return self.error_record(str(e), stamped=False)

        cached, found = self._cache.get(self.provider_id)
        if found:
            return cached

        try:
            record = await self.fetch_status(config, client)
        except LimitsMonitorError as e:
            lib_logger.warning(f"{self.display_name}: {type(e).__name__}: {e}")
            record = self.error_record(str(e))
        except Exception as e:
            lib_logger.exception(f"{self.display_name}: unexpected error while fetching status")
            record = self.error_record(f"Unexpected error: {e}")

        self._cache.set(self.provider_id, record)
        return record

    # =========================================================================
    # RECORD BUILDERS
    # =========================================================================

    def _now(self) -> int:
        return int(self._clock())

    def record(self, status: StatusValue, data: Any) -> ServiceStatus:
        return ServiceStatus(
            id=self.provider_id,
            name=self.display_name,
            enabled=True,
            status=status,
            data=data,
            cached_at=self._now(),
        )

    def error_record(self, message: str, stamped: bool = True) -> ServiceStatus:
        """Build a status=error record; unstamped records are never cached."""
        return ServiceStatus(
            id=self.provider_id,
            name=self.display_name,
            enabled=True,
            status="error",
            error=message,
            cached_at=self._now() if stamped else None,
        )

    # =========================================================================
    # HTTP HELPERS
    # =========================================================================

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        *,
        ok_statuses: tuple = (),
        **kwargs,
    ) -> httpx.Response:
        """
        Perform one outbound call under this provider's timeout.

        Args:
            client: Shared HTTP client
            method: HTTP verb
            url: Absolute URL
            ok_statuses: Extra non-2xx status codes the caller handles itself

        Raises:
            TransportError: connection failure or timeout
            AuthExpiredError: HTTP 401/403
            UpstreamError: any other non-2xx status
        """
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        headers.update(kwargs.pop("headers", {}) or {})
        try:
            response = await client.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"API error: request timed out after {self.timeout:.0f}s ({type(e).__name__})")
        except httpx.RequestError as e:
            raise TransportError(f"API error: {str(e) or type(e).__name__}")

        if response.is_success or response.status_code in ok_statuses:
            return response

        message = f"HTTP {response.status_code}: {self._extract_error_message(response)}"
        if response.status_code in (401, 403):
            raise AuthExpiredError(response.status_code, message)
        raise UpstreamError(response.status_code, message)

    @staticmethod
    def _extract_error_message(response: httpx.Response) -> str:
        """Pull a message from the provider's error envelope, else quote the body."""
        body = response.text
        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError):
            payload = None

        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict):
                message = error.get("message")
                if isinstance(message, str) and message:
                    return truncate_body(message)
            if isinstance(error, str) and error:
                return truncate_body(error)
            for key in ("message", "msg", "detail"):
                value = payload.get(key)
                if isinstance(value, str) and value:
                    return truncate_body(value)

        return truncate_body(body) or response.reason_phrase

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        """Decode a JSON object body."""
        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise ParseError(f"Parse error: {e} (body: {truncate_body(response.text)})")
        if not isinstance(payload, dict):
            raise ParseError(
                f"Parse error: expected a JSON object (body: {truncate_body(response.text)})"
            )
        return payload
