# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/errors.py
"""
Error taxonomy for provider resolution.

Every error raised while resolving a provider is caught at the resolver
boundary and turned into a ``status="error"`` record. Nothing here is meant
to reach the aggregator or the HTTP layer.
"""

from typing import Optional

# Upstream bodies quoted in error messages are cut to this many characters
MAX_ERROR_BODY_CHARS = 200


def truncate_body(body: str, limit: int = MAX_ERROR_BODY_CHARS) -> str:
    """Cut a response body down to a diagnostic-sized prefix."""
    if not body:
        return ""
    return body[:limit]


def mask_credential(value: Optional[str]) -> str:
    """Mask a credential for safe display in logs. Shows first 4 and last 4 chars."""
    if not value or len(value) <= 8:
        return "****"
    return f"{value[:4]}****{value[-4:]}"


class LimitsMonitorError(Exception):
    """Base class for all resolver errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigurationError(LimitsMonitorError):
    """A required credential or setting is missing or malformed."""


class TransportError(LimitsMonitorError):
    """Connection failure or timeout talking to a provider."""


class UpstreamError(LimitsMonitorError):
    """Provider answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class AuthExpiredError(UpstreamError):
    """Provider rejected the credential (HTTP 401/403)."""


class ParseError(LimitsMonitorError):
    """Response body was not valid JSON or lacked the expected structure."""


class PushRejectedError(LimitsMonitorError):
    """A pushed payload arrived while Claude is disabled or set to pull."""
