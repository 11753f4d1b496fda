# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

from .aggregator import StatusAggregator, DISABLED_HINT
from .cache import TTLCache, CacheEntry, DEFAULT_TTL_SECONDS
from .config import Configuration, ConfigStore, SETTINGS_FILE_NAME
from .errors import (
    LimitsMonitorError,
    ConfigurationError,
    TransportError,
    UpstreamError,
    AuthExpiredError,
    ParseError,
    PushRejectedError,
)
from .models import ServiceStatus, StatusResponse, ClaudePushPayload
from .provider_factory import PROVIDER_MAP, PROVIDER_ORDER
from .push import ClaudePushReceiver

__all__ = [
    "StatusAggregator",
    "DISABLED_HINT",
    "TTLCache",
    "CacheEntry",
    "DEFAULT_TTL_SECONDS",
    "Configuration",
    "ConfigStore",
    "SETTINGS_FILE_NAME",
    "LimitsMonitorError",
    "ConfigurationError",
    "TransportError",
    "UpstreamError",
    "AuthExpiredError",
    "ParseError",
    "PushRejectedError",
    "ServiceStatus",
    "StatusResponse",
    "ClaudePushPayload",
    "PROVIDER_MAP",
    "PROVIDER_ORDER",
    "ClaudePushReceiver",
]
