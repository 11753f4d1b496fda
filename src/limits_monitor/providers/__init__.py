# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/providers/__init__.py

from .provider_interface import UsageProvider
from .augment_provider import AugmentProvider
from .zai_provider import ZaiProvider
from .openai_provider import OpenAIProvider
from .claude_auth_base import ClaudeAuthBase
from .claude_provider import ClaudeProvider

__all__ = [
    "UsageProvider",
    "AugmentProvider",
    "ZaiProvider",
    "OpenAIProvider",
    "ClaudeAuthBase",
    "ClaudeProvider",
]
