# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/provider_factory.py

from .providers.augment_provider import AugmentProvider
from .providers.zai_provider import ZaiProvider
from .providers.openai_provider import OpenAIProvider
from .providers.claude_provider import ClaudeProvider

# Display order of the status list
PROVIDER_ORDER = ("augment", "zai", "openai", "claude")

PROVIDER_MAP = {
    "augment": AugmentProvider,
    "zai": ZaiProvider,
    "openai": OpenAIProvider,
    "claude": ClaudeProvider,
}

def get_provider_class(provider_name: str):
    """
    Returns the resolver class for a given provider id.
    """
    provider_class = PROVIDER_MAP.get(provider_name.lower())
    if not provider_class:
        raise ValueError(f"Unknown provider: {provider_name}")
    return provider_class

def get_available_providers():
    """
    Returns provider ids in display order.
    """
    return list(PROVIDER_ORDER)
