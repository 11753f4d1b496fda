# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Status aggregation across all known providers.

This is the only entry point the HTTP layer talks to:
- get_all_statuses(): one record per provider, fixed order
- refresh(): wholesale cache invalidation, then get_all_statuses()
- ingest_claude_push(): webhook delivery for the push-only provider
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional

import httpx

from .cache import TTLCache
from .config import ConfigStore, Configuration
from .errors import PushRejectedError
from .models import ClaudePushPayload, ServiceStatus
from .provider_factory import PROVIDER_MAP, PROVIDER_ORDER
from .providers.claude_provider import ClaudeProvider
from .providers.provider_interface import UsageProvider
from .push import ClaudePushReceiver

lib_logger = logging.getLogger("limits_monitor")

DISABLED_HINT = "Not configured. Enable it in the AI Limits Monitor settings."


def build_providers(cache: TTLCache, config_store: ConfigStore) -> Dict[str, UsageProvider]:
    """Instantiate one resolver per provider id."""
    providers: Dict[str, UsageProvider] = {}
    for provider_id in PROVIDER_ORDER:
        provider_class = PROVIDER_MAP[provider_id]
        if provider_class is ClaudeProvider:
            providers[provider_id] = provider_class(cache, token_store=config_store)
        else:
            providers[provider_id] = provider_class(cache)
    return providers


class StatusAggregator:
    """
    Resolves every provider and assembles the ordered status list.

    Never fails as a whole: a provider that blows up is reported as its own
    error record and the list always has one entry per provider.

    Args:
        config_store: Source of the configuration snapshot
        cache: Shared status cache
        client: HTTP client used for every upstream call
        providers: Resolver instances by id (default: one of each known provider)
        push_receiver: Webhook ingestion (default: built on the shared cache)
    """

    def __init__(
        self,
        config_store: ConfigStore,
        cache: TTLCache,
        client: httpx.AsyncClient,
        providers: Optional[Dict[str, UsageProvider]] = None,
        push_receiver: Optional[ClaudePushReceiver] = None,
    ):
        self._config_store = config_store
        self._cache = cache
        self._client = client
        self._providers = providers or build_providers(cache, config_store)
        self._push_receiver = push_receiver or ClaudePushReceiver(cache)

    @property
    def config_store(self) -> ConfigStore:
        return self._config_store

    async def get_all_statuses(
        self, config: Optional[Configuration] = None
    ) -> List[ServiceStatus]:
        """
        Resolve all providers concurrently.

        Args:
            config: Snapshot to resolve against (default: the store's current one)

        Returns:
            One ServiceStatus per provider in PROVIDER_ORDER
        """
        config = config or self._config_store.get()
        start_time = time.time()
        results = await asyncio.gather(
            *(self._resolve_one(provider_id, config) for provider_id in PROVIDER_ORDER)
        )
        lib_logger.debug(
            f"Resolved {len(results)} providers in {int((time.time() - start_time) * 1000)}ms: "
            + ", ".join(f"{r.id}={r.status}" for r in results)
        )
        return list(results)

    async def refresh(self, config: Optional[Configuration] = None) -> List[ServiceStatus]:
        """Clear the whole cache, then resolve everything fresh."""
        self._cache.clear()
        lib_logger.info("Manual refresh: status cache cleared.")
        return await self.get_all_statuses(config)

    def ingest_claude_push(self, payload: ClaudePushPayload) -> str:
        """
        Hand a webhook delivery to the push receiver.

        Raises:
            PushRejectedError: Claude is disabled or configured for pull; a
                stored record would otherwise shadow the pull resolver
        """
        config = self._config_store.get()
        if not (config.claude_enabled and config.claude_mode == "push"):
            state = f"in {config.claude_mode} mode" if config.claude_enabled else "disabled"
            lib_logger.warning(f"Claude push ignored: provider is {state}")
            raise PushRejectedError(
                f"Claude push is not accepted while the provider is {state}; "
                "set claude_mode to 'push' to use the collector"
            )
        return self._push_receiver.ingest(payload)

    async def _resolve_one(self, provider_id: str, config: Configuration) -> ServiceStatus:
        provider = self._providers[provider_id]
        if not provider.is_enabled(config):
            return ServiceStatus(
                id=provider.provider_id,
                name=provider.display_name,
                enabled=False,
                status="disabled",
                error=DISABLED_HINT,
            )
        try:
            return await provider.resolve(config, self._client)
        except Exception as e:
            lib_logger.exception(f"Resolver for '{provider_id}' failed unexpectedly")
            return provider.error_record(f"Unexpected error: {e}", stamped=False)
