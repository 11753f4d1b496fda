# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Application startup and shutdown logic.

This module contains the lifespan context manager that wires the status
cache, configuration store, shared HTTP client and aggregator onto the
FastAPI application state.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI

from limits_monitor import (
    ConfigStore,
    ConfigurationError,
    SETTINGS_FILE_NAME,
    StatusAggregator,
    TTLCache,
)
from monitor_app.access import TeamLookup

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(
    app: FastAPI,
    data_dir: Optional[Path] = None,
    config_store: Optional[ConfigStore] = None,
    team_lookup: Optional[TeamLookup] = None,
):
    """
    Manage the aggregator's lifecycle with the app's lifespan.

    Args:
        app: The FastAPI application instance
        data_dir: Directory holding the settings file (default: cwd)
        config_store: Pre-built store; when given, its cache is reused and
            nothing is read from disk
        team_lookup: Host-supplied team membership check for the allow-list
    """
    if config_store is None:
        root_dir = data_dir or Path.cwd()
        cache = TTLCache()
        try:
            config_store = ConfigStore.load(
                cache, settings_path=root_dir / SETTINGS_FILE_NAME
            )
        except ConfigurationError as e:
            logger.error(f"Invalid configuration, refusing to start: {e.message}")
            raise
    cache = config_store.cache

    config = config_store.get()
    logger.info(f"Status cache TTL: {config.cache_ttl_seconds}s")
    for provider_id, summary in config.describe().items():
        logger.info(f"  {provider_id}: {summary}")
    if not any(
        (config.augment_enabled, config.zai_enabled, config.openai_enabled, config.claude_enabled)
    ):
        logger.warning("No providers enabled; every status will read 'disabled'.")

    client = httpx.AsyncClient(follow_redirects=True)
    aggregator = StatusAggregator(config_store, cache, client)

    app.state.config_store = config_store
    app.state.aggregator = aggregator
    app.state.team_lookup = team_lookup
    logger.info("StatusAggregator initialized.")

    yield

    # Shutdown
    await client.aclose()
    logger.info("HTTP client closed.")
