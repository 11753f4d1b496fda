# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
FastAPI dependencies for the monitor application.

This module centralizes all FastAPI dependency functions including:
- Aggregator / config store retrieval from app state
- Identity verification from the upstream-injected user header
- Allow-list access check
"""

import logging
import os

from fastapi import Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from limits_monitor import ConfigStore, StatusAggregator
from monitor_app.access import AccessDeniedError, check_access

logger = logging.getLogger(__name__)

# Configuration
IDENTITY_HEADER = os.getenv("IDENTITY_HEADER", "Mattermost-User-Id")


def get_aggregator(request: Request) -> StatusAggregator:
    """Dependency to get the status aggregator from the app state."""
    return request.app.state.aggregator


def get_config_store(request: Request) -> ConfigStore:
    """Dependency to get the configuration store from the app state."""
    return request.app.state.config_store


async def verify_user(
    request: Request,
    config_store: ConfigStore = Depends(get_config_store),
) -> str:
    """
    Dependency to verify the caller's identity and access.

    The host injects the authenticated user id as a header; a request
    without it never passed host authentication.
    """
    user_id = request.headers.get(IDENTITY_HEADER, "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    # The host lookup is synchronous and may do network I/O
    team_lookup = getattr(request.app.state, "team_lookup", None)
    allowed = await run_in_threadpool(check_access, config_store.get(), user_id, team_lookup)
    if not allowed:
        logger.info(f"Access denied for user '{user_id}' on {request.url.path}")
        raise AccessDeniedError()
    return user_id
