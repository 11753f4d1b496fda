# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Status API routes.

This module contains the plugin's HTTP surface:
- Status list (/api/v1/status)
- Manual refresh (/api/v1/refresh)
- Access check (/api/v1/access)
- Claude push webhook (/api/v1/claude-push)
- Configuration reload (/api/v1/config/reload)
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from limits_monitor import (
    ClaudePushPayload,
    ConfigStore,
    ConfigurationError,
    PushRejectedError,
    StatusAggregator,
    StatusResponse,
)

from monitor_app.dependencies import get_aggregator, get_config_store, verify_user
from monitor_app.models import AccessResponse, PushResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")


@router.get("/status")
async def get_status(
    aggregator: StatusAggregator = Depends(get_aggregator),
    _=Depends(verify_user),
):
    """Returns one record per provider, served from cache where fresh."""
    services = await aggregator.get_all_statuses()
    return StatusResponse(services=services).to_wire()


@router.post("/refresh")
async def refresh_status(
    aggregator: StatusAggregator = Depends(get_aggregator),
    user_id: str = Depends(verify_user),
):
    """Drops every cached record and resolves all providers again."""
    logger.info(f"Manual refresh requested by user '{user_id}'")
    services = await aggregator.refresh()
    return StatusResponse(services=services).to_wire()


@router.get("/access")
async def get_access(_=Depends(verify_user)):
    """Lets the client decide whether to show the plugin at all."""
    return AccessResponse(allowed=True)


@router.post("/claude-push")
async def claude_push(
    request: Request,
    aggregator: StatusAggregator = Depends(get_aggregator),
    _=Depends(verify_user),
):
    """
    Receives rate-limit headers captured by the external collector.

    Request body:
        {
            "timestamp": 1760000000,
            "rateLimits": {"anthropic-ratelimit-unified-5h-utilization": "0.42", ...},
            "error": "optional collector error"
        }

    Answers 409 unless Claude is enabled in push mode.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    try:
        payload = ClaudePushPayload.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Rejected Claude push: {e.error_count()} validation error(s)")
        raise HTTPException(status_code=400, detail="Invalid push payload")

    try:
        result = aggregator.ingest_claude_push(payload)
    except PushRejectedError as e:
        raise HTTPException(status_code=409, detail=e.message)
    return PushResponse(status=result)


@router.post("/config/reload")
async def reload_config(
    aggregator: StatusAggregator = Depends(get_aggregator),
    config_store: ConfigStore = Depends(get_config_store),
    _=Depends(verify_user),
):
    """Re-reads environment and settings file, then returns fresh statuses."""
    try:
        config = config_store.reload()
    except ConfigurationError as e:
        logger.error(f"Configuration reload rejected: {e.message}")
        raise HTTPException(status_code=400, detail=e.message)

    for provider_id, summary in config.describe().items():
        logger.info(f"  {provider_id}: {summary}")

    services = await aggregator.get_all_statuses(config)
    return StatusResponse(services=services).to_wire()
