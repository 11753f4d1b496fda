# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
FastAPI application factory.

This module provides the create_app() function for creating and configuring
the FastAPI application instance.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from limits_monitor import ConfigStore
from monitor_app.access import AccessDeniedError, TeamLookup
from monitor_app.startup import lifespan


def create_app(
    data_dir: Optional[Path] = None,
    config_store: Optional[ConfigStore] = None,
    team_lookup: Optional[TeamLookup] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        data_dir: Directory holding settings.json
        config_store: Pre-built configuration store (tests, embedding hosts)
        team_lookup: Team membership check used by the allow-list

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="AI Limits Monitor",
        description="Usage, quota and rate-limit status for AI providers",
        version="1.0.0",
        lifespan=lambda app: lifespan(app, data_dir, config_store, team_lookup),
    )

    _configure_cors(app)
    _register_exception_handlers(app)
    _register_routes(app)

    return app


def _configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware from environment variables."""
    # MONITOR_CORS_ORIGINS: comma-separated list; unset means no cross-origin access
    origins_env = os.getenv("MONITOR_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        return

    if origins == ["*"]:
        logging.warning(
            "CORS is configured to allow all origins (*). "
            "Set MONITOR_CORS_ORIGINS to the host's domain for production."
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )


def _register_routes(app: FastAPI) -> None:
    """Register all API routes."""
    from monitor_app.routes import status

    app.include_router(status.router)


def _register_exception_handlers(app: FastAPI) -> None:
    """Render access denials as a flat error body instead of {"detail": ...}."""

    @app.exception_handler(AccessDeniedError)
    async def access_denied_handler(request: Request, exc: AccessDeniedError):
        return JSONResponse(status_code=403, content=exc.to_body())
