# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/providers/claude_auth_base.py

import asyncio
import json
import logging
from typing import Awaitable, Callable

import httpx

from ..config import ConfigStore
from ..errors import (
    AuthExpiredError,
    ConfigurationError,
    LimitsMonitorError,
    ParseError,
    TransportError,
    UpstreamError,
    mask_credential,
    truncate_body,
)
from ..utils.tolerant import get_str

lib_logger = logging.getLogger("limits_monitor")

# OAuth constants (Claude Code public client)
CLIENT_ID = "9d1c250a-e61b-44d9-88ed-5944d1962f5e"
TOKEN_ENDPOINT = "https://platform.claude.com/v1/oauth/token"
REFRESH_TIMEOUT_SECONDS = 15.0


class ClaudeAuthBase:
    """
    Claude OAuth token handling.

    Two states: Authorized (current access token) and Refreshing. A request
    rejected with 401/403 moves to Refreshing, which trades the refresh
    token for a new pair, persists it, and retries the request exactly once.
    If the refresh fails, the original 401/403 is the result.
    """

    def __init__(self, token_store: ConfigStore):
        self._token_store = token_store
        self._refresh_lock = asyncio.Lock()

    async def _send_with_refresh(
        self,
        client: httpx.AsyncClient,
        access_token: str,
        send: Callable[[str], Awaitable[httpx.Response]],
    ) -> httpx.Response:
        """
        Run ``send`` with the access token, refreshing once on 401/403.

        Args:
            client: Shared HTTP client, also used for the token call
            access_token: Token from the configuration snapshot
            send: Coroutine factory performing the authorized request

        Raises:
            AuthExpiredError: the original rejection, when refresh is impossible
            LimitsMonitorError: any failure of the retried request
        """
        try:
            return await send(access_token)
        except AuthExpiredError as rejected:
            try:
                new_token = await self._refresh_access_token(client, access_token)
            except LimitsMonitorError as e:
                lib_logger.warning(f"Claude OAuth refresh failed: {e}")
                raise rejected
            lib_logger.info("Claude OAuth token refreshed; retrying request once.")
            return await send(new_token)

    async def _refresh_access_token(
        self, client: httpx.AsyncClient, rejected_token: str
    ) -> str:
        """
        Exchange the stored refresh token for a new access token.

        Serialized across concurrent resolutions. A waiter that finds the
        token already rotated by someone else returns it without a new call.
        """
        async with self._refresh_lock:
            current = self._token_store.get()
            if current.claude_access_token and current.claude_access_token != rejected_token:
                lib_logger.debug("Claude OAuth token already rotated by a concurrent refresh")
                return current.claude_access_token

            refresh_token = current.claude_refresh_token
            if not refresh_token:
                raise ConfigurationError("No refresh token configured")

            lib_logger.debug(
                f"Refreshing Claude OAuth token (refresh={mask_credential(refresh_token)})"
            )
            try:
                response = await client.post(
                    TOKEN_ENDPOINT,
                    headers={
                        "Content-Type": "application/x-www-form-urlencoded",
                        "Accept": "application/json",
                        "User-Agent": "AILimitsMonitor/1.0",
                    },
                    data={
                        "grant_type": "refresh_token",
                        "client_id": CLIENT_ID,
                        "refresh_token": refresh_token,
                    },
                    timeout=REFRESH_TIMEOUT_SECONDS,
                )
            except httpx.RequestError as e:
                raise TransportError(f"Token refresh failed: {str(e) or type(e).__name__}")

            if not response.is_success:
                raise UpstreamError(
                    response.status_code,
                    f"refresh HTTP {response.status_code}: {truncate_body(response.text)}",
                )

            try:
                token_data = response.json()
            except (json.JSONDecodeError, ValueError) as e:
                raise ParseError(f"Token refresh returned invalid JSON: {e}")

            access_token = get_str(token_data, "access_token")
            if not access_token:
                raise ParseError("Token refresh response missing access_token")

            self._token_store.update_claude_tokens(
                access_token, get_str(token_data, "refresh_token") or None
            )
            return access_token
