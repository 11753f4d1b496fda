# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Allow-list access policy.

With no allow-list configured everyone who reached us with an identity is
allowed. Otherwise the user must be listed directly or belong to one of the
allowed teams. Team membership is answered by the host through a lookup
callable installed on ``app.state.team_lookup``. The lookup may block:
verify_user calls check_access in a worker thread, never on the event loop.
"""

import logging
from typing import Callable, Optional

from limits_monitor import Configuration

logger = logging.getLogger(__name__)

# (team_id, user_id) -> is the user a member of the team
TeamLookup = Callable[[str, str], bool]


def check_access(
    config: Configuration,
    user_id: str,
    team_lookup: Optional[TeamLookup] = None,
) -> bool:
    """Return True if ``user_id`` may use the API under ``config``."""
    if not config.allowed_user_ids and not config.allowed_team_ids:
        return True

    if user_id in config.allowed_user_ids:
        return True

    if config.allowed_team_ids and team_lookup is None:
        logger.debug("Team allow-list configured but no team lookup installed")
        return False

    for team_id in config.allowed_team_ids:
        try:
            if team_lookup(team_id, user_id):
                return True
        except Exception as e:
            logger.warning(f"Team membership lookup failed for team '{team_id}': {e}")

    return False


class AccessDeniedError(Exception):
    """Raised when an identified user is not on the allow-list."""

    message = "You don't have permission to access this plugin"

    def to_body(self) -> dict:
        return {"error": "access_denied", "message": self.message}
