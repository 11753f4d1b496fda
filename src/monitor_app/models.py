# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Pydantic models for the monitor application.

The status list itself (StatusResponse/ServiceStatus) lives in the library;
this module holds the small acknowledgement bodies of the other endpoints.
"""

from typing import Literal

from pydantic import BaseModel


class PushResponse(BaseModel):
    """Response model for the Claude push webhook."""
    status: Literal["ok", "error_stored"]


class AccessResponse(BaseModel):
    """Response model for the access check endpoint."""
    allowed: bool = True
