# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/utils/resilient_io.py
"""
Small helpers for JSON files that must never be left half-written.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Union


def safe_write_json(
    path: Union[str, Path],
    data: Any,
    logger: logging.Logger,
    secure_permissions: bool = False,
) -> bool:
    """
    Write JSON atomically (temp file in the same directory, then rename).

    Args:
        path: Destination file
        data: JSON-serializable object
        logger: Logger used to report failures
        secure_permissions: Restrict the file to the owner (0600)

    Returns:
        True if the file was written, False otherwise
    """
    path = Path(path)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        if secure_permissions:
            os.chmod(tmp_name, 0o600)
        os.replace(tmp_name, path)
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to write JSON to '{path}': {e}")
        if tmp_name and os.path.exists(tmp_name):
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
        return False
