# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/utils/__init__.py

from .resilient_io import safe_write_json
from .tolerant import (
    get_float,
    get_int,
    get_str,
    get_bool,
    get_dict,
    get_list,
    first_dict,
    parse_float_text,
)

__all__ = [
    "safe_write_json",
    "get_float",
    "get_int",
    "get_str",
    "get_bool",
    "get_dict",
    "get_list",
    "first_dict",
    "parse_float_text",
]
