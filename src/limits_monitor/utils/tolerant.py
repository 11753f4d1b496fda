# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/utils/tolerant.py
"""
Tolerant field extraction for loosely-typed provider payloads.

Provider responses are decoded field by field. A missing field, or one with
the wrong type, yields the default instead of failing the whole parse.
"""

from typing import Any, Dict, List, Mapping, Optional


def _as_float(value: Any) -> Optional[float]:
    # bool is a subclass of int; a flag is never a quantity
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def get_float(obj: Any, key: str, default: float = 0.0) -> float:
    """Return ``obj[key]`` as a float, accepting numbers and numeric strings."""
    if not isinstance(obj, Mapping):
        return default
    value = _as_float(obj.get(key))
    return default if value is None else value


def get_int(obj: Any, key: str, default: int = 0) -> int:
    """Return ``obj[key]`` truncated to an int."""
    if not isinstance(obj, Mapping):
        return default
    value = _as_float(obj.get(key))
    return default if value is None else int(value)


def get_str(obj: Any, key: str, default: str = "") -> str:
    if not isinstance(obj, Mapping):
        return default
    value = obj.get(key)
    return value if isinstance(value, str) else default


def get_bool(obj: Any, key: str, default: bool = False) -> bool:
    if not isinstance(obj, Mapping):
        return default
    value = obj.get(key)
    return value if isinstance(value, bool) else default


def get_dict(obj: Any, key: str) -> Dict[str, Any]:
    if not isinstance(obj, Mapping):
        return {}
    value = obj.get(key)
    return value if isinstance(value, dict) else {}


def get_list(obj: Any, key: str) -> List[Any]:
    if not isinstance(obj, Mapping):
        return []
    value = obj.get(key)
    return value if isinstance(value, list) else []


def first_dict(items: List[Any]) -> Dict[str, Any]:
    """Return the first element of ``items`` if it is an object, else {}."""
    if items and isinstance(items[0], dict):
        return items[0]
    return {}


def parse_float_text(value: Any) -> Optional[float]:
    """Parse a header-style string value; None when absent or malformed."""
    return _as_float(value)
