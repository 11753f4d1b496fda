# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/cache.py
"""
Shared TTL cache for provider status records.

One instance is shared by every resolver and by push ingestion. Keys are
provider ids; values are the last record produced for that provider.

- Entries expire by age: a read treats ``now - fetched_at >= ttl`` as a miss
- Expired entries are not deleted on read; they are dropped wholesale by clear()
- Readers never lock; writers serialize on a lock and clear() swaps the map
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

lib_logger = logging.getLogger("limits_monitor")

DEFAULT_TTL_SECONDS = 300


@dataclass(frozen=True)
class CacheEntry:
    payload: Any
    fetched_at: float


class TTLCache:
    """
    Process-local key/value cache with a single TTL for all entries.

    Args:
        ttl_seconds: Entry lifetime (default: 5 minutes)
        clock: Time source returning epoch seconds, injectable for tests
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._entries: Dict[str, CacheEntry] = {}
        self._ttl = ttl_seconds
        self._clock = clock
        self._write_lock = threading.Lock()

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def set_ttl(self, ttl_seconds: int) -> None:
        with self._write_lock:
            if ttl_seconds != self._ttl:
                lib_logger.debug(f"TTLCache: ttl changed {self._ttl}s -> {ttl_seconds}s")
            self._ttl = ttl_seconds

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Tuple[Optional[Any], bool]:
        """
        Look up a key.

        Returns:
            (value, True) for a live entry, (None, False) if absent or expired
        """
        entry = self._entries.get(key)
        if entry is None:
            return None, False
        if self._clock() - entry.fetched_at >= self._ttl:
            return None, False
        return entry.payload, True

    def set(self, key: str, value: Any, fetched_at: Optional[float] = None) -> None:
        """
        Store a value, overwriting any previous entry.

        Args:
            key: Provider id
            value: Record to cache
            fetched_at: Override for the fetch timestamp; a future value
                keeps the entry alive past the normal TTL
        """
        entry = CacheEntry(
            payload=value,
            fetched_at=self._clock() if fetched_at is None else fetched_at,
        )
        with self._write_lock:
            self._entries[key] = entry

    def clear(self) -> None:
        """Drop every entry at once."""
        with self._write_lock:
            dropped = len(self._entries)
            self._entries = {}
        lib_logger.debug(f"TTLCache: cleared {dropped} entries")

    def __len__(self) -> int:
        return len(self._entries)
