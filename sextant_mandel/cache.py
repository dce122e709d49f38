#!/usr/bin/env python3
# sextant_mandel/cache.py
"""
Concurrent membership cache keyed by logical coordinates.

Features:
- Lock-striped: keys hash onto independent shards, each with its own lock.
- Keys are exact (x0, y0) float pairs; no tolerance. Panning by whole pixel
  steps resamples many coordinates exactly, which is where hits come from.
- Optional pruning of oldest insertions (unbounded unless configured).
"""

from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Tuple

__all__ = ["CoordinateCache", "Key"]

Key = Tuple[float, float]


class CoordinateCache:
    """
    Thread-safe (x0, y0) -> bool mapping.
    Two workers missing the same key both compute and insert; the value for a
    key never changes, so the last write wins harmlessly.
    """

    def __init__(self, shards: int = 16):
        if shards < 1:
            raise ValueError(f"shards must be >= 1, got {shards}")
        self._shards: List[Dict[Key, bool]] = [{} for _ in range(shards)]
        self._locks = [threading.Lock() for _ in range(shards)]

    @property
    def shards(self) -> int:
        return len(self._shards)

    def _slot(self, key: Key) -> int:
        return hash(key) % len(self._shards)

    # -------------
    # Lookup / insert
    # -------------

    def put(self, key: Key, value: bool) -> None:
        i = self._slot(key)
        with self._locks[i]:
            self._shards[i][key] = bool(value)

    def get_many(self, keys: Iterable[Key]) -> List[Optional[bool]]:
        out: List[Optional[bool]] = []
        for key in keys:
            i = self._slot(key)
            with self._locks[i]:
                value = self._shards[i].get(key)
            out.append(value)
        return out

    def put_many(self, items: Iterable[Tuple[Key, bool]]) -> None:
        for key, value in items:
            self.put(key, value)

    def __len__(self) -> int:
        total = 0
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                total += len(shard)
        return total

    # ----------------------
    # Prune logic (optional)
    # ----------------------

    def prune(self, max_entries: int, watermark: float = 0.85) -> int:
        """
        Evict oldest insertions if the cache holds more than max_entries.
        Each shard is trimmed to its share of max_entries * watermark.
        Returns the number of evicted entries.
        """
        if len(self) <= max_entries:
            return 0
        per_shard = int(max_entries * watermark) // len(self._shards)
        evicted = 0
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                while len(shard) > per_shard:
                    # dicts iterate in insertion order
                    del shard[next(iter(shard))]
                    evicted += 1
        return evicted
