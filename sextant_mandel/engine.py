#!/usr/bin/env python3
# sextant_mandel/engine.py
"""
Parallel escape-time render engine.

Fills a PackedGrid from a pair of Scalers:
- One task per grid row on a thread pool sized to the CPU count.
- Each row is evaluated with numpy (row_inside), computing y0 once per row.
- Finished rows are written into the shared grid under a single lock; the
  grid's packed storage is one buffer, so writes are the serialization point.
- Optional CoordinateCache lookups for pan frames.

The grid stores the negation of membership: escaped points are set bits
(foreground glyphs), points inside the set stay clear (background).
"""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from sextant_mandel.bitgrid import PackedGrid
from sextant_mandel.cache import CoordinateCache
from sextant_mandel.escape import row_inside
from sextant_mandel.scaler import Scaler

__all__ = ["FrameStats", "RenderEngine", "render_frame"]

log = logging.getLogger(__name__)


@dataclass
class FrameStats:
    width: int
    height: int
    threshold: int
    elapsed_s: float
    cache_hits: int = 0
    cached: bool = False

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_s * 1000.0


class RenderEngine:
    """Owns the row worker pool. Use as a context manager or call shutdown()."""

    def __init__(self, workers: Optional[int] = None):
        self.workers = int(workers or os.cpu_count() or 1)
        self._pool = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="sextant-row")
        self._write_lock = threading.Lock()

    def __enter__(self) -> "RenderEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def shutdown(self) -> None:
        self._pool.shutdown(wait=True)

    # -------------
    # Frame
    # -------------

    def render_frame(
        self,
        grid: PackedGrid,
        scaler_x: Scaler,
        scaler_y: Scaler,
        threshold: int,
        cache: Optional[CoordinateCache] = None,
    ) -> FrameStats:
        """
        Recompute every bit of grid. Blocks until all rows are written.
        Worker exceptions propagate to the caller.
        """
        if threshold < 0:
            raise ValueError(f"threshold must be non-negative, got {threshold}")
        t0 = time.perf_counter()
        width, height = grid.width, grid.height
        grid.clear_all()

        xs = scaler_x.scale_array(np.arange(width, dtype=np.float64))
        futures = [
            self._pool.submit(self._render_row, grid, xs, scaler_y.scale(float(py)), py, threshold, cache)
            for py in range(height)
        ]
        hits = sum(f.result() for f in futures)

        stats = FrameStats(
            width=width,
            height=height,
            threshold=threshold,
            elapsed_s=time.perf_counter() - t0,
            cache_hits=hits,
            cached=cache is not None,
        )
        log.debug(
            "frame %dx%d threshold=%d cached=%s in %.1fms cache_hits=%d",
            width, height, threshold, stats.cached, stats.elapsed_ms, hits,
        )
        return stats

    def _render_row(
        self,
        grid: PackedGrid,
        xs: np.ndarray,
        y0: float,
        py: int,
        threshold: int,
        cache: Optional[CoordinateCache],
    ) -> int:
        if cache is None:
            inside = row_inside(xs, y0, threshold)
            hits = 0
        else:
            inside, hits = self._row_with_cache(xs, y0, threshold, cache)
        with self._write_lock:
            grid.set_row(py, ~inside)
        return hits

    @staticmethod
    def _row_with_cache(
        xs: np.ndarray,
        y0: float,
        threshold: int,
        cache: CoordinateCache,
    ) -> Tuple[np.ndarray, int]:
        keys = [(x0, y0) for x0 in xs.tolist()]
        found = cache.get_many(keys)
        missing = [i for i, value in enumerate(found) if value is None]

        inside = np.array([bool(value) for value in found], dtype=bool)
        if missing:
            computed = row_inside(xs[missing], y0, threshold)
            inside[missing] = computed
            cache.put_many((keys[i], bool(b)) for i, b in zip(missing, computed.tolist()))
        return inside, len(keys) - len(missing)


def render_frame(
    grid: PackedGrid,
    scaler_x: Scaler,
    scaler_y: Scaler,
    threshold: int,
    cache: Optional[CoordinateCache] = None,
    workers: Optional[int] = None,
) -> FrameStats:
    """One-shot render on a short-lived engine."""
    with RenderEngine(workers) as engine:
        return engine.render_frame(grid, scaler_x, scaler_y, threshold, cache)
