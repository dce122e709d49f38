#!/usr/bin/env python3
# sextant_mandel/session.py
"""
Render session memory: the current view, iteration threshold and pan cache.

Created lazily on the first frame from the bit-grid size, then mutated by
input handlers and read by the render worker through snapshot().
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional, Tuple

from sextant_mandel.bitgrid import PackedGrid
from sextant_mandel.cache import CoordinateCache
from sextant_mandel.config import Config
from sextant_mandel.engine import FrameStats, RenderEngine
from sextant_mandel.scaler import Scaler

__all__ = ["RenderSession"]

log = logging.getLogger(__name__)


@dataclass
class RenderSession:
    scaler_x: Scaler
    scaler_y: Scaler
    threshold: int = 500
    cache: Optional[CoordinateCache] = field(default_factory=CoordinateCache)

    # Alt-modifier multipliers
    pan_fast_multiplier: int = 100
    zoom_fast_steps: int = 10
    threshold_fast_step: int = 50

    # None keeps every entry for the life of the session
    cache_max_entries: Optional[int] = None
    cache_prune_watermark: float = 0.85

    _pan_pending: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @classmethod
    def for_grid(cls, bit_width: int, bit_height: int, cfg: Optional[Config] = None) -> "RenderSession":
        """
        Default view for a bit grid: both axes share a square pixel domain
        sized to the shorter side, so the whole set fits and pixels stay square.
        """
        cfg = cfg or Config()
        v = cfg["view"]
        r = cfg["render"]
        length = float(max(1, min(bit_width, bit_height)))
        return cls(
            scaler_x=Scaler(0.0, length, v["x_min"], v["x_max"]),
            scaler_y=Scaler(0.0, length, v["y_min"], v["y_max"]),
            threshold=cfg.threshold,
            cache=CoordinateCache(r["cache_shards"]) if r["pan_cache"] else None,
            pan_fast_multiplier=int(v["pan_fast_multiplier"]),
            zoom_fast_steps=int(v["zoom_fast_steps"]),
            threshold_fast_step=int(v["threshold_fast_step"]),
            cache_max_entries=r["cache_max_entries"],
            cache_prune_watermark=float(r["cache_prune_watermark"]),
        )

    # ------------- view -------------

    @property
    def window(self) -> Tuple[float, float, float, float]:
        with self._lock:
            sx, sy = self.scaler_x, self.scaler_y
        return sx.target_min, sx.target_max, sy.target_min, sy.target_max

    # ------------- input entry points -------------

    def pan(self, dx: int, dy: int, fast: bool = False) -> None:
        """Move the view by (dx, dy) pixel steps; marks the next frame as a pan."""
        mult = self.pan_fast_multiplier if fast else 1
        with self._lock:
            if dx:
                self.scaler_x = self.scaler_x.offset(dx * self.scaler_x.scalar * mult)
            if dy:
                self.scaler_y = self.scaler_y.offset(dy * self.scaler_y.scalar * mult)
            self._pan_pending = True
        log.debug("pan %+d,%+d x%d", dx, dy, mult)

    def zoom(self, steps: int, fast: bool = False) -> None:
        """Positive steps zoom in, negative zoom out."""
        if steps == 0:
            return
        count = abs(steps) * (self.zoom_fast_steps if fast else 1)
        with self._lock:
            for _ in range(count):
                if steps > 0:
                    self.scaler_x = self.scaler_x.zoom_in()
                    self.scaler_y = self.scaler_y.zoom_in()
                else:
                    self.scaler_x = self.scaler_x.zoom_out()
                    self.scaler_y = self.scaler_y.zoom_out()
            self._pan_pending = False
        log.debug("zoom %s x%d", "in" if steps > 0 else "out", count)

    def change_threshold(self, delta: int, fast: bool = False) -> int:
        """Adjust the iteration threshold, saturating at zero. Returns the new value."""
        step = self.threshold_fast_step if fast else 1
        with self._lock:
            new = max(0, self.threshold + delta * step)
            if new != self.threshold:
                self.threshold = new
                # Cache keys carry no threshold. A frame still in flight keeps
                # writing into the cache it took, never into this one.
                if self.cache is not None:
                    self.cache = CoordinateCache(self.cache.shards)
            self._pan_pending = False
        log.debug("threshold=%d", new)
        return new

    def invalidate(self) -> None:
        """Force the next frame onto the direct path (after a resize)."""
        with self._lock:
            self._pan_pending = False

    # ------------- rendering -------------

    def snapshot(self) -> Tuple[Scaler, Scaler, int, bool]:
        """Return (scaler_x, scaler_y, threshold, is_pan) and clear the pan flag."""
        return self._take_frame()[:4]

    def _take_frame(self) -> Tuple[Scaler, Scaler, int, bool, Optional[CoordinateCache]]:
        with self._lock:
            pan = self._pan_pending
            self._pan_pending = False
            cache = self.cache if pan else None
            return self.scaler_x, self.scaler_y, self.threshold, pan, cache

    def render(self, grid: PackedGrid, engine: RenderEngine) -> FrameStats:
        scaler_x, scaler_y, threshold, _pan, cache = self._take_frame()
        stats = engine.render_frame(grid, scaler_x, scaler_y, threshold, cache)
        if cache is not None and self.cache_max_entries:
            evicted = cache.prune(self.cache_max_entries, self.cache_prune_watermark)
            if evicted:
                log.debug("pruned %d cache entries", evicted)
        return stats
