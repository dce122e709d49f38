#!/usr/bin/env python3
# sextant_mandel/ui/state.py
"""Mutable runtime state for the fractal viewer UI."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional

from sextant_mandel.config import Config
from sextant_mandel.engine import FrameStats
from sextant_mandel.session import RenderSession


@dataclass
class ViewState:
    cfg: Config

    # Created on the first frame, once the grid size is known
    session: Optional[RenderSession] = None

    # UI hints
    busy: bool = False
    last_render_ms: float = 0.0
    last_cache_hits: int = 0
    info_msg: str = ""

    # Internal lock for multi-thread updates
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def ensure_session(self, bit_width: int, bit_height: int) -> RenderSession:
        with self._lock:
            if self.session is None:
                self.session = RenderSession.for_grid(bit_width, bit_height, self.cfg)
            return self.session

    # ------------- frame bookkeeping -------------

    def begin_frame(self) -> None:
        with self._lock:
            self.busy = True

    def record_frame(self, stats: FrameStats) -> None:
        with self._lock:
            self.busy = False
            self.last_render_ms = stats.elapsed_ms
            self.last_cache_hits = stats.cache_hits

    def abort_frame(self, msg: str) -> None:
        with self._lock:
            self.busy = False
            self.info_msg = msg

    # ------------- info -------------

    def set_info(self, msg: str) -> None:
        with self._lock:
            self.info_msg = msg
