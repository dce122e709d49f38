#!/usr/bin/env python3
# sextant_mandel/ui/fractal_control.py
"""prompt_toolkit UIControl that renders the live fractal view."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from prompt_toolkit.application import get_app_or_none
from prompt_toolkit.layout.controls import UIContent, UIControl

from sextant_mandel.bitgrid import PackedGrid
from sextant_mandel.config import Config
from sextant_mandel.engine import RenderEngine
from sextant_mandel.rendering.sextant_mode import SextantRenderer, sextant_size
from sextant_mandel.ui.state import ViewState

log = logging.getLogger(__name__)


@dataclass
class Frame:
    width: int
    height: int
    lines_frag: List[List[Tuple[str, str]]]


class FractalControl(UIControl):
    """Render the fractal in the terminal and react to pan/zoom/threshold input."""

    def __init__(self, cfg: Config, state: ViewState, renderer: SextantRenderer):
        self.cfg = cfg
        self.state = state
        self.renderer = renderer

        # Only the worker thread touches the grid after construction
        self.grid = PackedGrid(0, 0)
        self.engine = RenderEngine(cfg.workers)

        self._req_q: queue.Queue = queue.Queue(maxsize=2)
        self._res_q: queue.Queue = queue.Queue(maxsize=1)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._render_worker, daemon=True)
        self._thread.start()

        # Track the most recent terminal dimensions so input-triggered
        # renders know the correct size to request.
        self._last_width = 0
        self._last_height = 0
        self._last_frame: Optional[Frame] = None

    # -------- UIControl interface --------

    def is_focusable(self) -> bool:
        return True

    def preferred_width(self, max_available_width: int) -> int:
        return max_available_width

    def preferred_height(
        self,
        width: int,
        max_available_height: int,
        wrap_lines: bool,
        get_line_prefix,
    ) -> int:
        return max_available_height

    def create_content(self, width: int, height: int) -> UIContent:
        width = max(1, int(width))
        height = max(1, int(height))
        resized = (width, height) != (self._last_width, self._last_height)
        self._last_width = width
        self._last_height = height

        latest_frame = self._drain_results()
        if latest_frame is not None:
            self._last_frame = latest_frame

        frame = self._last_frame
        if frame is None:
            if resized:
                self._enqueue(width, height)
            return self._blank_content(width, height)

        if resized and (frame.width, frame.height) != (width, height):
            # Keep showing the last frame while the resized one renders
            self._enqueue(width, height)

        lines_frag = self._normalize_lines(frame, width, height)
        return UIContent(
            get_line=lambda i: lines_frag[i] if 0 <= i < height else [("", " " * width)],
            line_count=height,
        )

    # -------- worker logic --------

    def _enqueue(self, w: int, h: int) -> None:
        with self._req_q.mutex:
            self._req_q.queue.clear()
        try:
            self._req_q.put_nowait((max(1, int(w)), max(1, int(h))))
        except queue.Full:
            pass

    def _render_worker(self) -> None:
        while not self._stop.is_set():
            try:
                job = self._req_q.get(timeout=0.2)
            except queue.Empty:
                continue

            if job is None or self._stop.is_set():
                break

            cols, rows = job
            try:
                frame = self.render(cols, rows)
            except Exception:
                log.exception("render failed for %dx%d cells", cols, rows)
                self.state.abort_frame("render failed, see log")
                continue

            with self._res_q.mutex:
                self._res_q.queue.clear()
            try:
                self._res_q.put_nowait(frame)
            except queue.Full:
                pass

            app = get_app_or_none()
            if app:
                app.invalidate()

    def render(self, cols: int, rows: int) -> Frame:
        """Size the grid for cols x rows cells, recompute it and encode glyphs."""
        bit_w, bit_h = sextant_size(cols, rows)
        session = self.state.ensure_session(bit_w, bit_h)
        if (self.grid.width, self.grid.height) != (bit_w, bit_h):
            self.grid.resize(bit_w, bit_h, False)
            session.invalidate()

        self.state.begin_frame()
        app = get_app_or_none()
        if app:
            app.invalidate()
        stats = session.render(self.grid, self.engine)
        self.state.record_frame(stats)
        return Frame(cols, rows, self.renderer.render(self.grid, "class:fractal"))

    # -------- helpers --------

    def _drain_results(self) -> Optional[Frame]:
        frame: Optional[Frame] = None
        while True:
            try:
                frame = self._res_q.get_nowait()
            except queue.Empty:
                break
        return frame

    @staticmethod
    def _blank_content(width: int, height: int) -> UIContent:
        empty_line = [("", " " * width)]
        return UIContent(
            get_line=lambda i: empty_line,
            line_count=height,
        )

    @staticmethod
    def _normalize_lines(frame: Frame, width: int, height: int) -> List[List[Tuple[str, str]]]:
        lines_frag: List[List[Tuple[str, str]]] = []
        source = frame.lines_frag
        for y in range(height):
            if y < len(source) and source[y]:
                style = source[y][0][0]
                row_text = "".join(text for (_style, text) in source[y])
                if len(row_text) < width:
                    row_text = row_text.ljust(width)
                else:
                    row_text = row_text[:width]
                lines_frag.append([(style, row_text)])
            else:
                lines_frag.append([("", " " * width)])
        return lines_frag

    # -------- lifecycle / user actions --------

    def shutdown(self) -> None:
        self._stop.set()
        with self._req_q.mutex:
            self._req_q.queue.clear()
        try:
            self._req_q.put_nowait(None)
        except queue.Full:
            pass
        self._thread.join(timeout=float(self.cfg["app"].get("shutdown_timeout_s", 3.0)))
        self.engine.shutdown()

    def pan(self, dx: int, dy: int, fast: bool = False) -> None:
        session = self.state.session
        if session is None:
            return
        session.pan(dx, dy, fast)
        self.request_render()

    def zoom(self, steps: int, fast: bool = False) -> None:
        session = self.state.session
        if session is None:
            return
        session.zoom(steps, fast)
        self.state.set_info(f"Zoom {'in' if steps > 0 else 'out'}")
        self.request_render()

    def change_threshold(self, delta: int, fast: bool = False) -> None:
        session = self.state.session
        if session is None:
            return
        threshold = session.change_threshold(delta, fast)
        self.state.set_info(f"Threshold {threshold}")
        self.request_render()

    def request_render(self) -> None:
        self._enqueue(self._last_width, self._last_height)
