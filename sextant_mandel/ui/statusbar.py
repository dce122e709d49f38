#!/usr/bin/env python3
# sextant_mandel/ui/statusbar.py

from __future__ import annotations

from prompt_toolkit.filters import Condition
from prompt_toolkit.layout import ConditionalContainer
from prompt_toolkit.widgets import Label

from sextant_mandel.config import Config
from sextant_mandel.ui.state import ViewState


class StatusBar:
    def __init__(self, state: ViewState, cfg: Config):
        self.state = state
        self.cfg = cfg
        self.label = Label(self._fragments, style="class:status")
        self.container = ConditionalContainer(
            self.label,
            filter=Condition(lambda: bool(self.cfg["ui"].get("statusbar", True))),
        )

    def __pt_container__(self):
        return self.container

    def _fragments(self):
        if self.state.busy:
            return [("class:status.busy", " Calculating... "), ("", self.text())]
        return [("", self.text())]

    def text(self) -> str:
        session = self.state.session
        if session is None:
            return " waiting for first frame"
        x_min, x_max, y_min, y_max = session.window
        msg = (
            f" threshold={session.threshold} "
            f"x=[{x_min:.8g}, {x_max:.8g}] y=[{y_min:.8g}, {y_max:.8g}] "
            f"render={self.state.last_render_ms:.1f}ms cache_hits={self.state.last_cache_hits}"
        )
        if self.state.info_msg:
            msg += f"  {self.state.info_msg}"
        return msg
