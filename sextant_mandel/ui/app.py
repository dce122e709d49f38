#!/usr/bin/env python3
# sextant_mandel/ui/app.py
"""Compose the prompt_toolkit application for the fractal viewer."""

from typing import Optional

from prompt_toolkit.application import Application
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.shortcuts import set_title

from sextant_mandel.config import Config
from sextant_mandel.logging_conf import setup_logging
from sextant_mandel.rendering.sextant_mode import SextantRenderer
from sextant_mandel.styles import make_style
from sextant_mandel.ui.fractal_control import FractalControl
from sextant_mandel.ui.helppane import HelpPane
from sextant_mandel.ui.state import ViewState
from sextant_mandel.ui.statusbar import StatusBar

# key -> (dx, dy)
PAN_KEYS = {
    "w": (0, -1),
    "s": (0, 1),
    "a": (-1, 0),
    "d": (1, 0),
}


class FractalApp:
    def __init__(self, cfg: Optional[Config] = None):
        self.cfg = cfg or Config.load()
        setup_logging(self.cfg)
        self.state = ViewState(self.cfg)
        self.renderer = SextantRenderer()
        self.fractal_control = FractalControl(self.cfg, self.state, self.renderer)
        self.status = StatusBar(self.state, self.cfg)
        self.help_pane = HelpPane(visible=self.cfg["ui"]["help_panel"])

        # Layout: fractal stretches, accessories stack below.
        self.fractal_window = Window(
            content=self.fractal_control,
            dont_extend_width=False,
            wrap_lines=False,
        )
        self.root = HSplit([
            self.fractal_window,
            self.status,
            self.help_pane,     # hidden unless toggled
        ])

        self.kb = self._build_key_bindings()
        self.app = Application(
            layout=Layout(self.root, focused_element=self.fractal_window),
            key_bindings=self.kb,
            full_screen=True,
            style=make_style(self.cfg),
        )

    def _build_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("q")
        @kb.add("c-c")
        def _(event):
            event.app.exit()

        # Lone Escape only; Alt chords below match first
        @kb.add("escape", eager=False)
        def _(event):
            event.app.exit()

        for key, (dx, dy) in PAN_KEYS.items():
            self._bind_pan(kb, key, dx, dy)

        @kb.add("=")
        def _(event):
            self.fractal_control.zoom(+1)

        @kb.add("escape", "=")
        def _(event):
            self.fractal_control.zoom(+1, fast=True)

        @kb.add("-")
        def _(event):
            self.fractal_control.zoom(-1)

        @kb.add("escape", "-")
        def _(event):
            self.fractal_control.zoom(-1, fast=True)

        @kb.add("up")
        def _(event):
            self.fractal_control.change_threshold(+1)

        @kb.add("escape", "up")
        def _(event):
            self.fractal_control.change_threshold(+1, fast=True)

        @kb.add("down")
        def _(event):
            self.fractal_control.change_threshold(-1)

        @kb.add("escape", "down")
        def _(event):
            self.fractal_control.change_threshold(-1, fast=True)

        @kb.add("h")
        def _(event):
            self.help_pane.toggle()
            event.app.invalidate()

        return kb

    def _bind_pan(self, kb: KeyBindings, key: str, dx: int, dy: int) -> None:
        @kb.add(key)
        def _(event):
            self.fractal_control.pan(dx, dy)

        @kb.add("escape", key)
        def _(event):
            self.fractal_control.pan(dx, dy, fast=True)

    def run(self):
        set_title(self.cfg["app"]["title"])
        try:
            self.app.run()
        finally:
            self.fractal_control.shutdown()
