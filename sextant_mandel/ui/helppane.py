#!/usr/bin/env python3
# sextant_mandel/ui/helppane.py

from __future__ import annotations

from prompt_toolkit.filters import Condition
from prompt_toolkit.layout import ConditionalContainer, HSplit
from prompt_toolkit.widgets import Frame, TextArea

from sextant_mandel.version import version_info

_HELP_TEXT = (
    "Key Bindings:\n"
    "  w a s d   Pan one pixel step\n"
    "  = / -     Zoom in/out one step\n"
    "  ↑ / ↓     Raise/lower iteration threshold\n"
    "  Alt+key   Pan x100, zoom x10, threshold ±50\n"
    "  h         Toggle this help\n"
    "  q / Esc   Quit\n"
    "\n"
    "Info:\n"
    "  Panning reuses cached results; zoom and threshold changes recompute.\n"
    "  Status bar displays threshold, view window, render time and cache hits.\n"
)


class HelpPane:
    def __init__(self, visible: bool = False):
        self._visible = visible
        self.text_area = TextArea(
            text=_HELP_TEXT,
            style="class:help",
            read_only=True,
            focusable=False,
        )
        self.frame = Frame(self.text_area, title=f"Help - {version_info()}", style="class:help")
        self.container = ConditionalContainer(
            HSplit([self.frame]),
            filter=Condition(lambda: self._visible),
        )

    def __pt_container__(self):
        return self.container

    def toggle(self) -> None:
        self._visible = not self._visible
