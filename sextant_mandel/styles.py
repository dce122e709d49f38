#!/usr/bin/env python3
# sextant_mandel/styles.py
"""
Style definitions for the fractal viewer.
Provides light, dark, and auto themes for prompt_toolkit.
"""

import os

from prompt_toolkit.styles import Style

from sextant_mandel.config import Config

BASE_DARK = {
    "fractal": "bg:#000000 #e0e0e0",
    "status": "bg:#303030 #cccccc",
    "status.busy": "bg:#303030 #ffcc00 bold",
    "help": "bg:#202020 #dddddd",
}
BASE_LIGHT = {
    "fractal": "bg:#ffffff #000000",
    "status": "bg:#cccccc #000000",
    "status.busy": "bg:#cccccc #aa5500 bold",
    "help": "bg:#eeeeee #000000",
}


def make_style(cfg: Config) -> Style:
    theme = cfg["ui"].get("theme", "auto")

    if theme == "light":
        return Style.from_dict(BASE_LIGHT)
    if theme == "dark":
        return Style.from_dict(BASE_DARK)

    # Auto-detect via environment
    if os.getenv("TERM_THEME", "").lower() == "light":
        return Style.from_dict(BASE_LIGHT)
    return Style.from_dict(BASE_DARK)
