#!/usr/bin/env python3
# sextant_mandel/config.py
"""
Config loader/saver and defaults for the sextant Mandelbrot viewer.

Goals:
- Single JSON file per user.
- Safe atomic writes.
- Deep-merge of user config over defaults.
- Basic validation with sane fallbacks.
- No external deps.

Usage:
    from sextant_mandel.config import Config, DEFAULT_CONFIG
    cfg = Config.load()                 # ~/.config/sextant_mandel/... or OS-specific
    threshold = cfg["view"]["threshold"]
    cfg["ui"]["theme"] = "dark"
    cfg.save()
"""

from __future__ import annotations

import json
import os
import platform
import shutil
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

# ----------------------------
# Defaults
# ----------------------------

DEFAULT_CONFIG: Dict[str, Any] = {
    "app": {
        "title": "Sextant Mandelbrot",
        "shutdown_timeout_s": 3.0,
    },
    "view": {
        # Initial window; the whole set fits on a square pixel domain
        "x_min": -2.0,
        "x_max": 0.47,
        "y_min": -1.12,
        "y_max": 1.12,
        "threshold": 500,                # escape-time iteration limit
        "pan_fast_multiplier": 100,      # Alt+pan moves this many pixels
        "zoom_fast_steps": 10,           # Alt+zoom repeats this many steps
        "threshold_fast_step": 50,       # Alt+up/down changes threshold by this
    },
    "render": {
        "workers": None,                  # auto if None: os.cpu_count()
        "pan_cache": True,                # reuse results while panning
        "cache_shards": 16,
        "cache_max_entries": None,        # None = never evict
        "cache_prune_watermark": 0.85,    # prune down to 85% when exceeding
    },
    "ui": {
        "theme": "auto",                  # auto | light | dark
        "statusbar": True,
        "help_panel": False,
    },
    "logging": {
        "level": "WARNING",
        "file": None,                     # path or None
        "rotate_bytes": 5 * 1024 * 1024,
        "rotate_keep": 3,
    },
}

# ----------------------------
# Helpers
# ----------------------------

def _os_config_home() -> str:
    """Return per-OS config base directory."""
    if platform.system() == "Windows":
        base = os.environ.get("APPDATA") or os.path.expanduser("~\\AppData\\Roaming")
        return os.path.join(base, "SextantMandel")
    # macOS: ~/Library/Application Support/SextantMandel
    if platform.system() == "Darwin":
        return os.path.join(os.path.expanduser("~/Library/Application Support"), "SextantMandel")
    # Linux and others: ~/.config/sextant_mandel
    return os.path.join(os.path.expanduser("~/.config"), "sextant_mandel")

def _default_config_path() -> str:
    """Resolve default config path, honoring SEXTANT_MANDEL_CONFIG env override."""
    env = os.environ.get("SEXTANT_MANDEL_CONFIG")
    if env:
        return os.path.expanduser(env)
    return os.path.join(_os_config_home(), "sextant_mandel.json")

def _defaults_copy() -> Dict[str, Any]:
    return json.loads(json.dumps(DEFAULT_CONFIG))

def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Return deep-merged copy of dicts: values in b override a."""
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out

def _atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".tmp_cfg_", dir=os.path.dirname(path))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(tmp, path)
    except Exception:
        # Clean temp on error
        if os.path.exists(tmp):
            os.remove(tmp)
        raise

def _coerce_num(v: Any, default: float, minmax: Optional[Tuple[float, float]] = None) -> float:
    try:
        x = float(v)
    except (TypeError, ValueError):
        return float(default)
    if x != x:  # NaN
        return float(default)
    if minmax:
        lo, hi = minmax
        if x < lo: x = lo
        if x > hi: x = hi
    return x

def _coerce_int(v: Any, default: int, minmax: Optional[Tuple[int, int]] = None) -> int:
    try:
        x = int(v)
    except (TypeError, ValueError, OverflowError):
        return int(default)
    if minmax:
        lo, hi = minmax
        if x < lo: x = lo
        if x > hi: x = hi
    return x

def _coerce_bool(v: Any, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("1", "true", "yes", "on"): return True
        if s in ("0", "false", "no", "off"): return False
    return default

def _coerce_optional_int(v: Any, minmax: Tuple[int, int]) -> Optional[int]:
    if v is None:
        return None
    try:
        x = int(v)
    except (TypeError, ValueError, OverflowError):
        return None
    lo, hi = minmax
    return max(lo, min(hi, x))

# ----------------------------
# Validation
# ----------------------------

def _validate(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Return validated copy with fallbacks applied."""
    d = DEFAULT_CONFIG
    c = _deep_merge(_defaults_copy(), cfg or {})

    # app
    c["app"]["title"] = str(c["app"].get("title") or d["app"]["title"])
    c["app"]["shutdown_timeout_s"] = _coerce_num(c["app"].get("shutdown_timeout_s"), 3.0, (0.5, 30.0))

    # view
    v = c["view"]
    for key in ("x_min", "x_max", "y_min", "y_max"):
        v[key] = _coerce_num(v.get(key), d["view"][key], (-1e6, 1e6))
    if v["x_min"] >= v["x_max"]:
        v["x_min"], v["x_max"] = d["view"]["x_min"], d["view"]["x_max"]
    if v["y_min"] >= v["y_max"]:
        v["y_min"], v["y_max"] = d["view"]["y_min"], d["view"]["y_max"]
    v["threshold"] = _coerce_int(v.get("threshold"), d["view"]["threshold"], (0, 1_000_000))
    v["pan_fast_multiplier"] = _coerce_int(v.get("pan_fast_multiplier"), 100, (1, 10_000))
    v["zoom_fast_steps"] = _coerce_int(v.get("zoom_fast_steps"), 10, (1, 1000))
    v["threshold_fast_step"] = _coerce_int(v.get("threshold_fast_step"), 50, (1, 100_000))

    # render
    r = c["render"]
    r["workers"] = _coerce_optional_int(r.get("workers"), (1, 256))
    r["pan_cache"] = _coerce_bool(r.get("pan_cache"), d["render"]["pan_cache"])
    r["cache_shards"] = _coerce_int(r.get("cache_shards"), 16, (1, 1024))
    r["cache_max_entries"] = _coerce_optional_int(r.get("cache_max_entries"), (1024, 1 << 31))
    r["cache_prune_watermark"] = _coerce_num(r.get("cache_prune_watermark"), 0.85, (0.50, 0.99))

    # ui
    ui = c["ui"]
    if ui.get("theme") not in ("auto", "light", "dark"):
        ui["theme"] = d["ui"]["theme"]
    for key in ("statusbar", "help_panel"):
        ui[key] = _coerce_bool(ui.get(key), d["ui"][key])

    # logging
    lg = c["logging"]
    if lg.get("level") not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"):
        lg["level"] = d["logging"]["level"]
    lf = lg.get("file")
    lg["file"] = str(lf) if lf else None
    lg["rotate_bytes"] = _coerce_int(lg.get("rotate_bytes"), d["logging"]["rotate_bytes"], (256 * 1024, 50 * 1024 * 1024))
    lg["rotate_keep"]  = _coerce_int(lg.get("rotate_keep"), d["logging"]["rotate_keep"], (0, 50))

    return c

# ----------------------------
# Public API
# ----------------------------

@dataclass
class Config:
    """Thin wrapper around a nested dict with load/save/merge."""
    data: Dict[str, Any] = field(default_factory=lambda: _validate(DEFAULT_CONFIG))
    path: str = field(default_factory=_default_config_path)

    # --- Mapping-style access
    def __getitem__(self, k: str) -> Any:
        return self.data[k]

    def __setitem__(self, k: str, v: Any) -> None:
        self.data[k] = v

    def get(self, k: str, default: Any = None) -> Any:
        return self.data.get(k, default)

    # --- Ops
    @classmethod
    def load(cls, path: Optional[str] = None, create_if_missing: bool = True) -> "Config":
        cfg_path = os.path.expanduser(path) if path else _default_config_path()
        if not os.path.exists(cfg_path):
            cfg = _validate(DEFAULT_CONFIG)
            if create_if_missing:
                _atomic_write_json(cfg_path, cfg)
            return cls(cfg, cfg_path)

        try:
            with open(cfg_path, "r", encoding="utf-8") as f:
                user_cfg = json.load(f)
            if not isinstance(user_cfg, dict):
                raise ValueError("config root must be an object")
        except (OSError, ValueError):
            # Corrupt file. Backup and regenerate.
            backup = cfg_path + ".corrupt.bak"
            try:
                shutil.copyfile(cfg_path, backup)
            except OSError:
                pass
            user_cfg = {}

        return cls(_validate(_deep_merge(DEFAULT_CONFIG, user_cfg)), cfg_path)

    def save(self) -> None:
        """Persist to JSON atomically."""
        full = _validate(self.data)
        _atomic_write_json(self.path, full)
        self.data = full  # sync in-memory with normalized values

    def update(self, partial: Dict[str, Any]) -> None:
        """Deep-merge a partial config then validate."""
        merged = _deep_merge(self.data, partial)
        self.data = _validate(merged)

    # Convenience getters
    @property
    def threshold(self) -> int:
        return self.data["view"]["threshold"]

    @property
    def workers(self) -> Optional[int]:
        return self.data["render"]["workers"]

__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "_default_config_path",
]
