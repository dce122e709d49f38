#!/usr/bin/env python3
# sextant_mandel/scaler.py
"""
Affine mapping from pixel indices to logical (complex plane) coordinates.

A Scaler is immutable. Pan and zoom return a freshly constructed Scaler so
the per-pixel step is always recomputed from the window, never patched.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

__all__ = ["Scaler"]


@dataclass(frozen=True)
class Scaler:
    original_min: float
    original_max: float
    target_min: float
    target_max: float
    scalar: float = field(init=False)

    def __post_init__(self):
        original_range = self.original_max - self.original_min
        if original_range == 0:
            raise ValueError(f"degenerate pixel domain [{self.original_min}, {self.original_max}]")
        object.__setattr__(self, "scalar", (self.target_max - self.target_min) / original_range)

    # -------------
    # Mapping
    # -------------

    def scale(self, n: float) -> float:
        return (n - self.original_min) * self.scalar + self.target_min

    def scale_array(self, n: np.ndarray) -> np.ndarray:
        """Vectorized scale(); same operations in the same order."""
        return (np.asarray(n, dtype=np.float64) - self.original_min) * self.scalar + self.target_min

    # -------------
    # Pan / zoom
    # -------------

    def _retarget(self, target_min: float, target_max: float) -> "Scaler":
        return Scaler(self.original_min, self.original_max, target_min, target_max)

    def offset(self, amount: float) -> "Scaler":
        return self._retarget(self.target_min + amount, self.target_max + amount)

    def zoom_in(self) -> "Scaler":
        half = self.scalar / 2.0
        return self._retarget(self.target_min + half, self.target_max - half)

    def zoom_out(self) -> "Scaler":
        half = self.scalar / 2.0
        return self._retarget(self.target_min - half, self.target_max + half)
