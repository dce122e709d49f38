#!/usr/bin/env python3
# sextant_mandel/escape.py
"""
Escape-time membership test for the Mandelbrot set.

is_inside() evaluates one point; row_inside() evaluates a whole row of x
coordinates sharing one y0. Both run the same floating-point operations in
the same order, so they agree bit for bit.
"""

from __future__ import annotations

import numpy as np

__all__ = ["BAILOUT", "is_inside", "row_inside"]

# Squared escape radius
BAILOUT = 4.0


def _check_threshold(threshold: int) -> None:
    if threshold < 0:
        raise ValueError(f"threshold must be non-negative, got {threshold}")


def is_inside(x0: float, y0: float, threshold: int) -> bool:
    """True when z <- z^2 + c has not escaped after `threshold` iterations."""
    _check_threshold(threshold)
    x = y = x2 = y2 = 0.0
    iteration = 0
    while x2 + y2 <= BAILOUT and iteration < threshold:
        y = (x + x) * y + y0
        x = x2 - y2 + x0
        x2 = x * x
        y2 = y * y
        iteration += 1
    return iteration == threshold


def row_inside(xs: np.ndarray, y0: float, threshold: int) -> np.ndarray:
    """Boolean array: is_inside(x0, y0, threshold) for every x0 in xs."""
    _check_threshold(threshold)
    xs = np.asarray(xs, dtype=np.float64)
    n = xs.shape[0]
    x = np.zeros(n)
    y = np.zeros(n)
    x2 = np.zeros(n)
    y2 = np.zeros(n)
    iterations = np.zeros(n, dtype=np.int64)

    live = np.arange(n)
    for _ in range(threshold):
        live = live[x2[live] + y2[live] <= BAILOUT]
        if live.size == 0:
            break
        xl = x[live]
        yl = (xl + xl) * y[live] + y0
        xl = x2[live] - y2[live] + xs[live]
        x[live] = xl
        y[live] = yl
        x2[live] = xl * xl
        y2[live] = yl * yl
        iterations[live] += 1
    return iterations == threshold
