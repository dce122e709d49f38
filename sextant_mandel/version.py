#!/usr/bin/env python3
# sextant_mandel/version.py
"""
Version and build metadata for the sextant Mandelbrot viewer.
"""

__version__ = "1.0.0"
__build__ = "2026-10-19"
__license__ = "MIT"

def version_info() -> str:
    """Return human-readable version string."""
    return f"Sextant Mandelbrot v{__version__} (build {__build__})"
