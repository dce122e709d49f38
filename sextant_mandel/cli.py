#!/usr/bin/env python3
# sextant_mandel/cli.py
"""
Entry point for the sextant Mandelbrot viewer.
Loads configuration and runs FractalApp.
"""

import os
import sys

from sextant_mandel.ui.app import FractalApp


def main():
    if os.name == "nt" and not sys.stdout.isatty():
        print("No Windows console detected. Run from cmd, PowerShell, or Windows Terminal.")
        raise SystemExit(1)
    app = FractalApp()
    app.run()

if __name__ == "__main__":
    main()
