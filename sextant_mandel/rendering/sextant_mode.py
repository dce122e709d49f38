#!/usr/bin/env python3
# sextant_mandel/rendering/sextant_mode.py
"""
Sextant (2x3) renderer.
Encodes six subpixels per terminal cell using the Unicode block sextants
U+1FB00..U+1FB3B. The four patterns that block leaves out (empty, full and
the two half columns) map to space, the full block and the half blocks.
"""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from sextant_mandel.bitgrid import PackedGrid

StyleRun = Tuple[str, str]
LineFrag = List[StyleRun]
FrameFrag = List[LineFrag]

__all__ = [
    "SextantRenderer",
    "SEXTANT_GLYPHS",
    "encode_glyph",
    "sextant_size",
    "CELL_W",
    "CELL_H",
]

CELL_W = 2
CELL_H = 3

# Sextant bit positions:
#  1 2      0x01 0x02
#  3 4  ->  0x04 0x08
#  5 6      0x10 0x20
CELL_BITS = (
    (0x01, 0x02),  # top row: col 0, col 1
    (0x04, 0x08),  # middle row
    (0x10, 0x20),  # bottom row
)

SEXTANT_BASE = 0x1FB00
BLANK = 0b000000
LEFT_HALF = 0b010101   # top-left, middle-left, bottom-left
RIGHT_HALF = 0b101010  # top-right, middle-right, bottom-right
FULL = 0b111111


def _build_table() -> Tuple[str, ...]:
    table = []
    skipped = 1  # BLOCK SEXTANT-1 sits at the base, so pattern 1 -> offset 0
    for bits in range(64):
        if bits == BLANK:
            table.append(" ")
        elif bits == FULL:
            table.append("█")
        elif bits == LEFT_HALF:
            table.append("▌")
            skipped += 1
        elif bits == RIGHT_HALF:
            table.append("▐")
            skipped += 1
        else:
            table.append(chr(SEXTANT_BASE + bits - skipped))
    return tuple(table)


SEXTANT_GLYPHS: Tuple[str, ...] = _build_table()
_GLYPH_ARRAY = np.array(SEXTANT_GLYPHS)


def encode_glyph(
    top_left: bool,
    top_right: bool,
    middle_left: bool,
    middle_right: bool,
    bottom_left: bool,
    bottom_right: bool,
) -> str:
    bits = (
        bool(top_left)
        | bool(top_right) << 1
        | bool(middle_left) << 2
        | bool(middle_right) << 3
        | bool(bottom_left) << 4
        | bool(bottom_right) << 5
    )
    return SEXTANT_GLYPHS[bits]


def sextant_size(columns: int, rows: int) -> Tuple[int, int]:
    """Bit-grid size needed to fill a terminal area of columns x rows cells."""
    return columns * CELL_W, rows * CELL_H


class SextantRenderer:
    @staticmethod
    def cell_codes(grid: PackedGrid) -> np.ndarray:
        """
        Return a (rows, columns) array of 6-bit patterns, one per terminal
        cell. Partial cells at the right or bottom edge are dropped.
        """
        cols = grid.width // CELL_W
        rows = grid.height // CELL_H
        if cols == 0 or rows == 0:
            return np.zeros((rows, cols), dtype=np.uint8)

        arr = grid.to_array()[: rows * CELL_H, : cols * CELL_W]
        # (rows, 3, cols, 2): cell row, sub-row, cell column, sub-column
        blocks = arr.reshape(rows, CELL_H, cols, CELL_W).astype(np.uint8)
        codes = np.zeros((rows, cols), dtype=np.uint8)
        for ry in range(CELL_H):
            for cx in range(CELL_W):
                codes |= blocks[:, ry, :, cx] * np.uint8(CELL_BITS[ry][cx])
        return codes

    def render(self, grid: PackedGrid, style: str = "") -> FrameFrag:
        codes = self.cell_codes(grid)
        if codes.size == 0:
            return [[("", "")]]

        frame: FrameFrag = []
        for row in codes:
            frame.append([(style, "".join(_GLYPH_ARRAY[row].tolist()))])
        return frame
