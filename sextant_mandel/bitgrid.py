#!/usr/bin/env python3
# sextant_mandel/bitgrid.py
"""
Packed bi-level bitmap addressed by (x, y).

Bits are stored row-major in a numpy uint8 buffer, eight bits per byte,
least-significant bit first. Padding bits past the last pixel are always zero.
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np

__all__ = ["PackedGrid"]

RowValues = Union[Sequence[bool], np.ndarray]


def _nbytes(bits: int) -> int:
    return (bits + 7) >> 3


class PackedGrid:
    """
    width x height bitmap backed by a packed bit sequence.
    Not thread-safe; concurrent writers must serialize through a lock.
    """

    def __init__(self, width: int, height: int):
        if width < 0 or height < 0:
            raise ValueError(f"grid size must be non-negative, got {width}x{height}")
        self._width = int(width)
        self._height = int(height)
        self._len = self._width * self._height
        self._buf = np.zeros(_nbytes(self._len), dtype=np.uint8)

    # -------------
    # Geometry
    # -------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def area(self) -> int:
        """Length of the bit sequence. Always width * height."""
        return self._len

    def __len__(self) -> int:
        return self._len

    def __repr__(self) -> str:
        return f"PackedGrid(width={self._width}, height={self._height})"

    def _index(self, x: int, y: int) -> Optional[int]:
        if 0 <= x < self._width and 0 <= y < self._height:
            return y * self._width + x
        return None

    # -------------
    # Bit access
    # -------------

    def get(self, x: int, y: int) -> Optional[bool]:
        """Return the bit at (x, y), or None when (x, y) is out of range."""
        i = self._index(x, y)
        if i is None:
            return None
        return bool((int(self._buf[i >> 3]) >> (i & 7)) & 1)

    def set(self, x: int, y: int, value: bool) -> None:
        i = self._index(x, y)
        if i is None:
            raise IndexError(f"({x}, {y}) outside {self._width}x{self._height} grid")
        mask = 1 << (i & 7)
        if value:
            self._buf[i >> 3] |= mask
        else:
            self._buf[i >> 3] &= 0xFF ^ mask

    def set_row(self, y: int, values: RowValues) -> None:
        """Write a full row of `width` bits at row y."""
        if not 0 <= y < self._height:
            raise IndexError(f"row {y} outside {self._width}x{self._height} grid")
        row = np.asarray(values, dtype=bool)
        if row.shape != (self._width,):
            raise ValueError(f"row must have {self._width} values, got shape {row.shape}")

        idx = np.arange(y * self._width, (y + 1) * self._width, dtype=np.int64)
        byte_idx = idx >> 3
        masks = np.left_shift(1, idx & 7).astype(np.uint8)
        # ufunc.at applies repeated byte indices one by one
        np.bitwise_or.at(self._buf, byte_idx[row], masks[row])
        np.bitwise_and.at(self._buf, byte_idx[~row], np.invert(masks[~row]))

    def clear_all(self) -> None:
        self._buf.fill(0)

    def fill_all(self) -> None:
        self._buf.fill(0xFF)
        self._zero_padding()

    def _zero_padding(self) -> None:
        tail = self._len & 7
        if tail and self._buf.size:
            self._buf[-1] &= (1 << tail) - 1

    # -------------
    # Resize
    # -------------

    def resize(self, width: int, height: int, fill: bool = False) -> None:
        """
        Change geometry in place. The bit sequence is truncated from the end
        when shrinking and padded with `fill` when growing; 2D positions are
        not preserved, so every bit must be rewritten before it is read again.
        """
        if width < 0 or height < 0:
            raise ValueError(f"grid size must be non-negative, got {width}x{height}")
        new_len = int(width) * int(height)
        if new_len != self._len:
            bits = np.unpackbits(self._buf, count=self._len, bitorder="little")
            if new_len < self._len:
                bits = bits[:new_len]
            else:
                grow = np.full(new_len - self._len, 1 if fill else 0, dtype=np.uint8)
                bits = np.concatenate([bits, grow])
            self._buf = np.packbits(bits, bitorder="little")
        self._width = int(width)
        self._height = int(height)
        self._len = new_len

    # -------------
    # Export
    # -------------

    def to_array(self) -> np.ndarray:
        """Return a (height, width) boolean copy of the bits."""
        bits = np.unpackbits(self._buf, count=self._len, bitorder="little")
        return bits.astype(bool).reshape(self._height, self._width)
