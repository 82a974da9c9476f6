"""
Occupancy grid for a single packing attempt.

The grid is a contiguous int32 buffer indexed by (row, col). Each cell holds
FREE or the index of the rect covering it. A new grid is created for every
canvas size tried; grids are never reused across attempts.
"""

from typing import Optional, Tuple

import numpy as np

FREE = -1


class BlockGrid:
    """Row-major block occupancy buffer with first-fit search."""

    def __init__(self, cols: int, rows: int):
        if cols < 1 or rows < 1:
            raise ValueError(f"Grid needs at least 1x1 blocks, got {cols}x{rows}")
        self.cols = cols
        self.rows = rows
        self._cells = np.full((rows, cols), FREE, dtype=np.int32)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.cols, self.rows

    def _check_bounds(self, row: int, col: int) -> None:
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise IndexError(f"Cell ({row}, {col}) outside {self.cols}x{self.rows} grid")

    def cell(self, row: int, col: int) -> int:
        self._check_bounds(row, col)
        return int(self._cells[row, col])

    def is_free(self, row: int, col: int, rows: int, cols: int) -> bool:
        """True if the footprint anchored at (row, col) is inside the grid and unoccupied."""
        if row < 0 or col < 0 or row + rows > self.rows or col + cols > self.cols:
            return False
        return bool((self._cells[row:row + rows, col:col + cols] == FREE).all())

    def mark(self, row: int, col: int, rows: int, cols: int, owner: int) -> None:
        """Claim a footprint for owner. The footprint must be free."""
        if not self.is_free(row, col, rows, cols):
            raise ValueError(f"Footprint {cols}x{rows} at ({row}, {col}) is not free")
        self._cells[row:row + rows, col:col + cols] = owner

    def first_fit(
        self,
        cols: int,
        rows: int,
        max_col: Optional[int] = None,
        max_row: Optional[int] = None,
    ) -> Optional[Tuple[int, int]]:
        """
        Scan top row first, left to right, for the first free footprint.

        Args:
            cols: Footprint width in blocks
            rows: Footprint height in blocks
            max_col: Largest anchor column allowed (defaults to the grid edge)
            max_row: Largest anchor row allowed (defaults to the grid edge)

        Returns:
            (col, row) anchor, or None if nothing fits
        """
        last_col = self.cols - cols if max_col is None else min(max_col, self.cols - cols)
        last_row = self.rows - rows if max_row is None else min(max_row, self.rows - rows)
        if last_col < 0 or last_row < 0:
            return None

        for row in range(last_row + 1):
            for col in range(last_col + 1):
                if self._cells[row, col] != FREE:
                    continue
                if self.is_free(row, col, rows, cols):
                    return col, row
        return None

    def occupied(self) -> int:
        """Number of claimed cells."""
        return int(np.count_nonzero(self._cells != FREE))
