"""
RobertsEdge/core/accessor.py

Read/write cursors over a :class:`~RobertsEdge.io.raster.Raster`.

Both cursors move whole row bands between the backing store and memory so
pixel-level repositioning never touches storage directly.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..utils.errors import AccessorInvalidError, RasterIOError

logger = logging.getLogger(__name__)


class ReadCursor:
    """Randomly repositionable read cursor.

    Rows are served from a cached band of ``block_rows`` rows. A miss reloads
    the band starting ``lookbehind_rows`` above the requested row, so
    alternating between a row and the row below it stays inside one band.
    """

    def __init__(self, raster, block_rows: int = 64, lookbehind_rows: int = 1):
        self.raster = raster
        self.block_rows = max(2, int(block_rows))
        self.lookbehind_rows = max(0, min(int(lookbehind_rows), self.block_rows - 1))
        self._band: Optional[np.ndarray] = None
        self._band_start = 0
        self._row = 0
        self._col = 0
        self._valid = True
        self.band_loads = 0

    @property
    def is_valid(self) -> bool:
        return self._valid

    @property
    def position(self):
        return (self._row, self._col)

    def _band_contains(self, row: int) -> bool:
        return (self._band is not None and
                self._band_start <= row < self._band_start + self._band.shape[0])

    def _load_band(self, row: int) -> None:
        start = max(0, row - self.lookbehind_rows)
        stop = min(self.raster.row_count, start + self.block_rows)
        self._band = self.raster.read_rows(start, stop)
        self._band_start = start
        self.band_loads += 1

    def reposition(self, row: int, col: int) -> bool:
        """Move to ``(row, col)``; return False if the store cannot serve it."""
        if not (0 <= row < self.raster.row_count and 0 <= col < self.raster.col_count):
            raise IndexError(f"Read cursor position ({row}, {col}) outside raster {self.raster.shape}")
        self._row, self._col = row, col
        if not self._band_contains(row):
            try:
                self._load_band(row)
            except RasterIOError as e:
                logger.debug(f"Read cursor invalidated at ({row}, {col}): {e}")
                self._band = None
                self._valid = False
                return False
        self._valid = True
        return True

    def sample(self):
        """Typed sample at the current position."""
        if not self._valid:
            raise AccessorInvalidError(f"Read cursor for {self.raster.name!r} is invalid")
        return self._band[self._row - self._band_start, self._col]

    def row(self, row: int) -> np.ndarray:
        """Whole row ``row``; positions the cursor at its first column."""
        if not self.reposition(row, 0):
            raise AccessorInvalidError(f"Unable to read row {row} of {self.raster.name!r}")
        return self._band[row - self._band_start]


class WriteCursor:
    """Monotonic write cursor: left to right, then top to bottom.

    Completed rows are buffered and written to the store ``block_rows`` at a
    time; a failed write invalidates the cursor.
    """

    def __init__(self, raster, block_rows: int = 64):
        if not raster.writable:
            raise AccessorInvalidError(f"Raster {raster.name!r} is not writable")
        self.raster = raster
        self.block_rows = max(1, int(block_rows))
        self._buffer = np.zeros((self.block_rows, raster.col_count), dtype=raster.dtype)
        self._buffer_start = 0
        self._buffered = 0
        self._row = 0
        self._col = 0
        self._valid = True

    @property
    def is_valid(self) -> bool:
        return self._valid and self._row < self.raster.row_count and self._col < self.raster.col_count

    @property
    def position(self):
        return (self._row, self._col)

    @property
    def rows_flushed(self) -> int:
        return self._buffer_start

    def _require_valid(self) -> None:
        if not self.is_valid:
            raise AccessorInvalidError(
                f"Write cursor for {self.raster.name!r} is invalid at {self.position}"
            )

    def current_slot(self) -> np.ndarray:
        """Writable one-element view of the current output sample."""
        self._require_valid()
        return self._buffer[self._buffered, self._col:self._col + 1]

    def write(self, value) -> None:
        self.current_slot()[0] = value

    def write_row(self, values: np.ndarray) -> None:
        """Fill the rest of the current row starting at the current column."""
        self._require_valid()
        values = np.asarray(values)
        stop = self._col + values.shape[0]
        if stop > self.raster.col_count:
            raise IndexError(f"Row of {values.shape[0]} values overruns column {self._col}")
        self._buffer[self._buffered, self._col:stop] = values
        self._col = stop

    def advance_column(self) -> None:
        self._require_valid()
        self._col += 1

    def advance_row(self) -> None:
        if not self._valid or self._row >= self.raster.row_count:
            raise AccessorInvalidError(f"Write cursor for {self.raster.name!r} is exhausted")
        self._row += 1
        self._col = 0
        self._buffered += 1
        if self._buffered == self.block_rows:
            self.flush()

    def flush(self) -> None:
        """Write all completed, buffered rows to the store."""
        if not self._buffered or not self._valid:
            return
        try:
            self.raster.write_rows(self._buffer_start, self._buffer[:self._buffered])
        except RasterIOError as e:
            logger.error(f"Write cursor invalidated at row {self._buffer_start}: {e}")
            self._valid = False
            return
        self._buffer_start += self._buffered
        self._buffered = 0
