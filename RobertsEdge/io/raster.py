"""
RobertsEdge/io/raster.py

Single-band raster backing stores (in-memory, GeoTIFF, Zarr, forward-only
row streams) behind one windowed read/write interface.
"""
from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import numpy as np
import rasterio
from rasterio.errors import RasterioError
from rasterio.windows import Window

from ..core.encoding import Encoding
from ..utils.errors import RasterIOError

logger = logging.getLogger(__name__)


class Raster(ABC):
    """2-D grid of samples with one encoding.

    Subclasses implement ``_read_window``/``_write_window``; the public
    methods check bounds and writability. ``__getitem__``/``__setitem__``
    accept plain row/column slices so dask can read from and store into any
    raster.
    """

    forward_only = False

    def __init__(self, name: str, row_count: int, col_count: int, encoding: Encoding,
                 writable: bool = False):
        if row_count <= 0 or col_count <= 0:
            raise ValueError(f"Raster must not be empty, got {row_count}x{col_count}")
        self.name = name
        self.row_count = int(row_count)
        self.col_count = int(col_count)
        self.encoding = encoding
        self.writable = writable

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.row_count, self.col_count)

    @property
    def dtype(self) -> np.dtype:
        return self.encoding.dtype

    @property
    def ndim(self) -> int:
        return 2

    @property
    def nbytes(self) -> int:
        return self.row_count * self.col_count * self.dtype.itemsize

    def __repr__(self):
        return (f"{type(self).__name__}(name={self.name!r}, shape={self.shape}, "
                f"encoding={self.encoding.name})")

    # -- windowed access ---------------------------------------------------

    def read_window(self, row_start: int, row_stop: int, col_start: int, col_stop: int) -> np.ndarray:
        if not (0 <= row_start <= row_stop <= self.row_count and
                0 <= col_start <= col_stop <= self.col_count):
            raise IndexError(
                f"Window rows {row_start}:{row_stop}, cols {col_start}:{col_stop} "
                f"outside raster {self.shape}"
            )
        return self._read_window(row_start, row_stop, col_start, col_stop)

    def write_window(self, row_start: int, col_start: int, block: np.ndarray) -> None:
        if not self.writable:
            raise RasterIOError(f"Raster {self.name!r} is not writable")
        block = np.asarray(block, dtype=self.dtype)
        if block.ndim != 2:
            raise ValueError(f"Expected a 2-D block, got shape {block.shape}")
        rows, cols = block.shape
        if not (0 <= row_start and row_start + rows <= self.row_count and
                0 <= col_start and col_start + cols <= self.col_count):
            raise IndexError(f"Block {block.shape} at ({row_start}, {col_start}) outside raster {self.shape}")
        self._write_window(row_start, col_start, block)

    def read_rows(self, start: int, stop: int) -> np.ndarray:
        return self.read_window(start, stop, 0, self.col_count)

    def write_rows(self, start: int, block: np.ndarray) -> None:
        self.write_window(start, 0, block)

    @abstractmethod
    def _read_window(self, row_start, row_stop, col_start, col_stop) -> np.ndarray:
        pass

    def _write_window(self, row_start, col_start, block) -> None:
        raise RasterIOError(f"{type(self).__name__} does not support writing")

    # -- numpy-style indexing ----------------------------------------------

    def _normalize_key(self, key) -> List[Tuple[int, int, bool]]:
        if not isinstance(key, tuple):
            key = (key,)
        if len(key) > 2:
            raise IndexError(f"Too many indices for a 2-D raster: {key!r}")
        key = key + (slice(None),) * (2 - len(key))
        bounds = []
        for k, size in zip(key, self.shape):
            if isinstance(k, slice):
                start, stop, step = k.indices(size)
                if step != 1:
                    raise IndexError("Strided raster access is not supported")
                bounds.append((start, max(start, stop), False))
            elif isinstance(k, (int, np.integer)):
                index = int(k) + size if k < 0 else int(k)
                if not 0 <= index < size:
                    raise IndexError(f"Index {k} out of range for axis of size {size}")
                bounds.append((index, index + 1, True))
            else:
                raise TypeError(f"Unsupported raster index: {k!r}")
        return bounds

    def __getitem__(self, key) -> np.ndarray:
        (r0, r1, squeeze_r), (c0, c1, squeeze_c) = self._normalize_key(key)
        block = self.read_window(r0, r1, c0, c1)
        if squeeze_r and squeeze_c:
            return block[0, 0]
        if squeeze_r:
            return block[0]
        if squeeze_c:
            return block[:, 0]
        return block

    def __setitem__(self, key, value) -> None:
        (r0, r1, _), (c0, c1, _) = self._normalize_key(key)
        block = np.broadcast_to(np.asarray(value, dtype=self.dtype), (r1 - r0, c1 - c0))
        self.write_window(r0, c0, block)

    # -- lifecycle -----------------------------------------------------------

    def finalize(self) -> "Raster":
        """Flush pending writes and make the raster read-only."""
        self.writable = False
        return self

    def close(self) -> None:
        pass

    def discard(self) -> None:
        """Release the raster and delete any storage it created."""
        self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class ArrayRaster(Raster):
    """Raster held in a numpy array."""

    def __init__(self, data: np.ndarray, name: str = "raster", writable: bool = False):
        if not isinstance(data, np.ndarray):
            raise TypeError(f"Expected np.ndarray, got {type(data)}")
        if data.ndim != 2:
            raise ValueError(f"Raster data must be 2-D, got shape {data.shape}")
        super().__init__(name, data.shape[0], data.shape[1], Encoding.from_dtype(data.dtype), writable)
        self._data = data

    @classmethod
    def empty(cls, name: str, row_count: int, col_count: int, encoding: Encoding) -> "ArrayRaster":
        return cls(np.zeros((row_count, col_count), dtype=encoding.dtype), name=name, writable=True)

    @property
    def array(self) -> np.ndarray:
        return self._data

    def _read_window(self, row_start, row_stop, col_start, col_stop):
        return self._data[row_start:row_stop, col_start:col_stop]

    def _write_window(self, row_start, col_start, block):
        rows, cols = block.shape
        self._data[row_start:row_start + rows, col_start:col_start + cols] = block

    def finalize(self):
        self._data.flags.writeable = False
        return super().finalize()


class GeoTiffRaster(Raster):
    """One band of a rasterio dataset, accessed through row windows."""

    def __init__(self, path, band: int = 1, mode: str = "r", profile: Optional[dict] = None,
                 name: Optional[str] = None):
        self.path = Path(path)
        self.band = band
        try:
            if mode == "r":
                self._dataset = rasterio.open(self.path, "r")
            else:
                self._dataset = rasterio.open(self.path, "w", **profile)
        except RasterioError as e:
            raise RasterIOError(f"Cannot open {self.path}: {e}") from e
        if not 1 <= band <= self._dataset.count:
            self._dataset.close()
            raise ValueError(f"Band {band} not in {self.path} ({self._dataset.count} bands)")
        encoding = Encoding.from_dtype(self._dataset.dtypes[band - 1])
        raster_name = name or self._dataset.tags().get("NAME") or self.path.stem
        super().__init__(raster_name, self._dataset.height, self._dataset.width, encoding,
                         writable=mode != "r")

    @classmethod
    def create(cls, path, name: str, row_count: int, col_count: int, encoding: Encoding,
               template: Optional[dict] = None, creation_options: Optional[dict] = None) -> "GeoTiffRaster":
        profile = {
            "driver": "GTiff",
            "height": row_count,
            "width": col_count,
            "count": 1,
            "dtype": encoding.dtype.name,
        }
        if template:
            for key in ("crs", "transform", "nodata"):
                if template.get(key) is not None:
                    profile[key] = template[key]
        profile.update(creation_options or {})
        raster = cls(path, mode="w", profile=profile, name=name)
        raster._dataset.update_tags(NAME=name)
        return raster

    @property
    def profile(self) -> dict:
        return dict(self._dataset.profile)

    @property
    def crs(self):
        return self._dataset.crs

    @property
    def transform(self):
        return self._dataset.transform

    def _read_window(self, row_start, row_stop, col_start, col_stop):
        window = Window(col_start, row_start, col_stop - col_start, row_stop - row_start)
        try:
            return self._dataset.read(self.band, window=window)
        except RasterioError as e:
            raise RasterIOError(f"Read of rows {row_start}:{row_stop} from {self.path} failed: {e}") from e

    def _write_window(self, row_start, col_start, block):
        window = Window(col_start, row_start, block.shape[1], block.shape[0])
        try:
            self._dataset.write(block, self.band, window=window)
        except RasterioError as e:
            raise RasterIOError(f"Write at row {row_start} to {self.path} failed: {e}") from e

    def finalize(self):
        if self.writable:
            self._dataset.close()
            self._dataset = rasterio.open(self.path, "r")
        return super().finalize()

    def close(self):
        if not self._dataset.closed:
            self._dataset.close()

    def discard(self):
        self.close()
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Removed partial result: {self.path}")


class ZarrRaster(Raster):
    """Raster stored in a 2-D zarr array."""

    def __init__(self, array, name: Optional[str] = None, path=None, writable: bool = False):
        import zarr

        if not isinstance(array, zarr.Array):
            raise TypeError(f"Expected zarr.Array, got {type(array)}")
        if array.ndim != 2:
            raise ValueError(f"Zarr raster must be 2-D, got shape {array.shape}")
        self.path = Path(path) if path is not None else None
        self._array = array
        raster_name = name or array.attrs.get("name") or (self.path.stem if self.path else "raster")
        super().__init__(raster_name, array.shape[0], array.shape[1],
                         Encoding.from_dtype(array.dtype), writable)

    @classmethod
    def open(cls, path, name: Optional[str] = None) -> "ZarrRaster":
        import zarr

        try:
            array = zarr.open_array(store=str(path), mode="r")
        except (OSError, ValueError, KeyError) as e:
            raise RasterIOError(f"Cannot open zarr array {path}: {e}") from e
        return cls(array, name=name, path=path)

    @classmethod
    def create(cls, path, name: str, row_count: int, col_count: int, encoding: Encoding,
               chunk_rows: int = 512) -> "ZarrRaster":
        import zarr

        chunks = (max(1, min(chunk_rows, row_count)), col_count)
        if path is None:
            array = zarr.zeros((row_count, col_count), chunks=chunks, dtype=encoding.dtype)
        else:
            array = zarr.open_array(store=str(path), mode="w", shape=(row_count, col_count),
                                    chunks=chunks, dtype=encoding.dtype)
        array.attrs["name"] = name
        return cls(array, name=name, path=path, writable=True)

    @property
    def array(self):
        return self._array

    def _read_window(self, row_start, row_stop, col_start, col_stop):
        try:
            return np.asarray(self._array[row_start:row_stop, col_start:col_stop])
        except OSError as e:
            raise RasterIOError(f"Read of rows {row_start}:{row_stop} from zarr failed: {e}") from e

    def _write_window(self, row_start, col_start, block):
        rows, cols = block.shape
        try:
            self._array[row_start:row_start + rows, col_start:col_start + cols] = block
        except OSError as e:
            raise RasterIOError(f"Write at row {row_start} to zarr failed: {e}") from e

    def discard(self):
        if self.path is not None and self.path.exists():
            shutil.rmtree(self.path, ignore_errors=True)
            logger.info(f"Removed partial result: {self.path}")


class RowStreamRaster(Raster):
    """Read-only raster fed by a forward-only iterator of rows.

    Only the most recent ``window`` rows stay available behind the furthest
    row read; asking for anything older fails with :class:`RasterIOError`.
    """

    forward_only = True

    def __init__(self, rows: Iterable, row_count: int, col_count: int, dtype,
                 name: str = "stream", window: int = 2):
        super().__init__(name, row_count, col_count, Encoding.from_dtype(dtype))
        self.window = max(1, int(window))
        self._rows = iter(rows)
        self._buffer: List[np.ndarray] = []
        self._buffer_start = 0

    @property
    def rows_consumed(self) -> int:
        return self._buffer_start + len(self._buffer)

    def _pull_until(self, row_stop: int) -> None:
        while self.rows_consumed < row_stop:
            try:
                row = next(self._rows)
            except StopIteration:
                raise RasterIOError(
                    f"Stream {self.name!r} ended after {self.rows_consumed} of {self.row_count} rows"
                ) from None
            row = np.asarray(row, dtype=self.dtype)
            if row.shape != (self.col_count,):
                raise RasterIOError(f"Stream row {self.rows_consumed} has shape {row.shape}, "
                                    f"expected ({self.col_count},)")
            self._buffer.append(row)

    def _read_window(self, row_start, row_stop, col_start, col_stop):
        if row_start < self._buffer_start:
            raise RasterIOError(
                f"Stream {self.name!r} cannot seek back to row {row_start}; "
                f"earliest retained row is {self._buffer_start}"
            )
        self._pull_until(row_stop)
        lo = row_start - self._buffer_start
        hi = row_stop - self._buffer_start
        if hi > lo:
            block = np.stack(self._buffer[lo:hi])[:, col_start:col_stop]
        else:
            block = np.empty((0, col_stop - col_start), dtype=self.dtype)
        drop = max(0, row_stop - self.window - self._buffer_start)
        if drop:
            del self._buffer[:drop]
            self._buffer_start += drop
        return block
