"""Roberts cross kernels shared by the streaming scan and the Dask engine."""
from __future__ import annotations

import math

import numpy as np


def narrow(magnitude, dtype) -> np.ndarray:
    """Cast float64 magnitudes back to the raster's scalar type.

    Integer types are rounded to nearest and then cast through int64, so
    values beyond the type's range wrap like a native C cast.
    """
    magnitude = np.asarray(magnitude, dtype=np.float64)
    dt = np.dtype(dtype)
    if np.issubdtype(dt, np.integer):
        return np.rint(magnitude).astype(np.int64).astype(dt)
    return magnitude.astype(dt)


def edge_magnitude(center, right, down, lower_right, *, dtype):
    """Edge magnitude of one pixel from its four clamped neighbors."""
    gx = float(center) - float(lower_right)
    gy = float(right) - float(down)
    return narrow(math.sqrt(gx * gx + gy * gy), dtype)[()]


def edge_magnitude_rows(
    center: np.ndarray,
    right: np.ndarray,
    down: np.ndarray,
    lower_right: np.ndarray,
    *,
    dtype,
) -> np.ndarray:
    """Vectorized :func:`edge_magnitude` over equally shaped arrays."""
    gx = center.astype(np.float64) - lower_right.astype(np.float64)
    gy = right.astype(np.float64) - down.astype(np.float64)
    return narrow(np.sqrt(gx * gx + gy * gy), dtype)


def shift_left_replicate(values: np.ndarray, axis: int = -1) -> np.ndarray:
    """Shift ``values`` one step toward lower indices, repeating the last entry."""
    values = np.asarray(values)
    if values.shape[axis] == 0:
        return values.copy()
    head = np.take(values, np.arange(1, values.shape[axis]), axis=axis)
    tail = np.take(values, [values.shape[axis] - 1], axis=axis)
    return np.concatenate([head, tail], axis=axis)


def roberts_block(block: np.ndarray) -> np.ndarray:
    """Edge magnitude of a 2-D block, replicating its last row and column."""
    block = np.asarray(block)
    below = shift_left_replicate(block, axis=0)
    right = shift_left_replicate(block, axis=1)
    lower_right = shift_left_replicate(below, axis=1)
    return edge_magnitude_rows(block, right, below, lower_right, dtype=block.dtype)
