"""
RobertsEdge/core/dask_processor.py

Whole-raster edge detection through Dask: the raster is wrapped as a lazy
array, the Roberts graph is built over it and stored chunk by chunk into the
result raster. No cancellation; use the streaming scan for that.
"""
from __future__ import annotations

import logging
from typing import Optional

import dask.array as da
import numpy as np
from dask.callbacks import Callback
from tqdm.auto import tqdm

from ..algorithms.roberts import RobertsAlgorithm
from ..core.encoding import check_supported
from ..io.result_builder import (
    RasterStore,
    create_result_raster,
    discard_result_raster,
    finalize_result_raster,
)
from ..utils.errors import InvalidInputError

logger = logging.getLogger(__name__)


class TqdmCallback(Callback):
    """Dask task progress rendered with tqdm."""

    def __init__(self, desc: str = "Computing", disable: bool = False):
        super().__init__()
        self.desc = desc
        self.disable = disable
        self.tqdm = None

    def _start(self, dsk):
        self.tqdm = tqdm(total=len(dsk), desc=self.desc, unit="tasks", disable=self.disable)

    def _posttask(self, key, result, dsk, state, worker_id):
        self.tqdm.update(1)

    def _finish(self, dsk, state, failed):
        self.tqdm.close()


def raster_to_dask(raster, chunk_rows: int) -> da.Array:
    """Lazy dask view of a random-access raster, chunked by row bands."""
    if raster.forward_only:
        raise InvalidInputError(
            f"Raster {raster.name!r} is a forward-only stream; use the scan engine instead."
        )
    chunk_rows = max(1, min(int(chunk_rows), raster.row_count))
    return da.from_array(raster, chunks=(chunk_rows, raster.col_count), asarray=True,
                         lock=True, name=f"raster-{raster.name}",
                         meta=np.empty((0, 0), dtype=raster.dtype))


def run_dask_pipeline(
    source,
    store: Optional[RasterStore] = None,
    chunk_rows: int = 512,
    show_progress: bool = True,
):
    """Compute the edge magnitude of ``source`` with Dask and return the result raster."""
    if source is None:
        raise InvalidInputError("An input raster must be specified.")
    check_supported(source.encoding)
    arr = raster_to_dask(source, chunk_rows)

    result = create_result_raster(source, store)
    logger.info(f"Dask pipeline: {source!r} -> {result.name} ({arr.numblocks[0]} row chunks)")
    edges = RobertsAlgorithm().process(arr)

    try:
        with TqdmCallback(desc="Edge detection", disable=not show_progress):
            da.store(edges, result, lock=True)
    except Exception:
        logger.error(f"Dask pipeline failed; discarding {result.name}")
        discard_result_raster(result)
        raise

    logger.info("Pipeline completed successfully!")
    return finalize_result_raster(result)
