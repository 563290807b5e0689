"""
RobertsEdge/io/result_builder.py

Allocation and finalization of result rasters.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import psutil

from ..config.config_manager import _scan_config_manager
from ..core.encoding import Encoding
from ..io.raster import ArrayRaster, GeoTiffRaster, Raster, ZarrRaster
from ..utils.errors import AllocationFailedError

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = "_Edge_Detection_Result"


class RasterStore(ABC):
    """Factory for result rasters on one kind of backing store."""

    @abstractmethod
    def create(self, name: str, row_count: int, col_count: int, encoding: Encoding,
               template: Optional[Raster] = None) -> Raster:
        pass

    def available_bytes(self) -> Optional[int]:
        """Free capacity of the store, or None when unknown."""
        return None


class MemoryStore(RasterStore):
    def create(self, name, row_count, col_count, encoding, template=None):
        return ArrayRaster.empty(name, row_count, col_count, encoding)

    def available_bytes(self):
        return int(psutil.virtual_memory().available)


class GeoTiffStore(RasterStore):
    """Write results as single-band GeoTIFFs.

    ``path`` is either the output file or a directory that receives
    ``<name>.tif``.
    """

    def __init__(self, path, creation_options: Optional[dict] = None):
        self.path = Path(path)
        if creation_options is None:
            creation_options = _scan_config_manager.get_result_preset().get("geotiff", {})
        self.creation_options = dict(creation_options)

    def _target(self, name: str) -> Path:
        if self.path.is_dir():
            return self.path / f"{name}.tif"
        return self.path

    def create(self, name, row_count, col_count, encoding, template=None):
        profile = template.profile if isinstance(template, GeoTiffRaster) else None
        return GeoTiffRaster.create(self._target(name), name, row_count, col_count, encoding,
                                    template=profile, creation_options=self.creation_options)

    def available_bytes(self):
        parent = self.path if self.path.is_dir() else self.path.parent
        return int(psutil.disk_usage(str(parent.resolve())).free)


class ZarrStore(RasterStore):
    """Write results as zarr arrays; ``path=None`` keeps them in memory."""

    def __init__(self, path=None, chunk_rows: Optional[int] = None):
        self.path = Path(path) if path is not None else None
        if chunk_rows is None:
            chunk_rows = _scan_config_manager.get_result_preset().get("zarr", {}).get("chunk_rows", 512)
        self.chunk_rows = int(chunk_rows)

    def create(self, name, row_count, col_count, encoding, template=None):
        return ZarrRaster.create(self.path, name, row_count, col_count, encoding,
                                 chunk_rows=self.chunk_rows)

    def available_bytes(self):
        if self.path is None:
            return int(psutil.virtual_memory().available)
        return int(psutil.disk_usage(str(self.path.resolve().parent)).free)


def result_name(source: Raster, suffix: Optional[str] = None) -> str:
    if suffix is None:
        suffix = _scan_config_manager.get_result_preset().get("suffix", DEFAULT_SUFFIX)
    return f"{source.name}{suffix}"


def create_result_raster(source: Raster, store: Optional[RasterStore] = None,
                         suffix: Optional[str] = None) -> Raster:
    """Allocate an output raster with the geometry and encoding of ``source``."""
    store = store or MemoryStore()
    name = result_name(source, suffix)

    check_space = _scan_config_manager.get_result_preset().get("check_free_space", True)
    try:
        available = store.available_bytes() if check_space else None
        if available is not None and available < source.nbytes:
            raise AllocationFailedError(
                f"A raster could not be created: {source.nbytes} bytes needed, {available} available."
            )
        result = store.create(name, source.row_count, source.col_count, source.encoding,
                              template=source)
    except (OSError, MemoryError, ValueError) as e:
        raise AllocationFailedError(f"A raster could not be created: {e}") from e

    logger.info(f"Created result raster {result!r}")
    return result


def finalize_result_raster(raster: Raster) -> Raster:
    """Make a fully written result read-only and hand it to the caller."""
    raster.finalize()
    logger.debug(f"Finalized result raster {raster.name!r}")
    return raster


def discard_result_raster(raster: Optional[Raster]) -> None:
    if raster is None:
        return
    try:
        raster.discard()
    except OSError as e:
        logger.warning(f"Failed to remove partial result {raster.name!r}: {e}")
