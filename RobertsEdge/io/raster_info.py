"""Raster opening and metadata helpers."""
from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Optional

import rasterio

from ..io.raster import GeoTiffRaster, Raster, ZarrRaster

logger = logging.getLogger(__name__)


def is_zarr_path(path) -> bool:
    return str(path).lower().rstrip('/').endswith('.zarr')


def open_raster(path, band: int = 1, name: Optional[str] = None) -> Raster:
    """Open ``path`` read-only as a zarr or rasterio-backed raster."""
    if is_zarr_path(path):
        try:
            import zarr  # noqa: F401
        except ModuleNotFoundError as exc:
            raise ModuleNotFoundError(
                'Zarr input requires the `zarr` package. Install it with `pip install zarr`.'
            ) from exc
        return ZarrRaster.open(path, name=name)

    with warnings.catch_warnings():
        warnings.filterwarnings('ignore', category=rasterio.errors.NotGeoreferencedWarning)
        return GeoTiffRaster(path, band=band, name=name)


def describe_raster(raster: Raster) -> dict:
    """Collect and log geometry, encoding and georeferencing of ``raster``."""
    info = {
        'name': raster.name,
        'rows': raster.row_count,
        'cols': raster.col_count,
        'encoding': raster.encoding.name,
        'dtype': str(raster.dtype),
        'size_mb': raster.nbytes / (1024 * 1024),
    }
    if isinstance(raster, GeoTiffRaster):
        info['path'] = str(raster.path)
        info['band'] = raster.band
        info['crs'] = str(raster.crs) if raster.crs else None
        transform = raster.transform
        info['pixel_size'] = (abs(float(transform.a)), abs(float(transform.e)))
    elif isinstance(raster, ZarrRaster) and raster.path is not None:
        info['path'] = str(Path(raster.path))

    logger.info(f"Raster {info['name']}: {info['rows']} x {info['cols']}, "
                f"{info['encoding']} ({info['dtype']}), {info['size_mb']:.1f} MB")
    if info.get('crs'):
        logger.info(f"  CRS: {info['crs']}, pixel size: "
                    f"{info['pixel_size'][0]:.3f} x {info['pixel_size'][1]:.3f}")
    return info
