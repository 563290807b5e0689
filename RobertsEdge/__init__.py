"""
RobertsEdge - streaming Roberts cross edge detection for large rasters.
"""
from .core.encoding import Encoding, EncodingDispatcher, check_supported
from .core.scan_processor import EdgeScanner, detect_edges
from .io.raster import ArrayRaster, GeoTiffRaster, Raster, RowStreamRaster, ZarrRaster
from .io.result_builder import GeoTiffStore, MemoryStore, ZarrStore, create_result_raster
from .utils.errors import (
    AccessorInvalidError,
    AllocationFailedError,
    EdgeDetectionError,
    InvalidInputError,
    ScanCancelled,
    UnsupportedEncodingError,
)
from .utils.progress import CancellationToken, LoggingProgress, Severity, TqdmProgress
from .utils.types import ScanResult, ScanState

__version__ = "0.1.0"

__all__ = [
    "AccessorInvalidError",
    "AllocationFailedError",
    "ArrayRaster",
    "CancellationToken",
    "EdgeDetectionError",
    "EdgeScanner",
    "Encoding",
    "EncodingDispatcher",
    "GeoTiffRaster",
    "GeoTiffStore",
    "InvalidInputError",
    "LoggingProgress",
    "MemoryStore",
    "Raster",
    "RowStreamRaster",
    "ScanCancelled",
    "ScanResult",
    "ScanState",
    "Severity",
    "TqdmProgress",
    "UnsupportedEncodingError",
    "ZarrRaster",
    "ZarrStore",
    "check_supported",
    "create_result_raster",
    "detect_edges",
]
