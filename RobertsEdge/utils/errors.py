"""
RobertsEdge/utils/errors.py
"""


class EdgeDetectionError(Exception):
    """Base class for errors that terminate an edge detection run."""


class InvalidInputError(EdgeDetectionError):
    """No input raster was supplied."""


class UnsupportedEncodingError(EdgeDetectionError):
    """The raster encoding cannot be processed (complex or unknown)."""


class AllocationFailedError(EdgeDetectionError):
    """The result raster could not be created."""


class AccessorInvalidError(EdgeDetectionError):
    """A read or write cursor was used after it became invalid."""


class ScanCancelled(EdgeDetectionError):
    """The scan was aborted through its cancellation token."""


class RasterIOError(OSError):
    """A backing store could not service a read or write."""
