"""Pixel encodings and the per-encoding dispatch table."""
from __future__ import annotations

import functools
from enum import Enum
from typing import Callable, Dict

import numpy as np

from ..utils.errors import UnsupportedEncodingError

# numpy has no complex integer type; rasters store it as an interleaved pair.
COMPLEX_INT16 = np.dtype([("real", "<i2"), ("imag", "<i2")])


class Encoding(Enum):
    INT1SBYTE = "int8"
    INT1UBYTE = "uint8"
    INT2SBYTES = "int16"
    INT2UBYTES = "uint16"
    INT4SCOMPLEX = "complex_int16"
    INT4SBYTES = "int32"
    INT4UBYTES = "uint32"
    FLT4BYTES = "float32"
    FLT8COMPLEX = "complex64"
    FLT8BYTES = "float64"

    @property
    def dtype(self) -> np.dtype:
        if self is Encoding.INT4SCOMPLEX:
            return COMPLEX_INT16
        return np.dtype(self.value)

    @property
    def is_complex(self) -> bool:
        return self in EXCLUDED_ENCODINGS

    @property
    def is_integer(self) -> bool:
        return not self.is_complex and np.issubdtype(self.dtype, np.integer)

    @classmethod
    def from_dtype(cls, dtype) -> "Encoding":
        """Map a numpy dtype (or rasterio dtype name) to its encoding tag."""
        if isinstance(dtype, str) and dtype == "complex_int16":
            return cls.INT4SCOMPLEX
        try:
            dt = np.dtype(dtype)
        except TypeError as exc:
            raise UnsupportedEncodingError(f"Unknown pixel type: {dtype!r}") from exc
        if dt == COMPLEX_INT16:
            return cls.INT4SCOMPLEX
        for encoding in cls:
            if encoding.value == dt.name:
                return encoding
        raise UnsupportedEncodingError(f"Pixel type {dt} has no supported encoding")


EXCLUDED_ENCODINGS = frozenset({Encoding.INT4SCOMPLEX, Encoding.FLT8COMPLEX})
SUPPORTED_ENCODINGS = tuple(e for e in Encoding if e not in EXCLUDED_ENCODINGS)


def check_supported(encoding: Encoding) -> Encoding:
    """Reject the complex encodings once, before any per-pixel work."""
    if encoding in EXCLUDED_ENCODINGS:
        raise UnsupportedEncodingError("Edge detection cannot be performed on complex types.")
    return encoding


class EncodingDispatcher:
    """Call a generic operation instantiated for the scalar type of an encoding.

    The operation must accept a ``dtype`` keyword. One instantiation per
    supported encoding is built up front; calls only select an entry and pass
    their arguments through unchanged.
    """

    def __init__(self, operation: Callable):
        self.operation = operation
        self._table: Dict[Encoding, Callable] = {
            encoding: functools.partial(operation, dtype=encoding.dtype.type)
            for encoding in SUPPORTED_ENCODINGS
        }

    def __call__(self, encoding: Encoding, *args, **kwargs):
        try:
            instantiated = self._table[encoding]
        except KeyError:
            raise UnsupportedEncodingError(f"No instantiation for encoding {encoding}") from None
        return instantiated(*args, **kwargs)

    def __contains__(self, encoding) -> bool:
        return encoding in self._table

    def resolve(self, encoding: Encoding) -> Callable:
        """Return the instantiation for ``encoding`` so hot loops can skip the lookup."""
        return self._table[check_supported(encoding)]
