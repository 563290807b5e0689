import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from RobertsEdge.core.encoding import (  # noqa: E402
    COMPLEX_INT16,
    SUPPORTED_ENCODINGS,
    Encoding,
    EncodingDispatcher,
    check_supported,
)
from RobertsEdge.utils.errors import UnsupportedEncodingError  # noqa: E402


@pytest.mark.parametrize('dtype, expected', [
    (np.int8, Encoding.INT1SBYTE),
    (np.uint8, Encoding.INT1UBYTE),
    (np.int16, Encoding.INT2SBYTES),
    ('uint16', Encoding.INT2UBYTES),
    (np.int32, Encoding.INT4SBYTES),
    (np.uint32, Encoding.INT4UBYTES),
    (np.float32, Encoding.FLT4BYTES),
    (np.float64, Encoding.FLT8BYTES),
    (np.complex64, Encoding.FLT8COMPLEX),
    (COMPLEX_INT16, Encoding.INT4SCOMPLEX),
    ('complex_int16', Encoding.INT4SCOMPLEX),
    (np.dtype('>i2'), Encoding.INT2SBYTES),
])
def test_from_dtype(dtype, expected):
    assert Encoding.from_dtype(dtype) is expected


@pytest.mark.parametrize('dtype', [np.int64, np.float16, np.bool_, np.complex128])
def test_from_dtype_rejects_unknown_types(dtype):
    with pytest.raises(UnsupportedEncodingError):
        Encoding.from_dtype(dtype)


def test_complex_encodings_are_rejected():
    for encoding in (Encoding.INT4SCOMPLEX, Encoding.FLT8COMPLEX):
        assert encoding.is_complex
        with pytest.raises(UnsupportedEncodingError, match="complex"):
            check_supported(encoding)
    assert len(SUPPORTED_ENCODINGS) == 8
    for encoding in SUPPORTED_ENCODINGS:
        assert check_supported(encoding) is encoding


def test_dispatcher_instantiates_per_scalar_type():
    seen = []

    def op(value, *, dtype):
        seen.append(dtype)
        return dtype(value)

    dispatch = EncodingDispatcher(op)
    assert dispatch(Encoding.INT1UBYTE, 7) == np.uint8(7)
    assert isinstance(dispatch(Encoding.FLT8BYTES, 1.5), np.float64)
    assert seen == [np.uint8, np.float64]
    assert Encoding.FLT8COMPLEX not in dispatch
    with pytest.raises(UnsupportedEncodingError):
        dispatch(Encoding.FLT8COMPLEX, 1.0)


def test_dispatcher_passes_arguments_through_without_copy():
    data = np.arange(4, dtype=np.int16)

    def op(arr, *, dtype):
        return arr

    dispatch = EncodingDispatcher(op)
    assert dispatch(Encoding.INT2SBYTES, data) is data
    assert dispatch.resolve(Encoding.INT2SBYTES)(data) is data
