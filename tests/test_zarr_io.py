import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

zarr = pytest.importorskip('zarr')

from RobertsEdge.core.encoding import Encoding  # noqa: E402
from RobertsEdge.core.scan_processor import detect_edges  # noqa: E402
from RobertsEdge.io.raster import ZarrRaster  # noqa: E402
from RobertsEdge.io.raster_info import is_zarr_path, open_raster  # noqa: E402
from RobertsEdge.io.result_builder import ZarrStore  # noqa: E402
from RobertsEdge.utils.errors import AllocationFailedError  # noqa: E402
from RobertsEdge.utils.types import ScanState  # noqa: E402


def test_zarr_path_detection():
    assert is_zarr_path('a.zarr')
    assert is_zarr_path('A.ZARR/')
    assert not is_zarr_path('a.tif')


def test_zarr_roundtrip(tmp_path):
    src = tmp_path / 'input.zarr'
    out = tmp_path / 'output.zarr'

    data = np.array([[10.0, 20.0], [30.0, 40.0]], dtype=np.float32)
    arr = zarr.open_array(store=str(src), mode='w', shape=data.shape, chunks=(1, 2), dtype=data.dtype)
    arr[:] = data

    source = open_raster(str(src))
    assert isinstance(source, ZarrRaster)
    assert source.name == 'input'
    assert source.encoding is Encoding.FLT4BYTES

    result = detect_edges(source, store=ZarrStore(out, chunk_rows=1)).unwrap()
    assert result.name == 'input_Edge_Detection_Result'

    reopened = ZarrRaster.open(out)
    assert reopened.name == 'input_Edge_Detection_Result'
    np.testing.assert_allclose(reopened.read_rows(0, 2), [[np.sqrt(1000.0), np.sqrt(800.0)], [np.sqrt(200.0), 0.0]],
                               rtol=1e-6)


def test_in_memory_store_and_discard(tmp_path):
    raster = ZarrStore(chunk_rows=4).create('tmp', 10, 3, Encoding.INT2SBYTES)
    raster.write_rows(0, np.full((2, 3), 7, dtype=np.int16))
    np.testing.assert_array_equal(raster.read_rows(0, 2), 7)
    assert raster.path is None

    on_disk = ZarrRaster.create(tmp_path / 'partial.zarr', 'partial', 4, 4, Encoding.INT1UBYTE)
    on_disk.discard()
    assert not (tmp_path / 'partial.zarr').exists()


def test_missing_output_directory_fails_allocation(tmp_path):
    source = ZarrRaster.create(None, 'src', 3, 3, Encoding.FLT4BYTES)
    result = detect_edges(source, store=ZarrStore(tmp_path / 'missing' / 'out.zarr'))

    assert result.state is ScanState.FAILED
    assert isinstance(result.error, AllocationFailedError)
