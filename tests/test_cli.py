import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

rasterio = pytest.importorskip('rasterio')
from rasterio.transform import from_origin  # noqa: E402

from RobertsEdge.cli.edge_cli import EdgeCLI  # noqa: E402
from RobertsEdge.utils.errors import UnsupportedEncodingError  # noqa: E402

CUBE = np.array([[10, 20], [30, 40]], dtype=np.int32)


def _write_tif(path, data):
    profile = {
        'driver': 'GTiff',
        'height': data.shape[0],
        'width': data.shape[1],
        'count': 1,
        'dtype': data.dtype.name,
        'crs': 'EPSG:4326',
        'transform': from_origin(0.0, 0.0, 1.0, 1.0),
    }
    with rasterio.open(path, 'w', **profile) as dst:
        dst.write(data, 1)
    return str(path)


@pytest.mark.parametrize('extra', [[], ['--mode', 'pixel'], ['--block-rows', '2'], ['--engine', 'dask']])
def test_cli_writes_edge_geotiff(tmp_path, extra):
    src = _write_tif(tmp_path / 'cube.tif', CUBE)
    out = str(tmp_path / 'edges.tif')

    EdgeCLI().run([src, out, '--no-progress', *extra])

    with rasterio.open(out) as dst:
        assert dst.read(1).tolist() == [[32, 28], [14, 0]]


def test_cli_refuses_to_overwrite_without_force(tmp_path):
    src = _write_tif(tmp_path / 'cube.tif', CUBE)
    out = tmp_path / 'edges.tif'
    out.write_bytes(b'')

    with pytest.raises(FileExistsError):
        EdgeCLI().run([src, str(out), '--no-progress'])

    EdgeCLI().run([src, str(out), '--no-progress', '--force'])
    with rasterio.open(out) as dst:
        assert dst.read(1)[0, 0] == 32


def test_cli_missing_input(tmp_path):
    with pytest.raises(FileNotFoundError):
        EdgeCLI().run([str(tmp_path / 'nope.tif'), str(tmp_path / 'out.tif')])


def test_cli_zarr_output(tmp_path):
    zarr = pytest.importorskip('zarr')
    src = _write_tif(tmp_path / 'cube.tif', CUBE)
    out = tmp_path / 'edges.zarr'

    EdgeCLI().run([src, str(out), '--no-progress', '--chunk-rows', '1'])

    arr = zarr.open_array(store=str(out), mode='r')
    assert np.asarray(arr[:]).tolist() == [[32, 28], [14, 0]]
    assert arr.attrs['name'] == 'cube_Edge_Detection_Result'


def test_cli_failure_removes_partial_output(tmp_path):
    src = str(tmp_path / 'complex.tif')
    profile = {'driver': 'GTiff', 'height': 2, 'width': 2, 'count': 1, 'dtype': 'complex64'}
    with rasterio.open(src, 'w', **profile) as dst:
        dst.write(np.zeros((2, 2), dtype=np.complex64), 1)
    out = tmp_path / 'edges.tif'

    with pytest.raises(UnsupportedEncodingError):
        EdgeCLI().run([src, str(out), '--no-progress'])
    assert not out.exists()


def test_mode_is_rejected_with_dask_engine(tmp_path):
    src = _write_tif(tmp_path / 'cube.tif', CUBE)
    with pytest.raises(SystemExit):
        EdgeCLI().run([src, str(tmp_path / 'out.tif'), '--engine', 'dask', '--mode', 'row'])
