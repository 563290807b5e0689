import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from RobertsEdge.config.config_manager import _scan_config_manager  # noqa: E402
from RobertsEdge.config.system_config import compute_block_rows, get_scan_config  # noqa: E402


@pytest.fixture(autouse=True)
def _default_presets(monkeypatch):
    monkeypatch.delenv('ROBERTSEDGE_BLOCK_ROWS', raising=False)
    monkeypatch.delenv('ROBERTSEDGE_MODE', raising=False)
    _scan_config_manager.reload()
    yield
    _scan_config_manager.reload()


def test_default_scan_preset():
    preset = _scan_config_manager.get_scan_preset()
    assert preset['mode'] == 'row'
    assert preset['block_rows'] == 'auto'
    assert preset['lookbehind_rows'] == 1


def test_env_overrides(monkeypatch):
    monkeypatch.setenv('ROBERTSEDGE_BLOCK_ROWS', '32')
    monkeypatch.setenv('ROBERTSEDGE_MODE', 'pixel')
    config = get_scan_config(col_count=100, itemsize=4)
    assert config == {'mode': 'pixel', 'lookbehind_rows': 1, 'block_rows': 32}


def test_invalid_env_mode_is_ignored(monkeypatch):
    monkeypatch.setenv('ROBERTSEDGE_MODE', 'diagonal')
    assert get_scan_config(col_count=10, itemsize=1, block_rows=8)['mode'] == 'row'


def test_explicit_arguments_win_over_presets(monkeypatch):
    monkeypatch.setenv('ROBERTSEDGE_MODE', 'pixel')
    config = get_scan_config(col_count=10, itemsize=1, mode='row', block_rows=6)
    assert config['mode'] == 'row'
    assert config['block_rows'] == 6


def test_invalid_arguments_raise():
    with pytest.raises(ValueError):
        get_scan_config(mode='diagonal', block_rows=8)
    with pytest.raises(ValueError):
        get_scan_config(block_rows=1)


def test_compute_block_rows_bounds():
    # 1 MiB budget, 1 KiB rows, read and write bands -> 512 rows
    assert compute_block_rows(256, 4, 1 << 20, memory_fraction=1.0) == 512
    assert compute_block_rows(10**6, 8, 1 << 20, memory_fraction=0.05, min_rows=16) == 16
    assert compute_block_rows(1, 1, 1 << 40, max_rows=4096) == 4096


def test_system_preset_by_memory():
    assert _scan_config_manager.get_system_preset(128)['GDAL_CACHEMAX'] == 4096
    assert _scan_config_manager.get_system_preset(32)['GDAL_CACHEMAX'] == 1024
    assert _scan_config_manager.get_system_preset(8)['GDAL_CACHEMAX'] == 256


def test_reload_from_user_file(tmp_path):
    custom = tmp_path / 'presets.yaml'
    custom.write_text('scan:\n  mode: pixel\n  block_rows: 12\n', encoding='utf-8')

    _scan_config_manager.reload(custom)
    assert get_scan_config(col_count=10, itemsize=1) == {
        'mode': 'pixel', 'lookbehind_rows': 1, 'block_rows': 12,
    }
