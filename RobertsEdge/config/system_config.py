"""
RobertsEdge/config/system_config.py
"""

import multiprocessing, psutil, logging
from typing import Optional
from ..config.config_manager import _scan_config_manager

# ロギング設定
logger = logging.getLogger(__name__)


def detect_system_config() -> dict:
    """CPU数とメモリ容量を取得"""
    mem = psutil.virtual_memory()
    return {
        "cpu_count": multiprocessing.cpu_count(),
        "memory_gb": mem.total // (1024**3),
        "available_bytes": int(mem.available),
    }


def compute_block_rows(col_count: int, itemsize: int, available_bytes: int,
                       memory_fraction: float = 0.05, min_rows: int = 16,
                       max_rows: int = 4096) -> int:
    """
    Rows per cursor band so that the read and write bands together stay
    within ``memory_fraction`` of available memory.
    """
    row_bytes = max(1, int(col_count) * int(itemsize))
    budget = int(available_bytes * memory_fraction)
    rows = budget // (2 * row_bytes)
    return int(max(min_rows, min(max_rows, rows)))


def get_scan_config(col_count: Optional[int] = None, itemsize: Optional[int] = None,
                    mode: Optional[str] = None, block_rows: Optional[int] = None) -> dict:
    """プリセット・環境変数・自動チューニングからスキャン設定を決定"""
    preset = _scan_config_manager.get_scan_preset()

    config = {
        "mode": mode or preset.get("mode", "row"),
        "lookbehind_rows": int(preset.get("lookbehind_rows", 1)),
    }
    if config["mode"] not in ("pixel", "row"):
        raise ValueError(f"Unknown scan mode: {config['mode']!r}")

    if block_rows is None:
        block_rows = preset.get("block_rows", "auto")
    if block_rows == "auto":
        if col_count is None or itemsize is None:
            block_rows = int(preset.get("min_block_rows", 16))
        else:
            block_rows = compute_block_rows(
                col_count,
                itemsize,
                detect_system_config()["available_bytes"],
                memory_fraction=float(preset.get("memory_fraction", 0.05)),
                min_rows=int(preset.get("min_block_rows", 16)),
                max_rows=int(preset.get("max_block_rows", 4096)),
            )
            logger.debug(f"Auto-tuned block_rows={block_rows} for {col_count} columns")
    config["block_rows"] = int(block_rows)
    if config["block_rows"] < 2:
        raise ValueError(f"block_rows must be at least 2, got {block_rows}")

    return config
