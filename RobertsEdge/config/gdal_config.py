"""
RobertsEdge/config/gdal_config.py
"""
import logging
from typing import Optional

import rasterio

from ..config.config_manager import _scan_config_manager
from ..config.system_config import detect_system_config

logger = logging.getLogger(__name__)


def gdal_env(memory_gb: Optional[int] = None) -> rasterio.Env:
    """GDAL設定（システムメモリベース）を適用した rasterio.Env を返す"""
    if memory_gb is None:
        memory_gb = detect_system_config()["memory_gb"]

    options = _scan_config_manager.get_system_preset(memory_gb)
    options.setdefault("GDAL_DISABLE_READDIR_ON_OPEN", "EMPTY_DIR")

    logger.info(
        "GDAL設定（%dGB）: キャッシュ%sMB, スレッド%s",
        memory_gb,
        options.get("GDAL_CACHEMAX"),
        options.get("GDAL_NUM_THREADS"),
    )
    return rasterio.Env(**options)
