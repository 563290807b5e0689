import os
import copy
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

_MODES = ("pixel", "row")


class ScanConfigManager:
    """スキャン設定の一元管理"""

    _instance = None
    _config = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _load_config(self, config_path: Optional[Path] = None):
        """YAMLファイルから設定を読み込み"""
        config_path = config_path or Path(__file__).parent / "scan_presets.yaml"
        with open(config_path, encoding="utf-8-sig") as f:
            self._config = yaml.safe_load(f) or {}

    def reload(self, config_path: Optional[Path] = None):
        """Re-read presets, optionally from a user-supplied YAML file."""
        self._load_config(Path(config_path) if config_path else None)

    def get_scan_preset(self) -> Dict[str, Any]:
        """スキャン設定を取得（環境変数でオーバーライド）"""
        preset = copy.deepcopy(self._config.get("scan", {}))

        if block_rows := os.getenv("ROBERTSEDGE_BLOCK_ROWS"):
            preset["block_rows"] = int(block_rows)
            logger.info(f"Overriding block_rows to {block_rows} from env")

        if mode := os.getenv("ROBERTSEDGE_MODE"):
            if mode not in _MODES:
                logger.warning(f"Ignoring ROBERTSEDGE_MODE={mode!r}; expected one of {_MODES}")
            else:
                preset["mode"] = mode
                logger.info(f"Overriding mode to {mode} from env")

        return preset

    def get_result_preset(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config.get("result", {}))

    def get_system_preset(self, memory_gb: int) -> Dict[str, Any]:
        """システムメモリに基づいたGDAL設定を取得"""
        gdal_config = self._config["system_presets"]["gdal"]

        if memory_gb >= 64:
            return dict(gdal_config["high_memory"])
        elif memory_gb >= 16:
            return dict(gdal_config["medium_memory"])
        else:
            return dict(gdal_config["low_memory"])


# グローバルインスタンス
_scan_config_manager = ScanConfigManager()
