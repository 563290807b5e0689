"""
RobertsEdge/cli/edge_cli.py
Roberts エッジ検出 CLI
"""
import argparse
import contextlib
import os
import signal
import threading

from .base import BaseCLI
from ..config.config_manager import _scan_config_manager
from ..config.gdal_config import gdal_env
from ..core.scan_processor import EdgeScanner
from ..io.raster_info import describe_raster, is_zarr_path, open_raster
from ..io.result_builder import GeoTiffStore, ZarrStore, discard_result_raster
from ..utils.progress import CancellationToken, LoggingProgress, TqdmProgress


@contextlib.contextmanager
def cancel_on_sigint(token: CancellationToken):
    """Ctrl+C sets the token instead of raising KeyboardInterrupt."""
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _handler(signum, frame):
        token.cancel()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


class EdgeCLI(BaseCLI):
    """Roberts エッジ検出 CLI 実装"""

    def get_description(self) -> str:
        return "RobertsEdge - ストリーミング Roberts エッジ検出"

    def get_epilog(self) -> str:
        return """
使用例:
  # GeoTIFF → GeoTIFF（行単位ベクトル化スキャン）
  robertsedge input.tif output.tif

  # 画素単位スキャン（カーソルを近傍ごとに再配置）
  robertsedge input.tif output.tif --mode pixel

  # Zarr 出力、Dask エンジン
  robertsedge input.tif output.zarr --engine dask --chunk-rows 1024

  # キャッシュ行数を固定
  robertsedge input.tif output.tif --block-rows 256

Ctrl+C はスキャンを行単位で中断し、途中までの出力を削除します。
"""

    def _add_specific_args(self, parser: argparse.ArgumentParser):
        parser.add_argument(
            "--engine",
            choices=["scan", "dask"],
            default="scan",
            help="処理エンジン (default: scan)",
        )

        parser.add_argument(
            "--mode",
            choices=["pixel", "row"],
            help="スキャン粒度（未指定時はプリセット）",
        )

        parser.add_argument(
            "--block-rows",
            type=int,
            help="カーソルがキャッシュする行数（未指定時は自動）",
        )

        parser.add_argument(
            "--chunk-rows",
            type=int,
            default=512,
            help="Dask / Zarr のチャンク行数 (default: 512)",
        )

    def _validate_args(self, args: argparse.Namespace):
        if args.band < 1:
            self.parser.error(f"--band は1以上を指定してください: {args.band}")
        if args.block_rows is not None and args.block_rows < 2:
            self.parser.error(f"--block-rows は2以上を指定してください: {args.block_rows}")
        if args.chunk_rows < 1:
            self.parser.error(f"--chunk-rows は1以上を指定してください: {args.chunk_rows}")
        if args.engine == "dask" and args.mode is not None:
            self.parser.error("--mode は scan エンジン専用です")
        if args.config:
            if not os.path.exists(args.config):
                self.parser.error(f"設定ファイルが存在しません: {args.config}")
            _scan_config_manager.reload(args.config)

    def _make_store(self, output_path: str, chunk_rows: int):
        if is_zarr_path(output_path):
            return ZarrStore(output_path, chunk_rows=chunk_rows)
        return GeoTiffStore(output_path)

    def execute(self, args: argparse.Namespace):
        params = self.get_common_params(args)
        store = self._make_store(params["output_path"], args.chunk_rows)

        with gdal_env():
            source = open_raster(params["input_path"], band=params["band"])
            try:
                describe_raster(source)
                if args.engine == "dask":
                    from ..core.dask_processor import run_dask_pipeline

                    result = run_dask_pipeline(
                        source, store,
                        chunk_rows=args.chunk_rows,
                        show_progress=params["show_progress"],
                    )
                else:
                    result = self._execute_scan(source, store, args, params["show_progress"])
            finally:
                source.close()

        result.close()
        self.logger.info(f"出力: {params['output_path']}")
        return result

    def _execute_scan(self, source, store, args: argparse.Namespace, show_progress: bool):
        if show_progress:
            progress = TqdmProgress(desc=source.name)
        else:
            progress = LoggingProgress(self.logger)

        with cancel_on_sigint(CancellationToken()) as token:
            scanner = EdgeScanner(
                progress=progress,
                cancel=token,
                store=store,
                mode=args.mode,
                block_rows=args.block_rows,
            )
            outcome = scanner.execute(source)

        if not outcome.success:
            discard_result_raster(scanner.result_raster)
        return outcome.unwrap()
