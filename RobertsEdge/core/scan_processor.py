"""
RobertsEdge/core/scan_processor.py

Streaming Roberts edge detection: validate, allocate, scan row by row,
finalize.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..algorithms.kernels import edge_magnitude, edge_magnitude_rows, shift_left_replicate
from ..config.system_config import get_scan_config
from ..core.accessor import ReadCursor, WriteCursor
from ..core.encoding import EncodingDispatcher, check_supported
from ..io.result_builder import (
    RasterStore,
    create_result_raster,
    discard_result_raster,
    finalize_result_raster,
)
from ..utils.errors import (
    AccessorInvalidError,
    EdgeDetectionError,
    InvalidInputError,
    ScanCancelled,
)
from ..utils.progress import CancellationToken, ProgressSink, Severity
from ..utils.types import ScanResult, ScanState

logger = logging.getLogger(__name__)

PIXEL_DISPATCH = EncodingDispatcher(edge_magnitude)
ROW_DISPATCH = EncodingDispatcher(edge_magnitude_rows)


def neighbor_coords(row: int, col: int, row_count: int, col_count: int):
    """Clamped (right, down, lower-right, center) coordinates of a pixel.

    Only the high side is clamped: the kernel never looks above or left.
    """
    next_row = min(row + 1, row_count - 1)
    next_col = min(col + 1, col_count - 1)
    return (row, next_col), (next_row, col), (next_row, next_col), (row, col)


class EdgeScanner:
    """Drive one edge detection run over a raster.

    Parameters
    ----------
    progress : ProgressSink, optional
        Receives one report per row, a final 100% report, and one error or
        abort report when the run does not complete.
    cancel : CancellationToken, optional
        Polled once per row; a row already started always completes.
    store : RasterStore, optional
        Where the result raster is allocated (memory by default).
    mode : {"pixel", "row"}, optional
        Dispatch granularity. ``pixel`` repositions the read cursor for every
        neighbor sample; ``row`` reads two rows and runs the vectorized kernel.
    block_rows : int, optional
        Rows cached by each cursor band.
    """

    def __init__(
        self,
        progress: Optional[ProgressSink] = None,
        cancel: Optional[CancellationToken] = None,
        store: Optional[RasterStore] = None,
        mode: Optional[str] = None,
        block_rows: Optional[int] = None,
        name: str = "Roberts Edge Detection",
    ):
        self.progress = progress
        self.cancel = cancel
        self.store = store
        self.mode = mode
        self.block_rows = block_rows
        self.name = name
        self.state = ScanState.INIT
        self.result_raster = None
        self.rows_scanned = 0

    def _transition(self, state: ScanState) -> None:
        logger.debug(f"{self.name}: {self.state.value} -> {state.value}")
        self.state = state

    def _report(self, message: str, percent: int, severity: Severity = Severity.NORMAL) -> None:
        if self.progress is not None:
            self.progress.report(message, percent, severity)

    def execute(self, raster) -> ScanResult:
        """Run the scan; errors end the run and are returned, not raised."""
        if self.state is not ScanState.INIT:
            raise RuntimeError(f"{self.name} has already run (state: {self.state.value})")
        try:
            self._transition(ScanState.VALIDATING)
            self._validate(raster)
            config = get_scan_config(raster.col_count, raster.dtype.itemsize,
                                     mode=self.mode, block_rows=self.block_rows)
            self.result_raster = create_result_raster(raster, self.store)

            self._transition(ScanState.SCANNING)
            logger.info(f"{self.name} started on {raster!r} "
                        f"(mode={config['mode']}, block_rows={config['block_rows']})")
            self._scan(raster, self.result_raster, config)
        except ScanCancelled as e:
            self._transition(ScanState.ABORTED)
            message = str(e)
            logger.warning(message)
            self._report(message, 0, Severity.ABORT)
            return ScanResult(ScanState.ABORTED, None, message, e)
        except EdgeDetectionError as e:
            self._transition(ScanState.FAILED)
            message = str(e)
            logger.error(f"{self.name} failed: {message}")
            self._report(message, 0, Severity.ERROR)
            return ScanResult(ScanState.FAILED, None, message, e)

        finalize_result_raster(self.result_raster)
        self._transition(ScanState.COMPLETED)
        message = "Edge detection is complete."
        self._report(message, 100, Severity.NORMAL)
        logger.info(f"{self.name} completed: {self.result_raster!r}")
        return ScanResult(ScanState.COMPLETED, self.result_raster, message)

    def _validate(self, raster) -> None:
        if raster is None:
            raise InvalidInputError("An input raster must be specified.")
        check_supported(raster.encoding)

    def _scan(self, source, result, config: dict) -> None:
        reader = ReadCursor(source, block_rows=config["block_rows"],
                            lookbehind_rows=config["lookbehind_rows"])
        writer = WriteCursor(result, block_rows=config["block_rows"])
        if config["mode"] == "pixel":
            scan_row = self._scan_row_by_pixel
            kernel = PIXEL_DISPATCH.resolve(source.encoding)
        else:
            scan_row = self._scan_row_vectorized
            kernel = ROW_DISPATCH.resolve(source.encoding)

        row_count = source.row_count
        for row in range(row_count):
            if self.cancel is not None and self.cancel.is_cancelled():
                writer.flush()
                raise ScanCancelled(f"{self.name} has been aborted.")
            if not writer.is_valid:
                raise AccessorInvalidError("Unable to access the raster data.")
            self._report("Calculating result", row * 100 // row_count)

            scan_row(source, reader, writer, row, kernel)
            writer.advance_row()
            self.rows_scanned = row + 1

        writer.flush()
        if writer.rows_flushed != row_count:
            raise AccessorInvalidError("Unable to access the raster data.")

    def _scan_row_by_pixel(self, source, reader: ReadCursor, writer: WriteCursor, row: int,
                           kernel) -> None:
        row_count, col_count = source.row_count, source.col_count
        for col in range(col_count):
            samples = []
            for r, c in neighbor_coords(row, col, row_count, col_count):
                if not reader.reposition(r, c):
                    raise AccessorInvalidError(
                        f"Unable to access the raster data at ({r}, {c})."
                    )
                samples.append(reader.sample())
            right, down, lower_right, center = samples
            writer.current_slot()[0] = kernel(center, right, down, lower_right)
            writer.advance_column()

    def _scan_row_vectorized(self, source, reader: ReadCursor, writer: WriteCursor, row: int,
                             kernel) -> None:
        next_row = min(row + 1, source.row_count - 1)
        try:
            below = reader.row(next_row)
            center = reader.row(row)
        except AccessorInvalidError as e:
            raise AccessorInvalidError(f"Unable to access the raster data: {e}") from e
        values = kernel(
            center,
            shift_left_replicate(center),
            below,
            shift_left_replicate(below),
        )
        writer.write_row(values)


def detect_edges(raster, progress: Optional[ProgressSink] = None,
                 cancel: Optional[CancellationToken] = None,
                 store: Optional[RasterStore] = None, mode: Optional[str] = None,
                 block_rows: Optional[int] = None) -> ScanResult:
    """Run a streaming Roberts edge detection over ``raster``.

    A result raster left behind by an aborted or failed run is discarded.
    """
    scanner = EdgeScanner(progress=progress, cancel=cancel, store=store,
                          mode=mode, block_rows=block_rows)
    outcome = scanner.execute(raster)
    if not outcome.success:
        discard_result_raster(scanner.result_raster)
    return outcome
