"""
RobertsEdge/utils/types.py
"""
from enum import Enum
from typing import Optional, NamedTuple


class ScanState(Enum):
    INIT = "init"
    VALIDATING = "validating"
    SCANNING = "scanning"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanState.COMPLETED, ScanState.ABORTED, ScanState.FAILED)


# スキャン結果を格納するクラス
class ScanResult(NamedTuple):
    """Outcome of one edge detection run."""
    state: ScanState
    raster: Optional[object] = None
    message: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.state is ScanState.COMPLETED

    def unwrap(self):
        """Return the result raster or re-raise the error that ended the run."""
        if self.error is not None:
            raise self.error
        return self.raster
