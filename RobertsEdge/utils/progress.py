"""Progress reporting and cooperative cancellation for raster scans."""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Optional, Protocol

from tqdm.auto import tqdm

logger = logging.getLogger(__name__)


class Severity(Enum):
    NORMAL = "normal"
    ERROR = "error"
    ABORT = "abort"


class ProgressSink(Protocol):
    def report(self, message: str, percent: int, severity: Severity = Severity.NORMAL) -> None:
        ...


class CancellationToken:
    """Polled cancellation flag shared between a scan and its host."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def reset(self) -> None:
        self._event.clear()


class LoggingProgress:
    """Forward progress reports to a logger, skipping repeated percentages."""

    def __init__(self, log: Optional[logging.Logger] = None, step: int = 10):
        self.log = log or logger
        self.step = max(1, int(step))
        self._last = None

    def report(self, message: str, percent: int, severity: Severity = Severity.NORMAL) -> None:
        if severity is Severity.ERROR:
            self.log.error("%s", message)
            return
        if severity is Severity.ABORT:
            self.log.warning("%s", message)
            return
        bucket = percent // self.step
        if bucket == self._last and percent < 100:
            return
        self._last = bucket
        self.log.info("%s (%d%%)", message, percent)


class TqdmProgress:
    """Render progress reports as a tqdm bar."""

    def __init__(self, desc: str = "Edge detection", disable: bool = False):
        self._bar = tqdm(total=100, desc=desc, unit="%", disable=disable)
        self._percent = 0

    def report(self, message: str, percent: int, severity: Severity = Severity.NORMAL) -> None:
        if severity is not Severity.NORMAL:
            self._bar.write(message)
            self.close()
            return
        percent = max(0, min(100, int(percent)))
        if percent > self._percent:
            self._bar.update(percent - self._percent)
            self._percent = percent
        self._bar.set_postfix_str(message, refresh=False)
        if percent >= 100:
            self.close()

    def close(self) -> None:
        self._bar.close()
