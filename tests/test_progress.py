import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from RobertsEdge.utils.progress import (  # noqa: E402
    CancellationToken,
    LoggingProgress,
    Severity,
    TqdmProgress,
)


def test_cancellation_token():
    token = CancellationToken()
    assert not token.is_cancelled()
    token.cancel()
    assert token.is_cancelled()
    token.reset()
    assert not token.is_cancelled()


def test_logging_progress_skips_repeated_buckets(caplog):
    log = logging.getLogger('robertsedge.test')
    sink = LoggingProgress(log, step=50)

    with caplog.at_level(logging.INFO, logger='robertsedge.test'):
        for percent in (0, 10, 49, 50, 99):
            sink.report("Calculating result", percent)
        sink.report("Edge detection is complete.", 100)
        sink.report("boom", 0, Severity.ERROR)

    messages = [(r.levelno, r.getMessage()) for r in caplog.records]
    assert messages == [
        (logging.INFO, "Calculating result (0%)"),
        (logging.INFO, "Calculating result (50%)"),
        (logging.INFO, "Edge detection is complete. (100%)"),
        (logging.ERROR, "boom"),
    ]


def test_tqdm_progress_closes_on_abort():
    sink = TqdmProgress(disable=True)
    sink.report("Calculating result", 40)
    assert sink._percent == 40
    sink.report("aborted", 0, Severity.ABORT)
    assert sink._percent == 40
