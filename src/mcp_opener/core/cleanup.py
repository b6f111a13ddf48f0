"""Deferred, best-effort removal of temp directories."""

from __future__ import annotations

import shutil
import threading
from collections.abc import Callable
from pathlib import Path

import structlog

log = structlog.get_logger(__name__)


def remove_tree(path: Path) -> None:
    """Recursively delete `path`. Failures are logged at debug and dropped."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        log.debug("cleanup_failed", path=str(path), error=str(e))


class CleanupHandle:
    """A pending removal of one directory.

    Runs at most once: whichever of the timer, flush() or cancel() comes
    first decides the outcome.
    """

    def __init__(self, path: Path, delay: float):
        self.path = path
        self.delay = delay
        self._lock = threading.Lock()
        self._settled = False
        self._timer = threading.Timer(delay, self._fire)
        self._timer.daemon = True

    def start(self) -> CleanupHandle:
        self._timer.start()
        return self

    @property
    def done(self) -> bool:
        return self._settled

    def _settle(self) -> bool:
        with self._lock:
            if self._settled:
                return False
            self._settled = True
            return True

    def _fire(self) -> None:
        if self._settle():
            remove_tree(self.path)

    def flush(self) -> None:
        """Remove now instead of waiting for the timer."""
        self._timer.cancel()
        self._fire()

    def cancel(self) -> bool:
        """Keep the directory. Returns False if removal already happened."""
        self._timer.cancel()
        return self._settle()


Scheduler = Callable[[Path, float], CleanupHandle]


def schedule_removal(path: Path, delay: float) -> CleanupHandle:
    """Delete `path` after `delay` seconds on a daemon timer thread."""
    return CleanupHandle(path, delay).start()
