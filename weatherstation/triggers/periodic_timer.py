import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

from weatherstation.core.worker import WorkerContext


class PeriodicTimer:
    """
    Cancellable repeating task on a worker context.

    The first run happens as soon as the worker picks up ``start()``. Each
    later run is scheduled ``interval_seconds`` after the previous run
    finished, so the action's own duration stretches the period.
    """

    def __init__(self, worker: WorkerContext, action: Callable[[], Any], interval_seconds: float = 1.0):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.worker = worker
        self.action = action
        self.interval_seconds = interval_seconds
        self.logger = logging.getLogger(self.__class__.__name__)
        self._active = False
        self._handle: Optional[asyncio.TimerHandle] = None
        self.last_execution: Optional[float] = None
        self.execution_count: int = 0

    # called from any thread: only enqueue
    def start(self) -> None:
        self.worker.post(self._arm)

    def stop(self) -> None:
        self.worker.post(self._disarm)

    # ------------------------------------------------------------------ #
    #  Worker side
    # ------------------------------------------------------------------ #
    def _arm(self) -> None:
        if self._active:
            return
        self._active = True
        self._fire()

    def _disarm(self) -> None:
        self._active = False
        self.worker.cancel(self._handle)
        self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if not self._active:
            return
        try:
            self.action()
        except Exception as e:
            self.logger.error(f"Periodic action failed: {e}", exc_info=True)
        finally:
            self.execution_count += 1
            self.last_execution = time.monotonic()
            if self._active:
                self._handle = self.worker.post_delayed(self.interval_seconds, self._fire)

    def get_execution_metadata(self) -> Dict[str, Any]:
        return {
            "active": self._active,
            "interval_seconds": self.interval_seconds,
            "last_execution": self.last_execution,
            "execution_count": self.execution_count,
        }
