"""
Single-threaded worker context.

A dedicated thread runs an asyncio event loop; every scheduler cycle and every
broker session lifecycle call is posted onto it, so those actions never run
concurrently with each other.
"""

import asyncio
import logging
import threading
from typing import Any, Callable, Optional

from .exceptions import PublisherClosedError


class WorkerContext:
    """Post/post-delayed executor backed by one thread and one event loop."""

    def __init__(self, name: str = "mqttPublisherThread"):
        self.name = name
        self.logger = logging.getLogger(self.__class__.__name__)
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._quitting = False
        self._started = threading.Event()

    def start(self) -> "WorkerContext":
        if not self._thread.is_alive() and not self._quitting:
            self._thread.start()
            self._started.wait()
        return self

    def _run(self):
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._started.set)
        try:
            self._loop.run_forever()
        finally:
            # delayed callbacks still pending are dropped, like a safe quit
            self._loop.close()
            self.logger.debug(f"Worker '{self.name}' stopped")

    # ------------------------------------------------------------------ #
    #  Posting work
    # ------------------------------------------------------------------ #
    def post(self, fn: Callable[..., Any], *args) -> None:
        """Queue ``fn(*args)`` to run on the worker. Safe from any thread."""
        if self._quitting:
            raise PublisherClosedError(f"worker '{self.name}' is shut down")
        self._loop.call_soon_threadsafe(self._invoke, fn, args)

    def post_delayed(self, delay: float, fn: Callable[..., Any], *args) -> asyncio.TimerHandle:
        """Schedule ``fn(*args)`` after ``delay`` seconds. Worker thread only."""
        self._check_worker_thread()
        return self._loop.call_later(delay, self._invoke, fn, args)

    def cancel(self, handle: Optional[asyncio.TimerHandle]) -> None:
        if handle is not None:
            self._check_worker_thread()
            handle.cancel()

    def _invoke(self, fn: Callable[..., Any], args: tuple) -> None:
        try:
            fn(*args)
        except Exception as e:
            self.logger.error(f"Unhandled error in worker task {getattr(fn, '__name__', fn)}: {e}",
                              exc_info=True)

    # ------------------------------------------------------------------ #
    #  Shutdown
    # ------------------------------------------------------------------ #
    def quit_safely(self, timeout: Optional[float] = None) -> None:
        """Run everything already posted, drop delayed work, stop the thread.

        Blocks until the thread exits unless called from the worker itself.
        """
        if self._quitting:
            return
        self._quitting = True
        if not self._thread.is_alive():
            self._loop.close()
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        if not self.in_worker_thread():
            self._thread.join(timeout)

    # ------------------------------------------------------------------ #
    #  Introspection
    # ------------------------------------------------------------------ #
    def in_worker_thread(self) -> bool:
        return threading.current_thread() is self._thread

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def _check_worker_thread(self):
        if self._thread.is_alive() and not self.in_worker_thread():
            raise RuntimeError(f"must be called on worker thread '{self.name}'")
