"""
Bounded store-and-forward queue for messages produced while disconnected.
"""

import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional


@dataclass(frozen=True)
class BufferOptions:
    """Disconnected-buffer settings applied by the session after each connect."""
    enabled: bool = True
    size: int = 100
    delete_oldest: bool = False         # False keeps the backlog and drops new messages


@dataclass(frozen=True)
class PendingMessage:
    topic: str
    payload: bytes
    qos: int = 1
    retain: bool = False


class DisconnectedBuffer:
    """FIFO with a fixed capacity. Never persisted across process restarts."""

    def __init__(self, options: Optional[BufferOptions] = None):
        self.options = options or BufferOptions()
        if self.options.size < 1:
            raise ValueError("buffer size must be at least 1")
        self._queue: Deque[PendingMessage] = deque()
        self._lock = threading.Lock()
        self.dropped = 0

    def offer(self, message: PendingMessage) -> bool:
        """Append ``message``. Returns False when it was dropped."""
        with self._lock:
            if len(self._queue) >= self.options.size:
                if not self.options.delete_oldest:
                    self.dropped += 1
                    return False
                self._queue.popleft()
                self.dropped += 1
            self._queue.append(message)
            return True

    def pop(self) -> Optional[PendingMessage]:
        with self._lock:
            return self._queue.popleft() if self._queue else None

    def snapshot(self) -> List[PendingMessage]:
        with self._lock:
            return list(self._queue)

    def clear(self) -> None:
        with self._lock:
            self._queue.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    @property
    def capacity(self) -> int:
        return self.options.size
