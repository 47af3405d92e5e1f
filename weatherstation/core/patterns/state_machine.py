import logging
import threading
from enum import Enum, auto
from typing import Dict, List

class SessionState(Enum):
    DISCONNECTED      = auto()
    CONNECTING        = auto()
    CONNECTED         = auto()
    RECONNECT_PENDING = auto()
    CLOSED            = auto()

class StateMachine:
    """Broker session states. Written from paho's network thread and read from the worker."""

    def __init__(self, initial: SessionState = SessionState.DISCONNECTED):
        self._state = initial
        self._lock  = threading.Lock()
        self.log    = logging.getLogger(self.__class__.__name__)
        self._trans: Dict[SessionState, List[SessionState]] = {
            SessionState.DISCONNECTED:      [SessionState.CONNECTING, SessionState.CONNECTED,
                                             SessionState.CLOSED],
            SessionState.CONNECTING:        [SessionState.CONNECTED, SessionState.RECONNECT_PENDING,
                                             SessionState.DISCONNECTED, SessionState.CLOSED],
            SessionState.CONNECTED:         [SessionState.RECONNECT_PENDING, SessionState.DISCONNECTED,
                                             SessionState.CLOSED],
            SessionState.RECONNECT_PENDING: [SessionState.CONNECTED, SessionState.DISCONNECTED,
                                             SessionState.CLOSED],
            SessionState.CLOSED:            [],
        }

    @property
    def state(self) -> SessionState: return self._state

    def can(self, nxt: SessionState) -> bool: return nxt in self._trans[self._state]

    def transition(self, nxt: SessionState) -> bool:
        with self._lock:
            if self.can(nxt):
                self.log.debug(f"State transition: {self._state.name} -> {nxt.name}")
                self._state = nxt
                return True
        self.log.warning(f"Invalid state transition: {self._state.name} -> {nxt.name}")
        return False
