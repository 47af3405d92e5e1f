from .state_machine import StateMachine, SessionState
from .observer import SessionObserver, LoggingSessionObserver, SessionSubject

__all__ = [
    "StateMachine",
    "SessionState",
    "SessionObserver",
    "LoggingSessionObserver",
    "SessionSubject",
]
