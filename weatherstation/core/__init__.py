# weatherstation/core/__init__.py
"""Core infrastructure: errors, session state, observers and the worker context."""

# Import order: most fundamental to most specific

from .exceptions import (
    TelemetryPublisherError,
    ConfigurationError,
    ConstructionError,
    ConnectError,
    PublishError,
    PayloadSerializationError,
    PublisherClosedError,
)

from .patterns.state_machine import StateMachine, SessionState
from .patterns.observer import SessionObserver, LoggingSessionObserver, SessionSubject
from .worker import WorkerContext


__all__ = [
    "StateMachine",
    "SessionState",
    "SessionObserver",
    "LoggingSessionObserver",
    "SessionSubject",
    "WorkerContext",
    "TelemetryPublisherError",        # make available at package root
    "ConfigurationError",
    "ConstructionError",
    "ConnectError",
    "PublishError",
    "PayloadSerializationError",
    "PublisherClosedError",
]
