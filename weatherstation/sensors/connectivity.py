"""
Network availability checks consulted before each publish attempt.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable

import psutil


class ConnectivityGate(ABC):
    """Answers "is outbound network currently usable"."""

    @abstractmethod
    def is_connected(self) -> bool:
        pass


class InterfaceConnectivityGate(ConnectivityGate):
    """Usable when at least one non-loopback interface is up."""

    def __init__(self, ignore_prefixes=("lo",)):
        self.ignore_prefixes = tuple(ignore_prefixes)
        self.logger = logging.getLogger(self.__class__.__name__)

    def is_connected(self) -> bool:
        try:
            stats = psutil.net_if_stats()
        except (OSError, RuntimeError) as e:
            self.logger.warning(f"Unable to read interface state: {e}")
            return False
        return any(
            st.isup
            for name, st in stats.items()
            if not name.startswith(self.ignore_prefixes)
        )


class CallableConnectivityGate(ConnectivityGate):
    """Delegates to a predicate; a failing predicate counts as no network."""

    def __init__(self, predicate: Callable[[], bool]):
        self.predicate = predicate
        self.logger = logging.getLogger(self.__class__.__name__)

    def is_connected(self) -> bool:
        try:
            return bool(self.predicate())
        except Exception as e:
            self.logger.warning(f"Connectivity probe failed: {e}")
            return False


class StaticConnectivityGate(ConnectivityGate):

    def __init__(self, connected: bool = True):
        self.connected = connected

    def is_connected(self) -> bool:
        return self.connected
