"""
Observer pattern for broker session lifecycle events.

The session reports connect/disconnect/delivery events to observers for
diagnostics only; observers never influence publishing.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional


class SessionObserver(ABC):
    """Capability interface invoked from the transport's network thread."""

    @abstractmethod
    def connect_complete(self, reconnect: bool, server_uri: str) -> None:
        """A connection (first or re-established) to ``server_uri`` succeeded."""
        pass

    @abstractmethod
    def connection_lost(self, cause: Optional[BaseException]) -> None:
        """The connection dropped; ``cause`` is None for a requested disconnect."""
        pass

    @abstractmethod
    def connect_failed(self, cause: Optional[BaseException]) -> None:
        pass

    @abstractmethod
    def delivery_complete(self, message_id: int) -> None:
        pass


class LoggingSessionObserver(SessionObserver):
    """Default observer: writes each event to the log and nothing else."""

    def __init__(self):
        self._logger = logging.getLogger(self.__class__.__name__)

    def connect_complete(self, reconnect: bool, server_uri: str) -> None:
        kind = "reconnect" if reconnect else "connection"
        self._logger.info(f"MQTT {kind} complete ({server_uri})")

    def connection_lost(self, cause: Optional[BaseException]) -> None:
        self._logger.warning(f"MQTT connection lost: {cause}")

    def connect_failed(self, cause: Optional[BaseException]) -> None:
        self._logger.warning(f"MQTT connection failure: {cause}")

    def delivery_complete(self, message_id: int) -> None:
        self._logger.debug(f"MQTT delivery complete (mid={message_id})")


class SessionSubject:
    """Fans session events out to observers, isolating observer failures."""

    def __init__(self):
        self._observers: List[SessionObserver] = []
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, observer: SessionObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)
        else:
            self._logger.warning(f"Observer already subscribed: {observer!r}")

    def notify(self, event: str, *args) -> None:
        """Call ``event`` on every observer with ``args``."""
        for observer in list(self._observers):
            self._safe_notify_observer(observer, event, *args)

    def _safe_notify_observer(self, observer: SessionObserver, event: str, *args) -> None:
        try:
            getattr(observer, event)(*args)
        except Exception as e:
            self._logger.error(f"Error notifying observer {observer!r} of {event}: {e}", exc_info=True)
