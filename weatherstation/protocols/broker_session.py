"""
Broker session capability.

The scheduler only sees this interface: connect once, publish at QoS 1,
disconnect at close. Reconnect and disconnected buffering stay inside the
implementation.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union
from urllib.parse import urlsplit

from weatherstation.core.exceptions import ConstructionError
from .disconnected_buffer import BufferOptions

DEFAULT_SERVER_URI = "tcp://iot.eclipse.org:1883"

_DEFAULT_PORTS = {"tcp": 1883, "mqtt": 1883, "ssl": 8883, "mqtts": 8883}
_TLS_SCHEMES = {"ssl", "mqtts"}


class SessionConfig:
    """Connection parameters for a broker session."""

    def __init__(self,
                 server_uri: str = DEFAULT_SERVER_URI,
                 client_id: Optional[str] = None,
                 clean_session: bool = False,
                 automatic_reconnect: bool = True,
                 keepalive: int = 60,
                 min_reconnect_delay: int = 1,
                 max_reconnect_delay: int = 120,
                 username: Optional[str] = None,
                 password: Optional[str] = None,
                 buffer_options: Optional[BufferOptions] = None):
        self.server_uri = server_uri
        self.client_id = client_id
        self.clean_session = clean_session
        self.automatic_reconnect = automatic_reconnect
        self.keepalive = keepalive
        self.min_reconnect_delay = min_reconnect_delay
        self.max_reconnect_delay = max_reconnect_delay
        self.username = username
        self.password = password
        self.buffer_options = buffer_options or BufferOptions()

        self.scheme, self.host, self.port = parse_server_uri(server_uri)

    @property
    def use_tls(self) -> bool:
        return self.scheme in _TLS_SCHEMES


def parse_server_uri(uri: str):
    """Split ``tcp://host:port`` into (scheme, host, port); raise ConstructionError if malformed."""
    try:
        parts = urlsplit(uri)
        port = parts.port
    except (ValueError, AttributeError, TypeError) as e:
        raise ConstructionError(f"Malformed broker URI {uri!r}: {e}") from e

    if parts.scheme not in _DEFAULT_PORTS:
        raise ConstructionError(f"Unsupported broker URI scheme {parts.scheme!r} in {uri!r}")
    if not parts.hostname:
        raise ConstructionError(f"Broker URI {uri!r} has no host")
    return parts.scheme, parts.hostname, port or _DEFAULT_PORTS[parts.scheme]


class BrokerSession(ABC):

    @abstractmethod
    def connect(self) -> None:
        """Issue the connection. Raises ConnectError if it cannot be issued."""
        pass

    @abstractmethod
    def publish(self, topic: str, payload: Union[bytes, str], qos: int = 1) -> None:
        """Hand a message to the broker or the disconnected buffer. Raises PublishError."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        pass

    @abstractmethod
    def set_reconnect_policy(self, enabled: bool) -> None:
        pass

    def get_stats(self) -> Dict[str, Any]:
        return {}
