"""Broker session implementations."""

from .broker_session import (
    BrokerSession,
    SessionConfig,
    DEFAULT_SERVER_URI,
    parse_server_uri
)

from .disconnected_buffer import BufferOptions, DisconnectedBuffer, PendingMessage
from .mqtt_session import MQTTBrokerSession, generate_client_id

__all__ = [
    # Base classes
    'BrokerSession',
    'SessionConfig',
    'DEFAULT_SERVER_URI',
    'parse_server_uri',

    # Buffering
    'BufferOptions',
    'DisconnectedBuffer',
    'PendingMessage',

    # Implementations
    'MQTTBrokerSession',
    'generate_client_id',
]
