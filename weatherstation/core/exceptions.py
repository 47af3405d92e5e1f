"""
Centralised exception definitions for the weather-station telemetry publisher.
All custom exceptions should inherit from TelemetryPublisherError.
"""

class TelemetryPublisherError(Exception):
    """Base class for every custom exception thrown by this project."""

class ConfigurationError(TelemetryPublisherError):
    """Raised when settings or environment variables are invalid."""

class ConstructionError(TelemetryPublisherError, OSError):
    """The broker session could not be created (malformed endpoint, bad client setup)."""

class ConnectError(TelemetryPublisherError, ConnectionError):
    """The transport refused to issue or complete a connection."""

class PublishError(TelemetryPublisherError):
    """A message could not be handed to the broker or the disconnected buffer."""

class PayloadSerializationError(TelemetryPublisherError):
    """A telemetry message could not be rendered to JSON."""

class PublisherClosedError(TelemetryPublisherError):
    """Raised when a closed publisher or worker is used again."""
