"""Service-level wiring."""

from .publisher_service import TelemetryPublisher

__all__ = [
    'TelemetryPublisher',
]
