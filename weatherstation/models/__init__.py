# weatherstation/models/__init__.py
from .telemetry import TelemetryMessage, CHANNEL

__all__ = ["TelemetryMessage", "CHANNEL"]
