"""Weather-station telemetry publisher - Main Package"""

__version__ = '1.0.0'
__description__ = 'Periodic sensor telemetry over MQTT with store-and-forward buffering'

# Core - most fundamental
from .core import (
    TelemetryPublisherError,
    ConstructionError,
    ConnectError,
    PublishError,
    PayloadSerializationError,
    WorkerContext,
)

# Models and payload rendering
from .models import TelemetryMessage
from .mapping import build_payload

# Sensors
from .sensors import LatestValueCache, Metric, SensorEvent, ConnectivityGate

# Protocols
from .protocols import BrokerSession, MQTTBrokerSession, SessionConfig, BufferOptions

# Scheduling and services
from .orchestration import PublishScheduler, CycleOutcome
from .services import TelemetryPublisher

__all__ = [
    # Core
    'TelemetryPublisherError',
    'ConstructionError',
    'ConnectError',
    'PublishError',
    'PayloadSerializationError',
    'WorkerContext',

    # Models
    'TelemetryMessage',
    'build_payload',

    # Sensors
    'LatestValueCache',
    'Metric',
    'SensorEvent',
    'ConnectivityGate',

    # Protocols
    'BrokerSession',
    'MQTTBrokerSession',
    'SessionConfig',
    'BufferOptions',

    # Services
    'PublishScheduler',
    'CycleOutcome',
    'TelemetryPublisher',
]
