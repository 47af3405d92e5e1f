"""Sensor-side collaborators: value cache, sinks and connectivity gates."""

from .latest_value_cache import LatestValueCache, Metric, ABSENT, is_absent
from .sinks import SensorEvent, SensorEventListener, MetricSink, temperature_sink, pressure_sink
from .connectivity import (
    ConnectivityGate,
    InterfaceConnectivityGate,
    CallableConnectivityGate,
    StaticConnectivityGate,
)

__all__ = [
    'LatestValueCache',
    'Metric',
    'ABSENT',
    'is_absent',
    'SensorEvent',
    'SensorEventListener',
    'MetricSink',
    'temperature_sink',
    'pressure_sink',
    'ConnectivityGate',
    'InterfaceConnectivityGate',
    'CallableConnectivityGate',
    'StaticConnectivityGate',
]
