"""Write-only adapters between platform sensor callbacks and the value cache."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from .latest_value_cache import LatestValueCache, Metric


@dataclass(frozen=True)
class SensorEvent:
    """A reading delivered by the platform. Only ``values[0]`` is consumed."""
    values: Sequence[float]
    sensor: Optional[Any] = None
    accuracy: int = 0
    timestamp: int = field(default_factory=time.monotonic_ns)


class SensorEventListener(ABC):
    """Capability interface the platform calls when a sensor reports."""

    @abstractmethod
    def on_sensor_changed(self, event: SensorEvent) -> None:
        pass

    @abstractmethod
    def on_accuracy_changed(self, sensor: Any, accuracy: int) -> None:
        pass


class MetricSink(SensorEventListener):
    """Overwrites one cache slot per event; no I/O, no validation, never blocks."""

    def __init__(self, cache: LatestValueCache, metric: Metric):
        self.cache = cache
        self.metric = metric

    def on_sensor_changed(self, event: SensorEvent) -> None:
        self.cache.update(self.metric, event.values[0])

    def on_accuracy_changed(self, sensor: Any, accuracy: int) -> None:
        pass

    def __repr__(self) -> str:
        return f"MetricSink({self.metric.value})"


def temperature_sink(cache: LatestValueCache) -> MetricSink:
    return MetricSink(cache, Metric.TEMPERATURE)


def pressure_sink(cache: LatestValueCache) -> MetricSink:
    return MetricSink(cache, Metric.PRESSURE)
