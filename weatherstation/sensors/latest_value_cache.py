import math
import threading
from enum import Enum
from typing import Dict, Optional


class Metric(Enum):
    """Metrics carried in the telemetry payload, in rendering order."""
    TEMPERATURE = "temperature"
    PRESSURE = "pressure"


ABSENT = float("nan")


class LatestValueCache:
    """
    Most recent reading per metric, no history.

    Sensor callbacks write from the platform's thread while the publish cycle
    reads from the worker; each slot is guarded on its own, so a snapshot may
    mix readings taken at different instants.
    """

    def __init__(self):
        self._values: Dict[Metric, float] = {metric: ABSENT for metric in Metric}
        self._locks: Dict[Metric, threading.Lock] = {metric: threading.Lock() for metric in Metric}

    def update(self, metric: Metric, value: float) -> None:
        with self._locks[metric]:
            self._values[metric] = value

    def get(self, metric: Metric) -> float:
        with self._locks[metric]:
            return self._values[metric]

    def snapshot(self) -> Dict[str, float]:
        """Current value of every metric keyed by name; never clears the cache."""
        return {metric.value: self.get(metric) for metric in Metric}

    def has_value(self, metric: Metric) -> bool:
        return not is_absent(self.get(metric))


def is_absent(value: Optional[float]) -> bool:
    """True for the absent sentinel, None and non-finite readings."""
    if value is None:
        return True
    return not math.isfinite(value)
