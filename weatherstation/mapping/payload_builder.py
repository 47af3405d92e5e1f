"""
Snapshot -> TelemetryMessage rendering.

Pure and synchronous: the same snapshot, device id and timestamp always give
the same message.
"""

from typing import Dict, Mapping, Optional

from weatherstation.models.telemetry import CHANNEL, TelemetryMessage
from weatherstation.sensors.latest_value_cache import Metric, is_absent


def render_value(value: float) -> str:
    """Readings travel as strings on the wire, e.g. 21.5 -> "21.5"."""
    return str(float(value))


def build_sensor_data(snapshot: Mapping[str, Optional[float]]) -> Dict[str, str]:
    data: Dict[str, str] = {}
    for metric in Metric:
        value = snapshot.get(metric.value)
        if not is_absent(value):
            data[metric.value] = render_value(value)
    return data


def build_payload(snapshot: Mapping[str, Optional[float]],
                  device_id: str,
                  timestamp_ms: int,
                  channel: str = CHANNEL) -> TelemetryMessage:
    """Build the message for one cycle; ``data`` is omitted when every metric is absent."""
    data = build_sensor_data(snapshot)
    return TelemetryMessage(
        device_id=device_id,
        timestamp=int(timestamp_ms),
        channel=channel,
        data=data or None,
    )
