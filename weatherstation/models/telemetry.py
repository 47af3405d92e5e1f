from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional
import json

from weatherstation.core.exceptions import PayloadSerializationError

CHANNEL = "pubsub"


@dataclass(frozen=True, slots=True)
class TelemetryMessage:
    """One publish cycle's body. ``data`` is None when no metric was ever recorded."""
    device_id: str
    timestamp: int                     # epoch millis
    channel: str = CHANNEL
    data: Optional[Dict[str, str]] = None

    @property
    def has_data(self) -> bool:
        return self.data is not None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "deviceId":  self.device_id,
            "channel":   self.channel,
            "timestamp": self.timestamp,
        }
        if self.data is not None:
            body["data"] = dict(self.data)
        return body

    def to_json(self) -> str:
        try:
            return json.dumps(self.to_dict(), separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as e:
            raise PayloadSerializationError(f"cannot serialise telemetry message: {e}") from e

    def encode(self) -> bytes:
        return self.to_json().encode("utf-8")
