"""Centralised application settings (dotenv + env overrides)."""
from __future__ import annotations
import os
import platform
from pathlib import Path
from dotenv import load_dotenv

ROOT = Path(__file__).parents[1]
load_dotenv(ROOT / ".env", override=False)

class settings:                            # pylint: disable=too-few-public-methods
    APP_NAME         = os.getenv("APP_NAME", "weatherstation")
    MQTT_SERVER_URI  = os.getenv("MQTT_SERVER_URI", "tcp://iot.eclipse.org:1883")
    MQTT_TOPIC       = os.getenv("MQTT_TOPIC", "weatherstation/telemetry")
    MQTT_KEEPALIVE   = int(os.getenv("MQTT_KEEPALIVE", 60))
    DEVICE_ID        = os.getenv("DEVICE_ID") or platform.node() or "weatherstation"
    PUBLISH_INTERVAL = float(os.getenv("PUBLISH_INTERVAL", 1.0))
    BUFFER_SIZE      = int(os.getenv("BUFFER_SIZE", 100))
    LOG_LEVEL        = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def validate(cls) -> None:
        from weatherstation.core.exceptions import ConfigurationError

        if cls.PUBLISH_INTERVAL <= 0:
            raise ConfigurationError(f"PUBLISH_INTERVAL must be positive, got {cls.PUBLISH_INTERVAL}")
        if cls.BUFFER_SIZE < 1:
            raise ConfigurationError(f"BUFFER_SIZE must be at least 1, got {cls.BUFFER_SIZE}")
        if cls.MQTT_KEEPALIVE < 0:
            raise ConfigurationError(f"MQTT_KEEPALIVE must not be negative, got {cls.MQTT_KEEPALIVE}")
        if not cls.MQTT_TOPIC:
            raise ConfigurationError("MQTT_TOPIC must not be empty")
