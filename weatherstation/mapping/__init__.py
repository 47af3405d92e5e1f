"""Payload rendering."""

from .payload_builder import build_payload, build_sensor_data, render_value

__all__ = [
    'build_payload',
    'build_sensor_data',
    'render_value',
]
