"""Repeating task scheduling."""

from .periodic_timer import PeriodicTimer

__all__ = [
    'PeriodicTimer',
]
