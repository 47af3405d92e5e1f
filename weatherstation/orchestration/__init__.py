"""Publish scheduling."""

from .scheduler import PublishScheduler, SchedulerState, CycleOutcome, PUBLISH_QOS, now_millis

__all__ = [
    'PublishScheduler',
    'SchedulerState',
    'CycleOutcome',
    'PUBLISH_QOS',
    'now_millis',
]
