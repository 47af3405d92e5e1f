import logging
import time
from collections import Counter
from enum import Enum, auto
from typing import Any, Callable, Dict

from weatherstation.core.exceptions import PayloadSerializationError, PublishError, PublisherClosedError
from weatherstation.core.worker import WorkerContext
from weatherstation.mapping.payload_builder import build_payload
from weatherstation.protocols.broker_session import BrokerSession
from weatherstation.sensors.connectivity import ConnectivityGate
from weatherstation.sensors.latest_value_cache import LatestValueCache
from weatherstation.triggers.periodic_timer import PeriodicTimer

PUBLISH_QOS = 1


class SchedulerState(Enum):
    IDLE = auto()
    RUNNING = auto()
    CLOSED = auto()


class CycleOutcome(Enum):
    NO_NETWORK = "no_network"
    NO_DATA = "no_data"
    PUBLISHED = "published"
    FAILED = "failed"


def now_millis() -> int:
    return time.time_ns() // 1_000_000


class PublishScheduler:
    """Samples the value cache on a fixed cadence and publishes each snapshot"""

    def __init__(self,
                 worker: WorkerContext,
                 session: BrokerSession,
                 cache: LatestValueCache,
                 connectivity: ConnectivityGate,
                 topic: str,
                 device_id: str,
                 interval_seconds: float = 1.0,
                 qos: int = PUBLISH_QOS,
                 clock: Callable[[], int] = now_millis):
        self.worker = worker
        self.session = session
        self.cache = cache
        self.connectivity = connectivity
        self.topic = topic
        self.device_id = device_id
        self.qos = qos
        self.clock = clock
        self.timer = PeriodicTimer(worker, self.run_cycle, interval_seconds)
        self.state = SchedulerState.IDLE
        self.outcomes: Counter = Counter()
        self.logger = logging.getLogger(self.__class__.__name__)

    # ------------------------------------------------------------------ #
    #  Lifecycle (any thread; work is only enqueued)
    # ------------------------------------------------------------------ #
    def start(self) -> None:
        if self.state == SchedulerState.CLOSED:
            raise PublisherClosedError("publisher is closed")
        if self.state == SchedulerState.RUNNING:
            return
        self.state = SchedulerState.RUNNING
        self.timer.start()

    def stop(self) -> None:
        if self.state != SchedulerState.RUNNING:
            return
        self.state = SchedulerState.IDLE
        self.timer.stop()

    def close(self) -> None:
        """Stop publishing, disconnect the session and release the worker. Not reusable."""
        if self.state == SchedulerState.CLOSED:
            return
        self.stop()
        self.state = SchedulerState.CLOSED
        self.worker.post(self.session.disconnect)
        self.worker.quit_safely()
        self.logger.info("Publisher closed")

    # ------------------------------------------------------------------ #
    #  One publish cycle (worker thread)
    # ------------------------------------------------------------------ #
    def run_cycle(self) -> CycleOutcome:
        outcome = self._publish_snapshot()
        self.outcomes[outcome] += 1
        return outcome

    def _publish_snapshot(self) -> CycleOutcome:
        if not self.connectivity.is_connected():
            self.logger.error("no active network")
            return CycleOutcome.NO_NETWORK

        try:
            message = build_payload(self.cache.snapshot(), self.device_id, self.clock())
            if not message.has_data:
                self.logger.debug("no sensor measurement to publish")
                return CycleOutcome.NO_DATA
            body = message.to_json()
            self.logger.debug(f"publishing message: {body}")
            self.session.publish(self.topic, body.encode("utf-8"), qos=self.qos)
        except (PublishError, PayloadSerializationError) as e:
            self.logger.error(f"Error publishing message: {e}")
            return CycleOutcome.FAILED
        return CycleOutcome.PUBLISHED

    def get_stats(self) -> Dict[str, Any]:
        return {
            "state": self.state.name.lower(),
            "topic": self.topic,
            "cycles": {outcome.value: self.outcomes[outcome] for outcome in CycleOutcome},
            **self.timer.get_execution_metadata(),
        }
