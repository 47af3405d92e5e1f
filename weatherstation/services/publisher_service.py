# publisher_service.py - wires cache, sinks, broker session and scheduler together

import logging
from typing import Any, Dict, Optional

from config.app_config import settings
from weatherstation.core.exceptions import ConnectError
from weatherstation.core.worker import WorkerContext
from weatherstation.orchestration.scheduler import PublishScheduler
from weatherstation.protocols.broker_session import BrokerSession, SessionConfig
from weatherstation.protocols.disconnected_buffer import BufferOptions
from weatherstation.protocols.mqtt_session import MQTTBrokerSession
from weatherstation.sensors.connectivity import ConnectivityGate, InterfaceConnectivityGate
from weatherstation.sensors.latest_value_cache import LatestValueCache
from weatherstation.sensors.sinks import MetricSink, pressure_sink, temperature_sink


class TelemetryPublisher:
    """
    Periodic weather-station telemetry publisher.

    Sensor callbacks update a latest-value cache through the two listeners;
    a worker thread snapshots the cache every interval and publishes it to
    ``topic`` at QoS 1. The broker connection is opened once here and is
    reconnected by the session itself.
    """

    def __init__(self,
                 app_name: str,
                 topic: str,
                 device_id: Optional[str] = None,
                 *,
                 server_uri: Optional[str] = None,
                 connectivity: Optional[ConnectivityGate] = None,
                 interval_seconds: Optional[float] = None,
                 session: Optional[BrokerSession] = None,
                 worker: Optional[WorkerContext] = None):
        """
        Args:
            app_name: Name used for the worker thread and in logs
            topic: Topic every snapshot is published to
            device_id: Value of the ``deviceId`` field; defaults to settings.DEVICE_ID
            server_uri: Broker endpoint such as ``tcp://host:1883``
            connectivity: Network gate checked before each cycle
            interval_seconds: Delay between the end of one cycle and the next
            session: Pre-built broker session (tests, alternative transports)
            worker: Pre-built worker context

        Raises:
            ConstructionError: the broker session could not be created
        """
        self.app_name = app_name
        self.topic = topic
        self.device_id = device_id or settings.DEVICE_ID
        self.logger = logging.getLogger(self.__class__.__name__)

        self.cache = LatestValueCache()
        self._temperature_listener = temperature_sink(self.cache)
        self._pressure_listener = pressure_sink(self.cache)

        self.worker = (worker or WorkerContext(f"{app_name}-mqttPublisherThread")).start()
        try:
            self.session = session or self._create_session(server_uri or settings.MQTT_SERVER_URI)
        except Exception:
            self.worker.quit_safely()
            raise

        self.scheduler = PublishScheduler(
            worker=self.worker,
            session=self.session,
            cache=self.cache,
            connectivity=connectivity or InterfaceConnectivityGate(),
            topic=topic,
            device_id=self.device_id,
            interval_seconds=interval_seconds or settings.PUBLISH_INTERVAL,
        )

        self.worker.post(self._connect)
        self.logger.info(f"{app_name}: publishing '{self.device_id}' telemetry to '{topic}'")

    def _create_session(self, server_uri: str) -> MQTTBrokerSession:
        config = SessionConfig(
            server_uri=server_uri,
            clean_session=False,
            automatic_reconnect=True,
            keepalive=settings.MQTT_KEEPALIVE,
            buffer_options=BufferOptions(enabled=True, size=settings.BUFFER_SIZE, delete_oldest=False),
        )
        return MQTTBrokerSession(config, dispatch=self.worker.post)

    def _connect(self):
        try:
            self.session.connect()
        except ConnectError as e:
            self.logger.error(f"MQTT connection failure: {e}")

    # ------------------------------------------------------------------ #
    #  Control surface
    # ------------------------------------------------------------------ #
    def start(self) -> None:
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def close(self) -> None:
        self.scheduler.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ------------------------------------------------------------------ #
    #  Sensor input surface
    # ------------------------------------------------------------------ #
    def get_temperature_listener(self) -> MetricSink:
        return self._temperature_listener

    def get_pressure_listener(self) -> MetricSink:
        return self._pressure_listener

    def get_stats(self) -> Dict[str, Any]:
        return {
            "app_name": self.app_name,
            "device_id": self.device_id,
            "scheduler": self.scheduler.get_stats(),
            "session": self.session.get_stats(),
        }
