"""
MQTT Broker Session Implementation
paho-mqtt backed session with automatic reconnect and a bounded disconnected buffer
"""

import logging
import time
from typing import Any, Callable, Dict, Optional, Union

import paho.mqtt.client as mqtt

from weatherstation.core.exceptions import ConnectError, ConstructionError, PublishError
from weatherstation.core.patterns.observer import LoggingSessionObserver, SessionObserver, SessionSubject
from weatherstation.core.patterns.state_machine import SessionState, StateMachine
from .broker_session import BrokerSession, SessionConfig
from .disconnected_buffer import BufferOptions, DisconnectedBuffer, PendingMessage

# Network callbacks arrive on paho's thread; anything that touches the client
# or the buffer is handed back through this.
Dispatch = Callable[[Callable[[], None]], None]


def generate_client_id() -> str:
    return f"paho{time.time_ns()}"


def _run_inline(fn: Callable[[], None]) -> None:
    fn()


class MQTTBrokerSession(BrokerSession):
    """
    Broker session over paho-mqtt.

    Features:
    - Asynchronous connect with automatic reconnect (paho network thread)
    - Persistent session (clean_session=False) so QoS 1 state survives reconnects
    - Disconnected buffer enabled on connect, flushed oldest-first on reconnect
    - Lifecycle events forwarded to SessionObservers for diagnostics
    """

    def __init__(self,
                 config: SessionConfig,
                 dispatch: Optional[Dispatch] = None,
                 observers: Optional[list] = None,
                 client_factory: Callable[..., Any] = mqtt.Client):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self.state_machine = StateMachine(SessionState.DISCONNECTED)
        self._dispatch = dispatch or _run_inline
        self._auto_reconnect = config.automatic_reconnect
        self._has_connected = False
        self._connect_issued = False
        self._buffer = DisconnectedBuffer(config.buffer_options)
        self._buffer_enabled = False
        self._published = 0
        self._delivered = 0

        self._observers = SessionSubject()
        for observer in observers if observers is not None else [LoggingSessionObserver()]:
            self._observers.subscribe(observer)

        self.client_id = config.client_id or generate_client_id()
        self.client = self._initialize_client(client_factory)

    def _initialize_client(self, client_factory):
        """Create and configure the paho client; any failure here is fatal."""
        try:
            client = client_factory(
                callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
                client_id=self.client_id,
                clean_session=self.config.clean_session,
                protocol=mqtt.MQTTv311,
            )

            if self.config.username:
                client.username_pw_set(self.config.username, self.config.password)

            if self.config.use_tls:
                client.tls_set()

            client.reconnect_delay_set(
                min_delay=self.config.min_reconnect_delay,
                max_delay=self.config.max_reconnect_delay,
            )

            client.on_connect = self._on_connect
            client.on_connect_fail = self._on_connect_fail
            client.on_disconnect = self._on_disconnect
            client.on_publish = self._on_publish
            client.on_message = self._on_message
            client.on_log = self._on_log
        except (ValueError, TypeError, OSError) as e:
            raise ConstructionError(f"Failed to initialize MQTT client: {e}") from e

        self.logger.info(f"MQTT client initialized with ID: {self.client_id}")
        return client

    # ------------------------------------------------------------------ #
    #  BrokerSession API (worker thread)
    # ------------------------------------------------------------------ #
    def connect(self) -> None:
        if self.state != SessionState.DISCONNECTED or not self.state_machine.transition(SessionState.CONNECTING):
            raise ConnectError(f"Cannot connect from state {self.state.name}")

        self.logger.info(f"Connecting to MQTT broker at {self.config.host}:{self.config.port}")
        try:
            self.client.connect_async(self.config.host, self.config.port, keepalive=self.config.keepalive)
            rc = self.client.loop_start()
        except (ValueError, OSError) as e:
            self.state_machine.transition(SessionState.DISCONNECTED)
            raise ConnectError(f"MQTT connection failure: {e}") from e

        if rc != mqtt.MQTT_ERR_SUCCESS:
            self.state_machine.transition(SessionState.DISCONNECTED)
            raise ConnectError(f"MQTT network loop could not start (code: {rc})")
        self._connect_issued = True

    def publish(self, topic: str, payload: Union[bytes, str], qos: int = 1) -> None:
        if self.state == SessionState.CLOSED:
            raise PublishError("MQTT session is closed")

        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        message = PendingMessage(topic=topic, payload=payload, qos=qos)

        if self.state == SessionState.CONNECTED:
            self._flush_buffer()
            if not len(self._buffer):
                self._send(message)
                return

        # disconnected, or backlog still pending: keep FIFO order behind it
        if not self._buffer_enabled:
            raise PublishError("MQTT client is not connected and disconnected publishing is disabled")
        if not self._buffer.offer(message):
            raise PublishError(
                f"Disconnected buffer full ({self._buffer.capacity} messages); message to '{topic}' dropped"
            )
        self.logger.debug(f"Buffered message for '{topic}' ({len(self._buffer)}/{self._buffer.capacity})")

    def disconnect(self) -> None:
        if self.state == SessionState.CLOSED:
            return
        self.state_machine.transition(SessionState.CLOSED)
        try:
            self.logger.info("Disconnecting from MQTT broker")
            self.client.disconnect()
        except Exception as e:
            self.logger.error(f"Error disconnecting MQTT client: {e}")
        finally:
            self.client.loop_stop()
            pending = len(self._buffer)
            if pending:
                self.logger.warning(f"Discarding {pending} buffered messages on disconnect")
            self._buffer.clear()

    def set_reconnect_policy(self, enabled: bool) -> None:
        was_enabled, self._auto_reconnect = self._auto_reconnect, enabled
        self.logger.info(f"Automatic reconnect {'enabled' if enabled else 'disabled'}")
        if enabled and not was_enabled and self.state == SessionState.DISCONNECTED and self._connect_issued:
            # the network loop was halted after a drop or failed connect; restarting it reconnects
            self.state_machine.transition(SessionState.CONNECTING)
            self.client.loop_start()

    def set_buffer_options(self, options: BufferOptions) -> None:
        self._buffer.options = options
        self._buffer_enabled = options.enabled
        self.logger.debug(f"Disconnected buffer options: {options}")

    # ------------------------------------------------------------------ #
    #  Worker-side helpers
    # ------------------------------------------------------------------ #
    def _send(self, message: PendingMessage) -> None:
        try:
            info = self.client.publish(message.topic, message.payload, message.qos, message.retain)
        except (ValueError, TypeError) as e:
            raise PublishError(f"Failed to publish message to topic '{message.topic}': {e}") from e

        if info.rc == mqtt.MQTT_ERR_NO_CONN:
            # paho keeps QoS>0 messages queued and resends them after reconnecting
            self.logger.debug(f"Connection dropped; paho queued message {info.mid} for '{message.topic}'")
        elif info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(f"Failed to publish message to topic '{message.topic}': {mqtt.error_string(info.rc)}")
        self._published += 1

    def _flush_buffer(self) -> None:
        flushed = 0
        while self.state == SessionState.CONNECTED:
            message = self._buffer.pop()
            if message is None:
                break
            try:
                self._send(message)
                flushed += 1
            except PublishError as e:
                self.logger.error(f"Dropping buffered message: {e}")
        if flushed:
            self.logger.info(f"Flushed {flushed} buffered messages")

    def _on_connected(self) -> None:
        self.set_buffer_options(self.config.buffer_options)
        self._flush_buffer()

    def _halt_network_loop(self) -> None:
        if self.state == SessionState.DISCONNECTED:
            self.logger.info("Automatic reconnect disabled; stopping MQTT network loop")
            self.client.loop_stop()

    def _post(self, fn: Callable[[], None]) -> None:
        try:
            self._dispatch(fn)
        except Exception as e:
            self.logger.warning(f"Could not schedule {fn.__name__}: {e}")

    # ------------------------------------------------------------------ #
    #  MQTT event callbacks (paho network thread)
    # ------------------------------------------------------------------ #
    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if self.state == SessionState.CLOSED:
            return
        if reason_code != 0:
            self.logger.error(f"Connection refused by broker: {reason_code}")
            self._connection_down()
            self._observers.notify("connect_failed", ConnectError(f"connection refused: {reason_code}"))
            return

        reconnect = self._has_connected
        self._has_connected = True
        if self.state != SessionState.CONNECTED:
            self.state_machine.transition(SessionState.CONNECTED)
        self._post(self._on_connected)
        self._observers.notify("connect_complete", reconnect, self.config.server_uri)

    def _on_connect_fail(self, client, userdata):
        if self.state == SessionState.CLOSED:
            return
        self._connection_down()
        self._observers.notify(
            "connect_failed", ConnectError(f"unable to reach {self.config.host}:{self.config.port}")
        )

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties=None):
        if self.state == SessionState.CLOSED:
            self.logger.info("Disconnected from MQTT broker")
            return
        self._connection_down()
        cause = None if reason_code == 0 else ConnectError(f"unexpected disconnection ({reason_code})")
        self._observers.notify("connection_lost", cause)

    def _connection_down(self):
        target = SessionState.RECONNECT_PENDING if self._auto_reconnect else SessionState.DISCONNECTED
        if self.state != target:
            self.state_machine.transition(target)
        if not self._auto_reconnect:
            self._post(self._halt_network_loop)

    def _on_publish(self, client, userdata, mid, reason_code=None, properties=None):
        self._delivered += 1
        self._observers.notify("delivery_complete", mid)

    def _on_message(self, client, userdata, msg):
        self.logger.debug(f"MQTT message arrived on '{msg.topic}': {len(msg.payload)} bytes")

    def _on_log(self, client, userdata, level, buf):
        level_map = {
            mqtt.MQTT_LOG_DEBUG: logging.DEBUG,
            mqtt.MQTT_LOG_INFO: logging.INFO,
            mqtt.MQTT_LOG_NOTICE: logging.INFO,
            mqtt.MQTT_LOG_WARNING: logging.WARNING,
            mqtt.MQTT_LOG_ERR: logging.ERROR
        }
        self.logger.log(level_map.get(level, logging.DEBUG), f"MQTT: {buf}")

    # ------------------------------------------------------------------ #
    #  Observers and introspection
    # ------------------------------------------------------------------ #
    def add_observer(self, observer: SessionObserver) -> None:
        self._observers.subscribe(observer)

    @property
    def state(self) -> SessionState:
        return self.state_machine.state

    def is_connected(self) -> bool:
        return self.state == SessionState.CONNECTED

    def buffered_messages(self) -> list:
        return self._buffer.snapshot()

    def get_stats(self) -> Dict[str, Any]:
        return {
            "server_uri": self.config.server_uri,
            "client_id": self.client_id,
            "connection_state": self.state.name.lower(),
            "automatic_reconnect": self._auto_reconnect,
            "buffer_enabled": self._buffer_enabled,
            "buffered": len(self._buffer),
            "dropped": self._buffer.dropped,
            "published": self._published,
            "delivered": self._delivered,
        }
