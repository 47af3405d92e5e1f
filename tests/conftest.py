from __future__ import annotations

import sys
from collections import deque
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, List, Optional

import paho.mqtt.client as mqtt
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from weatherstation.core.exceptions import PublisherClosedError, PublishError  # noqa: E402
from weatherstation.protocols.broker_session import BrokerSession  # noqa: E402


class FakeMQTTClient:
    """Stands in for paho's Client; tests drive the network callbacks by hand."""

    def __init__(self, **kwargs: Any) -> None:
        self.init_kwargs = kwargs
        self.connect_calls: List[tuple] = []
        self.published: List[tuple] = []
        self.publish_rc = mqtt.MQTT_ERR_SUCCESS
        self.loop_started = 0
        self.loop_stopped = 0
        self.disconnected = 0
        self.reconnect_delay: Optional[tuple] = None
        self.credentials: Optional[tuple] = None
        self.tls = False
        self._mid = 0
        self.on_connect = None
        self.on_connect_fail = None
        self.on_disconnect = None
        self.on_publish = None
        self.on_message = None
        self.on_log = None

    def username_pw_set(self, username, password=None):
        self.credentials = (username, password)

    def tls_set(self, *args, **kwargs):
        self.tls = True

    def reconnect_delay_set(self, min_delay=1, max_delay=120):
        self.reconnect_delay = (min_delay, max_delay)

    def connect_async(self, host, port=1883, keepalive=60, **kwargs):
        if not host:
            raise ValueError("Invalid host.")
        self.connect_calls.append((host, port, keepalive))

    def loop_start(self):
        self.loop_started += 1
        return mqtt.MQTT_ERR_SUCCESS

    def loop_stop(self):
        self.loop_stopped += 1
        return mqtt.MQTT_ERR_SUCCESS

    def disconnect(self):
        self.disconnected += 1
        return mqtt.MQTT_ERR_SUCCESS

    def publish(self, topic, payload=None, qos=0, retain=False):
        self._mid += 1
        if self.publish_rc in (mqtt.MQTT_ERR_SUCCESS, mqtt.MQTT_ERR_NO_CONN):
            self.published.append((topic, payload, qos))
        return SimpleNamespace(rc=self.publish_rc, mid=self._mid)

    # -- network thread simulation ------------------------------------- #
    def fire_connect(self, reason_code: int = 0, session_present: bool = False) -> None:
        self.on_connect(self, None, SimpleNamespace(session_present=session_present), reason_code, None)

    def fire_disconnect(self, reason_code: int = 7) -> None:
        self.on_disconnect(self, None, SimpleNamespace(is_disconnect_packet_from_server=False), reason_code, None)

    def fire_connect_fail(self) -> None:
        self.on_connect_fail(self, None)

    def fire_publish(self, mid: int) -> None:
        self.on_publish(self, None, mid, 0, None)


class _Handle:
    def __init__(self, when: float, fn: Callable, args: tuple) -> None:
        self.when = when
        self.fn = fn
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualWorker:
    """Deterministic worker: posted work runs on run_pending(), delayed work on advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.quit = False
        self._ready: deque = deque()
        self._timers: List[_Handle] = []

    def start(self) -> "ManualWorker":
        return self

    def post(self, fn: Callable, *args: Any) -> None:
        if self.quit:
            raise PublisherClosedError("worker is shut down")
        self._ready.append((fn, args))

    def post_delayed(self, delay: float, fn: Callable, *args: Any) -> _Handle:
        handle = _Handle(self.now + delay, fn, args)
        self._timers.append(handle)
        return handle

    def cancel(self, handle: Optional[_Handle]) -> None:
        if handle is not None:
            handle.cancel()

    def run_pending(self) -> None:
        while self._ready:
            fn, args = self._ready.popleft()
            fn(*args)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        self.run_pending()
        while True:
            due = [h for h in self._timers if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._timers.remove(handle)
            self.now = handle.when
            handle.fn(*handle.args)
            self.run_pending()
        self.now = target

    def pending_timers(self) -> int:
        return sum(1 for h in self._timers if not h.cancelled)

    def quit_safely(self, timeout: Optional[float] = None) -> None:
        self.run_pending()
        self.quit = True
        self._timers.clear()


class RecordingSession(BrokerSession):
    """Broker session double that records publishes and can be told to fail."""

    def __init__(self) -> None:
        self.published: List[tuple] = []
        self.connects = 0
        self.disconnects = 0
        self.fail_with: Optional[Exception] = None
        self.reconnect = True

    def connect(self) -> None:
        self.connects += 1

    def publish(self, topic, payload, qos=1) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.published.append((topic, payload, qos))

    def disconnect(self) -> None:
        self.disconnects += 1

    def set_reconnect_policy(self, enabled: bool) -> None:
        self.reconnect = enabled


@pytest.fixture
def fake_client_factory():
    created: List[FakeMQTTClient] = []

    def factory(**kwargs: Any) -> FakeMQTTClient:
        client = FakeMQTTClient(**kwargs)
        created.append(client)
        return client

    factory.created = created  # type: ignore[attr-defined]
    return factory


@pytest.fixture
def manual_worker() -> ManualWorker:
    return ManualWorker()


@pytest.fixture
def recording_session() -> RecordingSession:
    return RecordingSession()


@pytest.fixture
def publish_error() -> PublishError:
    return PublishError("broker unavailable")
