from __future__ import annotations

import json

import pytest

from weatherstation.core.exceptions import PayloadSerializationError, PublisherClosedError
from weatherstation.orchestration import CycleOutcome, PublishScheduler, SchedulerState
from weatherstation.sensors import (
    CallableConnectivityGate,
    LatestValueCache,
    Metric,
    SensorEvent,
    StaticConnectivityGate,
    temperature_sink,
)


def _scheduler(worker, session, cache=None, connectivity=None, interval=1.0, clock=lambda: 1_000):
    return PublishScheduler(
        worker=worker,
        session=session,
        cache=cache or LatestValueCache(),
        connectivity=connectivity or StaticConnectivityGate(True),
        topic="weather",
        device_id="rpi3",
        interval_seconds=interval,
        clock=clock,
    )


def _bodies(session):
    return [json.loads(payload) for _, payload, _ in session.published]


def test_temperature_only_cycle_publishes_once(manual_worker, recording_session) -> None:
    cache = LatestValueCache()
    temperature_sink(cache).on_sensor_changed(SensorEvent(values=[21.5]))
    scheduler = _scheduler(manual_worker, recording_session, cache=cache)

    assert scheduler.run_cycle() == CycleOutcome.PUBLISHED

    assert len(recording_session.published) == 1
    topic, payload, qos = recording_session.published[0]
    assert topic == "weather" and qos == 1
    body = json.loads(payload)
    assert body["data"] == {"temperature": "21.5"}
    assert "pressure" not in body["data"]
    assert body["deviceId"] == "rpi3" and body["channel"] == "pubsub" and body["timestamp"] == 1_000


def test_no_metric_recorded_means_no_publish(manual_worker, recording_session) -> None:
    scheduler = _scheduler(manual_worker, recording_session)

    assert scheduler.run_cycle() == CycleOutcome.NO_DATA
    assert recording_session.published == []


def test_offline_cycles_skip_until_network_returns(manual_worker, recording_session) -> None:
    online = [False, False, False, True]
    cache = LatestValueCache()
    cache.update(Metric.PRESSURE, 1013.25)
    scheduler = _scheduler(
        manual_worker, recording_session, cache=cache,
        connectivity=CallableConnectivityGate(lambda: online.pop(0)),
    )

    outcomes = [scheduler.run_cycle() for _ in range(4)]

    assert outcomes == [CycleOutcome.NO_NETWORK] * 3 + [CycleOutcome.PUBLISHED]
    assert len(recording_session.published) == 1


def test_publish_error_is_reported_not_raised(manual_worker, recording_session, publish_error) -> None:
    cache = LatestValueCache()
    cache.update(Metric.TEMPERATURE, 20.0)
    recording_session.fail_with = publish_error
    scheduler = _scheduler(manual_worker, recording_session, cache=cache)

    assert scheduler.run_cycle() == CycleOutcome.FAILED
    assert scheduler.outcomes[CycleOutcome.FAILED] == 1


def test_unchanged_reading_is_republished_every_cycle(manual_worker, recording_session) -> None:
    cache = LatestValueCache()
    cache.update(Metric.TEMPERATURE, 18.0)
    ticks = iter([1_000, 2_000, 3_000])
    scheduler = _scheduler(manual_worker, recording_session, cache=cache, clock=lambda: next(ticks))

    for _ in range(3):
        scheduler.run_cycle()

    bodies = _bodies(recording_session)
    assert [b["data"] for b in bodies] == [{"temperature": "18.0"}] * 3
    assert [b["timestamp"] for b in bodies] == [1_000, 2_000, 3_000]


def test_start_runs_immediately_then_every_interval(manual_worker, recording_session) -> None:
    cache = LatestValueCache()
    cache.update(Metric.TEMPERATURE, 21.5)
    scheduler = _scheduler(manual_worker, recording_session, cache=cache)

    scheduler.start()
    manual_worker.run_pending()
    assert len(recording_session.published) == 1

    manual_worker.advance(0.5)
    assert len(recording_session.published) == 1

    manual_worker.advance(0.5)
    assert len(recording_session.published) == 2

    manual_worker.advance(3.0)
    assert len(recording_session.published) == 5
    assert scheduler.state == SchedulerState.RUNNING


def test_cycle_reschedules_after_failures(manual_worker, recording_session, publish_error) -> None:
    cache = LatestValueCache()
    cache.update(Metric.TEMPERATURE, 21.5)
    recording_session.fail_with = publish_error
    scheduler = _scheduler(manual_worker, recording_session, cache=cache)

    scheduler.start()
    manual_worker.advance(2.0)

    assert scheduler.outcomes[CycleOutcome.FAILED] == 3
    assert manual_worker.pending_timers() == 1


def test_unexpected_cycle_error_still_reschedules(manual_worker, recording_session) -> None:
    def broken():
        raise RuntimeError("probe exploded")

    class ExplodingGate(StaticConnectivityGate):
        def is_connected(self) -> bool:
            return broken()

    scheduler = _scheduler(manual_worker, recording_session, connectivity=ExplodingGate())

    scheduler.start()
    manual_worker.advance(1.0)

    assert scheduler.timer.execution_count == 2
    assert manual_worker.pending_timers() == 1


def test_stop_cancels_next_trigger(manual_worker, recording_session) -> None:
    cache = LatestValueCache()
    cache.update(Metric.TEMPERATURE, 21.5)
    scheduler = _scheduler(manual_worker, recording_session, cache=cache)
    scheduler.start()
    manual_worker.advance(1.0)
    assert len(recording_session.published) == 2

    scheduler.stop()
    manual_worker.advance(5.0)

    assert len(recording_session.published) == 2
    assert scheduler.state == SchedulerState.IDLE
    assert manual_worker.pending_timers() == 0

    scheduler.start()
    manual_worker.run_pending()
    assert len(recording_session.published) == 3


def test_repeated_start_and_stop_are_no_ops(manual_worker, recording_session) -> None:
    cache = LatestValueCache()
    cache.update(Metric.TEMPERATURE, 21.5)
    scheduler = _scheduler(manual_worker, recording_session, cache=cache)

    scheduler.stop()
    scheduler.start()
    scheduler.start()
    manual_worker.advance(1.0)

    assert len(recording_session.published) == 2
    assert manual_worker.pending_timers() == 1


def test_close_disconnects_and_releases_worker(manual_worker, recording_session) -> None:
    scheduler = _scheduler(manual_worker, recording_session)
    scheduler.start()
    manual_worker.run_pending()

    scheduler.close()

    assert recording_session.disconnects == 1
    assert manual_worker.quit is True
    assert scheduler.state == SchedulerState.CLOSED
    scheduler.close()
    with pytest.raises(PublisherClosedError):
        scheduler.start()


def test_serialisation_error_is_contained(manual_worker, recording_session, monkeypatch) -> None:
    cache = LatestValueCache()
    cache.update(Metric.TEMPERATURE, 21.5)
    scheduler = _scheduler(manual_worker, recording_session, cache=cache)

    def boom(self):
        raise PayloadSerializationError("bad payload")

    monkeypatch.setattr("weatherstation.models.telemetry.TelemetryMessage.to_json", boom)

    assert scheduler.run_cycle() == CycleOutcome.FAILED
    assert recording_session.published == []


def test_stats_report_cycle_outcomes(manual_worker, recording_session) -> None:
    scheduler = _scheduler(manual_worker, recording_session)
    scheduler.run_cycle()

    stats = scheduler.get_stats()
    assert stats["cycles"]["no_data"] == 1
    assert stats["state"] == "idle"
