"""Behaviour of the SecurityService state machine over a recording repository."""

from __future__ import annotations

import random

import numpy as np
import pytest

from catpoint.core.contracts import AlarmStatus, ArmingStatus, Sensor, SensorType
from catpoint.core.service import DEFAULT_CONFIDENCE_THRESHOLD, SecurityService

ARMED = [ArmingStatus.ARMED_AWAY, ArmingStatus.ARMED_HOME]


def test_armed_activation_pends_alarm(make_service, make_sensor) -> None:
    sensor = make_sensor()
    service, repository, _ = make_service(arming=ArmingStatus.ARMED_AWAY, sensors={sensor})

    service.change_sensor_activation_status(sensor, True)

    assert repository.alarm_writes == [AlarmStatus.PENDING_ALARM]
    assert sensor.active is True


@pytest.mark.parametrize("arming", ARMED)
def test_armed_activation_while_pending_raises_alarm(make_service, make_sensor, arming) -> None:
    sensor = make_sensor()
    service, repository, _ = make_service(
        alarm=AlarmStatus.PENDING_ALARM, arming=arming, sensors={sensor}
    )

    service.change_sensor_activation_status(sensor, True)

    assert repository.alarm_writes == [AlarmStatus.ALARM]
    assert repository.sensor_updates == [(sensor, True)]


def test_deactivation_while_pending_clears_alarm(make_service, make_sensor) -> None:
    sensor = make_sensor(active=True)
    service, repository, _ = make_service(
        alarm=AlarmStatus.PENDING_ALARM, arming=ArmingStatus.ARMED_HOME, sensors={sensor}
    )

    service.change_sensor_activation_status(sensor, False)

    assert sensor.active is False
    assert repository.sensor_updates == [(sensor, False)]
    assert repository.alarm_writes == [AlarmStatus.NO_ALARM]


@pytest.mark.parametrize("initially_active", [False, True])
def test_alarm_is_latched_against_sensor_changes(
    make_service, make_sensor, initially_active
) -> None:
    sensor = make_sensor(active=initially_active)
    service, repository, _ = make_service(
        alarm=AlarmStatus.ALARM, arming=ArmingStatus.ARMED_AWAY, sensors={sensor}
    )

    service.change_sensor_activation_status(sensor, not initially_active)

    assert repository.alarm_writes == []
    assert sensor.active is (not initially_active)
    assert repository.get_alarm_status() is AlarmStatus.ALARM


@pytest.mark.parametrize("alarm", list(AlarmStatus))
def test_deactivating_inactive_sensor_writes_nothing(make_service, make_sensor, alarm) -> None:
    sensor = make_sensor()
    service, repository, _ = make_service(
        alarm=alarm, arming=ArmingStatus.ARMED_HOME, sensors={sensor}
    )

    service.change_sensor_activation_status(sensor, False)

    assert repository.alarm_writes == []
    assert repository.sensor_updates == []


def test_activation_while_disarmed_only_records_sensor(make_service, make_sensor) -> None:
    sensor = make_sensor(sensor_type=SensorType.MOTION)
    service, repository, _ = make_service(sensors={sensor})

    service.change_sensor_activation_status(sensor, True)

    assert repository.alarm_writes == []
    assert repository.sensor_updates == [(sensor, True)]


def test_reactivating_active_sensor_does_not_escalate(make_service, make_sensor) -> None:
    sensor = make_sensor(active=True)
    service, repository, _ = make_service(
        alarm=AlarmStatus.PENDING_ALARM, arming=ArmingStatus.ARMED_AWAY, sensors={sensor}
    )

    service.change_sensor_activation_status(sensor, True)

    assert repository.alarm_writes == []
    assert repository.get_alarm_status() is AlarmStatus.PENDING_ALARM


def test_second_sensor_escalates_pending_to_alarm(make_service, make_sensor) -> None:
    door = make_sensor("front door")
    window = make_sensor("kitchen window", SensorType.WINDOW)
    service, repository, _ = make_service(arming=ArmingStatus.ARMED_HOME, sensors={door, window})

    service.change_sensor_activation_status(door, True)
    service.change_sensor_activation_status(window, True)

    assert repository.alarm_writes == [AlarmStatus.PENDING_ALARM, AlarmStatus.ALARM]


def test_cat_on_camera_while_armed_home_raises_alarm(make_service) -> None:
    service, repository, analyzer = make_service(arming=ArmingStatus.ARMED_HOME, cat=True)
    image = np.zeros((4, 4, 3), dtype=np.uint8)

    service.process_image(image)

    assert repository.alarm_writes == [AlarmStatus.ALARM]
    [(seen_image, threshold)] = analyzer.calls
    assert seen_image is image
    assert threshold == DEFAULT_CONFIDENCE_THRESHOLD
    assert service.cat_detected is True


@pytest.mark.parametrize("arming", [ArmingStatus.ARMED_AWAY, ArmingStatus.DISARMED])
def test_cat_is_ignored_unless_armed_home(make_service, arming) -> None:
    service, repository, _ = make_service(arming=arming, cat=True)

    service.process_image(object())

    assert repository.alarm_writes == []


@pytest.mark.parametrize("alarm", list(AlarmStatus))
def test_no_cat_and_no_active_sensor_clears_alarm(make_service, make_sensor, alarm) -> None:
    service, repository, _ = make_service(
        alarm=alarm, arming=ArmingStatus.ARMED_HOME, sensors={make_sensor()}
    )

    service.process_image(object())

    assert repository.alarm_writes == [AlarmStatus.NO_ALARM]


def test_no_cat_keeps_alarm_while_a_sensor_is_active(make_service, make_sensor) -> None:
    sensors = {make_sensor(), make_sensor("hall", SensorType.MOTION, active=True)}
    service, repository, _ = make_service(
        alarm=AlarmStatus.ALARM, arming=ArmingStatus.ARMED_AWAY, sensors=sensors
    )

    service.process_image(object())

    assert repository.alarm_writes == []
    assert repository.get_alarm_status() is AlarmStatus.ALARM


@pytest.mark.parametrize("alarm", list(AlarmStatus))
def test_disarming_always_clears_alarm(make_service, alarm) -> None:
    service, repository, _ = make_service(alarm=alarm, arming=ArmingStatus.ARMED_AWAY)

    service.set_arming_status(ArmingStatus.DISARMED)

    assert repository.arming_writes == [ArmingStatus.DISARMED]
    assert repository.alarm_writes == [AlarmStatus.NO_ALARM]


@pytest.mark.parametrize("arming", ARMED)
def test_arming_resets_every_sensor(make_service, arming) -> None:
    sensors = {
        Sensor(name=f"window-{index}", sensor_type=SensorType.WINDOW, active=True)
        for index in range(4)
    }
    service, repository, _ = make_service(sensors=sensors)

    service.set_arming_status(arming)

    assert repository.arming_writes == [arming]
    assert repository.get_sensors_calls == 1
    assert all(not sensor.active for sensor in service.get_sensors())
    assert len(repository.sensor_updates) == 4
    assert repository.alarm_writes == []


def test_arming_home_with_cat_on_camera_raises_alarm(make_service) -> None:
    service, repository, _ = make_service(cat=True)
    service.process_image(object())
    assert repository.alarm_writes == []

    service.set_arming_status(ArmingStatus.ARMED_HOME)

    assert repository.alarm_writes == [AlarmStatus.ALARM]


def test_cat_verdict_outlives_the_service(make_service) -> None:
    first, repository, analyzer = make_service(cat=True)
    first.process_image(object())

    second = SecurityService(repository, analyzer)
    second.set_arming_status(ArmingStatus.ARMED_HOME)

    assert repository.get_cat_detected() is True
    assert repository.alarm_writes == [AlarmStatus.ALARM]


def test_arming_away_with_cat_on_camera_stays_quiet(make_service) -> None:
    service, repository, _ = make_service(cat=True)
    service.process_image(object())

    service.set_arming_status(ArmingStatus.ARMED_AWAY)

    assert repository.alarm_writes == []


def test_custom_confidence_threshold_reaches_analyzer(make_service) -> None:
    _, repository, analyzer = make_service()
    service = SecurityService(repository, analyzer, confidence_threshold=80)

    service.process_image("frame")

    assert analyzer.calls == [("frame", 80.0)]


class RecordingListener:
    def __init__(self) -> None:
        self.alarms: list[AlarmStatus] = []
        self.cats: list[bool] = []
        self.sensor_changes = 0

    def notify(self, alarm_status: AlarmStatus) -> None:
        self.alarms.append(alarm_status)

    def cat_detected(self, cat: bool) -> None:
        self.cats.append(cat)

    def sensor_status_changed(self) -> None:
        self.sensor_changes += 1


def test_status_listeners_follow_state_changes(make_service, make_sensor) -> None:
    sensor = make_sensor()
    service, _, analyzer = make_service(arming=ArmingStatus.ARMED_HOME, sensors={sensor})
    listener = RecordingListener()
    service.add_status_listener(listener)

    service.change_sensor_activation_status(sensor, True)
    analyzer.verdict = True
    service.process_image(object())
    service.remove_status_listener(listener)
    service.set_arming_status(ArmingStatus.DISARMED)

    assert listener.alarms == [AlarmStatus.PENDING_ALARM, AlarmStatus.ALARM]
    assert listener.cats == [True]
    assert listener.sensor_changes == 1


def test_analyzer_errors_propagate(make_service, make_sensor) -> None:
    class BrokenAnalyzer:
        def contains_cat(self, image, confidence_threshold):
            raise RuntimeError("camera offline")

    _, repository, _ = make_service()

    service = SecurityService(repository, BrokenAnalyzer())

    with pytest.raises(RuntimeError, match="camera offline"):
        service.process_image(object())
    assert repository.alarm_writes == []


def test_alarm_never_leaves_alarm_without_disarm(make_service) -> None:
    rng = random.Random(1234)
    sensors = {Sensor(name=f"s{index}", sensor_type=SensorType.DOOR) for index in range(3)}
    service, repository, _ = make_service(
        alarm=AlarmStatus.ALARM, arming=ArmingStatus.ARMED_AWAY, sensors=sensors
    )
    ordered = sorted(sensors)

    for _ in range(200):
        service.change_sensor_activation_status(rng.choice(ordered), rng.random() < 0.5)
        assert repository.get_alarm_status() is AlarmStatus.ALARM

    assert repository.alarm_writes == []
