"""In-memory security repository."""

from __future__ import annotations

import logging

from ..core.contracts import AlarmStatus, ArmingStatus, Sensor

logger = logging.getLogger(__name__)


class InMemorySecurityRepository:
    """Keep the security system state for the lifetime of the process."""

    def __init__(
        self,
        *,
        alarm_status: AlarmStatus = AlarmStatus.NO_ALARM,
        arming_status: ArmingStatus = ArmingStatus.DISARMED,
        sensors: set[Sensor] | None = None,
        cat_detected: bool = False,
    ) -> None:
        self._alarm_status = alarm_status
        self._arming_status = arming_status
        self._cat_detected = cat_detected
        self._sensors: set[Sensor] = set(sensors or ())

    def get_alarm_status(self) -> AlarmStatus:
        return self._alarm_status

    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        self._alarm_status = alarm_status

    def get_arming_status(self) -> ArmingStatus:
        return self._arming_status

    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        self._arming_status = arming_status

    def get_cat_detected(self) -> bool:
        return self._cat_detected

    def set_cat_detected(self, cat_detected: bool) -> None:
        self._cat_detected = cat_detected

    def get_sensors(self) -> set[Sensor]:
        return set(self._sensors)

    def add_sensor(self, sensor: Sensor) -> None:
        self._sensors.add(sensor)

    def remove_sensor(self, sensor: Sensor) -> None:
        self._sensors.discard(sensor)

    def update_sensor(self, sensor: Sensor) -> None:
        if sensor not in self._sensors:
            logger.debug("Ignoring update for unknown sensor %s", sensor.name)
            return
        # Replace the stored instance so callers holding copies stay in sync.
        self._sensors.discard(sensor)
        self._sensors.add(sensor)


__all__ = ["InMemorySecurityRepository"]
