"""
Security service: the alarm state machine of Catpoint.

The service receives sensor toggles, arming commands and camera images, reads
the current state from the repository, evaluates the transition rules and
writes the outcome back. It owns no state besides the registered status
listeners; the repository remains the source of truth, including the verdict
of the last image analysis.
"""

from __future__ import annotations

import logging
from typing import Any

from .contracts import (
    AlarmStatus,
    ArmingStatus,
    ArmingStatusChanged,
    ImageAnalyzed,
    ImageAnalyzer,
    SecurityRepository,
    Sensor,
    SensorActivationChanged,
    StatusListener,
    TransitionEvent,
)
from .transitions import next_alarm_status

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 50.0


class SecurityService:
    """
    Apply the alarm rules on top of a repository and an image analyzer.

    Calls are synchronous and expected to be serialized by the caller; errors
    raised by the collaborators propagate unchanged.
    """

    def __init__(
        self,
        repository: SecurityRepository,
        image_analyzer: ImageAnalyzer,
        *,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._repository = repository
        self._image_analyzer = image_analyzer
        self._confidence_threshold = float(confidence_threshold)
        self._listeners: list[StatusListener] = []

    @property
    def confidence_threshold(self) -> float:
        return self._confidence_threshold

    @property
    def cat_detected(self) -> bool:
        """Result of the most recent image analysis, as stored by the repository."""
        return self._repository.get_cat_detected()

    def add_status_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def remove_status_listener(self, listener: StatusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get_alarm_status(self) -> AlarmStatus:
        return self._repository.get_alarm_status()

    def get_arming_status(self) -> ArmingStatus:
        return self._repository.get_arming_status()

    def get_sensors(self) -> set[Sensor]:
        return self._repository.get_sensors()

    def add_sensor(self, sensor: Sensor) -> None:
        self._repository.add_sensor(sensor)
        self._notify_sensor_status_changed()

    def remove_sensor(self, sensor: Sensor) -> None:
        self._repository.remove_sensor(sensor)
        self._notify_sensor_status_changed()

    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        """Persist ``alarm_status`` and notify listeners."""
        self._repository.set_alarm_status(alarm_status)
        logger.info("Alarm status set to %s", alarm_status.name)
        for listener in list(self._listeners):
            listener.notify(alarm_status)

    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        """
        Switch the arming status.

        Disarming clears any alarm. Arming resets every known sensor to
        inactive, and arming at home while a cat is on camera raises the alarm.
        """
        self._repository.set_arming_status(arming_status)
        logger.info("Arming status set to %s", arming_status.name)
        if arming_status.is_armed:
            for sensor in sorted(self._repository.get_sensors()):
                sensor.active = False
                self._repository.update_sensor(sensor)
            self._notify_sensor_status_changed()
        cat_detected = self._repository.get_cat_detected()
        self._apply(ArmingStatusChanged(arming_status=arming_status, cat_detected=cat_detected))

    def change_sensor_activation_status(self, sensor: Sensor, active: bool) -> None:
        """Record a sensor toggle and pend, escalate or clear the alarm accordingly."""
        previously_active = sensor.active
        if not active and not previously_active:
            logger.debug("Sensor %s already inactive; ignoring deactivation.", sensor.name)
            return
        event = SensorActivationChanged(previously_active=previously_active, active=active)
        alarm_status = self._repository.get_alarm_status()
        arming_status = self._repository.get_arming_status()
        sensor.active = active
        self._repository.update_sensor(sensor)
        self._notify_sensor_status_changed()
        self._apply(event, alarm_status=alarm_status, arming_status=arming_status)

    def process_image(self, image: Any) -> None:
        """Run the image analyzer and update the alarm from its verdict."""
        cat = bool(self._image_analyzer.contains_cat(image, self._confidence_threshold))
        self._repository.set_cat_detected(cat)
        logger.debug("Image analysis finished: cat_detected=%s", cat)
        any_sensor_active = False
        if not cat:
            any_sensor_active = any(sensor.active for sensor in self._repository.get_sensors())
        self._apply(ImageAnalyzed(cat_detected=cat, any_sensor_active=any_sensor_active))
        for listener in list(self._listeners):
            listener.cat_detected(cat)

    def _apply(
        self,
        event: TransitionEvent,
        *,
        alarm_status: AlarmStatus | None = None,
        arming_status: ArmingStatus | None = None,
    ) -> None:
        if alarm_status is None:
            alarm_status = self._repository.get_alarm_status()
        if arming_status is None:
            arming_status = self._repository.get_arming_status()
        target = next_alarm_status(alarm_status, arming_status, event)
        if target is None:
            logger.debug(
                "No alarm transition from %s for %s", alarm_status.name, type(event).__name__
            )
            return
        self.set_alarm_status(target)

    def _notify_sensor_status_changed(self) -> None:
        for listener in list(self._listeners):
            listener.sensor_status_changed()


__all__ = ["DEFAULT_CONFIDENCE_THRESHOLD", "SecurityService"]
