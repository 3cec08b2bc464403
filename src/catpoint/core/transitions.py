"""
Pure alarm transition rules.

``next_alarm_status`` maps the current alarm status, the current arming status
and an incoming event to the alarm status that should be written, or ``None``
when the repository must be left untouched.
"""

from __future__ import annotations

from .contracts import (
    AlarmStatus,
    ArmingStatus,
    ArmingStatusChanged,
    ImageAnalyzed,
    SensorActivationChanged,
    TransitionEvent,
)

_ESCALATION = {
    AlarmStatus.NO_ALARM: AlarmStatus.PENDING_ALARM,
    AlarmStatus.PENDING_ALARM: AlarmStatus.ALARM,
}


def next_alarm_status(
    alarm: AlarmStatus,
    arming: ArmingStatus,
    event: TransitionEvent,
) -> AlarmStatus | None:
    """Return the alarm status ``event`` leads to, or ``None`` for no write."""

    if isinstance(event, SensorActivationChanged):
        return _on_sensor_change(alarm, arming, event)
    if isinstance(event, ImageAnalyzed):
        return _on_image(arming, event)
    if isinstance(event, ArmingStatusChanged):
        return _on_arming_change(event)
    raise TypeError(f"Unsupported transition event {type(event).__name__}")


def _on_sensor_change(
    alarm: AlarmStatus, arming: ArmingStatus, event: SensorActivationChanged
) -> AlarmStatus | None:
    # ALARM is latched until the system is disarmed.
    if alarm is AlarmStatus.ALARM:
        return None
    if event.active and not event.previously_active:
        if arming is ArmingStatus.DISARMED:
            return None
        return _ESCALATION.get(alarm)
    if not event.active and event.previously_active:
        if alarm is AlarmStatus.PENDING_ALARM:
            return AlarmStatus.NO_ALARM
    return None


def _on_image(arming: ArmingStatus, event: ImageAnalyzed) -> AlarmStatus | None:
    if event.cat_detected:
        if arming is ArmingStatus.ARMED_HOME:
            return AlarmStatus.ALARM
        return None
    if event.any_sensor_active:
        return None
    return AlarmStatus.NO_ALARM


def _on_arming_change(event: ArmingStatusChanged) -> AlarmStatus | None:
    if event.arming_status is ArmingStatus.DISARMED:
        return AlarmStatus.NO_ALARM
    if event.arming_status is ArmingStatus.ARMED_HOME and event.cat_detected:
        return AlarmStatus.ALARM
    return None


__all__ = ["next_alarm_status"]
