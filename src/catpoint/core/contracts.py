"""
Contracts shared by the Catpoint security core.

Enumerations describing arming and alarm state, the sensor model, the event
payloads fed into the transition function, and the capability protocols the
security service expects from its collaborators.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


class CatpointError(RuntimeError):
    """Base class for errors raised by the Catpoint package."""


class ImageAnalyzerError(CatpointError):
    """Raised when an image analyzer backend is unavailable or misconfigured."""


class AlarmStatus(Enum):
    """Threat level derived by the security service."""

    NO_ALARM = "no_alarm"
    PENDING_ALARM = "pending_alarm"
    ALARM = "alarm"

    @property
    def description(self) -> str:
        return _ALARM_DESCRIPTIONS[self]

    @property
    def color(self) -> str:
        return _ALARM_COLORS[self]


_ALARM_DESCRIPTIONS = {
    AlarmStatus.NO_ALARM: "Cool and Good",
    AlarmStatus.PENDING_ALARM: "I'm in Danger...",
    AlarmStatus.ALARM: "Awooga!",
}
_ALARM_COLORS = {
    AlarmStatus.NO_ALARM: "#47c98a",
    AlarmStatus.PENDING_ALARM: "#e6c229",
    AlarmStatus.ALARM: "#ba2d3a",
}


class ArmingStatus(Enum):
    """Whether the system is actively monitoring sensors."""

    DISARMED = "disarmed"
    ARMED_HOME = "armed_home"
    ARMED_AWAY = "armed_away"

    @property
    def is_armed(self) -> bool:
        return self is not ArmingStatus.DISARMED

    @property
    def description(self) -> str:
        return _ARMING_DESCRIPTIONS[self]

    @property
    def color(self) -> str:
        return _ARMING_COLORS[self]


_ARMING_DESCRIPTIONS = {
    ArmingStatus.DISARMED: "Disarmed",
    ArmingStatus.ARMED_HOME: "Armed - At Home",
    ArmingStatus.ARMED_AWAY: "Armed - Away",
}
_ARMING_COLORS = {
    ArmingStatus.DISARMED: "#47c98a",
    ArmingStatus.ARMED_HOME: "#ba2d3a",
    ArmingStatus.ARMED_AWAY: "#2d6fba",
}


class SensorType(Enum):
    """Immutable classification of a sensor."""

    DOOR = "door"
    WINDOW = "window"
    MOTION = "motion"


class Sensor(BaseModel):
    """
    A named door, window or motion sensor.

    Identity is ``(name, sensor_type, sensor_id)`` and frozen after creation;
    only the ``active`` flag may be reassigned. It never takes part in equality
    or hashing, so toggling a sensor keeps it in place inside a set.
    """

    model_config = ConfigDict(validate_assignment=True)

    name: str = Field(min_length=1, frozen=True)
    sensor_type: SensorType = Field(frozen=True)
    sensor_id: uuid.UUID = Field(default_factory=uuid.uuid4, frozen=True)
    active: bool = Field(default=False)

    @property
    def identity(self) -> tuple[str, SensorType, uuid.UUID]:
        return (self.name, self.sensor_type, self.sensor_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sensor):
            return NotImplemented
        return self.identity == other.identity

    def __lt__(self, other: Sensor) -> bool:
        if not isinstance(other, Sensor):
            return NotImplemented
        return (self.name, str(self.sensor_id)) < (other.name, str(other.sensor_id))

    def __hash__(self) -> int:
        return hash(self.identity)


class TransitionEvent(BaseModel):
    """Base class for the inputs of the alarm transition function."""

    model_config = ConfigDict(frozen=True)


class SensorActivationChanged(TransitionEvent):
    """A caller asked to set a sensor's active flag."""

    previously_active: bool
    active: bool


class ImageAnalyzed(TransitionEvent):
    """The image analyzer finished classifying a camera frame."""

    cat_detected: bool
    any_sensor_active: bool = Field(
        default=False, description="Whether at least one known sensor is currently active."
    )


class ArmingStatusChanged(TransitionEvent):
    """The arming status was switched by an external command."""

    arming_status: ArmingStatus
    cat_detected: bool = Field(
        default=False, description="Whether the last analysed image contained a cat."
    )


@runtime_checkable
class SecurityRepository(Protocol):
    """Storage capability for alarm and arming status, sensors and the last cat verdict."""

    def get_alarm_status(self) -> AlarmStatus: ...

    def set_alarm_status(self, alarm_status: AlarmStatus) -> None: ...

    def get_arming_status(self) -> ArmingStatus: ...

    def set_arming_status(self, arming_status: ArmingStatus) -> None: ...

    def get_cat_detected(self) -> bool: ...

    def set_cat_detected(self, cat_detected: bool) -> None: ...

    def get_sensors(self) -> set[Sensor]: ...

    def add_sensor(self, sensor: Sensor) -> None: ...

    def remove_sensor(self, sensor: Sensor) -> None: ...

    def update_sensor(self, sensor: Sensor) -> None: ...


@runtime_checkable
class ImageAnalyzer(Protocol):
    """Capability answering whether an image contains a cat."""

    def contains_cat(self, image: Any, confidence_threshold: float) -> bool: ...


@runtime_checkable
class StatusListener(Protocol):
    """Observer notified by the security service after state changes."""

    def notify(self, alarm_status: AlarmStatus) -> None: ...

    def cat_detected(self, cat: bool) -> None: ...

    def sensor_status_changed(self) -> None: ...


__all__ = [
    "AlarmStatus",
    "ArmingStatus",
    "ArmingStatusChanged",
    "CatpointError",
    "ImageAnalyzed",
    "ImageAnalyzer",
    "ImageAnalyzerError",
    "SecurityRepository",
    "Sensor",
    "SensorActivationChanged",
    "SensorType",
    "StatusListener",
    "TransitionEvent",
]
