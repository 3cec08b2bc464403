"""
Catpoint - home security monitoring core

Tracks door, window and motion sensors plus the arming status, and derives the
alarm status from sensor activity and camera-based cat detection.
"""

__version__ = "0.1.0"

from catpoint.core import (
    AlarmStatus,
    ArmingStatus,
    ConfigService,
    SecurityService,
    Sensor,
    SensorType,
)

__all__ = [
    "AlarmStatus",
    "ArmingStatus",
    "ConfigService",
    "SecurityService",
    "Sensor",
    "SensorType",
]
