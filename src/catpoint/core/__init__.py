"""
Core of the Catpoint security system.

Exposes the contracts, the pure transition rules, the security service and the
configuration service.
"""

from .config import ConfigError, ConfigService, ConfigSnapshot
from .contracts import (
    AlarmStatus,
    ArmingStatus,
    ArmingStatusChanged,
    CatpointError,
    ImageAnalyzed,
    ImageAnalyzer,
    ImageAnalyzerError,
    SecurityRepository,
    Sensor,
    SensorActivationChanged,
    SensorType,
    StatusListener,
)
from .service import SecurityService
from .transitions import next_alarm_status

__all__ = [
    "AlarmStatus",
    "ArmingStatus",
    "ArmingStatusChanged",
    "CatpointError",
    "ConfigError",
    "ConfigService",
    "ConfigSnapshot",
    "ImageAnalyzed",
    "ImageAnalyzer",
    "ImageAnalyzerError",
    "SecurityRepository",
    "SecurityService",
    "Sensor",
    "SensorActivationChanged",
    "SensorType",
    "StatusListener",
    "next_alarm_status",
]
