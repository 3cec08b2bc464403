from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from catpoint.core.config import ConfigService
from catpoint.core.contracts import AlarmStatus, ArmingStatus, Sensor, SensorType
from catpoint.core.service import SecurityService
from catpoint.repository.memory import InMemorySecurityRepository


def _write_yaml(path: Path, content: str) -> None:
    path.write_text(textwrap.dedent(content).strip() + "\n", encoding="utf-8")


class RecordingRepository(InMemorySecurityRepository):
    """In-memory repository that remembers every write it receives."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.alarm_writes: list[AlarmStatus] = []
        self.arming_writes: list[ArmingStatus] = []
        self.sensor_updates: list[tuple[Sensor, bool]] = []
        self.get_sensors_calls = 0

    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        self.alarm_writes.append(alarm_status)
        super().set_alarm_status(alarm_status)

    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        self.arming_writes.append(arming_status)
        super().set_arming_status(arming_status)

    def update_sensor(self, sensor: Sensor) -> None:
        self.sensor_updates.append((sensor, sensor.active))
        super().update_sensor(sensor)

    def get_sensors(self) -> set[Sensor]:
        self.get_sensors_calls += 1
        return super().get_sensors()


class StubAnalyzer:
    """Image analyzer returning a fixed verdict and recording its calls."""

    def __init__(self, verdict: bool = False) -> None:
        self.verdict = verdict
        self.calls: list[tuple[object, float]] = []

    def contains_cat(self, image: object, confidence_threshold: float) -> bool:
        self.calls.append((image, confidence_threshold))
        return self.verdict


@pytest.fixture
def make_sensor():
    def _make(name: str = "front door", sensor_type: SensorType = SensorType.DOOR, *, active=False):
        return Sensor(name=name, sensor_type=sensor_type, active=active)

    return _make


@pytest.fixture
def make_service():
    """Build a SecurityService over a recording repository seeded with the given state."""

    def _make(
        *,
        alarm: AlarmStatus = AlarmStatus.NO_ALARM,
        arming: ArmingStatus = ArmingStatus.DISARMED,
        sensors: set[Sensor] | None = None,
        cat: bool = False,
    ) -> tuple[SecurityService, RecordingRepository, StubAnalyzer]:
        repository = RecordingRepository(alarm_status=alarm, arming_status=arming, sensors=sensors)
        analyzer = StubAnalyzer(verdict=cat)
        return SecurityService(repository, analyzer), repository, analyzer

    return _make


@pytest.fixture
def sample_config_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary configuration directory for tests.
    """

    config_dir = tmp_path / "config"
    config_dir.mkdir()
    database_path = tmp_path / "catpoint.db"
    config_yaml = f"""
    detection:
      backend: "fake"
      confidence_threshold: 65
      seed: 7

    repository:
      backend: "sql"
      database_url: "sqlite:///{database_path.as_posix()}"

    logging:
      level: "debug"
    """
    secrets_yaml = """
    rekognition:
      region_name: "eu-west-1"
      aws_access_key_id: "AKIAEXAMPLE"
      aws_secret_access_key: "example"
    """
    _write_yaml(config_dir / "config.yaml", config_yaml)
    _write_yaml(config_dir / "secrets.yaml", secrets_yaml)
    return config_dir


@pytest.fixture
def sample_config_service(sample_config_dir: Path) -> ConfigService:
    """Return a ConfigService wired to the temporary configuration."""

    return ConfigService(config_dir=sample_config_dir)
