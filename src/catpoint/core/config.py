"""
Dynaconf-powered configuration loader with Pydantic validation.

Layered YAML files (``config.yaml`` plus an optional ``secrets.yaml``) and
``CATPOINT_*`` environment variables are merged by Dynaconf, validated into a
``ConfigSnapshot`` and turned into ready-to-use repository, image analyzer and
security service instances.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from dynaconf import Dynaconf
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .contracts import CatpointError, ImageAnalyzer, SecurityRepository
from .service import DEFAULT_CONFIDENCE_THRESHOLD, SecurityService


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    """Case-insensitive dictionary lookup helper."""
    value = raw.get(key) or raw.get(key.upper()) or raw.get(key.lower())
    if isinstance(value, dict):
        return value
    return {}


def _deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dictionaries without mutating the originals."""
    result: dict[str, Any] = {**base}
    for key, value in updates.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


CONFIG_FILENAMES = ("config.yaml", "secrets.yaml")


class ConfigError(CatpointError):
    """Raised when configuration files are missing or invalid."""


class DetectionSettings(BaseModel):
    """Image analyzer selection and detection threshold."""

    model_config = ConfigDict(extra="ignore")

    backend: Literal["fake", "yolo", "rekognition"] = Field(default="fake")
    confidence_threshold: float = Field(
        default=DEFAULT_CONFIDENCE_THRESHOLD,
        ge=0.0,
        le=100.0,
        description="Minimum confidence, in percent, for a cat label to count.",
    )
    model_path: str | None = Field(default=None)
    seed: int | None = Field(default=None, description="Seed for the fake analyzer.")


class RepositorySettings(BaseModel):
    """Where alarm status, arming status and sensors are kept."""

    model_config = ConfigDict(extra="ignore")

    backend: Literal["memory", "sql"] = Field(default="sql")
    database_url: str = Field(default="sqlite:///catpoint.db")

    @field_validator("database_url")
    @classmethod
    def _non_empty_url(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("database_url must not be empty")
        return value


class RekognitionSettings(BaseModel):
    """AWS credentials and endpoint for the Rekognition analyzer."""

    model_config = ConfigDict(extra="ignore")

    region_name: str | None = Field(default=None)
    endpoint_url: str | None = Field(default=None)
    aws_access_key_id: str | None = Field(default=None)
    aws_secret_access_key: str | None = Field(default=None)
    aws_session_token: str | None = Field(default=None)


class LoggingSettings(BaseModel):
    """Log level and optional rotating log file."""

    model_config = ConfigDict(extra="ignore")

    level: str = Field(default="INFO")
    file: Path | None = Field(default=None)
    max_mb: int = Field(default=10, ge=1)
    backup_count: int = Field(default=3, ge=0)

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.upper()


class ConfigSnapshot(BaseModel):
    """Validated, strongly typed view of the merged configuration."""

    model_config = ConfigDict(extra="ignore")

    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    repository: RepositorySettings = Field(default_factory=RepositorySettings)
    rekognition: RekognitionSettings = Field(default_factory=RekognitionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class ConfigService:
    """
    Runtime facade for loading, validating, and distributing configuration.

    Without ``config_dir`` only defaults and environment variables apply.
    """

    def __init__(
        self,
        *,
        config_dir: str | Path | None = None,
        settings: Dynaconf | None = None,
    ) -> None:
        self._config_dir = Path(config_dir) if config_dir else None
        existing_files: list[str] = []
        if self._config_dir is not None:
            settings_files = [self._config_dir / name for name in CONFIG_FILENAMES]
            existing_files = [str(path) for path in settings_files if path.exists()]
            if not existing_files:
                raise ConfigError(
                    f"No configuration files found in {self._config_dir}. "
                    "Expected at least config.yaml."
                )

        self._settings = settings or Dynaconf(
            envvar_prefix="CATPOINT",
            settings_files=existing_files,
            load_dotenv=True,
            environments=False,
        )
        self._snapshot = self._build_snapshot()

    @property
    def config_dir(self) -> Path | None:
        return self._config_dir

    @property
    def snapshot(self) -> ConfigSnapshot:
        """Latest validated configuration snapshot."""
        return self._snapshot

    def refresh(self) -> ConfigSnapshot:
        """Reload configuration files and rebuild the snapshot."""
        self._settings.reload()
        self._snapshot = self._build_snapshot()
        return self._snapshot

    def apply_changes(self, changes: dict[str, Any]) -> ConfigSnapshot:
        """
        Merge the provided changes into the current configuration snapshot.

        Nothing is written back to disk.
        """
        raw = self._settings.as_dict()
        merged = _deep_merge(self._extract_snapshot_data(raw), changes)
        self._snapshot = self._build_snapshot(merged)
        return self._snapshot

    def build_repository(self) -> SecurityRepository:
        settings = self._snapshot.repository
        if settings.backend == "memory":
            from ..repository.memory import InMemorySecurityRepository

            return InMemorySecurityRepository()
        from ..repository.sql import SqlSecurityRepository

        return SqlSecurityRepository(settings.database_url)

    def build_image_analyzer(self) -> ImageAnalyzer:
        detection = self._snapshot.detection
        if detection.backend == "yolo":
            from ..imaging.yolo import YoloImageAnalyzer

            return YoloImageAnalyzer(model_path=detection.model_path)
        if detection.backend == "rekognition":
            from ..imaging.rekognition import RekognitionImageAnalyzer

            return RekognitionImageAnalyzer(**self._snapshot.rekognition.model_dump())
        from ..imaging.fake import FakeImageAnalyzer

        return FakeImageAnalyzer(seed=detection.seed)

    def build_security_service(
        self,
        *,
        repository: SecurityRepository | None = None,
        image_analyzer: ImageAnalyzer | None = None,
    ) -> SecurityService:
        return SecurityService(
            repository or self.build_repository(),
            image_analyzer or self.build_image_analyzer(),
            confidence_threshold=self._snapshot.detection.confidence_threshold,
        )

    def _build_snapshot(self, data: dict[str, Any] | None = None) -> ConfigSnapshot:
        if data is None:
            data = self._extract_snapshot_data(self._settings.as_dict())
        try:
            return ConfigSnapshot.model_validate(data)
        except ValidationError as exc:
            raise ConfigError("Configuration validation failed") from exc

    def _extract_snapshot_data(self, raw: dict[str, Any]) -> dict[str, Any]:
        return {
            "detection": _section(raw, "detection"),
            "repository": _section(raw, "repository"),
            "rekognition": _section(raw, "rekognition"),
            "logging": _section(raw, "logging"),
        }


__all__ = [
    "ConfigError",
    "ConfigService",
    "ConfigSnapshot",
    "DetectionSettings",
    "LoggingSettings",
    "RekognitionSettings",
    "RepositorySettings",
]
