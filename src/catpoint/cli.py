"""
Command line entrypoint for operating the Catpoint security core.

Loads the Dynaconf configuration, builds the repository and image analyzer it
names, and runs a single security service operation per invocation.
"""

from __future__ import annotations

import argparse
import logging
import logging.handlers
from collections.abc import Sequence
from pathlib import Path

import imageio.v3 as iio

from .core.config import ConfigError, ConfigService
from .core.contracts import ArmingStatus, CatpointError, Sensor, SensorType
from .core.service import SecurityService

LOGGER = logging.getLogger(__name__)
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

ARM_CHOICES = {"home": ArmingStatus.ARMED_HOME, "away": ArmingStatus.ARMED_AWAY}
SENSOR_STATES = {"on": True, "off": False}


class UnknownSensorError(CatpointError):
    """Raised when no sensor matches the name given on the command line."""


def _ensure_rotating_file_handler(
    log_file: Path,
    *,
    max_mb: int = 10,
    backup_count: int = 3,
) -> None:
    """Attach a rotating file handler pointed at ``log_file`` if missing."""

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to create log directory %s: %s", log_file.parent, exc)
        return

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            existing = getattr(handler, "baseFilename", None)
            if existing and Path(existing) == log_file.resolve():
                return

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)


def configure_logging(level: str) -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)


def find_sensor(service: SecurityService, name: str) -> Sensor:
    matches = [sensor for sensor in service.get_sensors() if sensor.name == name]
    if not matches:
        raise UnknownSensorError(f"No sensor named '{name}'")
    if len(matches) > 1:
        raise UnknownSensorError(f"Sensor name '{name}' is ambiguous ({len(matches)} matches)")
    return matches[0]


def format_status(service: SecurityService) -> str:
    alarm = service.get_alarm_status()
    arming = service.get_arming_status()
    lines = [
        f"Arming: {arming.name} ({arming.description})",
        f"Alarm:  {alarm.name} ({alarm.description})",
        "Sensors:",
        format_sensors(service),
    ]
    return "\n".join(lines)


def format_sensors(service: SecurityService) -> str:
    sensors = sorted(service.get_sensors())
    if not sensors:
        return "  (none)"
    lines = []
    for sensor in sensors:
        state = "active" if sensor.active else "inactive"
        lines.append(f"  {sensor.name} [{sensor.sensor_type.name}] {state}")
    return "\n".join(lines)


def run_command(args: argparse.Namespace, service: SecurityService) -> str | None:
    """Execute the parsed sub-command and return text to print, if any."""

    if args.command == "status":
        return format_status(service)
    if args.command == "arm":
        service.set_arming_status(ARM_CHOICES[args.mode])
        return None
    if args.command == "disarm":
        service.set_arming_status(ArmingStatus.DISARMED)
        return None
    if args.command == "image":
        image = iio.imread(args.path)
        service.process_image(image)
        return f"Cat detected: {'yes' if service.cat_detected else 'no'}"
    if args.command == "sensor":
        if args.sensor_command == "list":
            return format_sensors(service)
        if args.sensor_command == "add":
            service.add_sensor(Sensor(name=args.name, sensor_type=SensorType(args.type)))
            return None
        sensor = find_sensor(service, args.name)
        if args.sensor_command == "remove":
            service.remove_sensor(sensor)
            return None
        service.change_sensor_activation_status(sensor, SENSOR_STATES[args.state])
        return None
    raise ValueError(f"Unknown command {args.command}")  # pragma: no cover - argparse guards


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Catpoint home security control.")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory that contains config.yaml/secrets.yaml (default: built-in defaults).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Python logging level (default: from config, INFO).",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("status", help="Show arming status, alarm status and sensors.")
    arm = commands.add_parser("arm", help="Arm the system.")
    arm.add_argument("mode", choices=sorted(ARM_CHOICES))
    commands.add_parser("disarm", help="Disarm the system and clear any alarm.")
    image = commands.add_parser("image", help="Analyse a camera image for cats.")
    image.add_argument("path", type=Path)

    sensor = commands.add_parser("sensor", help="Manage sensors.")
    sensor_commands = sensor.add_subparsers(dest="sensor_command", required=True)
    sensor_commands.add_parser("list", help="List sensors.")
    add = sensor_commands.add_parser("add", help="Register a new sensor.")
    add.add_argument("name")
    add.add_argument("type", choices=[member.value for member in SensorType])
    remove = sensor_commands.add_parser("remove", help="Remove a sensor.")
    remove.add_argument("name")
    set_state = sensor_commands.add_parser("set", help="Activate or deactivate a sensor.")
    set_state.add_argument("name")
    set_state.add_argument("state", choices=sorted(SENSOR_STATES))
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config_service = ConfigService(config_dir=args.config_dir)
    except ConfigError as exc:
        configure_logging(args.log_level or "INFO")
        LOGGER.error("Configuration failed: %s", exc)
        return 2

    log_settings = config_service.snapshot.logging
    configure_logging(args.log_level or log_settings.level)
    if log_settings.file is not None:
        _ensure_rotating_file_handler(
            log_settings.file,
            max_mb=log_settings.max_mb,
            backup_count=log_settings.backup_count,
        )

    try:
        service = config_service.build_security_service()
        output = run_command(args, service)
    except CatpointError as exc:
        LOGGER.error("%s", exc)
        return 1
    except Exception:
        LOGGER.exception("Catpoint command '%s' failed.", args.command)
        return 1
    if output is not None:
        print(output)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())


__all__ = ["main", "parse_args", "run_command"]
