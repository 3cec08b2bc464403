"""
Security repository persisted with SQLModel/SQLAlchemy.

Sensors live in one table keyed by their identifier; alarm status, arming status
and the last cat verdict share a single-row state table created on first access.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import Any

from sqlmodel import Field, Session, SQLModel, select
from sqlmodel import create_engine as sqlmodel_create_engine

from ..core.contracts import AlarmStatus, ArmingStatus, Sensor, SensorType

logger = logging.getLogger(__name__)

_STATE_ROW_ID = 1


class SensorRecord(SQLModel, table=True):
    """Persisted sensor."""

    sensor_id: str = Field(primary_key=True)
    name: str = Field(index=True)
    sensor_type: str
    active: bool = Field(default=False)

    @classmethod
    def from_sensor(cls, sensor: Sensor) -> SensorRecord:
        return cls(
            sensor_id=str(sensor.sensor_id),
            name=sensor.name,
            sensor_type=sensor.sensor_type.value,
            active=sensor.active,
        )

    def to_sensor(self) -> Sensor:
        return Sensor(
            name=self.name,
            sensor_type=SensorType(self.sensor_type),
            sensor_id=uuid.UUID(self.sensor_id),
            active=self.active,
        )


class SystemStateRecord(SQLModel, table=True):
    """Single row holding the alarm status, arming status and last cat verdict."""

    id: int = Field(default=_STATE_ROW_ID, primary_key=True)
    alarm_status: str = Field(default=AlarmStatus.NO_ALARM.value)
    arming_status: str = Field(default=ArmingStatus.DISARMED.value)
    cat_detected: bool = Field(default=False)


class SqlSecurityRepository:
    """Store the security system state in any SQLAlchemy-supported database."""

    def __init__(
        self,
        database_url: str = "sqlite:///catpoint.db",
        *,
        engine_factory: Callable[[str], Any] | None = None,
    ) -> None:
        self._database_url = database_url
        self._engine_factory = engine_factory or self._default_engine_factory
        self._engine = self._engine_factory(database_url)
        SQLModel.metadata.create_all(self._engine)
        logger.debug("SqlSecurityRepository ready at %s", database_url)

    @property
    def database_url(self) -> str:
        return self._database_url

    def get_alarm_status(self) -> AlarmStatus:
        with Session(self._engine) as session:
            return AlarmStatus(self._load_state(session).alarm_status)

    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        with Session(self._engine) as session:
            state = self._load_state(session)
            state.alarm_status = alarm_status.value
            session.add(state)
            session.commit()

    def get_arming_status(self) -> ArmingStatus:
        with Session(self._engine) as session:
            return ArmingStatus(self._load_state(session).arming_status)

    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        with Session(self._engine) as session:
            state = self._load_state(session)
            state.arming_status = arming_status.value
            session.add(state)
            session.commit()

    def get_cat_detected(self) -> bool:
        with Session(self._engine) as session:
            return self._load_state(session).cat_detected

    def set_cat_detected(self, cat_detected: bool) -> None:
        with Session(self._engine) as session:
            state = self._load_state(session)
            state.cat_detected = cat_detected
            session.add(state)
            session.commit()

    def get_sensors(self) -> set[Sensor]:
        with Session(self._engine) as session:
            records = session.exec(select(SensorRecord)).all()
            return {record.to_sensor() for record in records}

    def add_sensor(self, sensor: Sensor) -> None:
        with Session(self._engine) as session:
            session.merge(SensorRecord.from_sensor(sensor))
            session.commit()

    def remove_sensor(self, sensor: Sensor) -> None:
        with Session(self._engine) as session:
            record = session.get(SensorRecord, str(sensor.sensor_id))
            if record is None:
                logger.debug("Ignoring removal of unknown sensor %s", sensor.name)
                return
            session.delete(record)
            session.commit()

    def update_sensor(self, sensor: Sensor) -> None:
        with Session(self._engine) as session:
            record = session.get(SensorRecord, str(sensor.sensor_id))
            if record is None:
                logger.debug("Ignoring update for unknown sensor %s", sensor.name)
                return
            record.active = sensor.active
            session.add(record)
            session.commit()

    def close(self) -> None:
        """Release pooled database connections."""
        self._engine.dispose()

    def _load_state(self, session: Session) -> SystemStateRecord:
        state = session.get(SystemStateRecord, _STATE_ROW_ID)
        if state is None:
            state = SystemStateRecord()
            session.add(state)
            session.commit()
            session.refresh(state)
        return state

    def _default_engine_factory(self, database_url: str):
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        return sqlmodel_create_engine(database_url, echo=False, connect_args=connect_args)


__all__ = ["SensorRecord", "SqlSecurityRepository", "SystemStateRecord"]
