"""Vitals and emergency response API models."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from vitals_monitor.models import (
    EmergencyAction,
    EmergencyResponse,
    MonitoringSession,
    VitalsSnapshot,
)
from vitals_monitor.validation import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BloodPressureOut(CamelModel):
    systolic: float
    diastolic: float


class VitalsOut(CamelModel):
    """A vitals snapshot; unmeasured metrics are null."""

    heart_rate: Optional[float] = None
    blood_pressure: Optional[BloodPressureOut] = None
    temperature: Optional[float] = None
    oxygen_saturation: Optional[float] = None
    timestamp: datetime

    @classmethod
    def from_snapshot(cls, snapshot: VitalsSnapshot) -> "VitalsOut":
        blood_pressure = None
        if snapshot.blood_pressure is not None:
            blood_pressure = BloodPressureOut(
                systolic=snapshot.blood_pressure.systolic,
                diastolic=snapshot.blood_pressure.diastolic,
            )
        return cls(
            heart_rate=snapshot.heart_rate,
            blood_pressure=blood_pressure,
            temperature=snapshot.temperature,
            oxygen_saturation=snapshot.oxygen_saturation,
            timestamp=snapshot.timestamp,
        )


class ActionOut(CamelModel):
    """One planned escalation step."""

    type: str
    priority: int
    executed: bool
    executed_at: Optional[datetime] = None

    @classmethod
    def from_action(cls, action: EmergencyAction) -> "ActionOut":
        return cls(
            type=action.type.value,
            priority=action.priority,
            executed=action.executed,
            executed_at=action.executed_at,
        )


class EmergencyResponseOut(CamelModel):
    """Stored emergency response."""

    id: str
    user_id: str
    trigger_time: datetime
    vitals_data: VitalsOut
    severity: str
    response_actions: list[ActionOut]
    status: str
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    @classmethod
    def from_response(cls, response: EmergencyResponse) -> "EmergencyResponseOut":
        return cls(
            id=response.id,
            user_id=response.user_id,
            trigger_time=response.trigger_time,
            vitals_data=VitalsOut.from_snapshot(response.vitals),
            severity=response.severity.value,
            response_actions=[ActionOut.from_action(a) for a in response.actions],
            status=response.status.value,
            acknowledged_at=response.acknowledged_at,
            resolved_at=response.resolved_at,
        )


class MonitoringSessionOut(CamelModel):
    """Monitoring session status."""

    user_id: str
    is_active: bool
    start_time: datetime
    last_check_time: Optional[datetime] = None
    emergency_count: int
    periodic_checks: bool = False

    @classmethod
    def from_session(
        cls, session: MonitoringSession, periodic_checks: bool = False
    ) -> "MonitoringSessionOut":
        return cls(
            user_id=session.user_id,
            is_active=session.is_active,
            start_time=session.start_time,
            last_check_time=session.last_check_time,
            emergency_count=session.emergency_count,
            periodic_checks=periodic_checks,
        )


class SeverityCheckResult(BaseModel):
    """Stateless classification result."""

    severity: str
    actions: list[str]


class MonitoredCheckResult(BaseModel):
    """Result of a check against a user's session.

    A triggered result carries the seconds an alert dialog counts down
    before it escalates on its own.
    """

    model_config = ConfigDict(populate_by_name=True)

    triggered: bool
    response: Optional[EmergencyResponseOut] = None
    countdown_seconds: Optional[int] = Field(None, serialization_alias="countdownSeconds")


class EmergencyStats(BaseModel):
    """Emergency response counts."""

    model_config = ConfigDict(populate_by_name=True)

    last_24h_count: int = Field(serialization_alias="last24hCount")
    total_count: int = Field(serialization_alias="totalCount")
