"""
Domain models for vitals monitoring and emergency response.

Plain dataclasses shared by the engine, the periodic monitor and the
HTTP layer. Every model converts to a JSON-ready dict via ``to_dict``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class SeverityTier(str, Enum):
    """Severity classification of a vitals snapshot, mildest first."""

    NORMAL = "normal"
    WARNING = "warning"
    URGENT = "urgent"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Numeric order used for worst-wins aggregation."""
        return _SEVERITY_RANK[self]

    @classmethod
    def worst(cls, tiers: Iterable["SeverityTier"]) -> Optional["SeverityTier"]:
        """Return the most severe tier, or None for an empty input."""
        result = None
        for tier in tiers:
            if result is None or tier.rank > result.rank:
                result = tier
        return result


_SEVERITY_RANK = {
    SeverityTier.NORMAL: 0,
    SeverityTier.WARNING: 1,
    SeverityTier.URGENT: 2,
    SeverityTier.CRITICAL: 3,
}


class ActionType(str, Enum):
    """Escalation step taken in response to abnormal vitals."""

    CALL_EMERGENCY_SERVICES = "call_120"
    CALL_DOCTOR = "call_doctor"
    ALERT_FAMILY = "alert_family"


class ResponseStatus(str, Enum):
    """Lifecycle of an emergency response. Never moves backwards."""

    TRIGGERED = "triggered"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


@dataclass
class BloodPressure:
    """Blood pressure reading in mmHg."""

    systolic: float
    diastolic: float

    def to_dict(self) -> dict:
        return {"systolic": self.systolic, "diastolic": self.diastolic}


@dataclass
class VitalsSnapshot:
    """
    Point-in-time vitals reading.

    Every metric is optional. A missing metric means "not measured",
    never "normal".
    """

    heart_rate: Optional[float] = None  # bpm
    blood_pressure: Optional[BloodPressure] = None
    temperature: Optional[float] = None  # degrees Celsius
    oxygen_saturation: Optional[float] = None  # percent
    timestamp: datetime = field(default_factory=utc_now)

    @property
    def is_empty(self) -> bool:
        """True when no metric was measured."""
        return (
            self.heart_rate is None
            and self.blood_pressure is None
            and self.temperature is None
            and self.oxygen_saturation is None
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        result = {"timestamp": self.timestamp.isoformat()}

        if self.heart_rate is not None:
            result["heart_rate"] = self.heart_rate
        if self.blood_pressure is not None:
            result["blood_pressure"] = self.blood_pressure.to_dict()
        if self.temperature is not None:
            result["temperature"] = self.temperature
        if self.oxygen_saturation is not None:
            result["oxygen_saturation"] = self.oxygen_saturation

        return result


@dataclass
class EmergencyAction:
    """One escalation step with its fixed priority (1 = first)."""

    type: ActionType
    priority: int
    executed: bool = False
    executed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "priority": self.priority,
            "executed": self.executed,
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
        }


@dataclass
class EmergencyResponse:
    """Materialized record of one non-normal classification."""

    id: str
    user_id: str
    trigger_time: datetime
    vitals: VitalsSnapshot
    severity: SeverityTier
    actions: List[EmergencyAction]
    status: ResponseStatus = ResponseStatus.TRIGGERED
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    def find_action(self, action_type: ActionType) -> Optional[EmergencyAction]:
        """Return the planned action of the given type, if any."""
        for action in self.actions:
            if action.type == action_type:
                return action
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "trigger_time": self.trigger_time.isoformat(),
            "vitals": self.vitals.to_dict(),
            "severity": self.severity.value,
            "actions": [action.to_dict() for action in self.actions],
            "status": self.status.value,
            "acknowledged_at": (
                self.acknowledged_at.isoformat() if self.acknowledged_at else None
            ),
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }


@dataclass
class MonitoringSession:
    """Whether, and since when, a user is being monitored."""

    user_id: str
    is_active: bool = True
    start_time: datetime = field(default_factory=utc_now)
    last_check_time: Optional[datetime] = None
    emergency_count: int = 0

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "is_active": self.is_active,
            "start_time": self.start_time.isoformat(),
            "last_check_time": (
                self.last_check_time.isoformat() if self.last_check_time else None
            ),
            "emergency_count": self.emergency_count,
        }
