"""Pydantic models for vitals API responses."""
from .vitals import (
    ActionOut,
    EmergencyResponseOut,
    EmergencyStats,
    MonitoredCheckResult,
    MonitoringSessionOut,
    SeverityCheckResult,
    VitalsOut,
)

__all__ = [
    "ActionOut",
    "EmergencyResponseOut",
    "EmergencyStats",
    "MonitoredCheckResult",
    "MonitoringSessionOut",
    "SeverityCheckResult",
    "VitalsOut",
]
