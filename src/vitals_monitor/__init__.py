"""
Vitals Monitor.

Tiered vitals severity classification, emergency response tracking and
periodic monitoring.
"""

from .engine import DEFAULT_USER_ID, VitalsSeverityEngine
from .errors import (
    AlreadyMonitoringError,
    InvalidInputError,
    NoSuchResponseError,
    NoSuchSessionError,
    VitalsMonitorError,
)
from .formatting import (
    format_emergency_notification,
    format_vitals_for_display,
    severity_label,
)
from .mock_source import generate_mock_snapshot
from .models import (
    ActionType,
    BloodPressure,
    EmergencyAction,
    EmergencyResponse,
    MonitoringSession,
    ResponseStatus,
    SeverityTier,
    VitalsSnapshot,
)
from .monitor import VitalsMonitor
from .presentation import AlertDialog, CriticalPromptCooldown, DialogState, DialogStateError
from .thresholds import classify, requires_escalation
from .validation import Invalid, Ok, parse_vitals_snapshot, require_vitals_snapshot

__all__ = [
    "DEFAULT_USER_ID",
    "VitalsSeverityEngine",
    "VitalsMonitor",
    "AlertDialog",
    "CriticalPromptCooldown",
    "DialogState",
    "DialogStateError",
    "ActionType",
    "BloodPressure",
    "EmergencyAction",
    "EmergencyResponse",
    "MonitoringSession",
    "ResponseStatus",
    "SeverityTier",
    "VitalsSnapshot",
    "VitalsMonitorError",
    "AlreadyMonitoringError",
    "InvalidInputError",
    "NoSuchResponseError",
    "NoSuchSessionError",
    "Ok",
    "Invalid",
    "parse_vitals_snapshot",
    "require_vitals_snapshot",
    "classify",
    "requires_escalation",
    "format_emergency_notification",
    "format_vitals_for_display",
    "severity_label",
    "generate_mock_snapshot",
]
