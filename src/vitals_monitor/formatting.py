"""
Human-readable rendering of vitals and emergency responses.
"""

from typing import Optional

from .models import ActionType, EmergencyResponse, SeverityTier, VitalsSnapshot

SEVERITY_LABELS = {
    SeverityTier.NORMAL: "Normal",
    SeverityTier.WARNING: "Mild abnormality",
    SeverityTier.URGENT: "Moderate abnormality",
    SeverityTier.CRITICAL: "Severe abnormality",
}

ACTION_LABELS = {
    ActionType.CALL_EMERGENCY_SERVICES: "Call emergency services",
    ActionType.CALL_DOCTOR: "Call your doctor",
    ActionType.ALERT_FAMILY: "Alert family members",
}


def _num(value: float, digits: Optional[int] = None) -> str:
    if digits is not None:
        value = round(value, digits)
    return f"{value:g}"


def format_vitals_for_display(snapshot: VitalsSnapshot) -> str:
    """
    One-line summary of the measured metrics, e.g.
    "Heart rate: 72 bpm, Blood pressure: 120/80 mmHg, Temperature: 36.6°C, SpO2: 98%".
    """
    parts = []

    if snapshot.heart_rate is not None:
        parts.append(f"Heart rate: {_num(snapshot.heart_rate)} bpm")
    if snapshot.blood_pressure is not None:
        bp = snapshot.blood_pressure
        parts.append(f"Blood pressure: {_num(bp.systolic)}/{_num(bp.diastolic)} mmHg")
    if snapshot.temperature is not None:
        parts.append(f"Temperature: {_num(snapshot.temperature, 1)}°C")
    if snapshot.oxygen_saturation is not None:
        parts.append(f"SpO2: {_num(snapshot.oxygen_saturation)}%")

    return ", ".join(parts)


def severity_label(severity: Optional[SeverityTier]) -> str:
    """Label for a tier; None (no response) reads as normal."""
    return SEVERITY_LABELS[severity or SeverityTier.NORMAL]


def format_emergency_notification(
    response: EmergencyResponse, emergency_number: str = "120"
) -> str:
    """
    Format an emergency response for user notification.

    Args:
        response: The stored emergency response
        emergency_number: Number shown for manual dialing

    Returns:
        Markdown notification text
    """
    if response.severity == SeverityTier.CRITICAL:
        emoji = "🚨"
        prefix = "CRITICAL HEALTH ALERT"
        urgency = "Seek medical help immediately"
    elif response.severity == SeverityTier.URGENT:
        emoji = "⚠️"
        prefix = "Urgent Health Alert"
        urgency = "Contact your doctor as soon as possible"
    else:
        emoji = "⚠️"
        prefix = "Health Warning"
        urgency = "Keep an eye on how you feel"

    readings = format_vitals_for_display(response.vitals) or "No readings"

    notification = f"""
{emoji} **{prefix}: {severity_label(response.severity)}**

**Readings:** {readings}
**Status:** {urgency}
**Recommended actions:**
"""

    for action in sorted(response.actions, key=lambda a: a.priority):
        label = ACTION_LABELS[action.type]
        if action.type == ActionType.CALL_EMERGENCY_SERVICES:
            label = f"{label} ({emergency_number})"
        done = " (done)" if action.executed else ""
        notification += f"{action.priority}. {label}{done}\n"

    notification += f"\n_Triggered: {response.trigger_time.isoformat()}_"

    return notification.strip()
