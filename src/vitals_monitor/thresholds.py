"""
Vitals Threshold Table.

Single source of truth for tiered vitals cutoffs and the per-tier
escalation plans. A metric breaches a tier only when it is strictly
beyond the tier's bound; a value exactly on a boundary does not count.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .models import (
    ActionType,
    EmergencyAction,
    SeverityTier,
    VitalsSnapshot,
)


@dataclass(frozen=True)
class Bound:
    """Normal-side limits for one tier. None means no limit on that side."""

    low: Optional[float] = None
    high: Optional[float] = None

    def breached(self, value: float) -> bool:
        if self.low is not None and value < self.low:
            return True
        if self.high is not None and value > self.high:
            return True
        return False


# Most severe tier first; metric_tier() returns the first tier breached.
METRIC_THRESHOLDS: Dict[str, Dict[SeverityTier, Bound]] = {
    "heart_rate": {
        SeverityTier.CRITICAL: Bound(low=40, high=150),
        SeverityTier.URGENT: Bound(low=50, high=120),
        SeverityTier.WARNING: Bound(low=60, high=100),
    },
    "systolic": {
        SeverityTier.CRITICAL: Bound(low=70, high=200),
        SeverityTier.URGENT: Bound(low=90, high=180),
        SeverityTier.WARNING: Bound(low=100, high=160),
    },
    "diastolic": {
        SeverityTier.CRITICAL: Bound(low=40, high=120),
        SeverityTier.URGENT: Bound(low=50, high=110),
        SeverityTier.WARNING: Bound(low=60, high=100),
    },
    "temperature": {
        SeverityTier.CRITICAL: Bound(low=35.0, high=40.0),
        SeverityTier.URGENT: Bound(low=35.5, high=39.0),
        SeverityTier.WARNING: Bound(low=36.0, high=38.0),
    },
    # Only low saturation is abnormal
    "oxygen_saturation": {
        SeverityTier.CRITICAL: Bound(low=85),
        SeverityTier.URGENT: Bound(low=90),
        SeverityTier.WARNING: Bound(low=95),
    },
}

ACTION_PLANS: Dict[SeverityTier, Tuple[ActionType, ...]] = {
    SeverityTier.CRITICAL: (
        ActionType.CALL_EMERGENCY_SERVICES,
        ActionType.CALL_DOCTOR,
        ActionType.ALERT_FAMILY,
    ),
    SeverityTier.URGENT: (
        ActionType.CALL_DOCTOR,
        ActionType.CALL_EMERGENCY_SERVICES,
        ActionType.ALERT_FAMILY,
    ),
    SeverityTier.WARNING: (
        ActionType.CALL_DOCTOR,
        ActionType.ALERT_FAMILY,
    ),
}


def metric_tier(metric: str, value: float) -> Optional[SeverityTier]:
    """
    Determine the worst tier a single reading breaches.

    Args:
        metric: Key of METRIC_THRESHOLDS (heart_rate, systolic, ...)
        value: The measured value

    Returns:
        The breached tier, or None when the value is within normal range
    """
    tiers = METRIC_THRESHOLDS.get(metric)
    if tiers is None:
        raise KeyError(f"Unknown vitals metric: {metric}")

    for tier, bound in tiers.items():
        if bound.breached(value):
            return tier
    return None


def snapshot_readings(snapshot: VitalsSnapshot) -> Iterator[Tuple[str, float]]:
    """Yield (metric, value) for every measured metric in the snapshot."""
    if snapshot.heart_rate is not None:
        yield "heart_rate", snapshot.heart_rate
    if snapshot.blood_pressure is not None:
        yield "systolic", snapshot.blood_pressure.systolic
        yield "diastolic", snapshot.blood_pressure.diastolic
    if snapshot.temperature is not None:
        yield "temperature", snapshot.temperature
    if snapshot.oxygen_saturation is not None:
        yield "oxygen_saturation", snapshot.oxygen_saturation


def classify_metrics(snapshot: VitalsSnapshot) -> Dict[str, SeverityTier]:
    """Per-metric breakdown of the readings that breach any tier."""
    breaches = {}
    for metric, value in snapshot_readings(snapshot):
        tier = metric_tier(metric, value)
        if tier is not None:
            breaches[metric] = tier
    return breaches


def classify(snapshot: VitalsSnapshot) -> Optional[SeverityTier]:
    """
    Classify a snapshot as the worst tier reached by any metric.

    Returns None when nothing breaches, including when nothing was measured.
    """
    return SeverityTier.worst(classify_metrics(snapshot).values())


def requires_escalation(snapshot: VitalsSnapshot) -> bool:
    """True when the snapshot is urgent or worse."""
    severity = classify(snapshot)
    return severity is not None and severity.rank >= SeverityTier.URGENT.rank


def plan_actions(severity: SeverityTier) -> List[EmergencyAction]:
    """Build the ordered, unexecuted action list for a non-normal tier."""
    plan = ACTION_PLANS.get(severity)
    if plan is None:
        raise ValueError(f"No emergency action plan for severity '{severity.value}'")

    return [
        EmergencyAction(type=action_type, priority=index)
        for index, action_type in enumerate(plan, start=1)
    ]
