"""
Unit tests for the vitals threshold table.

These tests verify:
1. Each metric's tier boundaries (strict comparisons)
2. Worst-tier-wins aggregation across metrics
3. Escalation action plans per tier

Usage:
    pytest tests/test_thresholds.py -v
"""
import pytest

from conftest import make_snapshot
from vitals_monitor.models import ActionType, SeverityTier, VitalsSnapshot
from vitals_monitor.thresholds import (
    METRIC_THRESHOLDS,
    classify,
    classify_metrics,
    metric_tier,
    plan_actions,
    requires_escalation,
)

CRITICAL = SeverityTier.CRITICAL
URGENT = SeverityTier.URGENT
WARNING = SeverityTier.WARNING


class TestMetricBoundaries:
    """A value exactly on a bound falls into the milder tier."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (39, CRITICAL),
            (40, URGENT),
            (49, URGENT),
            (50, WARNING),
            (59, WARNING),
            (60, None),
            (72, None),
            (100, None),
            (101, WARNING),
            (120, WARNING),
            (121, URGENT),
            (150, URGENT),
            (151, CRITICAL),
        ],
    )
    def test_heart_rate(self, value, expected):
        assert metric_tier("heart_rate", value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (69, CRITICAL),
            (70, URGENT),
            (90, WARNING),
            (100, None),
            (160, None),
            (161, WARNING),
            (180, WARNING),
            (181, URGENT),
            (200, URGENT),
            (201, CRITICAL),
        ],
    )
    def test_systolic(self, value, expected):
        assert metric_tier("systolic", value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (39, CRITICAL),
            (40, URGENT),
            (50, WARNING),
            (60, None),
            (100, None),
            (101, WARNING),
            (110, WARNING),
            (111, URGENT),
            (120, URGENT),
            (121, CRITICAL),
        ],
    )
    def test_diastolic(self, value, expected):
        assert metric_tier("diastolic", value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (34.99, CRITICAL),
            (35.0, URGENT),
            (35.5, WARNING),
            (35.99, WARNING),
            (36.0, None),
            (38.0, None),
            (38.1, WARNING),
            (39.0, WARNING),
            (39.1, URGENT),
            (40.0, URGENT),
            (40.01, CRITICAL),
        ],
    )
    def test_temperature(self, value, expected):
        assert metric_tier("temperature", value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (84, CRITICAL),
            (85, URGENT),
            (89, URGENT),
            (90, WARNING),
            (94, WARNING),
            (95, None),
            (100, None),
        ],
    )
    def test_oxygen_saturation(self, value, expected):
        assert metric_tier("oxygen_saturation", value) == expected

    def test_unknown_metric_raises(self):
        with pytest.raises(KeyError):
            metric_tier("glucose", 5.5)

    def test_tiers_ordered_most_severe_first(self):
        """Every metric lists critical, then urgent, then warning."""
        for tiers in METRIC_THRESHOLDS.values():
            assert list(tiers) == [CRITICAL, URGENT, WARNING]


class TestClassify:
    """Snapshot classification."""

    def test_empty_snapshot_is_normal(self):
        assert classify(VitalsSnapshot()) is None

    def test_normal_snapshot(self, normal_snapshot):
        assert classify(normal_snapshot) is None

    def test_worst_metric_wins(self):
        """Warning heart rate with critical SpO2 is critical."""
        snapshot = make_snapshot(heart_rate=105, oxygen_saturation=80)
        assert classify(snapshot) == CRITICAL

    def test_mixed_tiers_take_the_maximum(self):
        snapshot = make_snapshot(heart_rate=55, temperature=34.0, oxygen_saturation=93)

        assert classify_metrics(snapshot) == {
            "heart_rate": WARNING,
            "temperature": CRITICAL,
            "oxygen_saturation": WARNING,
        }
        assert classify(snapshot) == CRITICAL

    def test_missing_metrics_are_not_evaluated(self):
        snapshot = make_snapshot(temperature=38.5)
        assert classify_metrics(snapshot) == {"temperature": WARNING}

    def test_blood_pressure_reported_per_component(self):
        snapshot = make_snapshot(systolic=185, diastolic=80)
        assert classify_metrics(snapshot) == {"systolic": URGENT}

    def test_low_blood_pressure_critical(self):
        snapshot = make_snapshot(systolic=65, diastolic=38)
        assert classify(snapshot) == CRITICAL

    def test_critical_fixture(self, critical_snapshot):
        breakdown = classify_metrics(critical_snapshot)

        assert breakdown["heart_rate"] == CRITICAL
        assert breakdown["oxygen_saturation"] == CRITICAL
        assert breakdown["temperature"] == URGENT
        assert classify(critical_snapshot) == CRITICAL


class TestRequiresEscalation:
    """Urgent or worse requires escalation."""

    def test_warning_does_not_escalate(self, warning_snapshot):
        assert requires_escalation(warning_snapshot) is False

    def test_urgent_escalates(self, urgent_snapshot):
        assert requires_escalation(urgent_snapshot) is True

    def test_normal_does_not_escalate(self, normal_snapshot):
        assert requires_escalation(normal_snapshot) is False


class TestActionPlans:
    """Fixed action order per tier."""

    def test_critical_plan(self):
        actions = plan_actions(CRITICAL)

        assert [a.type for a in actions] == [
            ActionType.CALL_EMERGENCY_SERVICES,
            ActionType.CALL_DOCTOR,
            ActionType.ALERT_FAMILY,
        ]
        assert [a.priority for a in actions] == [1, 2, 3]

    def test_urgent_plan(self):
        actions = plan_actions(URGENT)

        assert [a.type for a in actions] == [
            ActionType.CALL_DOCTOR,
            ActionType.CALL_EMERGENCY_SERVICES,
            ActionType.ALERT_FAMILY,
        ]

    def test_warning_plan(self):
        actions = plan_actions(WARNING)

        assert [a.type for a in actions] == [ActionType.CALL_DOCTOR, ActionType.ALERT_FAMILY]
        assert [a.priority for a in actions] == [1, 2]

    def test_actions_start_unexecuted(self):
        for action in plan_actions(CRITICAL):
            assert action.executed is False
            assert action.executed_at is None

    def test_plans_are_fresh_lists(self):
        """Marking one plan's action must not affect another plan."""
        first = plan_actions(CRITICAL)
        first[0].executed = True

        assert plan_actions(CRITICAL)[0].executed is False

    def test_normal_has_no_plan(self):
        with pytest.raises(ValueError):
            plan_actions(SeverityTier.NORMAL)
