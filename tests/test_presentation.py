"""
Unit tests for the critical prompt cooldown and the countdown alert dialog.

Usage:
    pytest tests/test_presentation.py -v
"""
import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from vitals_monitor.models import ActionType
from vitals_monitor.presentation import (
    AlertDialog,
    CriticalPromptCooldown,
    DialogState,
    DialogStateError,
)

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Cooldown
# ============================================================================


class TestCriticalPromptCooldown:
    """At most one critical prompt per user per window."""

    def test_first_prompt_allowed(self):
        cooldown = CriticalPromptCooldown()

        assert cooldown.should_prompt("user-1", T0) is True
        assert cooldown.last_prompt("user-1") == T0

    def test_suppressed_within_window(self):
        cooldown = CriticalPromptCooldown()
        cooldown.should_prompt("user-1", T0)

        assert cooldown.should_prompt("user-1", T0 + timedelta(minutes=2)) is False
        assert cooldown.last_prompt("user-1") == T0

    def test_exactly_window_still_suppressed(self):
        cooldown = CriticalPromptCooldown(window=timedelta(minutes=5))
        cooldown.should_prompt("user-1", T0)

        assert cooldown.should_prompt("user-1", T0 + timedelta(minutes=5)) is False

    def test_rearms_after_window(self):
        cooldown = CriticalPromptCooldown(window=timedelta(minutes=5))
        cooldown.should_prompt("user-1", T0)

        later = T0 + timedelta(minutes=5, seconds=1)
        assert cooldown.should_prompt("user-1", later) is True
        assert cooldown.last_prompt("user-1") == later

    def test_users_are_independent(self):
        cooldown = CriticalPromptCooldown()
        cooldown.should_prompt("user-1", T0)

        assert cooldown.should_prompt("user-2", T0) is True

    def test_reset_single_user(self):
        cooldown = CriticalPromptCooldown()
        cooldown.should_prompt("user-1", T0)
        cooldown.should_prompt("user-2", T0)

        cooldown.reset("user-1")

        assert cooldown.should_prompt("user-1", T0) is True
        assert cooldown.should_prompt("user-2", T0) is False

    def test_reset_all(self):
        cooldown = CriticalPromptCooldown()
        cooldown.should_prompt("user-1", T0)

        cooldown.reset()

        assert cooldown.last_prompt("user-1") is None


# ============================================================================
# Alert dialog
# ============================================================================


@pytest.fixture
def response(engine, critical_snapshot):
    return engine.check_vitals(critical_snapshot, user_id="user-1")


class TestAlertDialog:
    """Countdown state machine."""

    def test_initial_state(self):
        dialog = AlertDialog()

        assert dialog.state == DialogState.IDLE
        assert dialog.time_left == 30
        assert dialog.progress_percent == 0
        assert dialog.is_open is False

    def test_rejects_non_positive_countdown(self):
        with pytest.raises(ValueError):
            AlertDialog(countdown_seconds=0)

    def test_present(self, response):
        dialog = AlertDialog()

        dialog.present(response)

        assert dialog.state == DialogState.PRESENTED
        assert dialog.response is response
        assert dialog.is_open is True

    def test_progress(self, response):
        dialog = AlertDialog(countdown_seconds=4)
        dialog.present(response)

        dialog.tick()
        assert dialog.time_left == 3
        assert dialog.progress_percent == 25

        dialog.tick()
        assert dialog.progress_percent == 50

    def test_countdown_expiry_escalates_once(self, response):
        on_escalate = MagicMock()
        dialog = AlertDialog(countdown_seconds=3, on_escalate=on_escalate)
        dialog.present(response)

        for _ in range(5):
            dialog.tick()

        assert dialog.state == DialogState.AUTO_ESCALATED
        assert dialog.time_left == 0
        assert dialog.progress_percent == 100
        on_escalate.assert_called_once_with(response)

    def test_escalation_does_not_close(self, response):
        dialog = AlertDialog(countdown_seconds=1)
        dialog.present(response)

        dialog.tick()

        assert dialog.is_open is True

    def test_acknowledge_calls_back_with_id(self, response):
        on_acknowledge = MagicMock()
        dialog = AlertDialog(on_acknowledge=on_acknowledge)
        dialog.present(response)

        dialog.acknowledge()

        assert dialog.state == DialogState.ACKNOWLEDGED
        on_acknowledge.assert_called_once_with(response.id)

    def test_acknowledge_stops_countdown(self, response):
        dialog = AlertDialog(countdown_seconds=5)
        dialog.present(response)
        dialog.acknowledge()

        dialog.tick()

        assert dialog.time_left == 5
        assert dialog.state == DialogState.ACKNOWLEDGED

    def test_action_acknowledges(self, response):
        on_acknowledge = MagicMock()
        on_action = MagicMock()
        dialog = AlertDialog(on_acknowledge=on_acknowledge, on_action=on_action)
        dialog.present(response)

        dialog.acknowledge(ActionType.CALL_EMERGENCY_SERVICES)

        on_action.assert_called_once_with(response, ActionType.CALL_EMERGENCY_SERVICES)
        on_acknowledge.assert_called_once_with(response.id)

    def test_second_action_does_not_reacknowledge(self, response):
        on_acknowledge = MagicMock()
        on_action = MagicMock()
        dialog = AlertDialog(on_acknowledge=on_acknowledge, on_action=on_action)
        dialog.present(response)

        dialog.acknowledge(ActionType.CALL_EMERGENCY_SERVICES)
        dialog.acknowledge(ActionType.CALL_DOCTOR)

        assert on_action.call_count == 2
        on_acknowledge.assert_called_once()

    def test_acknowledge_after_escalation(self, response):
        dialog = AlertDialog(countdown_seconds=1)
        dialog.present(response)
        dialog.tick()

        dialog.acknowledge()

        assert dialog.state == DialogState.ACKNOWLEDGED

    def test_close_acknowledges_first(self, response):
        on_acknowledge = MagicMock()
        dialog = AlertDialog(on_acknowledge=on_acknowledge)
        dialog.present(response)

        dialog.close()

        assert dialog.state == DialogState.CLOSED
        on_acknowledge.assert_called_once_with(response.id)

    def test_close_after_acknowledge(self, response):
        on_acknowledge = MagicMock()
        dialog = AlertDialog(on_acknowledge=on_acknowledge)
        dialog.present(response)
        dialog.acknowledge()

        dialog.close()

        assert dialog.state == DialogState.CLOSED
        on_acknowledge.assert_called_once()

    def test_invalid_transitions(self, response):
        dialog = AlertDialog()

        with pytest.raises(DialogStateError):
            dialog.acknowledge()
        with pytest.raises(DialogStateError):
            dialog.close()

        dialog.present(response)
        with pytest.raises(DialogStateError):
            dialog.present(response)

    def test_reopen_resets_countdown(self, response):
        dialog = AlertDialog(countdown_seconds=10)
        dialog.present(response)
        dialog.tick(seconds=4)
        dialog.close()

        dialog.present(response)

        assert dialog.state == DialogState.PRESENTED
        assert dialog.time_left == 10

    def test_acknowledge_wired_to_engine(self, engine, response):
        dialog = AlertDialog(on_acknowledge=engine.acknowledge_emergency)
        dialog.present(response)

        dialog.close()

        assert engine.get_emergency_response(response.id).status.value == "acknowledged"


class TestRunCountdown:
    """Cooperative asyncio countdown."""

    @pytest.mark.asyncio
    async def test_runs_to_escalation(self, response):
        on_escalate = MagicMock()
        dialog = AlertDialog(countdown_seconds=3, on_escalate=on_escalate)
        dialog.present(response)

        state = await dialog.run_countdown(tick_interval=0)

        assert state == DialogState.AUTO_ESCALATED
        on_escalate.assert_called_once()

    @pytest.mark.asyncio
    async def test_acknowledge_ends_countdown(self, response):
        on_escalate = MagicMock()
        dialog = AlertDialog(countdown_seconds=1000, on_escalate=on_escalate)
        dialog.present(response)

        task = asyncio.create_task(dialog.run_countdown(tick_interval=0.01))
        await asyncio.sleep(0.05)
        dialog.acknowledge()
        state = await asyncio.wait_for(task, timeout=1.0)

        assert state == DialogState.ACKNOWLEDGED
        assert dialog.time_left > 0
        on_escalate.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_keeps_state(self, response):
        dialog = AlertDialog(countdown_seconds=1000)
        dialog.present(response)

        task = asyncio.create_task(dialog.run_countdown(tick_interval=0.01))
        await asyncio.sleep(0.03)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert dialog.state == DialogState.PRESENTED

    @pytest.mark.asyncio
    async def test_not_presented_returns_immediately(self):
        dialog = AlertDialog()

        assert await dialog.run_countdown(tick_interval=0) == DialogState.IDLE
