"""
Presentation collaborators for emergency responses.

The engine only stores responses. What the user sees is decided here:
a per-user cooldown that limits how often critical prompts are shown,
and the countdown dialog that escalates when nobody reacts.
"""

import asyncio
import logging
import threading
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, Optional

from .models import ActionType, EmergencyResponse, utc_now

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_COOLDOWN = timedelta(minutes=5)
DEFAULT_COUNTDOWN_SECONDS = 30


class CriticalPromptCooldown:
    """
    Rate-limits critical prompts per user.

    A prompt is allowed when none was shown for that user within the
    window. Exactly ``window`` after the last prompt is still suppressed.
    """

    def __init__(self, window: timedelta = DEFAULT_PROMPT_COOLDOWN):
        self.window = window
        self._last_prompt: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def should_prompt(self, user_id: str, at: Optional[datetime] = None) -> bool:
        at = at or utc_now()
        with self._lock:
            last = self._last_prompt.get(user_id)
            if last is not None and at - last <= self.window:
                return False
            self._last_prompt[user_id] = at
            return True

    def last_prompt(self, user_id: str) -> Optional[datetime]:
        with self._lock:
            return self._last_prompt.get(user_id)

    def reset(self, user_id: Optional[str] = None) -> None:
        with self._lock:
            if user_id is None:
                self._last_prompt.clear()
            else:
                self._last_prompt.pop(user_id, None)


class DialogState(str, Enum):
    IDLE = "idle"
    PRESENTED = "presented"
    ACKNOWLEDGED = "acknowledged"
    AUTO_ESCALATED = "auto_escalated"
    CLOSED = "closed"


class DialogStateError(Exception):
    """Operation not allowed in the dialog's current state."""

    def __init__(self, operation: str, state: DialogState):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} dialog in state '{state.value}'")


class AlertDialog:
    """
    Countdown dialog shown for an emergency response.

    idle -> presented -> (acknowledged | auto_escalated) -> closed

    When the countdown reaches zero without a reaction the dialog moves
    to ``auto_escalated`` and calls ``on_escalate`` once. It never dials
    or closes by itself; the user still has to act.

    Callbacks:
        on_acknowledge(response_id): user reacted (wire to the engine)
        on_escalate(response): countdown expired
        on_action(response, action_type): user picked an escalation step
    """

    def __init__(
        self,
        countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
        on_acknowledge: Optional[Callable[[str], None]] = None,
        on_escalate: Optional[Callable[[EmergencyResponse], None]] = None,
        on_action: Optional[Callable[[EmergencyResponse, ActionType], None]] = None,
    ):
        if countdown_seconds <= 0:
            raise ValueError("countdown_seconds must be positive")

        self.countdown_seconds = countdown_seconds
        self.on_acknowledge = on_acknowledge
        self.on_escalate = on_escalate
        self.on_action = on_action

        self.state = DialogState.IDLE
        self.response: Optional[EmergencyResponse] = None
        self.time_left = countdown_seconds

    @property
    def progress_percent(self) -> float:
        elapsed = self.countdown_seconds - self.time_left
        return elapsed * 100 / self.countdown_seconds

    @property
    def is_open(self) -> bool:
        return self.state in (
            DialogState.PRESENTED,
            DialogState.ACKNOWLEDGED,
            DialogState.AUTO_ESCALATED,
        )

    def present(self, response: EmergencyResponse) -> None:
        """Open the dialog for a response; a closed dialog can be reused."""
        if self.state not in (DialogState.IDLE, DialogState.CLOSED):
            raise DialogStateError("present", self.state)

        self.response = response
        self.time_left = self.countdown_seconds
        self.state = DialogState.PRESENTED
        logger.info(
            f"[ALERT] Presenting {response.severity.value} emergency {response.id}"
        )

    def tick(self, seconds: int = 1) -> DialogState:
        """Advance the countdown. Ignored unless the dialog is counting down."""
        if self.state != DialogState.PRESENTED:
            return self.state

        self.time_left = max(0, self.time_left - seconds)
        if self.time_left == 0:
            self.state = DialogState.AUTO_ESCALATED
            logger.warning(
                f"[ALERT] No reaction to {self.response.id} within "
                f"{self.countdown_seconds}s, escalating"
            )
            if self.on_escalate:
                self.on_escalate(self.response)
        return self.state

    def acknowledge(self, action: Optional[ActionType] = None) -> None:
        """
        Record a user reaction, optionally choosing an escalation step.

        Picking another step after acknowledging runs that step without
        acknowledging twice.
        """
        if self.state not in (
            DialogState.PRESENTED,
            DialogState.AUTO_ESCALATED,
            DialogState.ACKNOWLEDGED,
        ):
            raise DialogStateError("acknowledge", self.state)

        if action is not None and self.on_action:
            self.on_action(self.response, action)

        if self.state == DialogState.ACKNOWLEDGED:
            return

        self.state = DialogState.ACKNOWLEDGED
        if self.on_acknowledge:
            self.on_acknowledge(self.response.id)

    def close(self) -> None:
        """Close the dialog, acknowledging it first if nobody has."""
        if not self.is_open:
            raise DialogStateError("close", self.state)

        if self.state != DialogState.ACKNOWLEDGED:
            self.acknowledge()
        self.state = DialogState.CLOSED

    async def run_countdown(self, tick_interval: float = 1.0) -> DialogState:
        """
        Tick once per interval until the dialog leaves ``presented``.

        Cancelling the task stops the countdown without changing state.
        """
        while self.state == DialogState.PRESENTED:
            await asyncio.sleep(tick_interval)
            self.tick()
        return self.state
