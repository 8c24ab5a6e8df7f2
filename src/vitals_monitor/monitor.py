"""
Periodic Vitals Monitor.

Drives the engine on a fixed interval per user: pull a snapshot from a
source, check it, and hand any emergency response to the presentation
callbacks. Critical responses are rate-limited through the prompt
cooldown before ``on_critical_prompt`` fires.
"""

import logging
import threading
from typing import Callable, Dict, Optional, Set

from .engine import VitalsSeverityEngine
from .mock_source import generate_mock_snapshot
from .models import EmergencyResponse, SeverityTier, VitalsSnapshot
from .presentation import CriticalPromptCooldown

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0


class VitalsMonitor:
    """
    Runs one rescheduling timer per monitored user.

    Stopping cancels the user's timer before the engine session is
    stopped, so no pending check can touch a stopped session.
    """

    def __init__(
        self,
        engine: VitalsSeverityEngine,
        source: Optional[Callable[[], VitalsSnapshot]] = None,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        cooldown: Optional[CriticalPromptCooldown] = None,
        on_response: Optional[Callable[[EmergencyResponse], None]] = None,
        on_critical_prompt: Optional[Callable[[EmergencyResponse], None]] = None,
    ):
        self.engine = engine
        self.source = source or generate_mock_snapshot
        self.interval_seconds = interval_seconds
        self.cooldown = cooldown or CriticalPromptCooldown()
        self.on_response = on_response
        self.on_critical_prompt = on_critical_prompt

        self._timers: Dict[str, threading.Timer] = {}
        self._running: Set[str] = set()
        # Bumped on every start; a timer chain only reschedules while its
        # generation is current.
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

        logger.info(f"[MONITOR] Initialized with interval={interval_seconds}s")

    def is_running(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._running

    def start(self, user_id: str) -> None:
        """
        Start the engine session, check once right away, then every interval.

        Raises:
            AlreadyMonitoringError: The user already has an active session
        """
        self.engine.start_monitoring(user_id)

        with self._lock:
            self._running.add(user_id)
            generation = self._generations.get(user_id, 0) + 1
            self._generations[user_id] = generation

        self.check_now(user_id)
        self._schedule_next(user_id, generation)
        logger.info(f"[MONITOR] Periodic checks started for {user_id}")

    def stop(self, user_id: str) -> None:
        """
        Cancel the user's timer, then stop the engine session.

        Raises:
            NoSuchSessionError: Monitoring was never started for the user
        """
        self._cancel(user_id)
        self.engine.stop_monitoring(user_id)
        logger.info(f"[MONITOR] Periodic checks stopped for {user_id}")

    def shutdown(self) -> None:
        """Cancel every timer. Engine sessions are left as they are."""
        with self._lock:
            users = list(self._running)
        for user_id in users:
            self._cancel(user_id)
        logger.info("[MONITOR] Shut down")

    def _cancel(self, user_id: str) -> None:
        with self._lock:
            self._running.discard(user_id)
            timer = self._timers.pop(user_id, None)
        if timer:
            timer.cancel()

    def check_now(self, user_id: str) -> Optional[EmergencyResponse]:
        """
        Run one check for the user.

        Skipped (returns None) when the user's session is not active.
        Source and callback failures are logged; a stored response is
        never lost because a callback raised.
        """
        if not self.engine.is_monitoring(user_id):
            logger.debug(f"[MONITOR] Skipping check for inactive user {user_id}")
            return None

        try:
            snapshot = self.source()
        except Exception as e:
            logger.error(f"[MONITOR] Vitals source failed for {user_id}: {e}")
            return None

        return self.process(snapshot, user_id)

    def process(
        self, snapshot: VitalsSnapshot, user_id: Optional[str] = None
    ) -> Optional[EmergencyResponse]:
        """
        Check a snapshot pushed from outside the timer loop and notify.

        Unlike check_now this does not require an active session; the
        engine stores the response either way.
        """
        user_id = user_id or self.engine.default_user_id
        response = self.engine.check_vitals(snapshot, user_id=user_id)
        if response is None:
            return None

        if self.on_response:
            try:
                self.on_response(response)
            except Exception as e:
                logger.error(f"[MONITOR] Response callback failed for {response.id}: {e}")

        if response.severity == SeverityTier.CRITICAL and self.cooldown.should_prompt(
            user_id, response.trigger_time
        ):
            if self.on_critical_prompt:
                try:
                    self.on_critical_prompt(response)
                except Exception as e:
                    logger.error(
                        f"[MONITOR] Critical prompt callback failed for {response.id}: {e}"
                    )

        return response

    def _is_current(self, user_id: str, generation: int) -> bool:
        # Caller holds self._lock
        return user_id in self._running and self._generations.get(user_id) == generation

    def _schedule_next(self, user_id: str, generation: int) -> None:
        """
        Schedule the next check for the user.

        A chain whose generation was superseded by a stop and restart
        ends here instead of running alongside the new chain.
        """

        def run_and_reschedule():
            with self._lock:
                if not self._is_current(user_id, generation):
                    return

            try:
                self.check_now(user_id)
            except Exception as e:
                logger.error(f"[MONITOR] Scheduled check failed for {user_id}: {e}")

            self._schedule_next(user_id, generation)

        with self._lock:
            if not self._is_current(user_id, generation):
                logger.debug(f"[MONITOR] Dropping stale timer chain for {user_id}")
                return
            timer = threading.Timer(self.interval_seconds, run_and_reschedule)
            timer.daemon = True
            self._timers[user_id] = timer
            timer.start()
