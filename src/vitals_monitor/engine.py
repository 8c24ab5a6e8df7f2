"""
Vitals Severity Engine.

Classifies vitals snapshots against the tiered threshold table, turns
abnormal ones into stored emergency responses with ordered escalation
actions, and tracks per-user monitoring sessions.

The engine never performs I/O. Dialing, notifications and prompts are
left to callers, which read the stored responses.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from . import thresholds
from .errors import (
    AlreadyMonitoringError,
    InvalidInputError,
    NoSuchResponseError,
    NoSuchSessionError,
)
from .models import (
    ActionType,
    EmergencyAction,
    EmergencyResponse,
    MonitoringSession,
    ResponseStatus,
    SeverityTier,
    VitalsSnapshot,
    utc_now,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "current-user"


def generate_response_id() -> str:
    return f"emergency-{uuid.uuid4()}"


class VitalsSeverityEngine:
    """
    In-memory emergency monitoring engine.

    Holds two maps, sessions by user id and responses by id. Each user's
    state is mutated only under that user's lock, so checks for different
    users never contend and concurrent checks for one user never lose a
    counter update.

    Configuration:
        default_user_id: Owner of snapshots checked without a user id
        clock: Returns the current time (aware datetime)
        id_factory: Generates emergency response ids
    """

    def __init__(
        self,
        default_user_id: str = DEFAULT_USER_ID,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.default_user_id = default_user_id
        self._clock = clock or utc_now
        self._id_factory = id_factory or generate_response_id

        self._sessions: Dict[str, MonitoringSession] = {}
        self._responses: Dict[str, EmergencyResponse] = {}
        self._user_responses: Dict[str, List[str]] = {}

        self._registry_lock = threading.Lock()
        self._user_locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._user_locks[user_id] = lock
            return lock

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def start_monitoring(self, user_id: str) -> MonitoringSession:
        """
        Start monitoring a user.

        A previous inactive session is replaced with a fresh one whose
        emergency count starts at zero.

        Raises:
            AlreadyMonitoringError: The user already has an active session
        """
        with self._lock_for(user_id):
            existing = self._sessions.get(user_id)
            if existing is not None and existing.is_active:
                raise AlreadyMonitoringError(user_id)

            session = MonitoringSession(user_id=user_id, start_time=self._clock())
            self._sessions[user_id] = session

        logger.info(f"[MONITOR] Started monitoring for user: {user_id}")
        return session

    def stop_monitoring(self, user_id: str) -> None:
        """
        Stop monitoring a user. Stopping an inactive session is allowed.

        Raises:
            NoSuchSessionError: Monitoring was never started for the user
        """
        with self._lock_for(user_id):
            session = self._sessions.get(user_id)
            if session is None:
                raise NoSuchSessionError(user_id)
            session.is_active = False

        logger.info(f"[MONITOR] Stopped monitoring for user: {user_id}")

    def is_monitoring(self, user_id: str) -> bool:
        session = self._sessions.get(user_id)
        return session is not None and session.is_active

    # ------------------------------------------------------------------
    # Classification and responses
    # ------------------------------------------------------------------

    def classify(self, snapshot: VitalsSnapshot) -> Optional[SeverityTier]:
        """Worst tier breached by the snapshot, or None when normal."""
        return thresholds.classify(snapshot)

    def check_vitals(
        self,
        snapshot: VitalsSnapshot,
        user_id: Optional[str] = None,
    ) -> Optional[EmergencyResponse]:
        """
        Check a snapshot and materialize an emergency response if abnormal.

        Normal snapshots create nothing and touch no session. Abnormal
        ones are always stored; the owner's session counter and last check
        time are only updated while that session is active.

        Args:
            snapshot: The vitals reading to evaluate
            user_id: Owner of the reading (defaults to default_user_id)

        Returns:
            The new EmergencyResponse, or None when vitals are normal
        """
        owner = user_id or self.default_user_id
        severity = self.classify(snapshot)

        if severity is None:
            logger.debug(f"[MONITOR] Normal vitals for {owner}")
            return None

        # Build fully before storing so a failure never leaves a partial record
        now = self._clock()
        response = EmergencyResponse(
            id=self._id_factory(),
            user_id=owner,
            trigger_time=now,
            vitals=snapshot,
            severity=severity,
            actions=thresholds.plan_actions(severity),
        )

        with self._lock_for(owner):
            with self._registry_lock:
                if response.id in self._responses:
                    raise RuntimeError(f"Duplicate emergency response id: {response.id}")
                self._responses[response.id] = response
                self._user_responses.setdefault(owner, []).append(response.id)

            session = self._sessions.get(owner)
            if session is not None and session.is_active:
                session.emergency_count += 1
                session.last_check_time = now

        self._log_response(response)
        return response

    def _log_response(self, response: EmergencyResponse) -> None:
        actions = ", ".join(a.type.value for a in response.actions)
        message = (
            f"[EMERGENCY] {response.severity.value} response {response.id} "
            f"for {response.user_id}: actions=[{actions}]"
        )
        if response.severity == SeverityTier.CRITICAL:
            logger.warning(message)
        else:
            logger.info(message)

    def _require_response(self, response_id: str) -> EmergencyResponse:
        with self._registry_lock:
            response = self._responses.get(response_id)
        if response is None:
            raise NoSuchResponseError(response_id)
        return response

    def acknowledge_emergency(self, response_id: str) -> EmergencyResponse:
        """
        Mark a response as acknowledged. The record stays queryable.

        Raises:
            NoSuchResponseError: No stored response has this id
        """
        response = self._require_response(response_id)

        with self._lock_for(response.user_id):
            if response.status == ResponseStatus.RESOLVED:
                logger.info(f"[EMERGENCY] {response_id} already resolved, not acknowledging")
                return response
            if response.status == ResponseStatus.TRIGGERED:
                response.status = ResponseStatus.ACKNOWLEDGED
                response.acknowledged_at = self._clock()

        logger.info(f"[EMERGENCY] Emergency acknowledged: {response_id}")
        return response

    def resolve_emergency(self, response_id: str) -> EmergencyResponse:
        """
        Mark a response as resolved.

        Raises:
            NoSuchResponseError: No stored response has this id
        """
        response = self._require_response(response_id)

        with self._lock_for(response.user_id):
            if response.status != ResponseStatus.RESOLVED:
                now = self._clock()
                if response.acknowledged_at is None:
                    response.acknowledged_at = now
                response.status = ResponseStatus.RESOLVED
                response.resolved_at = now

        logger.info(f"[EMERGENCY] Emergency resolved: {response_id}")
        return response

    def mark_action_executed(
        self, response_id: str, action_type: ActionType
    ) -> EmergencyAction:
        """
        Record that an escalation step was carried out.

        Raises:
            NoSuchResponseError: No stored response has this id
            InvalidInputError: The action is not part of the response's plan
        """
        response = self._require_response(response_id)

        with self._lock_for(response.user_id):
            action = response.find_action(action_type)
            if action is None:
                raise InvalidInputError([
                    f"action '{action_type.value}' is not planned for "
                    f"{response.severity.value} response {response_id}"
                ])
            if not action.executed:
                action.executed = True
                action.executed_at = self._clock()

        logger.info(f"[EMERGENCY] {action_type.value} executed for {response_id}")
        return action

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def get_monitoring_status(self, user_id: str) -> Optional[MonitoringSession]:
        return self._sessions.get(user_id)

    def get_emergency_response(self, response_id: str) -> Optional[EmergencyResponse]:
        with self._registry_lock:
            return self._responses.get(response_id)

    def get_user_emergency_responses(self, user_id: str) -> List[EmergencyResponse]:
        """All responses generated for a user, in creation order."""
        with self._registry_lock:
            ids = list(self._user_responses.get(user_id, []))
            return [self._responses[response_id] for response_id in ids]

    def get_latest_emergency(self, user_id: str) -> Optional[EmergencyResponse]:
        """Most recent response for a user (its severity and trigger time)."""
        with self._registry_lock:
            ids = self._user_responses.get(user_id)
            if not ids:
                return None
            return self._responses[ids[-1]]

    def emergency_stats(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Count responses triggered in the last 24 hours and overall."""
        now = now or self._clock()
        cutoff = now - timedelta(hours=24)

        with self._registry_lock:
            responses = list(self._responses.values())

        return {
            "last_24h_count": sum(1 for r in responses if r.trigger_time >= cutoff),
            "total_count": len(responses),
        }
