"""Thread-safe in-memory alert queue for real-time emergency notifications.

This module provides a publish-subscribe mechanism for emergency alerts
that can be streamed to connected clients via SSE. Publishing is safe from
any thread, including the monitor's timer threads.
"""
import asyncio
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, AsyncIterator

from vitals_monitor.formatting import (
    format_emergency_notification,
    format_vitals_for_display,
    severity_label,
)
from vitals_monitor.models import EmergencyResponse, utc_now


class AlertType(str, Enum):
    """Types of emergency alerts."""
    EMERGENCY_TRIGGERED = "emergency_triggered"
    CRITICAL_PROMPT = "critical_prompt"
    EMERGENCY_ACKNOWLEDGED = "emergency_acknowledged"
    EMERGENCY_RESOLVED = "emergency_resolved"
    ACTION_EXECUTED = "action_executed"


@dataclass
class EmergencyAlert:
    """Real-time alert about an emergency response."""

    alert_type: AlertType
    title: str
    message: str
    timestamp: datetime = field(default_factory=utc_now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    severity: str = "info"  # info, warning, urgent, critical

    response_id: Optional[str] = None
    user_id: Optional[str] = None
    action: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "id": self.id,
            "alert_type": self.alert_type.value,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "severity": self.severity,
        }

        if self.response_id:
            result["response_id"] = self.response_id
        if self.user_id:
            result["user_id"] = self.user_id
        if self.action:
            result["action"] = self.action

        return result

    @classmethod
    def for_response(
        cls,
        response: EmergencyResponse,
        alert_type: AlertType = AlertType.EMERGENCY_TRIGGERED,
        action: Optional[str] = None,
        emergency_number: str = "120",
    ) -> "EmergencyAlert":
        """Build an alert describing a stored emergency response.

        New emergencies and critical prompts carry the full notification
        text, with the number to dial; follow-up alerts carry the readings.
        """
        titles = {
            AlertType.EMERGENCY_TRIGGERED: f"Emergency: {severity_label(response.severity)}",
            AlertType.CRITICAL_PROMPT: "Critical vitals: immediate attention required",
            AlertType.EMERGENCY_ACKNOWLEDGED: "Emergency acknowledged",
            AlertType.EMERGENCY_RESOLVED: "Emergency resolved",
            AlertType.ACTION_EXECUTED: f"Action executed: {action}",
        }
        if alert_type in (AlertType.EMERGENCY_TRIGGERED, AlertType.CRITICAL_PROMPT):
            message = format_emergency_notification(response, emergency_number)
        else:
            message = format_vitals_for_display(response.vitals) or "No readings"

        return cls(
            alert_type=alert_type,
            title=titles[alert_type],
            message=message,
            severity=response.severity.value,
            response_id=response.id,
            user_id=response.user_id,
            action=action,
        )


class _Subscriber:
    """An asyncio queue bound to the loop that consumes it."""

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = 100):
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def deliver(self, alert: EmergencyAlert) -> bool:
        """Hand an alert to the consumer's loop. False when the subscriber is dead."""
        if self.queue.full() or self.loop.is_closed():
            return False
        try:
            self.loop.call_soon_threadsafe(self._put, alert)
        except RuntimeError:
            return False
        return True

    def _put(self, alert: EmergencyAlert) -> None:
        if not self.queue.full():
            self.queue.put_nowait(alert)


class AlertQueue:
    """Thread-safe in-memory queue for real-time emergency alerts.

    Supports multiple SSE subscribers and maintains a history buffer
    for new connections to catch up on recent alerts.
    """

    def __init__(self, max_history: int = 100, emergency_number: str = "120"):
        """Initialize the alert queue.

        Args:
            max_history: Maximum number of alerts to keep in history buffer.
            emergency_number: Number shown in emergency notifications.
        """
        self.emergency_number = emergency_number
        self._history: deque[EmergencyAlert] = deque(maxlen=max_history)
        self._subscribers: list[_Subscriber] = []
        self._lock = threading.Lock()
        self._stats = {
            "total_published": 0,
            "total_subscribers": 0,
            "alerts_by_type": {},
            "alerts_by_severity": {},
        }

    def publish(self, alert: EmergencyAlert) -> None:
        """Publish an alert to all subscribers.

        Thread-safe method that can be called from any thread.

        Args:
            alert: The emergency alert to publish.
        """
        with self._lock:
            self._history.append(alert)

            self._stats["total_published"] += 1
            by_type = self._stats["alerts_by_type"]
            by_type[alert.alert_type.value] = by_type.get(alert.alert_type.value, 0) + 1
            by_severity = self._stats["alerts_by_severity"]
            by_severity[alert.severity] = by_severity.get(alert.severity, 0) + 1

            dead_subscribers = [
                sub for sub in self._subscribers if not sub.deliver(alert)
            ]
            for sub in dead_subscribers:
                self._subscribers.remove(sub)

    def publish_response(
        self,
        response: EmergencyResponse,
        alert_type: AlertType = AlertType.EMERGENCY_TRIGGERED,
        action: Optional[str] = None,
    ) -> EmergencyAlert:
        """Publish an alert built from an emergency response."""
        alert = EmergencyAlert.for_response(
            response, alert_type, action, emergency_number=self.emergency_number
        )
        self.publish(alert)
        return alert

    async def subscribe(
        self,
        include_history: bool = True,
        history_count: int = 10
    ) -> AsyncIterator[EmergencyAlert]:
        """Subscribe to real-time alerts via async generator.

        Args:
            include_history: Whether to yield recent alerts first.
            history_count: Number of recent alerts to include from history.

        Yields:
            EmergencyAlert objects as they arrive.
        """
        subscriber = _Subscriber(asyncio.get_running_loop())

        with self._lock:
            self._subscribers.append(subscriber)
            self._stats["total_subscribers"] += 1

            if include_history and history_count > 0:
                recent = list(self._history)[-history_count:]
                for alert in recent:
                    subscriber.queue.put_nowait(alert)

        try:
            while True:
                alert = await subscriber.queue.get()
                yield alert
        finally:
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)

    def get_history(self, count: int = 50) -> list[EmergencyAlert]:
        """Get recent alerts from history.

        Args:
            count: Maximum number of alerts to return.

        Returns:
            List of recent alerts, newest first.
        """
        with self._lock:
            return list(self._history)[-count:][::-1]

    def get_stats(self) -> dict:
        """Get queue statistics."""
        with self._lock:
            return {
                "total_published": self._stats["total_published"],
                "total_subscribers": self._stats["total_subscribers"],
                "alerts_by_type": dict(self._stats["alerts_by_type"]),
                "alerts_by_severity": dict(self._stats["alerts_by_severity"]),
                "current_subscribers": len(self._subscribers),
                "history_size": len(self._history),
            }

    def clear_history(self) -> None:
        """Clear the alert history buffer."""
        with self._lock:
            self._history.clear()
