"""Exceptions raised by the vitals monitoring engine."""
from typing import List, Optional


class VitalsMonitorError(Exception):
    """Base class for recoverable monitoring errors."""


class AlreadyMonitoringError(VitalsMonitorError):
    """A session for the user is already active."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} is already being monitored")


class NoSuchSessionError(VitalsMonitorError):
    """No monitoring session was ever started for the user."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No monitoring found for user: {user_id}")


class NoSuchResponseError(VitalsMonitorError):
    """No stored emergency response has the given id."""

    def __init__(self, response_id: str):
        self.response_id = response_id
        super().__init__(f"Emergency response not found: {response_id}")


class InvalidInputError(VitalsMonitorError):
    """Input rejected at the boundary, with one reason per problem."""

    def __init__(self, reasons: Optional[List[str]] = None):
        self.reasons = list(reasons or [])
        detail = "; ".join(self.reasons) if self.reasons else "invalid input"
        super().__init__(f"Invalid input: {detail}")
