"""
Domain errors.

Every failure the engine reports is one of these. None of them is fatal:
callers surface the message and keep running.
"""


class TimeTrackingError(Exception):
    """Base class for all time tracking errors"""


class InvalidInput(TimeTrackingError):
    """A command was rejected before anything was attempted."""


class InvalidState(TimeTrackingError):
    """The operation does not apply to the current timer state."""


class TimerAlreadyRunning(InvalidState):
    def __init__(self, user_id: str):
        super().__init__(f"A timer is already running for user {user_id}")
        self.user_id = user_id


class NoActiveTimer(InvalidState):
    def __init__(self, user_id: str):
        super().__init__(f"No active timer for user {user_id}")
        self.user_id = user_id


class StoreError(TimeTrackingError):
    """The backing store failed to read or write."""
