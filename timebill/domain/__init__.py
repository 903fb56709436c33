"""Domain layer - Pure business entities and logic"""

from .models import (
    ActiveTimer,
    Client,
    EntryFilter,
    Project,
    TimeEntry,
    TrackerPreferences,
    UserProfile,
)
from .errors import (
    InvalidInput,
    InvalidState,
    NoActiveTimer,
    StoreError,
    TimerAlreadyRunning,
    TimeTrackingError,
)

__all__ = [
    "ActiveTimer",
    "Client",
    "EntryFilter",
    "Project",
    "TimeEntry",
    "TrackerPreferences",
    "UserProfile",
    "InvalidInput",
    "InvalidState",
    "NoActiveTimer",
    "StoreError",
    "TimerAlreadyRunning",
    "TimeTrackingError",
]
