"""Infrastructure layer - Database and persistence"""

from .db import DatabaseEngine, get_engine, init_db
from .models import ActiveTimerModel, ClientModel, ProjectModel, TimeEntryModel, UserProfileModel
from .store import EntryStore

__all__ = [
    "DatabaseEngine",
    "get_engine",
    "init_db",
    "ActiveTimerModel",
    "ClientModel",
    "ProjectModel",
    "TimeEntryModel",
    "UserProfileModel",
    "EntryStore",
]
