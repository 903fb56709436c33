"""
SQLAlchemy ORM models.
Separated from db.py for cleaner imports.
"""

from .db import (
    ActiveTimerModel,
    Base,
    ClientModel,
    ProjectModel,
    TimeEntryModel,
    UserProfileModel,
)

__all__ = [
    "ActiveTimerModel",
    "Base",
    "ClientModel",
    "ProjectModel",
    "TimeEntryModel",
    "UserProfileModel",
]
