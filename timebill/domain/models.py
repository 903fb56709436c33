"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Entries and timers cross the store boundary constantly. Pydantic validates
them on the way in (ORM rows, YAML, CLI input) and keeps them immutable once
built, so a committed entry or a running timer cannot be edited in place.
"""

from datetime import date, datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Client(BaseModel):
    """A customer that time is billed to."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    created_at: datetime = Field(default_factory=utc_now)


class Project(BaseModel):
    """
    A piece of work for a client.

    The project is the single owner of the hourly rate: an entry earns the
    rate of its project, and nothing when it has no project.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    client_id: str
    name: str = Field(..., min_length=1, max_length=200)
    budget_hours: float = Field(default=0.0, ge=0, description="0 means unlimited")
    hourly_rate: float = Field(default=0.0, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_unlimited(self) -> bool:
        return not self.budget_hours


class UserProfile(BaseModel):
    """A team member as known to the identity service."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = None


class TimeEntry(BaseModel):
    """
    A committed block of worked time.

    Entries are created by stopping a timer or by manual entry and are never
    edited afterwards, only deleted. `date` is the owner's local calendar day.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: Optional[str] = None
    user_id: str
    client_id: str
    project_id: Optional[str] = None
    description: str = ""
    seconds: int = Field(..., ge=60)
    date: date
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value):
        return value or ""


class ActiveTimer(BaseModel):
    """
    The running, not yet committed timer of one user.

    Frozen: client and project are fixed for the lifetime of the run.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    user_id: str
    client_id: str = Field(..., min_length=1)
    project_id: Optional[str] = None
    description: str = ""
    start_time: datetime

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value):
        return value or ""

    @field_validator("start_time")
    @classmethod
    def _aware_start(cls, value: datetime) -> datetime:
        # SQLite hands timestamps back without tzinfo; they are stored as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class EntryFilter(BaseModel):
    """Optional narrowing for EntryStore.list_entries"""
    user_id: Optional[str] = None
    client_id: Optional[str] = None
    project_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TrackerPreferences(BaseModel):
    """
    User configuration and preferences.

    This allows users to customize behavior without touching code.
    """
    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(default="", description="Id of the user this installation tracks for")
    timezone: str = Field(default="", description="IANA zone for entry dates, empty = system local")
    currency: str = Field(default="EUR")
    app_title: str = Field(default="Time tracking", description="Window title while no timer runs")

    # Reminder escalation
    ping_interval_minutes: int = Field(default=30, ge=1)
    popup_after_hours: int = Field(default=2, ge=1)

    min_entry_seconds: int = Field(default=60, ge=60)

    report_template: str = "weekly_report.txt"
    reports_directory: Optional[str] = None
