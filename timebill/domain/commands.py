"""
Command objects for everything that edits the catalog or the entry log.

A command is built from user input, checked with `check()`, and only then
handed to a service. Numbers are accepted as given on construction; all
range checks happen in `check()`, which raises InvalidInput and never
touches a store.
"""

import math
from datetime import date
from typing import Optional
from pydantic import BaseModel

from timebill.domain.errors import InvalidInput

# One manual entry covers at most one calendar day
MAX_ENTRY_SECONDS = 24 * 3600


def _require_name(name: str, what: str) -> None:
    if not name or not name.strip():
        raise InvalidInput(f"{what} name must not be empty")


def _require_amount(value: float, what: str) -> None:
    if not math.isfinite(value) or value < 0:
        raise InvalidInput(f"{what} must be a number of at least 0")


def _check_window(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and end_date < start_date:
        raise InvalidInput("End date cannot be before start date")


class CreateClientCommand(BaseModel):
    name: str

    def check(self) -> None:
        _require_name(self.name, "Client")


class UpdateClientCommand(BaseModel):
    id: str
    name: str

    def check(self) -> None:
        _require_name(self.name, "Client")


class CreateProjectCommand(BaseModel):
    name: str
    client_id: str = ""
    budget_hours: float = 0.0
    hourly_rate: float = 0.0
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def check(self) -> None:
        _require_name(self.name, "Project")
        if not self.client_id:
            raise InvalidInput("A project needs a client")
        _require_amount(self.budget_hours, "Budget hours")
        _require_amount(self.hourly_rate, "Hourly rate")
        _check_window(self.start_date, self.end_date)


class UpdateProjectCommand(CreateProjectCommand):
    """Full replacement of a project's editable fields."""
    id: str


class ManualEntryCommand(BaseModel):
    """Time entered by hand instead of with the stopwatch."""
    user_id: str
    client_id: str = ""
    project_id: Optional[str] = None
    description: str = ""
    hours: float = 0.0
    minutes: float = 0.0
    date: date

    @property
    def total_seconds(self) -> int:
        """Duration in whole seconds; only meaningful once `check()` passed"""
        return round(self.hours * 3600 + self.minutes * 60)

    def check(self) -> None:
        if not self.client_id:
            raise InvalidInput("A client is required for a time entry")
        _require_amount(self.hours, "Hours")
        _require_amount(self.minutes, "Minutes")
        if self.hours * 3600 + self.minutes * 60 > MAX_ENTRY_SECONDS:
            raise InvalidInput("A time entry cannot be longer than 24 hours")
