"""
Aggregation Engine - turns a flat entry log into week views.

Entries are filtered to one ISO week, grouped by client (my hours) or by
user (team view), and summed into seconds and earnings. Seconds are always
summed as integers; hours and money are derived from those sums.
"""

import datetime
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional

from pydantic import BaseModel, Field

from timebill.domain.models import Project, TimeEntry
from timebill.services.period_service import WeekBounds, week_bounds, week_number

RateFn = Callable[[TimeEntry], float]
KeyFn = Callable[[TimeEntry], Hashable]


class Scope(str, Enum):
    SELF = "self"
    TEAM = "team"


class GroupMode(str, Enum):
    CLIENT = "client"
    USER = "user"

    def key_fn(self) -> KeyFn:
        if self == GroupMode.USER:
            return lambda entry: entry.user_id
        return lambda entry: entry.client_id


class EntryGroup(BaseModel):
    """Entries sharing one key plus their totals"""
    key: Any
    total_seconds: int = 0
    total_earnings: float = 0.0
    entries: List[TimeEntry] = Field(default_factory=list)

    @property
    def total_hours(self) -> float:
        return self.total_seconds / 3600


class Totals(BaseModel):
    total_seconds: int = 0
    total_earnings: float = 0.0

    @property
    def total_hours(self) -> float:
        return self.total_seconds / 3600


class WeekView(BaseModel):
    """Everything a week overview shows"""
    bounds: WeekBounds
    week_number: int
    scope: Scope
    mode: GroupMode
    groups: Dict[Any, EntryGroup]
    totals: Totals

    @property
    def entries(self) -> List[TimeEntry]:
        return [entry for group in self.groups.values() for entry in group.entries]


class ProjectRates:
    """
    Effective hourly rate lookup.

    The rate is owned by the project. Entries without a project, or whose
    project has been deleted, earn nothing.
    """

    def __init__(self, projects: Iterable[Project]):
        self.rates = {p.id: p.hourly_rate for p in projects}

    def __call__(self, entry: TimeEntry) -> float:
        if entry.project_id is None:
            return 0.0
        return self.rates.get(entry.project_id, 0.0)


def filter_to_week(entries: Iterable[TimeEntry], bounds: WeekBounds,
                   scope: Scope = Scope.SELF, user_id: Optional[str] = None) -> List[TimeEntry]:
    """
    Keep the entries dated inside `bounds` (inclusive).

    With Scope.SELF only `user_id`'s entries survive; Scope.TEAM keeps everyone's.
    """
    kept = [e for e in entries if bounds.start <= e.date <= bounds.end]
    if scope == Scope.SELF:
        kept = [e for e in kept if e.user_id == user_id]
    return kept


def group_by(entries: Iterable[TimeEntry], key_fn: KeyFn, rate_fn: RateFn) -> Dict[Hashable, EntryGroup]:
    """
    Bucket entries by `key_fn` with per-bucket seconds and earnings.

    Every entry lands in exactly one group; groups appear in order of their
    first entry.
    """
    groups: Dict[Hashable, EntryGroup] = {}
    # seconds * rate per group, divided by 3600 once at the end
    rated_seconds: Dict[Hashable, float] = {}

    for entry in entries:
        key = key_fn(entry)
        group = groups.get(key)
        if group is None:
            group = groups[key] = EntryGroup(key=key)
            rated_seconds[key] = 0.0
        group.total_seconds += entry.seconds
        group.entries.append(entry)
        rated_seconds[key] += entry.seconds * rate_fn(entry)

    for key, group in groups.items():
        group.total_earnings = rated_seconds[key] / 3600
    return groups


def week_totals(entries: Iterable[TimeEntry], rate_fn: RateFn) -> Totals:
    """Headline totals over an already filtered set of entries"""
    total_seconds = 0
    rated_seconds = 0.0
    for entry in entries:
        total_seconds += entry.seconds
        rated_seconds += entry.seconds * rate_fn(entry)
    return Totals(total_seconds=total_seconds, total_earnings=rated_seconds / 3600)


def build_week_view(entries: Iterable[TimeEntry], projects: Iterable[Project],
                    reference_date: datetime.date, week_offset: int = 0,
                    scope: Scope = Scope.SELF, user_id: Optional[str] = None,
                    mode: Optional[GroupMode] = None) -> WeekView:
    """
    Filter, group and total one week of entries.

    By default my hours are grouped per client and the team's per user.
    """
    scope = Scope(scope)
    if mode is None:
        mode = GroupMode.USER if scope == Scope.TEAM else GroupMode.CLIENT
    mode = GroupMode(mode)

    bounds = week_bounds(reference_date, week_offset)
    rate_fn = ProjectRates(projects)
    week_entries = filter_to_week(entries, bounds, scope, user_id)

    return WeekView(
        bounds=bounds,
        week_number=week_number(bounds.start),
        scope=scope,
        mode=mode,
        groups=group_by(week_entries, mode.key_fn(), rate_fn),
        totals=week_totals(week_entries, rate_fn),
    )
