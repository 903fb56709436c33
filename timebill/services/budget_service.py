"""
Budget Tracker - how much of a project's hour budget is used.

Budgets are lifetime totals, so every entry of the project counts regardless
of the week being looked at. A budget of 0 hours means unlimited.
"""

from typing import Iterable, List, Optional

from pydantic import BaseModel

from timebill.domain.models import Project, TimeEntry


class BudgetSnapshot(BaseModel):
    """Budget state of one project at the time it was computed"""
    project_id: str
    budget_hours: float
    hours_used: float
    hours_remaining: Optional[float] = None
    progress_percent: Optional[float] = None
    over_budget: bool = False

    @property
    def is_unlimited(self) -> bool:
        return self.hours_remaining is None


def hours_used(project_id: str, entries: Iterable[TimeEntry]) -> float:
    seconds = sum(e.seconds for e in entries if e.project_id == project_id)
    return seconds / 3600


def hours_remaining(project: Project, used: float) -> Optional[float]:
    """Hours left; negative when over budget, None when unlimited"""
    if project.is_unlimited:
        return None
    return project.budget_hours - used


def progress_percent(project: Project, used: float) -> Optional[float]:
    """Share of the budget used, capped at 100 for display; None when unlimited"""
    if project.is_unlimited:
        return None
    return min(100.0, used / project.budget_hours * 100)


def is_over_budget(project: Project, used: float) -> bool:
    remaining = hours_remaining(project, used)
    return remaining is not None and remaining < 0


def budget_snapshot(project: Project, entries: Iterable[TimeEntry]) -> BudgetSnapshot:
    used = hours_used(project.id, entries)
    return BudgetSnapshot(
        project_id=project.id,
        budget_hours=project.budget_hours,
        hours_used=used,
        hours_remaining=hours_remaining(project, used),
        progress_percent=progress_percent(project, used),
        over_budget=is_over_budget(project, used),
    )


def budget_snapshots(projects: Iterable[Project], entries: Iterable[TimeEntry]) -> List[BudgetSnapshot]:
    entries = list(entries)
    return [budget_snapshot(project, entries) for project in projects]
