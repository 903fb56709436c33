"""
Entry Service - manual time entries and the read projections built on the
entry log (week views and budget snapshots).
"""

import datetime
import logging
from typing import List, Optional

from timebill.domain.commands import ManualEntryCommand
from timebill.domain.models import EntryFilter, TimeEntry, TrackerPreferences
from timebill.infra.store import EntryStore
from timebill.services.aggregation_service import GroupMode, Scope, WeekView, build_week_view
from timebill.services.budget_service import BudgetSnapshot, budget_snapshots
from timebill.services.clock import Clock, SystemClock
from timebill.services.period_service import week_bounds

logger = logging.getLogger(__name__)


class EntryService:
    """
    Writes manual entries and reads the entry log back as views.

    Views are recomputed from a fresh store read every time; nothing is cached.
    """

    def __init__(self, store: EntryStore, clock: Optional[Clock] = None,
                 preferences: Optional[TrackerPreferences] = None,
                 tz: Optional[datetime.tzinfo] = None):
        if preferences is None:
            preferences = TrackerPreferences()
        self.store = store
        self.clock = clock or SystemClock()
        self.tz = tz
        self.min_entry_seconds = preferences.min_entry_seconds

    def today(self) -> datetime.date:
        return self.clock.now().astimezone(self.tz).date()

    async def add_manual_entry(self, command: ManualEntryCommand) -> Optional[TimeEntry]:
        """
        Record time entered by hand.

        Returns None without touching the store when the duration is under the
        minimum entry length, like stopping a timer too early.

        Raises:
            InvalidInput: no client given, or a negative or oversized duration
            StoreError: the entry was not saved
        """
        command.check()
        seconds = command.total_seconds
        if seconds < self.min_entry_seconds:
            logger.debug("Dropping manual entry of %ds for user %s", seconds, command.user_id)
            return None

        entry = TimeEntry(
            user_id=command.user_id,
            client_id=command.client_id,
            project_id=command.project_id or None,
            description=command.description,
            seconds=seconds,
            date=command.date,
        )
        entry_id = await self.store.insert_entry(entry)
        logger.info("Manual entry %s: %ds on %s", entry_id, seconds, command.date)
        return entry.model_copy(update={"id": entry_id})

    async def delete_entry(self, entry_id: str) -> None:
        await self.store.delete_entry(entry_id)
        logger.info("Deleted entry %s", entry_id)

    async def week_view(self, user_id: str, week_offset: int = 0, scope: Scope = Scope.SELF,
                        mode: Optional[GroupMode] = None,
                        reference_date: Optional[datetime.date] = None) -> WeekView:
        """The week `week_offset` weeks away from `reference_date` (default today)"""
        if reference_date is None:
            reference_date = self.today()
        bounds = week_bounds(reference_date, week_offset)

        entries = await self.store.list_entries(
            EntryFilter(start_date=bounds.start, end_date=bounds.end)
        )
        projects = await self.store.list_projects()
        return build_week_view(entries, projects, reference_date, week_offset, scope, user_id, mode)

    async def budgets(self) -> List[BudgetSnapshot]:
        """Budget snapshot of every project, over all entries ever made"""
        projects = await self.store.list_projects()
        entries = await self.store.list_entries()
        return budget_snapshots(projects, entries)
