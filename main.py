#!/usr/bin/env python

"""
TimeBill - Main Entry Point

Track billable time against clients and projects from the command line:
a single stopwatch per user, manual entries, weekly totals with earnings
and project budgets.

Usage:
    python main.py start <client_id> [--project ID] [--description TEXT]
    python main.py stop | cancel | status
    python main.py add <client_id> --hours 1 --minutes 30 [--date YYYY-MM-DD]
    python main.py week [--offset -1] [--team]
    python main.py delete <entry_id>
    python main.py budgets | templates
    python main.py report [--offset -1] [--team] [--template NAME] [--output FILE]
    python main.py config [--set-user ID] [--timezone Europe/Amsterdam] [--currency EUR]

The user is taken from --user or from the `user_id` preference.
"""

import argparse
import asyncio
import datetime
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from timebill.domain.commands import ManualEntryCommand
from timebill.domain.errors import TimeTrackingError
from timebill.infra.config import get_settings
from timebill.infra.db import init_db
from timebill.infra.repository import SqlEntryStore
from timebill.services.aggregation_service import Scope
from timebill.services.entry_service import EntryService
from timebill.services.report_service import ReportService, WeeklyReportConfiguration
from timebill.services.timer_service import TimerService
from timebill.utils import format_duration, format_hours, format_money, timer_title

logger = logging.getLogger("timebill")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="timebill", description="Billable time tracking")
    parser.add_argument("--user", help="User id (defaults to the user_id preference)")
    sub = parser.add_subparsers(dest="command", required=True)

    start = sub.add_parser("start", help="Start the timer")
    start.add_argument("client")
    start.add_argument("--project")
    start.add_argument("--description", default="")

    sub.add_parser("stop", help="Stop the timer and record the time")
    sub.add_parser("cancel", help="Discard the running timer")
    sub.add_parser("status", help="Show the running timer")

    add = sub.add_parser("add", help="Enter time manually")
    add.add_argument("client")
    add.add_argument("--project")
    add.add_argument("--description", default="")
    add.add_argument("--hours", type=float, default=0)
    add.add_argument("--minutes", type=float, default=0)
    add.add_argument("--date", type=datetime.date.fromisoformat, default=None)

    for name in ("week", "report"):
        p = sub.add_parser(name, help="Weekly overview" if name == "week" else "Render the weekly report")
        p.add_argument("--offset", type=int, default=0)
        p.add_argument("--team", action="store_true")
        if name == "report":
            p.add_argument("--output")
            p.add_argument("--matrix", help="Also write the day matrix CSV here")
            p.add_argument("--template", help="Report template (see `templates`)")

    delete = sub.add_parser("delete", help="Delete a recorded time entry")
    delete.add_argument("entry_id")

    sub.add_parser("budgets", help="Project budget overview")
    sub.add_parser("templates", help="List the available report templates")

    config = sub.add_parser("config", help="Save tracker preferences to settings.yaml")
    config.add_argument("--set-user", dest="user_id", help="Default user id")
    config.add_argument("--timezone", help="IANA zone for entry dates, \"\" for system local")
    config.add_argument("--currency")
    return parser


async def run(args) -> int:
    settings = get_settings()
    if args.command == "config":
        prefs = settings.update_preferences(
            user_id=args.user_id, timezone=args.timezone, currency=args.currency
        )
        print(f"Preferences saved to {settings.config_dir / 'settings.yaml'}")
        print(f"  user: {prefs.user_id or '-'}  timezone: {prefs.timezone or 'system'}  currency: {prefs.currency}")
        return 0

    prefs = settings.preferences
    user_id = args.user or prefs.user_id
    if not user_id:
        print("Error: no user configured. Pass --user or set user_id in settings.yaml.", file=sys.stderr)
        return 2

    await init_db()
    store = SqlEntryStore()
    tz = settings.get_timezone()
    timer = TimerService(store, user_id, preferences=prefs, tz=tz)
    entries = EntryService(store, preferences=prefs, tz=tz)
    reports = ReportService(store, entries)

    if args.command == "start":
        started = await timer.start(args.client, args.project, args.description)
        print(f"Timer started at {started.start_time.astimezone(tz):%H:%M:%S}")

    elif args.command == "stop":
        entry = await timer.stop()
        if entry is None:
            print("Timer has run for less than a minute; nothing recorded.")
        else:
            print(f"Recorded {format_duration(entry.seconds)} on {entry.date}")

    elif args.command == "cancel":
        await timer.cancel()
        print("Timer discarded.")

    elif args.command == "status":
        await timer.resync()
        if not timer.is_running:
            print(f"{timer_title(0, idle_title=prefs.app_title)}: no timer running.")
        else:
            elapsed = timer.tick()
            projects = {p.id: p.name for p in await store.list_projects()}
            print(timer_title(elapsed, projects.get(timer.active_timer.project_id)))
        others = [t for t in await store.list_active_timers() if t.user_id != user_id]
        for other in others:
            print(f"  also running: {other.user_id} since {other.start_time.astimezone(tz):%H:%M}")

    elif args.command == "add":
        entry = await entries.add_manual_entry(ManualEntryCommand(
            user_id=user_id,
            client_id=args.client,
            project_id=args.project,
            description=args.description,
            hours=args.hours,
            minutes=args.minutes,
            date=args.date or entries.today(),
        ))
        if entry is None:
            print("Less than a minute; nothing recorded.")
        else:
            print(f"Recorded {format_duration(entry.seconds)} on {entry.date} (entry {entry.id})")

    elif args.command == "week":
        scope = Scope.TEAM if args.team else Scope.SELF
        view = await entries.week_view(user_id, week_offset=args.offset, scope=scope)
        names = await reports.load_names()
        print(f"Week {view.week_number}: {view.bounds.start} - {view.bounds.end}")
        for key, group in view.groups.items():
            print(f"  {names.group(view, key)}: {format_hours(group.total_seconds)} h  "
                  f"{format_money(group.total_earnings, prefs.currency)}")
        print(f"Total: {format_hours(view.totals.total_seconds)} h  "
              f"{format_money(view.totals.total_earnings, prefs.currency)}")

    elif args.command == "delete":
        await entries.delete_entry(args.entry_id)
        print(f"Entry {args.entry_id} deleted.")

    elif args.command == "templates":
        for name in reports.list_templates():
            marker = "*" if name == prefs.report_template else " "
            print(f"{marker} {name}")

    elif args.command == "budgets":
        projects = {p.id: p.name for p in await store.list_projects()}
        for snapshot in await entries.budgets():
            name = projects.get(snapshot.project_id, snapshot.project_id)
            if snapshot.is_unlimited:
                print(f"{name}: {snapshot.hours_used:.1f} h (no budget)")
            else:
                flag = "  OVER BUDGET" if snapshot.over_budget else ""
                print(f"{name}: {snapshot.hours_used:.1f}/{snapshot.budget_hours:.1f} h "
                      f"({snapshot.progress_percent:.0f}%){flag}")

    elif args.command == "report":
        output = args.output
        if output is None and prefs.reports_directory:
            output = str(Path(prefs.reports_directory) / f"week{args.offset:+d}.txt")
        config = WeeklyReportConfiguration(
            user_id=user_id,
            week_offset=args.offset,
            scope=Scope.TEAM if args.team else Scope.SELF,
            template=args.template or prefs.report_template,
            currency=prefs.currency,
            output_path=output,
            matrix_output_path=args.matrix,
        )
        print(await reports.generate_weekly_report(config))

    return 0


def main():
    """Main entry point"""
    args = build_parser().parse_args()
    logging.basicConfig(
        level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(run(args))
    except TimeTrackingError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
