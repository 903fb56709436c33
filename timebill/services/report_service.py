"""
Report Generation Service using Jinja2 templates.

Architecture Decision: Template Pattern
Allows users to customize reports without changing code.

Besides the text report, a week can be exported as a semicolon separated
day matrix: one row per group, one column per weekday.
"""

import csv
import datetime
import io
from pathlib import Path
from typing import Dict, List, Optional
from jinja2 import Environment, FileSystemLoader
from pydantic import BaseModel, Field

from timebill.domain.errors import InvalidInput
from timebill.domain.models import Client, Project, UserProfile
from timebill.infra.store import EntryStore
from timebill.services.aggregation_service import GroupMode, Scope, WeekView
from timebill.services.budget_service import BudgetSnapshot
from timebill.services.entry_service import EntryService
from timebill.utils import format_duration, format_hours, format_money, get_resource_path

TEMPLATE_SUFFIXES = (".txt", ".md", ".html")


class WeeklyReportConfiguration(BaseModel):
    """
    Configuration for a weekly report.
    Usually loaded from a YAML file.
    """
    user_id: str = Field(..., description="Whose hours (scope self) or who asks (scope team)")
    week_offset: int = Field(default=0, description="0 = this week, -1 = last week")
    reference_date: Optional[datetime.date] = Field(None, description="Defaults to today")
    scope: Scope = Scope.SELF
    group_by: Optional[GroupMode] = Field(None, description="Defaults to client for self, user for team")
    template: str = "weekly_report.txt"
    include_budgets: bool = True
    currency: str = "EUR"
    output_path: Optional[str] = Field(None, description="Path to save the generated report")
    matrix_output_path: Optional[str] = Field(None, description="Path to save the day matrix CSV")


class NameBook:
    """Display names for ids; unknown ids get a placeholder"""

    def __init__(self, clients: List[Client], projects: List[Project], users: List[UserProfile]):
        self.clients = {c.id: c.name for c in clients}
        self.projects = {p.id: p.name for p in projects}
        self.users = {u.id: u.display_name for u in users}

    def client(self, client_id: str) -> str:
        return self.clients.get(client_id, "Unknown")

    def project(self, project_id: Optional[str]) -> str:
        if project_id is None:
            return "No project"
        return self.projects.get(project_id, "No project")

    def user(self, user_id: str) -> str:
        return self.users.get(user_id, "Unknown")

    def group(self, view: WeekView, key: str) -> str:
        return self.user(key) if view.mode == GroupMode.USER else self.client(key)


class ReportService:
    """
    Generates weekly reports from time tracking data using Jinja2 templates.
    """

    def __init__(self, store: EntryStore, entry_service: Optional[EntryService] = None,
                 template_dir: Optional[Path] = None):
        """
        Initialize the report service.

        Args:
            store: Where entries, projects and names come from
            entry_service: Builds the week views (one on `store` by default)
            template_dir: Directory containing Jinja2 templates
        """
        if template_dir is None:
            template_dir = get_resource_path("timebill/resources/templates")

        self.store = store
        self.entry_service = entry_service or EntryService(store)
        self.template_dir = template_dir
        self.template_dir.mkdir(parents=True, exist_ok=True)

        # Setup Jinja2 environment
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True
        )

        # Add custom filters
        self.env.filters['format_duration'] = format_duration
        self.env.filters['format_hours'] = format_hours
        self.env.filters['format_money'] = format_money

    async def load_names(self) -> NameBook:
        return NameBook(
            await self.store.list_clients(),
            await self.store.list_projects(),
            await self.store.list_users(),
        )

    async def generate_weekly_report(self, config: WeeklyReportConfiguration) -> str:
        """
        Render the configured week through its template.

        Saves the report (and the day matrix) when the configuration names
        output paths.

        Returns:
            The generated report as a string
        """
        if config.template not in self.list_templates():
            raise InvalidInput(f"Unknown report template: {config.template}")

        view = await self.entry_service.week_view(
            config.user_id,
            week_offset=config.week_offset,
            scope=config.scope,
            mode=config.group_by,
            reference_date=config.reference_date,
        )
        budgets = await self.entry_service.budgets() if config.include_budgets else []
        names = await self.load_names()

        report_content = self.render_week(view, names, budgets, config.template, config.currency)

        if config.output_path:
            self._write(Path(config.output_path), report_content)
        if config.matrix_output_path:
            self._write(Path(config.matrix_output_path), self.week_matrix_csv(view, names))

        return report_content

    def render_week(self, view: WeekView, names: NameBook, budgets: List[BudgetSnapshot],
                    template_name: str = "weekly_report.txt", currency: str = "EUR") -> str:
        groups = []
        for key, group in view.groups.items():
            groups.append({
                'name': names.group(view, key),
                'total_seconds': group.total_seconds,
                'total_earnings': group.total_earnings,
                'entries': [
                    {
                        'date': entry.date,
                        'client': names.client(entry.client_id),
                        'project': names.project(entry.project_id),
                        'user': names.user(entry.user_id),
                        'description': entry.description,
                        'seconds': entry.seconds,
                    }
                    for entry in group.entries
                ],
            })

        budget_rows = [
            {
                'project': names.project(b.project_id),
                'snapshot': b,
            }
            for b in budgets
        ]

        context = {
            'week_number': view.week_number,
            'start_date': view.bounds.start,
            'end_date': view.bounds.end,
            'team': view.scope == Scope.TEAM,
            'groups': groups,
            'total_seconds': view.totals.total_seconds,
            'total_earnings': view.totals.total_earnings,
            'budgets': budget_rows,
            'currency': currency,
            'generated_at': datetime.datetime.now(),
        }

        template = self.env.get_template(template_name)
        return template.render(**context)

    def week_matrix_csv(self, view: WeekView, names: NameBook) -> str:
        """
        Day matrix of one week: a row per group, a column per weekday, and a
        total row at the bottom. Hours use a decimal comma.
        """
        output = io.StringIO()
        writer = csv.writer(output, delimiter=';', lineterminator='\n') # Semicolon for Excel compatibility in EU

        days = view.bounds.days
        writer.writerow(["Name", "Total hours"] + [d.strftime("%a %d.%m.") for d in days])

        day_totals: Dict[datetime.date, int] = {d: 0 for d in days}
        for key, group in view.groups.items():
            per_day: Dict[datetime.date, int] = {}
            for entry in group.entries:
                per_day[entry.date] = per_day.get(entry.date, 0) + entry.seconds
                day_totals[entry.date] += entry.seconds

            row = [names.group(view, key), format_hours(group.total_seconds)]
            row.extend(format_hours(per_day[d]) if d in per_day else "" for d in days)
            writer.writerow(row)

        total_row = ["Total", format_hours(view.totals.total_seconds)]
        total_row.extend(format_hours(day_totals[d]) if day_totals[d] else "" for d in days)
        writer.writerow(total_row)

        return output.getvalue()

    def list_templates(self) -> List[str]:
        """Report templates available for `WeeklyReportConfiguration.template`"""
        return sorted(f.name for f in self.template_dir.iterdir() if f.suffix in TEMPLATE_SUFFIXES)

    @staticmethod
    def _write(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
