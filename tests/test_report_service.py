"""
Tests for the weekly text report and the day matrix export.
"""

import datetime
import pytest
import pytest_asyncio

from timebill.domain.errors import InvalidInput
from timebill.domain.models import Client, Project, TimeEntry, UserProfile
from timebill.services.aggregation_service import Scope
from timebill.services.entry_service import EntryService
from timebill.services.report_service import ReportService, WeeklyReportConfiguration

UTC = datetime.timezone.utc


@pytest_asyncio.fixture
async def seeded(store):
    """Two clients, one budgeted project each, and a week of hours"""
    await store.upsert_user(UserProfile(id="anna", display_name="Anna"))
    await store.upsert_user(UserProfile(id="bram", display_name="Bram"))
    bakery = await store.insert_client(Client(name="Bakery"))
    city = await store.insert_client(Client(name="City"))
    webshop = await store.insert_project(Project(client_id=bakery.id, name="Webshop", hourly_rate=100, budget_hours=1))
    data = await store.insert_project(Project(client_id=city.id, name="Data", hourly_rate=50))

    for user, client, project, seconds, day in [
        ("anna", bakery, webshop, 3600, 5),
        ("anna", city, data, 1800, 7),
        ("bram", bakery, webshop, 1800, 7),
    ]:
        await store.insert_entry(TimeEntry(
            user_id=user, client_id=client.id, project_id=project.id, seconds=seconds,
            date=datetime.date(2026, 1, day), description="Build" if user == "anna" else "",
        ))
    return store


@pytest.fixture
def make_service(clock):
    def _make(store):
        return ReportService(store, EntryService(store, clock=clock, tz=UTC))
    return _make


@pytest.mark.asyncio
async def test_my_week_report(seeded, make_service):
    report = await make_service(seeded).generate_weekly_report(
        WeeklyReportConfiguration(user_id="anna", include_budgets=False)
    )

    assert "My hours - week 2 (05.01.2026 - 11.01.2026)" in report
    assert "Bakery: 1,00 h  € 100,00" in report
    assert "City: 0,50 h  € 25,00" in report
    assert "Total: 1,50 h  € 125,00" in report
    assert "01:00:00" in report
    assert "Webshop  - Build" in report
    assert "Project budgets" not in report


@pytest.mark.asyncio
async def test_team_report_with_budgets(seeded, make_service):
    report = await make_service(seeded).generate_weekly_report(
        WeeklyReportConfiguration(user_id="anna", scope=Scope.TEAM)
    )

    assert report.startswith("Team hours - week 2")
    assert "Anna: 1,50 h  € 125,00" in report
    assert "Bram: 0,50 h  € 50,00" in report
    assert "Bakery / Webshop" in report
    assert "Webshop: 1.5 / 1.0 h (100%) OVER BUDGET by 0.5 h" in report
    assert "Data: 0.5 h used (no budget)" in report


@pytest.mark.asyncio
async def test_empty_week(store, make_service):
    report = await make_service(store).generate_weekly_report(
        WeeklyReportConfiguration(user_id="anna", week_offset=-3)
    )
    assert "No hours recorded this week." in report
    assert "Total: 0,00 h" in report


@pytest.mark.asyncio
async def test_outputs_written(seeded, make_service, tmp_path):
    config = WeeklyReportConfiguration(
        user_id="anna",
        output_path=str(tmp_path / "out" / "week.txt"),
        matrix_output_path=str(tmp_path / "out" / "week.csv"),
    )
    report = await make_service(seeded).generate_weekly_report(config)

    assert (tmp_path / "out" / "week.txt").read_text(encoding="utf-8") == report
    lines = (tmp_path / "out" / "week.csv").read_text(encoding="utf-8").splitlines()
    assert lines[0] == "Name;Total hours;Mon 05.01.;Tue 06.01.;Wed 07.01.;Thu 08.01.;Fri 09.01.;Sat 10.01.;Sun 11.01."
    assert lines[1] == "Bakery;1,00;1,00;;;;;;"
    assert lines[2] == "City;0,50;;;0,50;;;;"
    assert lines[3] == "Total;1,50;1,00;;0,50;;;;"


@pytest.mark.asyncio
async def test_custom_template_directory(seeded, clock, tmp_path):
    (tmp_path / "short.txt").write_text("{{ week_number }}:{{ total_seconds }}", encoding="utf-8")
    service = ReportService(seeded, EntryService(seeded, clock=clock, tz=UTC), template_dir=tmp_path)

    report = await service.generate_weekly_report(
        WeeklyReportConfiguration(user_id="anna", template="short.txt")
    )
    assert report == "2:5400"
    assert "short.txt" in service.list_templates()


def test_list_templates():
    assert ReportService(None).list_templates() == ["weekly_report.txt"]


@pytest.mark.asyncio
async def test_unknown_template_rejected(seeded, clock):
    service = ReportService(seeded, EntryService(seeded, clock=clock, tz=UTC))

    with pytest.raises(InvalidInput):
        await service.generate_weekly_report(
            WeeklyReportConfiguration(user_id="anna", template="missing.txt")
        )
