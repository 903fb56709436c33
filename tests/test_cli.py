"""
Tests for the command line front end in main.py.
"""

import pytest
import pytest_asyncio

from main import build_parser, run
from timebill.domain.errors import InvalidInput
from timebill.domain.models import Client
from timebill.infra.db import DatabaseEngine, init_db
from timebill.infra.repository import SqlEntryStore


@pytest_asyncio.fixture
async def cli(tmp_path, monkeypatch):
    """Runs main.py commands against settings and a database under tmp_path"""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TIMEBILL_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.setenv("TIMEBILL_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setattr("timebill.infra.config._settings", None)
    monkeypatch.setattr(DatabaseEngine, "_instance", None)

    async def _run(*argv):
        return await run(build_parser().parse_args(list(argv)))

    yield _run

    if DatabaseEngine._instance is not None:
        await DatabaseEngine._instance.engine.dispose()


@pytest_asyncio.fixture
async def bakery(cli):
    await init_db()
    return await SqlEntryStore().insert_client(Client(name="Bakery"))


@pytest.mark.asyncio
async def test_config_sets_default_user(cli, bakery, tmp_path, capsys):
    assert await cli("add", bakery.id, "--hours", "1") == 2

    assert await cli("config", "--set-user", "anna", "--timezone", "Europe/Amsterdam") == 0
    assert (tmp_path / "cfg" / "settings.yaml").exists()

    assert await cli("add", bakery.id, "--hours", "1") == 0
    entries = await SqlEntryStore().list_entries()
    assert [e.user_id for e in entries] == ["anna"]
    assert "Preferences saved" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_config_rejects_unknown_timezone(cli):
    with pytest.raises(InvalidInput):
        await cli("config", "--timezone", "Mars/Olympus")


@pytest.mark.asyncio
async def test_negative_minutes_are_invalid_input(cli, bakery):
    with pytest.raises(InvalidInput):
        await cli("--user", "anna", "add", bakery.id, "--minutes", "-5")
    assert await SqlEntryStore().list_entries() == []


@pytest.mark.asyncio
async def test_week_shows_client_names(cli, bakery, capsys):
    await cli("--user", "anna", "add", bakery.id, "--hours", "2")
    capsys.readouterr()

    await cli("--user", "anna", "week")
    out = capsys.readouterr().out
    assert "  Bakery: 2,00 h" in out
    assert bakery.id not in out


@pytest.mark.asyncio
async def test_delete_removes_entry(cli, bakery, capsys):
    await cli("--user", "anna", "add", bakery.id, "--minutes", "30")
    [entry] = await SqlEntryStore().list_entries()

    assert await cli("--user", "anna", "delete", entry.id) == 0
    assert await SqlEntryStore().list_entries() == []
    assert f"Entry {entry.id} deleted." in capsys.readouterr().out


@pytest.mark.asyncio
async def test_templates_and_unknown_template(cli, capsys):
    await cli("--user", "anna", "templates")
    assert "* weekly_report.txt" in capsys.readouterr().out

    with pytest.raises(InvalidInput):
        await cli("--user", "anna", "report", "--template", "missing.txt")
