"""
Data Seeder for TimeBill.
Populates the database with realistic data for testing and demo purposes.
"""

import asyncio
import sys
import random
from datetime import date, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from timebill.domain.models import Client, Project, TimeEntry, UserProfile
from timebill.infra.config import get_settings
from timebill.infra.db import init_db
from timebill.infra.repository import SqlEntryStore


async def reset_database():
    """Delete the existing database file to ensure a fresh seed"""
    db_path = get_settings().data_dir / 'timebill.db'
    if db_path.exists():
        print(f"Removing existing database at: {db_path}")
        try:
            db_path.unlink()
            print("Database removed.")
        except PermissionError:
            print("ERROR: Could not remove database. It might be in use.")
            sys.exit(1)
    else:
        print(f"No existing database found at: {db_path}")


async def seed():
    await reset_database()
    print("Starting data seeding...")

    # Initialize DB (creates tables if needed)
    await init_db()
    store = SqlEntryStore()

    # 1. Team
    users = [
        UserProfile(id="anna", display_name="Anna", email="anna@example.com"),
        UserProfile(id="bram", display_name="Bram", email="bram@example.com"),
    ]
    for user in users:
        await store.upsert_user(user)
        print(f"Created user: {user.display_name}")

    # 2. Clients and their projects: (client, [(project, budget hours, rate)])
    catalog = [
        ("Bakkerij de Vries", [("Webshop", 40, 85.0), ("Support", 0, 65.0)]),
        ("Gemeente Utrecht", [("Data platform", 120, 95.0)]),
        ("Intern", [("Administratie", 0, 0.0)]),
    ]
    projects = []
    for client_name, project_specs in catalog:
        client = await store.insert_client(Client(name=client_name))
        print(f"Creating client: {client_name}")
        for name, budget, rate in project_specs:
            projects.append(await store.insert_project(Project(
                client_id=client.id,
                name=name,
                budget_hours=budget,
                hourly_rate=rate,
            )))

    # 3. Entries for the last four weeks, weekdays only
    # Each user books two or three blocks of 30 minutes to 4 hours per day
    today = date.today()
    current = today - timedelta(days=28)
    while current <= today:
        if current.weekday() >= 5:  # Sat=5, Sun=6
            current += timedelta(days=1)
            continue

        for user in users:
            for _ in range(random.randint(2, 3)):
                project = random.choice(projects)
                await store.insert_entry(TimeEntry(
                    user_id=user.id,
                    client_id=project.client_id,
                    project_id=project.id,
                    description=random.choice(["", "Meeting", "Development", "Review"]),
                    seconds=random.randint(1, 8) * 1800,
                    date=current,
                ))

        print(f"Generated entries for {current}")
        current += timedelta(days=1)

    print("Seeding complete.")

if __name__ == "__main__":
    asyncio.run(seed())
