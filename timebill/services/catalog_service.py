"""
Catalog Service - clients, projects and team members.

Plain CRUD over the store. Every change arrives as a command object that is
checked before the store is called.
"""

import logging
from typing import List, NamedTuple

from timebill.domain.commands import (
    CreateClientCommand,
    CreateProjectCommand,
    UpdateClientCommand,
    UpdateProjectCommand,
)
from timebill.domain.errors import InvalidInput
from timebill.domain.models import Client, EntryFilter, Project, UserProfile
from timebill.infra.store import EntryStore

logger = logging.getLogger(__name__)


class DeleteImpact(NamedTuple):
    """What else a delete touches, for the confirmation prompt"""
    projects: int
    entries: int


class UserHours(NamedTuple):
    user: UserProfile
    hours: float


class CatalogService:

    def __init__(self, store: EntryStore):
        self.store = store

    # Clients

    async def clients(self) -> List[Client]:
        return await self.store.list_clients()

    async def add_client(self, command: CreateClientCommand) -> Client:
        command.check()
        client = await self.store.insert_client(Client(name=command.name.strip()))
        logger.info("Added client %s", client.id)
        return client

    async def rename_client(self, command: UpdateClientCommand) -> Client:
        command.check()
        return await self.store.update_client(Client(id=command.id, name=command.name.strip()))

    async def client_delete_impact(self, client_id: str) -> DeleteImpact:
        projects = [p for p in await self.store.list_projects() if p.client_id == client_id]
        entries = await self.store.list_entries(EntryFilter(client_id=client_id))
        return DeleteImpact(len(projects), len(entries))

    async def delete_client(self, client_id: str) -> None:
        """Deletes the client's projects too; its time entries are kept"""
        await self.store.delete_client(client_id)
        logger.info("Deleted client %s", client_id)

    # Projects

    async def projects(self) -> List[Project]:
        return await self.store.list_projects()

    async def projects_for_client(self, client_id: str = "") -> List[Project]:
        """Projects of one client; all projects when no client is selected"""
        projects = await self.store.list_projects()
        if not client_id:
            return projects
        return [p for p in projects if p.client_id == client_id]

    async def add_project(self, command: CreateProjectCommand) -> Project:
        command.check()
        project = await self.store.insert_project(Project(
            client_id=command.client_id,
            name=command.name.strip(),
            budget_hours=command.budget_hours,
            hourly_rate=command.hourly_rate,
            start_date=command.start_date,
            end_date=command.end_date,
        ))
        logger.info("Added project %s for client %s", project.id, project.client_id)
        return project

    async def update_project(self, command: UpdateProjectCommand) -> Project:
        command.check()
        return await self.store.update_project(Project(
            id=command.id,
            client_id=command.client_id,
            name=command.name.strip(),
            budget_hours=command.budget_hours,
            hourly_rate=command.hourly_rate,
            start_date=command.start_date,
            end_date=command.end_date,
        ))

    async def project_delete_impact(self, project_id: str) -> DeleteImpact:
        entries = await self.store.list_entries(EntryFilter(project_id=project_id))
        return DeleteImpact(0, len(entries))

    async def delete_project(self, project_id: str) -> None:
        await self.store.delete_project(project_id)
        logger.info("Deleted project %s", project_id)

    # Team

    async def users_with_hours(self) -> List[UserHours]:
        """Every team member with the hours they logged in total"""
        users = await self.store.list_users()
        seconds = {}
        for entry in await self.store.list_entries():
            seconds[entry.user_id] = seconds.get(entry.user_id, 0) + entry.seconds
        return [UserHours(user, seconds.get(user.id, 0) / 3600) for user in users]

    async def delete_user(self, user_id: str, current_user_id: str) -> None:
        """Remove a team member's profile. Their entries stay."""
        if user_id == current_user_id:
            raise InvalidInput("You cannot delete yourself")
        await self.store.delete_user(user_id)
        logger.info("Deleted user profile %s", user_id)
