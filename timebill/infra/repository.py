"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. Makes it easy to:
- Switch database implementations
- Mock data for testing
- Change data sources (local DB to a hosted row store)

The per-table repositories convert between domain models (Pydantic) and ORM
models (SQLAlchemy). SqlEntryStore puts them behind the EntryStore contract
and turns every database failure into a StoreError.
"""

from contextlib import contextmanager
from datetime import timezone
from typing import List, Optional
import logging

from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from timebill.domain.errors import StoreError
from timebill.domain.models import ActiveTimer, Client, EntryFilter, Project, TimeEntry, UserProfile
from timebill.infra.db import (
    ActiveTimerModel,
    ClientModel,
    ProjectModel,
    TimeEntryModel,
    UserProfileModel,
    get_engine,
    new_id,
)
from timebill.infra.store import EntryStore

logger = logging.getLogger(__name__)


def _naive_utc(value):
    """SQLite keeps no offsets, so instants are written as naive UTC"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class _Repository:
    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()


class ClientRepository(_Repository):
    """
    Handles Client-related database operations.
    """

    async def get_all(self) -> List[Client]:
        session = await self._get_session()
        async with session:
            result = await session.execute(select(ClientModel).order_by(ClientModel.name))
            return [Client.model_validate(m) for m in result.scalars().all()]

    async def create(self, client: Client) -> Client:
        session = await self._get_session()
        async with session:
            model = ClientModel(
                id=client.id or new_id(),
                name=client.name,
                created_at=_naive_utc(client.created_at)
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return Client.model_validate(model)

    async def update(self, client: Client) -> Client:
        session = await self._get_session()
        async with session:
            await session.execute(
                update(ClientModel)
                .where(ClientModel.id == client.id)
                .values(name=client.name)
            )
            await session.commit()
            return client

    async def delete(self, client_id: str) -> None:
        """Delete a client and every project that belongs to it"""
        session = await self._get_session()
        async with session:
            await session.execute(delete(ProjectModel).where(ProjectModel.client_id == client_id))
            await session.execute(delete(ClientModel).where(ClientModel.id == client_id))
            await session.commit()


class ProjectRepository(_Repository):
    """
    Handles Project-related database operations.
    """

    async def get_all(self) -> List[Project]:
        session = await self._get_session()
        async with session:
            result = await session.execute(select(ProjectModel).order_by(ProjectModel.name))
            return [Project.model_validate(m) for m in result.scalars().all()]

    async def create(self, project: Project) -> Project:
        session = await self._get_session()
        async with session:
            model = ProjectModel(
                id=project.id or new_id(),
                client_id=project.client_id,
                name=project.name,
                budget_hours=project.budget_hours,
                hourly_rate=project.hourly_rate,
                start_date=project.start_date,
                end_date=project.end_date,
                created_at=_naive_utc(project.created_at)
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            return Project.model_validate(model)

    async def update(self, project: Project) -> Project:
        session = await self._get_session()
        async with session:
            await session.execute(
                update(ProjectModel)
                .where(ProjectModel.id == project.id)
                .values(
                    client_id=project.client_id,
                    name=project.name,
                    budget_hours=project.budget_hours,
                    hourly_rate=project.hourly_rate,
                    start_date=project.start_date,
                    end_date=project.end_date
                )
            )
            await session.commit()
            return project

    async def delete(self, project_id: str) -> None:
        session = await self._get_session()
        async with session:
            await session.execute(delete(ProjectModel).where(ProjectModel.id == project_id))
            await session.commit()


class TimeEntryRepository(_Repository):
    """
    Handles all TimeEntry-related database operations.
    """

    async def get_all(self, entry_filter: Optional[EntryFilter] = None) -> List[TimeEntry]:
        """Get time entries, oldest first, optionally narrowed by a filter"""
        session = await self._get_session()
        async with session:
            query = select(TimeEntryModel)
            if entry_filter is not None:
                if entry_filter.user_id:
                    query = query.where(TimeEntryModel.user_id == entry_filter.user_id)
                if entry_filter.client_id:
                    query = query.where(TimeEntryModel.client_id == entry_filter.client_id)
                if entry_filter.project_id:
                    query = query.where(TimeEntryModel.project_id == entry_filter.project_id)
                if entry_filter.start_date:
                    query = query.where(TimeEntryModel.date >= entry_filter.start_date)
                if entry_filter.end_date:
                    query = query.where(TimeEntryModel.date <= entry_filter.end_date)

            result = await session.execute(
                query.order_by(TimeEntryModel.date, TimeEntryModel.created_at)
            )
            return [TimeEntry.model_validate(em) for em in result.scalars().all()]

    async def create(self, entry: TimeEntry) -> TimeEntry:
        """Create a new time entry"""
        session = await self._get_session()
        async with session:
            entry_model = TimeEntryModel(
                id=entry.id or new_id(),
                user_id=entry.user_id,
                client_id=entry.client_id,
                project_id=entry.project_id,
                description=entry.description,
                seconds=entry.seconds,
                date=entry.date,
                created_at=_naive_utc(entry.created_at)
            )
            session.add(entry_model)
            await session.commit()
            await session.refresh(entry_model)
            return TimeEntry.model_validate(entry_model)

    async def delete(self, entry_id: str) -> None:
        """Delete a time entry by ID"""
        session = await self._get_session()
        async with session:
            await session.execute(
                delete(TimeEntryModel).where(TimeEntryModel.id == entry_id)
            )
            await session.commit()


class ActiveTimerRepository(_Repository):
    """
    Handles the one-row-per-user active timer table.
    """

    async def get(self, user_id: str) -> Optional[ActiveTimer]:
        session = await self._get_session()
        async with session:
            model = await session.get(ActiveTimerModel, user_id)
            return ActiveTimer.model_validate(model) if model else None

    async def get_all(self) -> List[ActiveTimer]:
        session = await self._get_session()
        async with session:
            result = await session.execute(select(ActiveTimerModel))
            return [ActiveTimer.model_validate(m) for m in result.scalars().all()]

    async def upsert(self, timer: ActiveTimer) -> None:
        """Insert or overwrite; the user id is the primary key"""
        session = await self._get_session()
        async with session:
            await session.merge(ActiveTimerModel(
                user_id=timer.user_id,
                client_id=timer.client_id,
                project_id=timer.project_id,
                description=timer.description,
                start_time=_naive_utc(timer.start_time)
            ))
            await session.commit()

    async def delete(self, user_id: str) -> None:
        session = await self._get_session()
        async with session:
            await session.execute(
                delete(ActiveTimerModel).where(ActiveTimerModel.user_id == user_id)
            )
            await session.commit()


class UserRepository(_Repository):
    """
    Handles team member profiles. Accounts themselves live with the
    identity provider; only the profile row is ours.
    """

    async def get_all(self) -> List[UserProfile]:
        session = await self._get_session()
        async with session:
            result = await session.execute(
                select(UserProfileModel).order_by(UserProfileModel.display_name)
            )
            return [UserProfile.model_validate(m) for m in result.scalars().all()]

    async def upsert(self, user: UserProfile) -> UserProfile:
        session = await self._get_session()
        async with session:
            await session.merge(UserProfileModel(
                id=user.id,
                display_name=user.display_name,
                email=user.email
            ))
            await session.commit()
            return user

    async def delete(self, user_id: str) -> None:
        """Delete the profile only; the user's entries stay as they are"""
        session = await self._get_session()
        async with session:
            await session.execute(delete(UserProfileModel).where(UserProfileModel.id == user_id))
            await session.commit()


@contextmanager
def _store_errors(operation: str):
    try:
        yield
    except SQLAlchemyError as e:
        logger.warning("Store operation %s failed: %s", operation, e)
        raise StoreError(f"{operation} failed: {e}") from e


class SqlEntryStore(EntryStore):
    """
    EntryStore backed by the SQLAlchemy repositories.

    Pass a session to pin every repository to it (tests); otherwise each call
    opens its own session from the global engine.
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        self.clients = ClientRepository(session)
        self.projects = ProjectRepository(session)
        self.entries = TimeEntryRepository(session)
        self.timers = ActiveTimerRepository(session)
        self.users = UserRepository(session)

    async def list_entries(self, entry_filter: Optional[EntryFilter] = None) -> List[TimeEntry]:
        with _store_errors("list_entries"):
            return await self.entries.get_all(entry_filter)

    async def insert_entry(self, entry: TimeEntry) -> str:
        with _store_errors("insert_entry"):
            created = await self.entries.create(entry)
            return created.id

    async def delete_entry(self, entry_id: str) -> None:
        with _store_errors("delete_entry"):
            await self.entries.delete(entry_id)

    async def get_active_timer(self, user_id: str) -> Optional[ActiveTimer]:
        with _store_errors("get_active_timer"):
            return await self.timers.get(user_id)

    async def list_active_timers(self) -> List[ActiveTimer]:
        with _store_errors("list_active_timers"):
            return await self.timers.get_all()

    async def upsert_active_timer(self, timer: ActiveTimer) -> None:
        with _store_errors("upsert_active_timer"):
            await self.timers.upsert(timer)

    async def delete_active_timer(self, user_id: str) -> None:
        with _store_errors("delete_active_timer"):
            await self.timers.delete(user_id)

    async def list_clients(self) -> List[Client]:
        with _store_errors("list_clients"):
            return await self.clients.get_all()

    async def insert_client(self, client: Client) -> Client:
        with _store_errors("insert_client"):
            return await self.clients.create(client)

    async def update_client(self, client: Client) -> Client:
        with _store_errors("update_client"):
            return await self.clients.update(client)

    async def delete_client(self, client_id: str) -> None:
        with _store_errors("delete_client"):
            await self.clients.delete(client_id)

    async def list_projects(self) -> List[Project]:
        with _store_errors("list_projects"):
            return await self.projects.get_all()

    async def insert_project(self, project: Project) -> Project:
        with _store_errors("insert_project"):
            return await self.projects.create(project)

    async def update_project(self, project: Project) -> Project:
        with _store_errors("update_project"):
            return await self.projects.update(project)

    async def delete_project(self, project_id: str) -> None:
        with _store_errors("delete_project"):
            await self.projects.delete(project_id)

    async def list_users(self) -> List[UserProfile]:
        with _store_errors("list_users"):
            return await self.users.get_all()

    async def upsert_user(self, user: UserProfile) -> UserProfile:
        with _store_errors("upsert_user"):
            return await self.users.upsert(user)

    async def delete_user(self, user_id: str) -> None:
        with _store_errors("delete_user"):
            await self.users.delete(user_id)
