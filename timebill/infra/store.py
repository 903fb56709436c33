"""
The Entry Store contract.

Architecture Decision: Why an abstract store?
The engine only consumes persistence. Whatever sits behind this interface
(the bundled SQL store, a hosted row store, a fake in tests) owns durability
and transport. Every method is async and may raise StoreError; callers never
assume success.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from timebill.domain.models import (
    ActiveTimer,
    Client,
    EntryFilter,
    Project,
    TimeEntry,
    UserProfile,
)


class EntryStore(ABC):
    """Durable time entries, active timers and the client/project catalog."""

    # Time entries

    @abstractmethod
    async def list_entries(self, entry_filter: Optional[EntryFilter] = None) -> List[TimeEntry]:
        ...

    @abstractmethod
    async def insert_entry(self, entry: TimeEntry) -> str:
        """Persist a committed entry and return its id"""

    @abstractmethod
    async def delete_entry(self, entry_id: str) -> None:
        ...

    # Active timers, keyed by user id

    @abstractmethod
    async def get_active_timer(self, user_id: str) -> Optional[ActiveTimer]:
        ...

    @abstractmethod
    async def list_active_timers(self) -> List[ActiveTimer]:
        ...

    @abstractmethod
    async def upsert_active_timer(self, timer: ActiveTimer) -> None:
        """Create or replace the user's timer (last writer wins)"""

    @abstractmethod
    async def delete_active_timer(self, user_id: str) -> None:
        ...

    # Catalog

    @abstractmethod
    async def list_clients(self) -> List[Client]:
        ...

    @abstractmethod
    async def insert_client(self, client: Client) -> Client:
        ...

    @abstractmethod
    async def update_client(self, client: Client) -> Client:
        ...

    @abstractmethod
    async def delete_client(self, client_id: str) -> None:
        """Delete a client together with its projects"""

    @abstractmethod
    async def list_projects(self) -> List[Project]:
        ...

    @abstractmethod
    async def insert_project(self, project: Project) -> Project:
        ...

    @abstractmethod
    async def update_project(self, project: Project) -> Project:
        ...

    @abstractmethod
    async def delete_project(self, project_id: str) -> None:
        ...

    # Team members

    @abstractmethod
    async def list_users(self) -> List[UserProfile]:
        ...

    @abstractmethod
    async def upsert_user(self, user: UserProfile) -> UserProfile:
        ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        ...
