"""
Abstract Storage Interfaces

Three collaborators sit behind these interfaces: the movement record
store, the identity store (profiles and families) and the activity log.
Google Sheets and in-memory implementations exist for each.

The ledger treats the record store purely as a CRUD collection keyed
by record id and filterable by family id. Schema enforcement
(uniqueness, foreign keys) is the backend's business.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from family_budget.models.activity import ActivityLogEntry
from family_budget.models.finance import Movement
from family_budget.models.identity import Family, Profile


class RecordStoreInterface(ABC):
    """
    Abstract interface for ledger movement storage.

    All four entity types live in one relation, tagged by
    ``Movement.type``.
    """

    @abstractmethod
    async def insert(self, movement: Movement) -> Movement:
        """
        Insert a new movement.

        Args:
            movement: The movement to store; its ``id`` is ignored

        Returns:
            The stored movement, carrying the id assigned by the store

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def update(self, movement_id: str, changes: dict[str, Any]) -> bool:
        """
        Overwrite some columns of the movement with this id.

        Args:
            movement_id: Id of the row to change
            changes: Column name -> new value; other columns are kept

        Returns:
            True if a row was updated, False if no row has that id

        Raises:
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def delete(self, movement_id: str) -> bool:
        """
        Hard-delete a movement by id.

        Returns:
            True if a row was deleted, False if no row has that id

        Raises:
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def list_by_family(self, family_id: str) -> list[Movement]:
        """
        All movements belonging to a family, in storage order.

        Raises:
            StorageError: If the query fails
        """
        pass


class IdentityStoreInterface(ABC):
    """
    Abstract interface for profiles and families.

    The identity provider only hands us a user id; everything else
    about the user lives here.
    """

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[Profile]:
        pass

    @abstractmethod
    async def save_profile(self, profile: Profile) -> Profile:
        """Insert or replace a profile (keyed by ``profile.id``)."""
        pass

    @abstractmethod
    async def list_profiles_by_family(self, family_id: str) -> list[Profile]:
        pass

    @abstractmethod
    async def get_family(self, family_id: str) -> Optional[Family]:
        pass

    @abstractmethod
    async def find_family_by_code(self, code: str) -> Optional[Family]:
        pass

    @abstractmethod
    async def create_family(self, code: str) -> Family:
        """
        Create a family with the given join code.

        Raises:
            DuplicateError: If the code is already taken
        """
        pass


class ActivityLogInterface(ABC):
    """
    Abstract interface for activity log storage.

    Activity logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append(self, entry: ActivityLogEntry) -> bool:
        """
        Append an entry to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def list_by_family(self, family_id: str) -> list[ActivityLogEntry]:
        """
        All entries for a family, newest first.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
