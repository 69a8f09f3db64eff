"""
In-Memory Storage Implementation

Used when no remote store is configured, and as the backend for tests.
Ids are locally generated unique tokens (uuid4 hex).

Records are copied on the way in and on the way out so callers can
never mutate stored state by accident.
"""

from typing import Any, Optional
from uuid import uuid4

from family_budget.models.activity import ActivityLogEntry
from family_budget.models.finance import Movement
from family_budget.models.identity import Family, Profile
from family_budget.services.storage.interface import (
    ActivityLogInterface,
    DuplicateError,
    IdentityStoreInterface,
    RecordStoreInterface,
)


def generate_id() -> str:
    return uuid4().hex


class InMemoryRecordStore(RecordStoreInterface):
    """Movements kept in an insertion-ordered dict keyed by id."""

    def __init__(self, movements: Optional[list[Movement]] = None):
        self._rows: dict[str, Movement] = {}
        for movement in movements or []:
            movement_id = movement.id or generate_id()
            self._rows[movement_id] = movement.model_copy(update={"id": movement_id})

    async def insert(self, movement: Movement) -> Movement:
        stored = movement.model_copy(update={"id": generate_id()})
        self._rows[stored.id] = stored
        return stored.model_copy()

    async def update(self, movement_id: str, changes: dict[str, Any]) -> bool:
        current = self._rows.get(movement_id)
        if current is None:
            return False
        merged = {**current.model_dump(), **changes, "id": movement_id}
        self._rows[movement_id] = Movement.model_validate(merged)
        return True

    async def delete(self, movement_id: str) -> bool:
        return self._rows.pop(movement_id, None) is not None

    async def list_by_family(self, family_id: str) -> list[Movement]:
        return [
            row.model_copy()
            for row in self._rows.values()
            if row.family_id == family_id
        ]

    def __len__(self) -> int:
        return len(self._rows)


class InMemoryIdentityStore(IdentityStoreInterface):
    """Profiles and families kept in dicts."""

    def __init__(self):
        self._profiles: dict[str, Profile] = {}
        self._families: dict[str, Family] = {}

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        profile = self._profiles.get(user_id)
        return profile.model_copy() if profile else None

    async def save_profile(self, profile: Profile) -> Profile:
        self._profiles[profile.id] = profile.model_copy()
        return profile

    async def list_profiles_by_family(self, family_id: str) -> list[Profile]:
        return [
            profile.model_copy()
            for profile in self._profiles.values()
            if profile.family_id == family_id
        ]

    async def get_family(self, family_id: str) -> Optional[Family]:
        family = self._families.get(family_id)
        return family.model_copy() if family else None

    async def find_family_by_code(self, code: str) -> Optional[Family]:
        for family in self._families.values():
            if family.code == code:
                return family.model_copy()
        return None

    async def create_family(self, code: str) -> Family:
        if await self.find_family_by_code(code):
            raise DuplicateError(f"Family code already in use: {code}")
        family = Family(id=generate_id(), code=code)
        self._families[family.id] = family
        return family.model_copy()


class InMemoryActivityLog(ActivityLogInterface):
    """Append-only list of activity entries."""

    def __init__(self):
        self._entries: list[ActivityLogEntry] = []

    async def append(self, entry: ActivityLogEntry) -> bool:
        self._entries.append(entry.model_copy())
        return True

    async def list_by_family(self, family_id: str) -> list[ActivityLogEntry]:
        # Walk backwards so entries sharing a timestamp stay newest first
        entries = [e for e in reversed(self._entries) if e.family_id == family_id]
        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries

    @property
    def entries(self) -> list[ActivityLogEntry]:
        return list(self._entries)
