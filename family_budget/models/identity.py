"""
Identity Models

A user belongs to exactly one family at a time through their profile.
Everything in the ledger is partitioned by family id.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Family(BaseModel):
    """A sharing scope, joined by typing its code."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    code: str = Field(
        ...,
        min_length=1,
        max_length=32,
        description="Join code shown to family members"
    )
    created_at: datetime = Field(default_factory=_utcnow)


class Profile(BaseModel):
    """Display data for a user. ``id`` is the identity provider's user id."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    family_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class IdentitySnapshot(BaseModel):
    """What the ledger is allowed to see of the current session."""

    user_id: Optional[str] = None
    profile: Optional[Profile] = None
    family: Optional[Family] = None
    loading: bool = False

    @property
    def family_id(self) -> Optional[str]:
        return self.family.id if self.family else None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None and self.profile is not None
