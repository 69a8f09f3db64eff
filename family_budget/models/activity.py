"""
Activity Log Models

Family members can see who did what: sign-ups, profile changes,
family moves and every ledger mutation.

DESIGN DECISION: The activity log is append-only and flat.
It is not a versioning system; entries are never updated or deleted.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class ActivityAction(str, Enum):
    """Types of actions written to the activity log."""
    # Account and family
    SIGNUP = "signup"
    LOGIN = "login"
    LOGOUT = "logout"
    UPDATE_PROFILE = "update_profile"
    JOIN_FAMILY = "join_family"
    CREATE_FAMILY = "create_family"

    # Ledger
    ADD_INCOME = "add_income"
    UPDATE_INCOME = "update_income"
    DELETE_INCOME = "delete_income"
    ADD_EXPENSE = "add_expense"
    UPDATE_EXPENSE = "update_expense"
    DELETE_EXPENSE = "delete_expense"
    ADD_SAVINGS_GOAL = "add_savings_goal"
    UPDATE_SAVINGS_GOAL = "update_savings_goal"
    DELETE_SAVINGS_GOAL = "delete_savings_goal"
    ADD_FOOD_ALLOWANCE = "add_food_allowance"
    UPDATE_FOOD_ALLOWANCE = "update_food_allowance"
    DELETE_FOOD_ALLOWANCE = "delete_food_allowance"


class ActivityLogEntry(BaseModel):
    """
    A single activity log entry.

    ``action_type`` is a plain string on the wire so entries written by
    older clients with unknown action names still load.
    """

    id: str = Field(
        default_factory=lambda: uuid4().hex,
        description="Unique entry identifier"
    )
    user_id: str
    family_id: str
    action_type: str = Field(
        ...,
        min_length=1,
        description="Usually an ActivityAction value"
    )
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the action happened (UTC)"
    )

    def to_log_dict(self) -> dict[str, Any]:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "entry_id": self.id,
            "created_at": self.created_at.isoformat(),
            "user_id": self.user_id,
            "family_id": self.family_id,
            "action_type": self.action_type,
            "description": self.description,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [id, created_at, user_id, family_id, action_type, description]
        """
        return [
            self.id,
            self.created_at.isoformat(),
            self.user_id,
            self.family_id,
            self.action_type,
            self.description,
        ]


class ActivityEntryBuilder:
    """
    Helper class to build activity entries with common wording.

    Usage:
        entry = ActivityEntryBuilder.login(user_id, family_id)
        entry = ActivityEntryBuilder.family_joined(user_id, family_id, "AB12CD")
    """

    @staticmethod
    def signup(user_id: str, family_id: str, name: str) -> ActivityLogEntry:
        return ActivityLogEntry(
            user_id=user_id,
            family_id=family_id,
            action_type=ActivityAction.SIGNUP.value,
            description=f"Conta criada para {name}",
        )

    @staticmethod
    def login(user_id: str, family_id: str) -> ActivityLogEntry:
        return ActivityLogEntry(
            user_id=user_id,
            family_id=family_id,
            action_type=ActivityAction.LOGIN.value,
            description="Login realizado",
        )

    @staticmethod
    def logout(user_id: str, family_id: str) -> ActivityLogEntry:
        return ActivityLogEntry(
            user_id=user_id,
            family_id=family_id,
            action_type=ActivityAction.LOGOUT.value,
            description="Logout realizado",
        )

    @staticmethod
    def profile_updated(
        user_id: str,
        family_id: str,
        old_name: str,
        new_name: str,
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            user_id=user_id,
            family_id=family_id,
            action_type=ActivityAction.UPDATE_PROFILE.value,
            description=f"Nome alterado de {old_name} para {new_name}",
        )

    @staticmethod
    def family_joined(
        user_id: str,
        family_id: str,
        family_code: str,
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            user_id=user_id,
            family_id=family_id,
            action_type=ActivityAction.JOIN_FAMILY.value,
            description=f"Ingressou na família {family_code}",
        )

    @staticmethod
    def family_created(
        user_id: str,
        family_id: str,
        family_code: str,
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            user_id=user_id,
            family_id=family_id,
            action_type=ActivityAction.CREATE_FAMILY.value,
            description=f"Família criada com código {family_code}",
        )
