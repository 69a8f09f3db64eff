"""
Activity Logger

Every account change and every ledger mutation leaves a line in the
family's activity log, so members can see who changed what.

The activity logger:
- Is async to match the storage layer
- Is best-effort: a failed write is logged locally and never aborts
  the action that triggered it
- Skips writes when the user has no family yet (there is no log to
  write to)
"""

import logging
from typing import Optional

import structlog

from family_budget.models.activity import ActivityLogEntry
from family_budget.services.storage import ActivityLogInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))


class ActivityLogger:
    """
    Central activity logging service.

    Logs entries both to:
    1. Structured local log (for debugging)
    2. The activity log store (for family members to read)
    """

    def __init__(
        self,
        storage: Optional[ActivityLogInterface] = None,
        default_limit: int = 100,
    ):
        """
        Initialize activity logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            default_limit: How many entries recent_activity returns
                    when the caller does not say
        """
        self._storage = storage
        self._default_limit = default_limit
        self._logger = structlog.get_logger(__name__)

    async def log(self, entry: ActivityLogEntry) -> bool:
        """
        Log an activity entry.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        self._logger.info("activity", **entry.to_log_dict())

        if self._storage:
            try:
                return await self._storage.append(entry)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "activity_storage_failed",
                    error=str(e),
                    entry_id=entry.id,
                )
                return False

        return True

    async def log_action(
        self,
        user_id: Optional[str],
        family_id: Optional[str],
        action_type: str,
        description: str,
    ) -> bool:
        """
        Record one action for a user in a family.

        Returns False without writing anything when there is no family
        or no user to attribute the action to.
        """
        if not family_id or not user_id:
            return False

        try:
            entry = ActivityLogEntry(
                user_id=user_id,
                family_id=family_id,
                action_type=getattr(action_type, "value", action_type),
                description=description[:500],
            )
        except ValueError as e:
            self._logger.error("activity_entry_invalid", error=str(e))
            return False

        return await self.log(entry)

    async def recent_activity(
        self,
        family_id: str,
        search: Optional[str] = None,
        action_type: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[ActivityLogEntry]:
        """
        Latest entries for a family, newest first.

        Args:
            family_id: Family whose log to read
            search: Case-insensitive substring of the description
            action_type: Keep only this action type
            limit: Maximum number of entries to return (default_limit if None)

        Raises:
            StorageError: If the log cannot be read
        """
        if not self._storage:
            return []

        entries = await self._storage.list_by_family(family_id)

        needle = search.lower() if search else None
        action = getattr(action_type, "value", action_type)

        filtered = [
            entry for entry in entries
            if (needle is None or needle in entry.description.lower())
            and (action is None or entry.action_type == action)
        ]
        if limit is None:
            limit = self._default_limit
        return filtered[:limit]


def action_types(entries: list[ActivityLogEntry]) -> list[str]:
    """Distinct action types in first-seen order (for filter menus)."""
    return list(dict.fromkeys(entry.action_type for entry in entries))
