"""Activity logging package."""

from family_budget.activity.logger import ActivityLogger, action_types, configure_logging

__all__ = ["ActivityLogger", "action_types", "configure_logging"]
