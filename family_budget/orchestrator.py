"""
Composition root for Family Budget

Wires storage, identity, activity logging, notifications and the ledger
store together. Front ends call create_app_components() once and talk
to the returned objects.

DESIGN DECISION: The ledger store receives the identity context through
its constructor and subscribes to family changes. Nothing here is a
global; two component sets can live side by side (tests do this).
"""

from datetime import date
from typing import NamedTuple, Optional

import structlog

from family_budget.activity.logger import ActivityLogger, configure_logging
from family_budget.config import get_settings
from family_budget.identity.context import IdentityContext
from family_budget.ledger.cache import LocalLedgerCache
from family_budget.ledger.store import LedgerStore
from family_budget.services.notifications import LoggingNotifier, NotifierInterface
from family_budget.services.storage import (
    ActivityLogInterface,
    GoogleSheetsActivityLog,
    GoogleSheetsClient,
    GoogleSheetsIdentityStore,
    GoogleSheetsRecordStore,
    IdentityStoreInterface,
    InMemoryActivityLog,
    InMemoryIdentityStore,
    InMemoryRecordStore,
    RecordStoreInterface,
)


logger = structlog.get_logger(__name__)


class AppComponents(NamedTuple):
    identity: IdentityContext
    ledger: LedgerStore
    activity_logger: ActivityLogger
    notifier: NotifierInterface
    sheets_client: Optional[GoogleSheetsClient]


def _in_memory_backends() -> tuple[RecordStoreInterface, IdentityStoreInterface, ActivityLogInterface]:
    return InMemoryRecordStore(), InMemoryIdentityStore(), InMemoryActivityLog()


def create_app_components(
    use_remote_storage: Optional[bool] = None,
    notifier: Optional[NotifierInterface] = None,
    today: Optional[date] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_remote_storage: Use Google Sheets. Defaults to the
                    ``USE_REMOTE_STORAGE`` setting. When the sheets
                    backend is not configured we fall back to memory.
        notifier: Where user-facing messages go (structured log if None)
        today: Fixes the initial cursor and seeded year

    Returns:
        AppComponents(identity, ledger, activity_logger, notifier, sheets_client)
    """
    settings = get_settings()
    app_settings = settings.app
    ledger_settings = settings.ledger
    configure_logging("DEBUG" if app_settings.debug_mode else app_settings.log_level)

    if use_remote_storage is None:
        use_remote_storage = app_settings.use_remote_storage

    sheets_client = None
    if use_remote_storage:
        try:
            sheets_client = GoogleSheetsClient()
            records = GoogleSheetsRecordStore(sheets_client)
            identity_store = GoogleSheetsIdentityStore(sheets_client)
            activity_log = GoogleSheetsActivityLog(sheets_client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("remote_storage_unavailable", error=str(e))
            sheets_client = None
            records, identity_store, activity_log = _in_memory_backends()
    else:
        records, identity_store, activity_log = _in_memory_backends()

    notifier = notifier or LoggingNotifier()
    activity_logger = ActivityLogger(
        activity_log,
        default_limit=ledger_settings.activity_log_limit,
    )

    identity = IdentityContext(
        identity_store,
        activity_logger=activity_logger,
        notifier=notifier,
        family_code_length=ledger_settings.family_code_length,
    )

    cache = None
    if ledger_settings.use_local_cache:
        cache = LocalLedgerCache(ledger_settings.cache_path)

    ledger = LedgerStore(
        identity,
        records,
        activity_logger=activity_logger,
        notifier=notifier,
        cache=cache,
        today=today,
    )

    logger.info(
        "app_components_created",
        environment=app_settings.app_environment,
        remote_storage=sheets_client is not None,
        local_cache=cache is not None,
    )
    return AppComponents(identity, ledger, activity_logger, notifier, sheets_client)
