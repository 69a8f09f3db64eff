"""
Shared fixtures: a complete in-memory stack with a fixed "today".

No test talks to Google Sheets; sheet tests use mocked worksheets.
"""

from datetime import date

import pytest
import pytest_asyncio

from family_budget.activity.logger import ActivityLogger
from family_budget.identity.context import IdentityContext
from family_budget.ledger.store import LedgerStore
from family_budget.services.notifications import RecordingNotifier
from family_budget.services.storage import (
    InMemoryActivityLog,
    InMemoryIdentityStore,
    InMemoryRecordStore,
)


TODAY = date(2024, 3, 15)


@pytest.fixture
def records():
    return InMemoryRecordStore()


@pytest.fixture
def identity_store():
    return InMemoryIdentityStore()


@pytest.fixture
def activity_log():
    return InMemoryActivityLog()


@pytest.fixture
def activity_logger(activity_log):
    return ActivityLogger(activity_log)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def identity(identity_store, activity_logger, notifier):
    return IdentityContext(
        identity_store,
        activity_logger=activity_logger,
        notifier=notifier,
    )


@pytest.fixture
def ledger(identity, records, activity_logger, notifier):
    return LedgerStore(
        identity,
        records,
        activity_logger=activity_logger,
        notifier=notifier,
        today=TODAY,
    )


@pytest_asyncio.fixture
async def signed_in(identity, ledger, notifier):
    """Léo registered with a new family; the ledger follows along."""
    await identity.register("user-leo", "Léo")
    notifier.drain()
    return identity
